# -*- coding: utf-8 -*-
"""
``flask --app typographic.main setup``

Rebuilds the local database and registers the plan catalog on Stripe.
"""
import click
from flask import current_app
from flask.cli import with_appcontext

from typographic.config import REQUIRED_SETTINGS
from typographic.errors import SetupError, TypographicError
from typographic.infra.db import db
from typographic.infra.log import get_logger
from typographic.models import TABLES
from typographic.models.plan import Plan
from typographic.services.billing_provider import get_billing_provider
from typographic.services.plans import setup_plans

logger = get_logger('typographic.billing')


def run_setup(app) -> dict:
    """
    Drop and recreate every table, then sync the plans with Stripe.

    Refuses to touch the database when the Stripe keys are not configured.
    Returns a summary of what was done.
    """
    missing = [name for name in REQUIRED_SETTINGS
               if name.startswith("STRIPE_") and not app.config.get(name)]
    if missing:
        raise SetupError(
            f"Missing settings: {', '.join(missing)}. "
            "Set your Stripe API keys in the environment before running setup.")

    with app.app_context():
        db.drop_all()
        db.create_all()
        logger.info("Database tables recreated.", tables=list(TABLES))

        created = setup_plans(get_billing_provider())
        plans = [p.nickname for p in Plan.all()]

    return {'tables': list(TABLES), 'created': created, 'plans': plans}


@click.command('setup')
@with_appcontext
def setup_command():
    """Recreate the database and set up the Stripe plans."""
    try:
        summary = run_setup(current_app._get_current_object())
    except TypographicError as e:
        raise click.ClickException(e.message) from e

    click.echo(f"Created tables: {', '.join(summary['tables'])}")
    if summary['created']:
        click.echo(f"Created plans on Stripe: {', '.join(summary['created'])}")
    else:
        click.echo("All plans already exist on Stripe.")
    click.echo(f"Synced {len(summary['plans'])} plans to the local database.")
    click.echo("Setup complete.")
