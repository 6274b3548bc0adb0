# -*- coding: utf-8 -*-
"""
Plan catalog and Stripe plan setup.

Each tier (Starter, Growth, Enterprise) is a pair of Stripe plans:
- a monthly plan with the base price (e.g. $10);
- a metered plan with graduated tiers: the first `included` requests each
  month are free, every request above that costs $0.01.

Customers subscribe to both plans of a pair, so six plans exist in total.
"""
from __future__ import annotations

import copy
from typing import Any, Dict, List

from typographic.errors import BillingProviderError, SetupError
from typographic.infra.db import db
from typographic.infra.log import get_logger
from typographic.models.plan import MONTHLY, Plan

logger = get_logger('typographic.billing')

PLAN_CATALOG: List[Dict[str, Any]] = [
    {'name': 'Starter', 'nickname': 'starter', 'type': 'monthly', 'amount': 1000},
    {'name': 'Starter monthly requests', 'nickname': 'starter_requests',
     'type': 'metered', 'amount': 1, 'included': 10000},
    {'name': 'Growth', 'nickname': 'growth', 'type': 'monthly', 'amount': 2000},
    {'name': 'Growth monthly requests', 'nickname': 'growth_requests',
     'type': 'metered', 'amount': 1, 'included': 50000},
    {'name': 'Enterprise', 'nickname': 'enterprise', 'type': 'monthly', 'amount': 3000},
    {'name': 'Enterprise monthly requests', 'nickname': 'enterprise_requests',
     'type': 'metered', 'amount': 1, 'included': 150000},
]

ALREADY_EXISTS = ('Plan already exists.', 'Product already exists.')


def monthly_nicknames() -> List[str]:
    return [p['nickname'] for p in PLAN_CATALOG if p['type'] == MONTHLY]


def setup_plans(provider) -> List[str]:
    """
    Make sure every catalog plan exists on Stripe, then rewrite the local
    plans table from the catalog.

    Returns the nicknames of the plans that had to be created.
    """
    plans = copy.deepcopy(PLAN_CATALOG)

    try:
        stripe_plans = provider.list_plans()
    except BillingProviderError as e:
        raise BillingProviderError(f"Error communicating with Stripe: {e}") from e

    by_nickname = {}
    for stripe_plan in stripe_plans:
        nickname = stripe_plan.get('nickname')
        if nickname and nickname not in by_nickname:
            by_nickname[nickname] = stripe_plan

    missing = []
    for plan in plans:
        match = by_nickname.get(plan['nickname'])
        if match:
            plan['stripe_id'] = match['id']
        else:
            missing.append(plan)

    if not missing:
        logger.info("Plans found on Stripe.")
    else:
        logger.info(f"{len(missing)} plans missing from this Stripe account; creating them.",
                    missing=[p['nickname'] for p in missing])

    for plan in missing:
        try:
            created = provider.create_plan(plan)
        except BillingProviderError as e:
            cause = e.__cause__
            detail = getattr(cause, 'user_message', None) or str(cause or e)
            if detail in ALREADY_EXISTS:
                raise SetupError(
                    "Plans and Products have already been registered. "
                    "Delete them from your Dashboard and run setup again.") from e
            raise SetupError(f"An error occurred during setup: {e}") from e
        plan['stripe_id'] = created['id']
        logger.info(f"Created {plan['name']} plan on Stripe.", stripe_id=created['id'])

    # Overwrite the local plans table with references to the Stripe plans
    try:
        Plan.query.delete()
        for plan in plans:
            db.session.add(Plan(
                stripe_id=plan['stripe_id'],
                name=plan['name'],
                nickname=plan['nickname'],
                type=plan['type'],
                amount=plan['amount'],
                included=plan.get('included'),
            ))
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        raise SetupError(f"Database error: {e}") from e

    logger.info("Synced plans to local database.", count=len(plans))
    return [p['nickname'] for p in missing]
