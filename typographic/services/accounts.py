# -*- coding: utf-8 -*-
"""
Signup and login.

Signup writes the Account row, creates the Stripe customer, then writes the
Customer row, all in one local transaction. If the local commit fails after
Stripe succeeded, the Stripe customer is left without a local record.
"""
from __future__ import annotations

from typing import Tuple

from typographic.errors import AuthenticationFailed, Conflict, NotFound
from typographic.infra.db import db
from typographic.infra.log import get_logger
from typographic.models.account import Account
from typographic.models.customer import Customer, join_fonts
from typographic.services.billing_provider import get_billing_provider
from typographic.services.structured_logging import log_auth_failure, log_auth_success

logger = get_logger('typographic.auth')


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def signup(email: str, password: str) -> Account:
    email = normalize_email(email)

    if Account.get_by_email(email):
        raise Conflict(f"Username {email} is already taken.",
                       client_message="That username is already taken.")

    try:
        account = Account.create(email, password)

        stripe_customer = get_billing_provider().create_customer(email)
        db.session.add(Customer(
            account_id=account.id,
            email=email,
            stripe_id=stripe_customer['id'],
        ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    logger.info("Account created", account_id=account.id)
    return account


def authenticate(email: str, password: str) -> Tuple[Account, Customer]:
    email = normalize_email(email)
    account = Account.get_by_email(email)

    if account is None or not account.check_password(password):
        log_auth_failure('login', 'credentials mismatch', email=email)
        raise AuthenticationFailed(
            f"Username or password for {email} doesn't match.",
            client_message="Username and password don't match.")

    customer = Customer.get_by_account(account.id)
    if customer is None:
        raise NotFound(f"Customer for account {account.id} not found.")

    log_auth_success('login', account.id)
    return account, customer


def get_account(account_id: int) -> Account:
    account = Account.get_by_id(account_id)
    if account is None:
        raise NotFound(f"Account {account_id} not found.")
    return account


def get_customer(customer_id: int) -> Customer:
    customer = Customer.get_by_id(customer_id)
    if customer is None:
        raise NotFound(f"Customer {customer_id} not found.")
    return customer


def update_fonts(customer: Customer, fonts) -> str:
    """Store the customer's fonts as a comma-joined list of font ids."""
    customer.fonts = join_fonts(fonts)
    db.session.commit()
    return customer.fonts
