# -*- coding: utf-8 -*-
"""
Payment methods and legacy payment sources.

Either kind of card on file lets a subscription be charged automatically.
Attaching one moves an invoiced subscription to automatic charges, and
removing the last one moves it back to emailed invoices.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from flask import current_app

from typographic.errors import NotFound, ValidationFailed
from typographic.infra.db import db
from typographic.infra.log import get_logger
from typographic.models.customer import Customer
from typographic.models.subscription import CHARGE_AUTOMATICALLY, SEND_INVOICE, Subscription
from typographic.services.billing_provider import get_billing_provider

logger = get_logger('typographic.billing')


def _card(obj) -> Dict[str, Any]:
    """Card details of a PaymentMethod or a card Source."""
    card = obj.get('card') if hasattr(obj, 'get') else None
    return card or obj


def _charge_automatically(customer: Customer, **params) -> None:
    subscription = Subscription.get_by_customer(customer.id)
    if not subscription or subscription.collection_method == CHARGE_AUTOMATICALLY:
        return

    get_billing_provider().update_collection_method(
        subscription.stripe_id, CHARGE_AUTOMATICALLY, **params)
    subscription.collection_method = CHARGE_AUTOMATICALLY
    db.session.commit()
    logger.info("Subscription switched to automatic charges",
                customer_id=customer.id, subscription_id=subscription.stripe_id)


def _send_invoices(customer: Customer) -> None:
    subscription = Subscription.get_by_customer(customer.id)
    if not subscription or subscription.collection_method == SEND_INVOICE:
        return

    get_billing_provider().update_collection_method(
        subscription.stripe_id, SEND_INVOICE,
        days_until_due=current_app.config.get("INVOICE_DAYS_UNTIL_DUE", 30))
    subscription.collection_method = SEND_INVOICE
    db.session.commit()
    logger.info("Subscription switched to emailed invoices",
                customer_id=customer.id, subscription_id=subscription.stripe_id)


def create_setup_intent(customer: Customer) -> str:
    intent = get_billing_provider().create_setup_intent(customer.stripe_id)
    return intent['client_secret']


def attach_payment_method(customer: Customer, payment_method_id: str) -> Dict[str, Any]:
    """
    Attach a PaymentMethod and store its card details. An existing
    subscription billed by invoice is switched to automatic charges with the
    new method as its default.
    """
    if not payment_method_id:
        raise ValidationFailed("Missing required parameter: `paymentMethodId`.")

    payment_method = get_billing_provider().attach_payment_method(
        payment_method_id, customer.stripe_id)
    card = _card(payment_method)

    customer.set_payment_method(payment_method_id, card['last4'], card['brand'])
    db.session.commit()

    _charge_automatically(customer, default_payment_method=payment_method_id)

    logger.info("Payment method attached", customer_id=customer.id,
                brand=customer.payment_method_brand)
    return customer.payment_method_dict()


def remove_payment_method(customer: Customer,
                          payment_method_id: Optional[str] = None) -> None:
    payment_method_id = payment_method_id or customer.payment_method_id
    if not payment_method_id:
        raise NotFound(f"Customer {customer.id} has no payment method.",
                       client_message="No payment method on file.")

    get_billing_provider().detach_payment_method(payment_method_id)

    customer.set_payment_method()
    db.session.commit()
    logger.info("Payment method removed", customer_id=customer.id)

    if not customer.can_be_charged:
        _send_invoices(customer)


def attach_payment_source(customer: Customer, token: str) -> Dict[str, Any]:
    if not token:
        raise ValidationFailed("Missing required parameter: `token`.")

    source = get_billing_provider().create_source(customer.stripe_id, token)
    card = _card(source)

    customer.set_payment_source(source['id'], card['last4'], card['brand'])
    db.session.commit()

    # Stripe charges the customer's default source, no default_payment_method
    _charge_automatically(customer)

    logger.info("Payment source attached", customer_id=customer.id)
    return customer.payment_source_dict()


def remove_payment_source(customer: Customer) -> None:
    if not customer.payment_source_id:
        raise NotFound(f"Customer {customer.id} has no payment source.",
                       client_message="No payment source on file.")

    get_billing_provider().delete_source(customer.stripe_id, customer.payment_source_id)

    customer.set_payment_source()
    db.session.commit()
    logger.info("Payment source removed", customer_id=customer.id)

    if not customer.can_be_charged:
        _send_invoices(customer)
