# -*- coding: utf-8 -*-
"""
Subscription lifecycle and metered usage.

Every operation calls Stripe first and writes the local row second. There is
no rollback of the Stripe side when the local write fails, and no guard
against two requests mutating the same subscription at once.
"""
from __future__ import annotations

import time
from typing import Optional, Tuple

from flask import current_app

from typographic.errors import Conflict, NotFound, ValidationFailed
from typographic.infra.db import db
from typographic.infra.log import get_logger
from typographic.models.customer import Customer
from typographic.models.plan import Plan, metered_nickname
from typographic.models.subscription import (
    CHARGE_AUTOMATICALLY,
    SEND_INVOICE,
    Subscription,
)
from typographic.services.billing_provider import get_billing_provider, stripe_timestamp
from typographic.services.metrics import get_metrics_service

logger = get_logger('typographic.billing')


def _days_until_due() -> int:
    return current_app.config.get("INVOICE_DAYS_UNTIL_DUE", 30)


def find_plan_pair(plan: str) -> Tuple[Plan, Plan]:
    """Return the (monthly, metered) plans for a monthly plan nickname."""
    if not plan:
        raise ValidationFailed("Missing required parameter: `plan`.",
                               client_message="No subscription plan specified.")
    monthly = Plan.get_by_nickname(plan)
    metered = Plan.get_by_nickname(metered_nickname(plan))
    if monthly is None or metered is None:
        raise NotFound(f"Monthly or metered plans for {plan} not found in local database.",
                       client_message="That plan does not exist.")
    return monthly, metered


def get_subscription(customer: Customer) -> Subscription:
    subscription = Subscription.get_by_customer(customer.id)
    if subscription is None:
        raise NotFound(f"Subscription for customer {customer.id} not found.",
                       client_message="No subscription found.")
    return subscription


def _find_item(stripe_subscription, nickname: str):
    for item in stripe_subscription['items']['data']:
        if item['plan']['nickname'] == nickname:
            return item
    return None


def create_subscription(customer: Customer, plan: str) -> Subscription:
    """
    Subscribe the customer to the monthly plan and its metered companion.

    Customers with a stored payment method or card source are charged
    automatically; the others are sent a hosted invoice by email.
    """
    if Subscription.get_by_customer(customer.id):
        raise Conflict(f"Customer {customer.id} already has a subscription.",
                       client_message="You already have a subscription.")

    monthly, metered = find_plan_pair(plan)

    if customer.can_be_charged:
        collection_method, days_until_due = CHARGE_AUTOMATICALLY, None
    else:
        collection_method, days_until_due = SEND_INVOICE, _days_until_due()

    stripe_sub = get_billing_provider().create_subscription(
        customer.stripe_id,
        [monthly.stripe_id, metered.stripe_id],
        collection_method,
        days_until_due=days_until_due,
    )

    monthly_item = _find_item(stripe_sub, monthly.nickname)
    metered_item = _find_item(stripe_sub, metered.nickname)

    subscription = Subscription(
        customer_id=customer.id,
        stripe_id=stripe_sub['id'],
        status=stripe_sub['status'],
        plan=plan,
        collection_method=collection_method,
        current_period_start=stripe_sub.get('current_period_start'),
        current_period_end=stripe_sub.get('current_period_end'),
        metered_usage=0,
        stripe_monthly_sub_id=monthly_item['id'] if monthly_item else None,
        stripe_metered_sub_id=metered_item['id'] if metered_item else None,
    )
    db.session.add(subscription)
    db.session.commit()

    logger.info("Subscription created", subscription_id=subscription.id,
                stripe_id=subscription.stripe_id, plan=plan,
                collection_method=collection_method)
    return subscription


def update_subscription(subscription: Subscription, plan: str) -> Subscription:
    """Move both subscription items to the plans for `plan`."""
    monthly, metered = find_plan_pair(plan)

    get_billing_provider().update_subscription_plans(
        subscription.stripe_id,
        subscription.stripe_monthly_sub_id, monthly.stripe_id,
        subscription.stripe_metered_sub_id, metered.stripe_id,
    )

    subscription.plan = plan
    db.session.commit()

    logger.info("Subscription updated", subscription_id=subscription.id, plan=plan)
    return subscription


def cancel_subscription(subscription: Subscription) -> None:
    get_billing_provider().cancel_subscription(subscription.stripe_id)

    db.session.delete(subscription)
    db.session.commit()

    logger.info("Subscription canceled", stripe_id=subscription.stripe_id)


def record_usage(subscription: Subscription, quantity: int,
                 now_ms: Optional[float] = None) -> int:
    """
    Report `quantity` requests on the metered item and add them to the local
    counter. Returns the total for the current billing period.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise ValidationFailed(f"Invalid usage quantity: {quantity!r}",
                               client_message="`numRequests` must be a positive integer.")

    if now_ms is None:
        now_ms = time.time() * 1000

    get_billing_provider().create_usage_record(
        subscription.stripe_metered_sub_id,
        quantity,
        stripe_timestamp(now_ms),
    )

    total = (subscription.metered_usage or 0) + quantity
    subscription.metered_usage = total
    db.session.commit()

    metrics = get_metrics_service()
    if metrics:
        metrics.record_usage(quantity)

    logger.info("Usage recorded", subscription_id=subscription.id,
                quantity=quantity, total=total)
    return total


def subscribe_invoices(customer: Customer) -> bool:
    """
    Switch the customer's subscription to emailed invoices. Returns whether
    anything changed.
    """
    subscription = Subscription.get_by_customer(customer.id)
    if subscription is None or subscription.collection_method == SEND_INVOICE:
        return False

    get_billing_provider().update_collection_method(
        subscription.stripe_id, SEND_INVOICE, days_until_due=_days_until_due())

    subscription.collection_method = SEND_INVOICE
    db.session.commit()
    return True


def upcoming_invoice_estimate(customer: Customer) -> int:
    """Total of the customer's next invoice in cents; 0 without a subscription."""
    subscription = Subscription.get_by_customer(customer.id)
    if subscription is None:
        return 0

    invoice = get_billing_provider().retrieve_upcoming_invoice(
        customer.stripe_id, subscription.stripe_id)
    return invoice['total']
