# -*- coding: utf-8 -*-
"""
Stripe billing provider.

This is the only module that talks to Stripe. Every call is timed, logged,
counted and has its Stripe errors re-raised as BillingProviderError. Stripe
objects are returned unchanged; callers read them with item access
(``sub["items"]["data"]``) since StripeObject is a dict.
"""
from __future__ import annotations

import time
from typing import Any, Callable, Dict, List, Optional

import stripe
from flask import current_app

from typographic.errors import BillingProviderError
from typographic.infra.log import get_logger
from typographic.models.plan import METERED
from typographic.services.metrics import get_metrics_service

logger = get_logger('typographic.stripe')

CURRENCY = 'usd'


def stripe_timestamp(now_ms: Optional[float] = None) -> int:
    """Convert a millisecond clock reading to Stripe's second resolution."""
    if now_ms is None:
        now_ms = time.time() * 1000
    return int(now_ms // 1000)


def get_billing_provider() -> "StripeBillingProvider":
    """Return the provider registered on the current app."""
    return current_app.extensions['billing_provider']


class StripeBillingProvider:

    def __init__(self, secret_key: str):
        self.secret_key = secret_key
        if secret_key:
            stripe.api_key = secret_key

    def _call(self, operation: str, fn: Callable, *args, **kwargs) -> Any:
        start = time.time()
        metrics = get_metrics_service()
        try:
            result = fn(*args, **kwargs)
        except stripe.StripeError as e:
            duration_ms = round((time.time() - start) * 1000, 2)
            logger.log_provider_call(operation, success=False, duration_ms=duration_ms,
                                     stripe_error=str(e))
            if metrics:
                metrics.record_stripe_call(operation, 'error')
            raise BillingProviderError(
                f"Stripe {operation} failed: {e}",
                client_message=getattr(e, "user_message", None),
                code=getattr(e, "code", None),
            ) from e

        duration_ms = round((time.time() - start) * 1000, 2)
        logger.log_provider_call(operation, success=True, duration_ms=duration_ms)
        if metrics:
            metrics.record_stripe_call(operation, 'ok')
        return result

    # --- customers ---
    def create_customer(self, email: str):
        return self._call('customer.create', stripe.Customer.create, email=email)

    # --- plans ---
    def list_plans(self) -> List[Any]:
        # Later pages are fetched lazily, so paging runs inside the timed call
        return self._call(
            'plan.list',
            lambda: list(stripe.Plan.list(limit=100).auto_paging_iter()))

    def create_plan(self, definition: Dict[str, Any]):
        """Create a monthly or a metered plan from a catalog entry."""
        params: Dict[str, Any] = {
            'interval': 'month',
            'currency': CURRENCY,
            'nickname': definition['nickname'],
            'product': {'name': definition['name']},
        }
        if definition['type'] == METERED:
            # Graduated tiers: the first `included` requests are free, each
            # request above that costs `amount`.
            params.update(
                usage_type='metered',
                billing_scheme='tiered',
                tiers_mode='graduated',
                tiers=[
                    {'up_to': definition['included'], 'unit_amount': 0},
                    {'up_to': 'inf', 'unit_amount': definition['amount']},
                ],
            )
        else:
            params['amount'] = definition['amount']
        return self._call('plan.create', stripe.Plan.create, **params)

    # --- subscriptions ---
    def create_subscription(self, customer_id: str, plan_ids: List[str],
                            collection_method: str,
                            days_until_due: Optional[int] = None):
        params: Dict[str, Any] = {
            'customer': customer_id,
            'items': [{'plan': plan_id} for plan_id in plan_ids],
            'collection_method': collection_method,
        }
        if days_until_due is not None:
            params['days_until_due'] = days_until_due
        return self._call('subscription.create', stripe.Subscription.create, **params)

    def update_subscription_plans(self, subscription_id: str,
                                  monthly_item_id: str, monthly_plan_id: str,
                                  metered_item_id: str, metered_plan_id: str):
        return self._call(
            'subscription.update', stripe.Subscription.modify, subscription_id,
            cancel_at_period_end=False,
            items=[
                {'id': monthly_item_id, 'plan': monthly_plan_id},
                {'id': metered_item_id, 'plan': metered_plan_id},
            ],
        )

    def update_collection_method(self, subscription_id: str, collection_method: str,
                                 default_payment_method: Optional[str] = None,
                                 days_until_due: Optional[int] = None):
        params: Dict[str, Any] = {'collection_method': collection_method}
        if default_payment_method:
            params['default_payment_method'] = default_payment_method
        if days_until_due is not None:
            params['days_until_due'] = days_until_due
        return self._call('subscription.update', stripe.Subscription.modify,
                          subscription_id, **params)

    def cancel_subscription(self, subscription_id: str):
        return self._call('subscription.cancel', stripe.Subscription.cancel, subscription_id)

    # --- payment methods and sources ---
    def attach_payment_method(self, payment_method_id: str, customer_id: str):
        return self._call('payment_method.attach', stripe.PaymentMethod.attach,
                          payment_method_id, customer=customer_id)

    def detach_payment_method(self, payment_method_id: str):
        return self._call('payment_method.detach', stripe.PaymentMethod.detach,
                          payment_method_id)

    def create_source(self, customer_id: str, token: str):
        return self._call('source.create', stripe.Customer.create_source,
                          customer_id, source=token)

    def delete_source(self, customer_id: str, source_id: str):
        return self._call('source.delete', stripe.Customer.delete_source,
                          customer_id, source_id)

    def create_setup_intent(self, customer_id: str):
        return self._call('setup_intent.create', stripe.SetupIntent.create,
                          payment_method_types=['card'], customer=customer_id)

    # --- usage and invoices ---
    def create_usage_record(self, subscription_item_id: str, quantity: int, timestamp: int):
        return self._call('usage_record.create', stripe.SubscriptionItem.create_usage_record,
                          subscription_item_id, quantity=quantity, timestamp=timestamp,
                          action='increment')

    def retrieve_upcoming_invoice(self, customer_id: str, subscription_id: str):
        return self._call('invoice.upcoming', stripe.Invoice.upcoming,
                          customer=customer_id, subscription=subscription_id)
