# -*- coding: utf-8 -*-
"""
Billing API.

Everything except ``/api/environment`` needs a live bearer session; the
account and customer ids come from the session, never from the request body.
"""
from flask import Blueprint, current_app, g, jsonify, request

from typographic.schemas.billing import (
    FontsSchema,
    PaymentMethodSchema,
    PlanSchema,
    SourceSchema,
    UsageSchema,
)
from typographic.services import accounts, payment_methods, subscriptions
from typographic.services.sessions import require_session

billing_bp = Blueprint('billing', __name__, url_prefix='/api')


def _json_body() -> dict:
    return request.get_json(silent=True) or {}


def _current_customer():
    return accounts.get_customer(g.customer_id)


@billing_bp.route('/environment', methods=['GET'])
def environment():
    """Publishable key for Stripe.js / Elements in the browser."""
    return jsonify({'stripePublicKey': current_app.config.get('STRIPE_PUBLISHABLE_KEY')}), 200


@billing_bp.route('/account', methods=['GET'])
@require_session
def get_account():
    account = accounts.get_account(g.account_id)
    return jsonify(account.to_dict(expand=True)), 200


# --- subscription ---

@billing_bp.route('/subscription', methods=['GET'])
@require_session
def get_subscription():
    subscription = subscriptions.get_subscription(_current_customer())
    return jsonify(subscription.to_dict()), 200


@billing_bp.route('/subscription', methods=['POST'])
@require_session
def create_subscription():
    data = PlanSchema().load(_json_body())
    subscription = subscriptions.create_subscription(_current_customer(), data['plan'])
    return jsonify({'subscription': subscription.to_dict()}), 201


@billing_bp.route('/subscription', methods=['PATCH'])
@require_session
def update_subscription():
    data = PlanSchema().load(_json_body())
    subscription = subscriptions.get_subscription(_current_customer())
    subscription = subscriptions.update_subscription(subscription, data['plan'])
    return jsonify({'subscription': subscription.to_dict()}), 200


@billing_bp.route('/subscription', methods=['DELETE'])
@require_session
def cancel_subscription():
    subscription = subscriptions.get_subscription(_current_customer())
    subscriptions.cancel_subscription(subscription)
    return jsonify({'ok': True}), 200


# --- invoices ---

@billing_bp.route('/invoices/subscribe', methods=['POST'])
@require_session
def subscribe_invoices():
    changed = subscriptions.subscribe_invoices(_current_customer())
    return jsonify({'ok': True, 'changed': changed}), 200


@billing_bp.route('/invoices/upcoming', methods=['GET'])
@require_session
def upcoming_invoice():
    estimate = subscriptions.upcoming_invoice_estimate(_current_customer())
    return jsonify({'estimate': estimate}), 200


# --- fonts and usage ---

@billing_bp.route('/fonts', methods=['POST'])
@require_session
def update_fonts():
    data = FontsSchema().load(_json_body())
    fonts = accounts.update_fonts(_current_customer(), data['fonts'])
    return jsonify({'fonts': fonts}), 200


@billing_bp.route('/usage', methods=['POST'])
@require_session
def record_usage():
    data = UsageSchema().load(_json_body())
    subscription = subscriptions.get_subscription(_current_customer())
    total = subscriptions.record_usage(subscription, data['numRequests'])
    return jsonify({'numRequests': total}), 200


# --- payment methods and sources ---

@billing_bp.route('/setup_intent', methods=['POST'])
@require_session
def setup_intent():
    client_secret = payment_methods.create_setup_intent(_current_customer())
    return jsonify({'clientSecret': client_secret}), 200


@billing_bp.route('/payment_methods/attach', methods=['POST'])
@require_session
def attach_payment_method():
    data = PaymentMethodSchema().load(_json_body())
    result = payment_methods.attach_payment_method(_current_customer(), data['paymentMethodId'])
    return jsonify(result), 200


@billing_bp.route('/payment_methods/remove', methods=['POST'])
@require_session
def remove_payment_method():
    payment_methods.remove_payment_method(_current_customer())
    return jsonify({'ok': True}), 200


@billing_bp.route('/sources/attach', methods=['POST'])
@require_session
def attach_source():
    data = SourceSchema().load(_json_body())
    result = payment_methods.attach_payment_source(_current_customer(), data['token'])
    return jsonify(result), 200


@billing_bp.route('/sources/remove', methods=['POST'])
@require_session
def remove_source():
    payment_methods.remove_payment_source(_current_customer())
    return jsonify({'ok': True}), 200
