# -*- coding: utf-8 -*-
# typographic/models/subscription.py
"""
A Subscription mirrors a Stripe Subscription made of two items: the monthly
plan and its metered "_requests" companion. The ids of both subscription
items are kept so plan changes and usage records can target them directly.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional


from typographic.infra.db import db

CHARGE_AUTOMATICALLY = 'charge_automatically'
SEND_INVOICE = 'send_invoice'


class Subscription(db.Model):
    __tablename__ = 'subscriptions'
    id = db.Column(db.Integer, primary_key=True)

    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False, index=True)
    stripe_id = db.Column(db.String(64), index=True)
    status = db.Column(db.String(32))

    # Nickname of the monthly plan, e.g. 'starter', 'growth' or 'enterprise'
    plan = db.Column(db.String(64))
    collection_method = db.Column(db.String(32))

    # Epoch seconds, as reported by Stripe
    current_period_start = db.Column(db.Integer)
    current_period_end = db.Column(db.Integer)

    metered_usage = db.Column(db.Integer, nullable=False, default=0)
    stripe_monthly_sub_id = db.Column(db.String(64))
    stripe_metered_sub_id = db.Column(db.String(64))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.CheckConstraint('metered_usage >= 0', name='ck_subscriptions_metered_usage'),
    )

    @classmethod
    def get_by_id(cls, subscription_id) -> Optional["Subscription"]:
        return db.session.get(cls, subscription_id)

    @classmethod
    def get_by_customer(cls, customer_id) -> Optional["Subscription"]:
        return cls.query.filter_by(customer_id=customer_id).first()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "stripeId": self.stripe_id,
            "customerId": self.customer_id,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "status": self.status,
            "plan": self.plan,
            "collectionMethod": self.collection_method,
            "currentPeriodStart": self.current_period_start,
            "currentPeriodEnd": self.current_period_end,
            "meteredUsage": self.metered_usage,
            "stripeMonthlySubId": self.stripe_monthly_sub_id,
            "stripeMeteredSubId": self.stripe_metered_sub_id,
        }

    def __repr__(self) -> str:
        return f"<Subscription {self.id} plan={self.plan} status={self.status}>"
