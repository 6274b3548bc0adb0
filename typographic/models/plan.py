# -*- coding: utf-8 -*-
# typographic/models/plan.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from typographic.infra.db import db

MONTHLY = 'monthly'
METERED = 'metered'
METERED_SUFFIX = '_requests'


class Plan(db.Model):
    """Local reference to a Stripe Plan. Rewritten wholesale by setup_plans()."""
    __tablename__ = 'plans'
    id = db.Column(db.Integer, primary_key=True)

    stripe_id = db.Column(db.String(64))
    name = db.Column(db.String(128))
    nickname = db.Column(db.String(64), index=True)
    type = db.Column(db.String(16))

    # Cents: the monthly price, or the price per request above `included`
    amount = db.Column(db.Integer)
    included = db.Column(db.Integer)

    @classmethod
    def get_by_id(cls, plan_id) -> Optional["Plan"]:
        return db.session.get(cls, plan_id)

    @classmethod
    def get_by_nickname(cls, nickname: str) -> Optional["Plan"]:
        return cls.query.filter_by(nickname=nickname).first()

    @classmethod
    def all(cls) -> List["Plan"]:
        return cls.query.order_by(cls.id.asc()).all()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "stripeId": self.stripe_id,
            "name": self.name,
            "nickname": self.nickname,
            "type": self.type,
            "amount": self.amount,
            "included": self.included,
        }

    def __repr__(self) -> str:
        return f"<Plan {self.nickname} stripe={self.stripe_id}>"


def metered_nickname(nickname: str) -> str:
    return nickname + METERED_SUFFIX
