# -*- coding: utf-8 -*-
# typographic/models/customer.py
"""
A Customer mirrors a Stripe Customer. It belongs to exactly one Account and
has at most one Subscription.

A customer can pay either with a PaymentMethod or with a legacy Source; the
id, last four digits and card brand of each are mirrored locally.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from typographic.infra.db import db


class Customer(db.Model):
    __tablename__ = 'customers'
    id = db.Column(db.Integer, primary_key=True)

    account_id = db.Column(db.Integer, db.ForeignKey('accounts.id'), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False)
    stripe_id = db.Column(db.String(64), index=True)

    # Comma-separated list of font ids
    fonts = db.Column(db.Text)

    payment_method_id = db.Column(db.String(64))
    payment_method_last4 = db.Column(db.String(4))
    payment_method_brand = db.Column(db.String(32))

    payment_source_id = db.Column(db.String(64))
    payment_source_last4 = db.Column(db.String(4))
    payment_source_brand = db.Column(db.String(32))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @classmethod
    def get_by_id(cls, customer_id) -> Optional["Customer"]:
        return db.session.get(cls, customer_id)

    @classmethod
    def get_by_account(cls, account_id) -> Optional["Customer"]:
        return cls.query.filter_by(account_id=account_id).first()

    @property
    def subscription(self):
        from typographic.models.subscription import Subscription
        return Subscription.get_by_customer(self.id)

    @property
    def has_payment_method(self) -> bool:
        return bool(self.payment_method_id)

    @property
    def has_payment_source(self) -> bool:
        return bool(self.payment_source_id)

    @property
    def can_be_charged(self) -> bool:
        """A card is on file, either as a PaymentMethod or a legacy Source."""
        return self.has_payment_method or self.has_payment_source

    def font_list(self) -> List[str]:
        return split_fonts(self.fonts)

    def set_payment_method(self, payment_method_id=None, last4=None, brand=None):
        self.payment_method_id = payment_method_id
        self.payment_method_last4 = last4
        self.payment_method_brand = brand

    def set_payment_source(self, source_id=None, last4=None, brand=None):
        self.payment_source_id = source_id
        self.payment_source_last4 = last4
        self.payment_source_brand = brand

    def payment_method_dict(self) -> Dict[str, Any]:
        return {
            "paymentMethodId": self.payment_method_id,
            "paymentMethodLast4": self.payment_method_last4,
            "paymentMethodBrand": self.payment_method_brand,
        }

    def payment_source_dict(self) -> Dict[str, Any]:
        return {
            "paymentSourceId": self.payment_source_id,
            "paymentSourceLast4": self.payment_source_last4,
            "paymentSourceBrand": self.payment_source_brand,
        }

    def to_dict(self, expand: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "stripeId": self.stripe_id,
            "accountId": self.account_id,
            "email": self.email,
            "fonts": self.fonts,
        }
        if self.payment_method_id:
            data["paymentMethod"] = {
                "id": self.payment_method_id,
                "last4": self.payment_method_last4,
                "brand": self.payment_method_brand,
            }
        if self.payment_source_id:
            data["paymentSource"] = {
                "id": self.payment_source_id,
                "last4": self.payment_source_last4,
                "brand": self.payment_source_brand,
            }
        if expand:
            subscription = self.subscription
            if subscription:
                data["subscription"] = subscription.to_dict()
        return data

    def __repr__(self) -> str:
        return f"<Customer {self.id} stripe={self.stripe_id}>"


def split_fonts(fonts: Optional[str]) -> List[str]:
    if not fonts:
        return []
    return [f.strip() for f in fonts.split(",") if f.strip()]


def join_fonts(fonts: Union[str, Iterable[str], None]) -> str:
    """Normalise a comma-separated string or a list of font ids to one string."""
    if fonts is None:
        return ""
    if isinstance(fonts, str):
        return ",".join(split_fonts(fonts))
    return ",".join(str(f).strip() for f in fonts if str(f).strip())
