# -*- coding: utf-8 -*-
# typographic/models/account.py
"""
An Account is what a user logs in with. Each Account has exactly one
Customer (customers.account_id).

The password is stored as a bcrypt hash and never rendered.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

import bcrypt

from typographic.errors import ValidationFailed
from typographic.infra.db import db

# The number of rounds to use when hashing a password with bcrypt
NUM_ROUNDS = 12


class Account(db.Model):
    __tablename__ = 'accounts'
    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password = db.Column(db.String(255), nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @classmethod
    def get_by_id(cls, account_id) -> Optional["Account"]:
        return db.session.get(cls, account_id)

    @classmethod
    def get_by_email(cls, email: str) -> Optional["Account"]:
        return cls.query.filter_by(email=email).first()

    @classmethod
    def create(cls, email: str, password: str) -> "Account":
        """Insert a new Account with a hashed password. Does not commit."""
        if not email or not password:
            raise ValidationFailed(
                "Missing a required parameter: email, password",
                client_message="Email and password are required.")
        account = cls(email=email)
        account.set_password(password)
        db.session.add(account)
        db.session.flush()
        return account

    # --- password helpers ---
    def set_password(self, raw_password: str):
        self.password = bcrypt.hashpw(
            raw_password.encode('utf-8'),
            bcrypt.gensalt(rounds=NUM_ROUNDS)).decode('utf-8')

    def check_password(self, raw_password: str) -> bool:
        if not raw_password or not self.password:
            return False
        return bcrypt.checkpw(
            raw_password.encode('utf-8'), self.password.encode('utf-8'))

    @property
    def customer(self):
        from typographic.models.customer import Customer
        return Customer.get_by_account(self.id)

    # --- safe serializer ---
    def to_dict(self, expand: bool = False) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "email": self.email,
        }
        if expand:
            customer = self.customer
            if customer:
                data["customer"] = customer.to_dict(expand=True)
        return data

    def __repr__(self) -> str:
        return f"<Account {self.id} {self.email}>"
