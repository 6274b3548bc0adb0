# -*- coding: utf-8 -*-
# typographic/models/session.py
from __future__ import annotations

import time

from typographic.infra.db import db


class Session(db.Model):
    """Server-side record of an issued bearer token, keyed by the token's jti."""
    __tablename__ = 'sessions'

    token = db.Column(db.String(64), primary_key=True)
    account_id = db.Column(db.Integer, db.ForeignKey('accounts.id'), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=True)

    # Epoch seconds of the last authenticated request
    timestamp = db.Column(db.Float, nullable=False, default=time.time)

    def is_idle(self, max_idle_seconds: int, now: float = None) -> bool:
        now = time.time() if now is None else now
        return self.timestamp <= now - max_idle_seconds

    def touch(self, now: float = None):
        self.timestamp = time.time() if now is None else now

    def __repr__(self) -> str:
        return f"<Session account={self.account_id}>"
