# -*- coding: utf-8 -*-
from typographic.models.account import Account
from typographic.models.customer import Customer
from typographic.models.plan import Plan
from typographic.models.session import Session
from typographic.models.subscription import Subscription

__all__ = ["Account", "Customer", "Plan", "Session", "Subscription"]

# Tables the service needs before it can start
TABLES = ("accounts", "customers", "subscriptions", "plans", "sessions")
