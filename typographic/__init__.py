# -*- coding: utf-8 -*-
"""Typographic: a Stripe Billing demo backend."""

__version__ = "0.1.0"
