"""
Unified database infrastructure module.

Models and services import the SQLAlchemy instance from here.
"""

from typographic.database import db

__all__ = ["db"]
