# -*- coding: utf-8 -*-
from typographic.database.db import db

__all__ = ["db"]
