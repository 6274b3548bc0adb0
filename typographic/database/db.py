# -*- coding: utf-8 -*-
# typographic/database/db.py
from flask_sqlalchemy import SQLAlchemy

# Global SQLAlchemy() instance, bound to the app in create_app()
db = SQLAlchemy()
