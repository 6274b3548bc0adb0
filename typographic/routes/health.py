# -*- coding: utf-8 -*-

import time

from flask import Blueprint, jsonify
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from typographic.infra.db import db
from typographic.infra.log import get_logger
from typographic.models import TABLES

health_bp = Blueprint('health', __name__)

logger = get_logger('typographic.requests')


@health_bp.route('/healthz', methods=['GET', 'HEAD'])
def healthz():
    """Liveness: the process is up and answering."""
    return jsonify({
        'status': 'healthy',
        'service': 'typographic',
        'timestamp': time.time()
    }), 200


@health_bp.route('/readyz', methods=['GET', 'HEAD'])
def readyz():
    """Readiness: the database answers and every table exists."""
    try:
        existing = set(inspect(db.engine).get_table_names())
    except SQLAlchemyError as e:
        logger.error(f"Readiness check failed: {e}")
        existing = set()

    missing = [t for t in TABLES if t not in existing]
    ready = not missing
    return jsonify({
        'status': 'ready' if ready else 'not ready',
        'service': 'typographic',
        'timestamp': time.time(),
        'checks': {
            'database': ready,
            'missing_tables': missing,
        }
    }), 200 if ready else 503
