# -*- coding: utf-8 -*-
"""
Request context middleware for the Typographic API.

Every request gets a request_id (taken from an incoming ``X-Request-ID``
header when it is a valid UUID, generated otherwise). The id is stored on
``flask.g``, echoed back in the response headers and picked up by the
structured logger. Once a bearer session is verified, the account and
customer ids are attached to the same context.
"""

import uuid
import time
from typing import Optional
from flask import Flask, request, g, Response


class RequestContextMiddleware:
    """Middleware for managing request context and request_id propagation."""

    def __init__(self, app: Flask):
        self.app = app

        app.before_request(self._before_request)
        app.after_request(self._after_request)

    def _before_request(self):
        g.request_id = self._get_or_generate_request_id()
        g.request_start_time = time.time()

        g.request_method = request.method
        g.request_path = request.path
        g.request_remote_addr = request.remote_addr

        # Populated by require_session
        g.account_id = None
        g.customer_id = None

    def _after_request(self, response: Response) -> Response:
        if hasattr(g, 'request_id'):
            response.headers['X-Request-ID'] = g.request_id

        if hasattr(g, 'request_start_time'):
            duration_ms = round((time.time() - g.request_start_time) * 1000, 2)
            response.headers['X-Response-Time'] = f"{duration_ms}ms"

        return response

    def _get_or_generate_request_id(self) -> str:
        request_id = request.headers.get('X-Request-ID')

        if request_id:
            try:
                uuid.UUID(request_id)
                return request_id
            except ValueError:
                pass

        return str(uuid.uuid4())


def get_request_id() -> Optional[str]:
    """Get current request_id from Flask g context."""
    return getattr(g, 'request_id', None)


def get_request_context() -> dict:
    """Get complete request context for logging."""
    context = {
        'request_id': getattr(g, 'request_id', None),
        'method': getattr(g, 'request_method', None),
        'path': getattr(g, 'request_path', None),
        'remote_addr': getattr(g, 'request_remote_addr', None),
    }

    if hasattr(g, 'request_start_time'):
        context['duration_ms'] = round(
            (time.time() - g.request_start_time) * 1000, 2)

    if getattr(g, 'account_id', None):
        context['account_id'] = g.account_id

    if getattr(g, 'customer_id', None):
        context['customer_id'] = g.customer_id

    return context


def set_session_context(account_id: Optional[int] = None,
                        customer_id: Optional[int] = None):
    """Attach the authenticated account/customer to the current request."""
    if account_id is not None:
        g.account_id = account_id
    if customer_id is not None:
        g.customer_id = customer_id


def init_request_context(app: Flask):
    """Initialize request context middleware for Flask application."""
    RequestContextMiddleware(app)
