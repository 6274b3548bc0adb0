# -*- coding: utf-8 -*-
"""
Application errors.

Each error carries two messages: ``message`` is logged, ``client_message`` is
what the caller sees in the JSON body. ``status`` is the HTTP status the
error handlers answer with.
"""
from __future__ import annotations

from typing import Optional

DEFAULT_CLIENT_MESSAGE = "A server error occurred."


class TypographicError(Exception):
    status = 500
    default_client_message = DEFAULT_CLIENT_MESSAGE

    def __init__(self, message: str, client_message: Optional[str] = None,
                 status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.client_message = client_message or self.default_client_message
        if status is not None:
            self.status = status


class AuthenticationFailed(TypographicError):
    status = 401
    default_client_message = "Authentication required."


class Forbidden(TypographicError):
    status = 403
    default_client_message = "You do not have access to this resource."


class NotFound(TypographicError):
    status = 404
    default_client_message = "Not found."


class Conflict(TypographicError):
    status = 409
    default_client_message = "That resource already exists."


class ValidationFailed(TypographicError):
    status = 400
    default_client_message = "Invalid request."


class BillingProviderError(TypographicError):
    """A call to Stripe failed. Wraps the Stripe error as ``__cause__``."""
    status = 502
    default_client_message = "The billing provider could not complete the request."

    def __init__(self, message: str, client_message: Optional[str] = None,
                 status: Optional[int] = None, code: Optional[str] = None):
        super().__init__(message, client_message=client_message, status=status)
        self.code = code


class SetupError(TypographicError):
    """Plan setup could not complete; the message is meant for the operator."""
