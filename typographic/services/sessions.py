# -*- coding: utf-8 -*-
"""
Bearer sessions.

A session is a flask-jwt-extended access token (identity = account id, plus a
``customer_id`` claim) backed by a row in the ``sessions`` table keyed by the
token's jti. The row is what makes logout and idle expiry possible: a token
whose row is gone, or whose row has not been touched for
SESSION_IDLE_SECONDS, is rejected even though its signature is valid.

Creating a session removes the account's other sessions, so a stolen token
does not outlive the next legitimate login.
"""
from __future__ import annotations

import time
from functools import wraps

from flask import current_app
from flask_jwt_extended import (
    create_access_token,
    decode_token,
    get_jwt,
    verify_jwt_in_request,
)
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from typographic.errors import AuthenticationFailed
from typographic.infra.db import db
from typographic.models.session import Session
from typographic.services.request_context import set_session_context
from typographic.services.structured_logging import log_auth_failure


def create_session(account_id: int, customer_id: int) -> str:
    """Issue a token for the account and record its session. Commits."""
    remove_sessions(account_id=account_id)

    token = create_access_token(
        identity=str(account_id),
        additional_claims={"customer_id": customer_id},
    )
    jti = decode_token(token)["jti"]
    db.session.add(Session(
        token=jti,
        account_id=account_id,
        customer_id=customer_id,
        timestamp=time.time(),
    ))
    db.session.commit()
    return token


def remove_sessions(**criteria) -> int:
    """Delete session rows matching the criteria (token=..., account_id=...)."""
    if not criteria:
        raise ValueError("remove_sessions() needs at least one criterion")
    count = Session.query.filter_by(**criteria).delete(synchronize_session=False)
    db.session.commit()
    return count


def _verified_claims() -> dict:
    try:
        verify_jwt_in_request()
    except (JWTExtendedException, PyJWTError) as e:
        log_auth_failure('bearer_token', str(e))
        raise AuthenticationFailed(f"Invalid bearer token: {e}") from e
    return get_jwt()


def current_token_id() -> str:
    """jti of the verified bearer token on the current request."""
    return _verified_claims()["jti"]


def require_session(fn):
    """
    Require a live bearer session. Sets ``g.account_id`` and ``g.customer_id``.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        claims = _verified_claims()
        session = db.session.get(Session, claims["jti"])
        max_idle = current_app.config.get("SESSION_IDLE_SECONDS", 60 * 60)

        if session is None or session.is_idle(max_idle):
            log_auth_failure('session', 'session not found or expired')
            raise AuthenticationFailed(f"Session not found for token {claims['jti']}")

        session.touch()
        db.session.commit()

        set_session_context(session.account_id, session.customer_id)
        return fn(*args, **kwargs)

    return wrapper
