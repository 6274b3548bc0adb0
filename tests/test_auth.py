# -*- coding: utf-8 -*-

import time

import pytest

from conftest import bearer, signup
from typographic.database import db
from typographic.models.account import Account
from typographic.models.customer import Customer
from typographic.models.session import Session


class TestSignup:
    """Signup creates an account, a Stripe customer and a session."""

    def test_signup_returns_token(self, client, provider):
        response = client.post('/auth/signup',
                               json={'email': 'jenny@example.com', 'password': 's3cret'})

        assert response.status_code == 201
        assert response.get_json()['token']
        provider.create_customer.assert_called_once_with('jenny@example.com')

    def test_signup_persists_account_and_customer(self, client):
        signup(client, email='Jenny@Example.com ')

        account = Account.get_by_email('jenny@example.com')
        assert account is not None
        assert account.password != 's3cret'
        assert account.check_password('s3cret')

        customer = Customer.get_by_account(account.id)
        assert customer.stripe_id == 'cus_123'
        assert customer.email == 'jenny@example.com'

    def test_duplicate_email_conflicts(self, client, provider):
        signup(client)

        response = client.post('/auth/signup',
                               json={'email': 'jenny@example.com', 'password': 'other'})

        assert response.status_code == 409
        body = response.get_json()
        assert body['error'] is True
        assert body['message'] == 'That username is already taken.'
        assert provider.create_customer.call_count == 1

    def test_missing_password_rejected(self, client, provider):
        response = client.post('/auth/signup', json={'email': 'jenny@example.com'})

        assert response.status_code == 400
        assert response.get_json()['error'] is True
        provider.create_customer.assert_not_called()

    def test_stripe_failure_leaves_no_account(self, client, provider):
        from typographic.errors import BillingProviderError
        provider.create_customer.side_effect = BillingProviderError(
            "Stripe customer.create failed", client_message="Your card was declined.")

        response = client.post('/auth/signup',
                               json={'email': 'jenny@example.com', 'password': 's3cret'})

        assert response.status_code == 502
        assert response.get_json()['message'] == 'Your card was declined.'
        assert Account.get_by_email('jenny@example.com') is None

    def test_password_never_rendered(self, client, token):
        response = client.get('/api/account', headers=bearer(token))

        assert response.status_code == 200
        assert 'password' not in response.get_data(as_text=True)


class TestLogin:
    """Login checks the bcrypt hash and replaces older sessions."""

    def test_login_success(self, client):
        signup(client)

        response = client.post('/auth/login',
                               json={'email': 'jenny@example.com', 'password': 's3cret'})

        assert response.status_code == 200
        token = response.get_json()['token']
        assert client.get('/api/account', headers=bearer(token)).status_code == 200

    def test_wrong_password(self, client):
        signup(client)

        response = client.post('/auth/login',
                               json={'email': 'jenny@example.com', 'password': 'nope'})

        assert response.status_code == 401
        assert response.get_json()['message'] == "Username and password don't match."

    def test_unknown_email(self, client):
        response = client.post('/auth/login',
                               json={'email': 'nobody@example.com', 'password': 'nope'})

        assert response.status_code == 401

    def test_login_revokes_previous_session(self, client):
        first = signup(client)

        response = client.post('/auth/login',
                               json={'email': 'jenny@example.com', 'password': 's3cret'})
        second = response.get_json()['token']

        assert client.get('/api/account', headers=bearer(first)).status_code == 401
        assert client.get('/api/account', headers=bearer(second)).status_code == 200
        assert Session.query.count() == 1


class TestLogout:

    def test_logout_removes_session(self, client, token):
        response = client.post('/auth/logout', headers=bearer(token))

        assert response.status_code == 200
        assert response.get_json() == {'ok': True}
        assert Session.query.count() == 0
        assert client.get('/api/account', headers=bearer(token)).status_code == 401

    def test_logout_without_token(self, client):
        response = client.post('/auth/logout')

        assert response.status_code == 401


class TestBearerSessions:
    """Tokens are only honoured while their session row is alive."""

    def test_missing_token(self, client):
        response = client.get('/api/account')

        assert response.status_code == 401
        assert response.get_json()['error'] is True

    def test_garbage_token(self, client):
        response = client.get('/api/account', headers=bearer('not-a-jwt'))

        assert response.status_code == 401

    def test_idle_session_expires(self, app, client, token):
        session = Session.query.one()
        session.timestamp = time.time() - app.config['SESSION_IDLE_SECONDS'] - 1
        db.session.commit()

        response = client.get('/api/account', headers=bearer(token))

        assert response.status_code == 401

    def test_activity_refreshes_session(self, client, token):
        session = Session.query.one()
        session.timestamp = time.time() - 60
        db.session.commit()
        stale = session.timestamp

        client.get('/api/account', headers=bearer(token))

        assert Session.query.one().timestamp > stale

    def test_token_carries_account_and_customer(self, app, token):
        from flask_jwt_extended import decode_token

        claims = decode_token(token)
        account = Account.get_by_email('jenny@example.com')

        assert claims['sub'] == str(account.id)
        assert claims['customer_id'] == account.customer.id


def test_remove_sessions_needs_criteria(app):
    from typographic.services.sessions import remove_sessions

    with pytest.raises(ValueError):
        remove_sessions()
