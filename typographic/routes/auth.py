# -*- coding: utf-8 -*-
"""
Signup, login and logout.

Signup and login answer with a bearer token; every other call to the API
sends it back in ``Authorization: Bearer <token>``.
"""
from flask import Blueprint, jsonify, request

from typographic.schemas.billing import CredentialsSchema
from typographic.services import accounts
from typographic.services.sessions import create_session, current_token_id, remove_sessions

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@auth_bp.route('/signup', methods=['POST'])
def signup():
    data = CredentialsSchema().load(request.get_json(silent=True) or {})

    account = accounts.signup(data['email'], data['password'])
    token = create_session(account.id, account.customer.id)
    return jsonify({'token': token}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = CredentialsSchema().load(request.get_json(silent=True) or {})

    account, customer = accounts.authenticate(data['email'], data['password'])
    token = create_session(account.id, customer.id)
    return jsonify({'token': token}), 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Delete the session behind the bearer token. The token stops working."""
    remove_sessions(token=current_token_id())
    return jsonify({'ok': True}), 200
