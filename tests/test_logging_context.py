# -*- coding: utf-8 -*-
"""
Test suite for structured logging and request context propagation.
"""

import io
import json
import logging
import uuid

import pytest
from flask import Flask

from typographic.services.request_context import (
    get_request_context,
    get_request_id,
    init_request_context,
    set_session_context,
)
from typographic.services.structured_logging import (
    StructuredFormatter,
    get_logger,
)


@pytest.fixture
def app():
    """Bare Flask app with only the request context middleware."""
    app = Flask(__name__)
    app.config['TESTING'] = True
    init_request_context(app)
    return app


def _record(msg='Test message', **extra_fields):
    record = logging.LogRecord(
        name='typographic.test',
        level=logging.INFO,
        pathname='test.py',
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None
    )
    if extra_fields:
        record.extra_fields = extra_fields
    return record


class TestRequestContextMiddleware:

    def test_request_id_generated(self, app):
        @app.route('/test')
        def test_route():
            return {'request_id': get_request_id()}

        response = app.test_client().get('/test')

        request_id = response.get_json()['request_id']
        uuid.UUID(request_id)
        assert response.headers['X-Request-ID'] == request_id
        assert response.headers['X-Response-Time'].endswith('ms')

    def test_incoming_request_id_kept(self, app):
        incoming = str(uuid.uuid4())

        @app.route('/test')
        def test_route():
            return {'request_id': get_request_id()}

        response = app.test_client().get('/test', headers={'X-Request-ID': incoming})

        assert response.get_json()['request_id'] == incoming

    def test_invalid_incoming_request_id_replaced(self, app):
        @app.route('/test')
        def test_route():
            return {'request_id': get_request_id()}

        response = app.test_client().get('/test', headers={'X-Request-ID': 'not-a-uuid'})

        assert response.get_json()['request_id'] != 'not-a-uuid'

    def test_session_context_included(self, app):
        @app.route('/test')
        def test_route():
            set_session_context(account_id=7, customer_id=9)
            return get_request_context()

        context = app.test_client().get('/test').get_json()

        assert context['account_id'] == 7
        assert context['customer_id'] == 9
        assert context['method'] == 'GET'
        assert context['path'] == '/test'

    def test_anonymous_context_has_no_account(self, app):
        @app.route('/test')
        def test_route():
            return get_request_context()

        context = app.test_client().get('/test').get_json()

        assert 'account_id' not in context
        assert 'customer_id' not in context


class TestStructuredFormatter:

    def test_json_formatting(self):
        output = StructuredFormatter(json_enabled=True).format(_record(plan='starter'))

        entry = json.loads(output)
        assert entry['level'] == 'INFO'
        assert entry['logger'] == 'typographic.test'
        assert entry['message'] == 'Test message'
        assert entry['plan'] == 'starter'

    def test_plain_formatting(self):
        output = StructuredFormatter(json_enabled=False).format(_record())

        assert output == 'Test message'

    def test_request_context_in_json(self, app):
        formatter = StructuredFormatter(json_enabled=True)

        with app.test_request_context('/api/usage', method='POST'):
            app.preprocess_request()
            set_session_context(account_id=3, customer_id=4)
            entry = json.loads(formatter.format(_record()))

        assert entry['path'] == '/api/usage'
        assert entry['method'] == 'POST'
        assert entry['account_id'] == 3
        uuid.UUID(entry['request_id'])


class TestStructuredLogger:

    @pytest.fixture
    def stream(self):
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter(json_enabled=True))
        logger = logging.getLogger('typographic.capture')
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        yield stream
        logger.removeHandler(handler)

    def _entries(self, stream):
        return [json.loads(line) for line in stream.getvalue().splitlines()]

    def test_extra_fields(self, stream):
        get_logger('typographic.capture').info("Usage recorded", quantity=5, total=12)

        entry = self._entries(stream)[0]
        assert entry['message'] == 'Usage recorded'
        assert entry['quantity'] == 5
        assert entry['total'] == 12

    def test_provider_call_success_and_failure(self, stream):
        logger = get_logger('typographic.capture')
        logger.log_provider_call('customer.create', success=True, duration_ms=12.5)
        logger.log_provider_call('plan.list', success=False, duration_ms=3.0,
                                 stripe_error='No such plan')

        ok, failed = self._entries(stream)
        assert ok['level'] == 'INFO'
        assert ok['operation'] == 'customer.create'
        assert ok['event_type'] == 'provider_call'
        assert failed['level'] == 'ERROR'
        assert failed['stripe_error'] == 'No such plan'

    def test_auth_event_failure_is_warning(self, stream):
        get_logger('typographic.capture').log_auth_event('login', success=False,
                                                         failure_reason='bad password')

        entry = self._entries(stream)[0]
        assert entry['level'] == 'WARNING'
        assert entry['auth_event'] == 'login'
        assert entry['success'] is False

    def test_exception_includes_traceback(self, stream):
        try:
            raise RuntimeError("kaboom")
        except RuntimeError:
            get_logger('typographic.capture').exception("Unhandled error")

        entry = self._entries(stream)[0]
        assert entry['level'] == 'ERROR'
        assert 'RuntimeError: kaboom' in entry['exception']
