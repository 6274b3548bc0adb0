import pytest
import os
import tempfile
from unittest.mock import MagicMock, patch

from prometheus_client import REGISTRY

# Set test environment variables
os.environ["TESTING"] = "true"
os.environ["TYPOGRAPHIC_LOG_JSON"] = "false"


def plan_stripe_id(nickname):
    return f"plan_{nickname}"


def _fake_subscription(customer_id, plan_ids, collection_method, days_until_due=None):
    return {
        'id': 'sub_123',
        'object': 'subscription',
        'customer': customer_id,
        'status': 'active',
        'collection_method': collection_method,
        'current_period_start': 1700000000,
        'current_period_end': 1702592000,
        'items': {
            'object': 'list',
            'data': [
                {'id': f"si_{plan_id[len('plan_'):]}",
                 'plan': {'id': plan_id, 'nickname': plan_id[len('plan_'):]}}
                for plan_id in plan_ids
            ],
        },
    }


@pytest.fixture
def provider():
    """Stand-in for StripeBillingProvider returning Stripe-shaped dicts."""
    fake = MagicMock(name='billing_provider')
    fake.create_customer.return_value = {'id': 'cus_123', 'object': 'customer'}
    fake.list_plans.return_value = []
    fake.create_plan.side_effect = lambda definition: {
        'id': plan_stripe_id(definition['nickname']),
        'nickname': definition['nickname'],
    }
    fake.create_subscription.side_effect = _fake_subscription
    fake.create_setup_intent.return_value = {
        'id': 'seti_123', 'client_secret': 'seti_123_secret_abc'}
    fake.attach_payment_method.return_value = {
        'id': 'pm_123', 'card': {'last4': '4242', 'brand': 'visa'}}
    fake.create_source.return_value = {
        'id': 'src_123', 'last4': '0005', 'brand': 'American Express'}
    fake.retrieve_upcoming_invoice.return_value = {'id': 'in_upcoming', 'total': 1500}
    return fake


@pytest.fixture
def app(provider):
    """Create and configure a new app instance for each test."""
    db_fd, db_path = tempfile.mkstemp()
    with patch.dict(os.environ, {
        "DATABASE_URL": f"sqlite:///{db_path}",
    }):
        from typographic.factory import create_app
        from typographic.database import db
        app = create_app(config={
            "TESTING": True,
            "STRIPE_PUBLISHABLE_KEY": "pk_test_123",
            "STRIPE_SECRET_KEY": "sk_test_123",
            "JWT_SECRET_KEY": "test-jwt-secret-key-with-32-bytes-or-more",
        }, provider=provider)
        with app.app_context():
            db.create_all()
            yield app
            db.session.remove()
            db.drop_all()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def plans(app):
    """Local plans table filled from the catalog."""
    from typographic.database import db
    from typographic.models.plan import Plan
    from typographic.services.plans import PLAN_CATALOG

    for entry in PLAN_CATALOG:
        db.session.add(Plan(
            stripe_id=plan_stripe_id(entry['nickname']),
            name=entry['name'],
            nickname=entry['nickname'],
            type=entry['type'],
            amount=entry['amount'],
            included=entry.get('included'),
        ))
    db.session.commit()
    return Plan.all()


def signup(client, email="jenny@example.com", password="s3cret"):
    response = client.post('/auth/signup', json={'email': email, 'password': password})
    assert response.status_code == 201, response.get_json()
    return response.get_json()['token']


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def token(client):
    return signup(client)


@pytest.fixture
def auth_headers(token):
    return bearer(token)


@pytest.fixture(autouse=True)
def clear_prometheus_registry():
    """Clear the default prometheus registry before each test."""
    collectors = list(REGISTRY._collector_to_names.keys())
    for collector in collectors:
        REGISTRY.unregister(collector)
    yield
