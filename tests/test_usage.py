# -*- coding: utf-8 -*-

import pytest

from typographic.models.subscription import Subscription
from typographic.services.billing_provider import stripe_timestamp
from typographic.services.subscriptions import record_usage


@pytest.fixture
def subscribed(client, auth_headers, plans):
    response = client.post('/api/subscription', json={'plan': 'starter'}, headers=auth_headers)
    assert response.status_code == 201
    return Subscription.query.one()


class TestUsageEndpoint:

    def test_usage_accumulates(self, client, auth_headers, subscribed, provider):
        first = client.post('/api/usage', json={'numRequests': 100}, headers=auth_headers)
        second = client.post('/api/usage', json={'numRequests': 25}, headers=auth_headers)

        assert first.get_json() == {'numRequests': 100}
        assert second.get_json() == {'numRequests': 125}
        assert Subscription.query.one().metered_usage == 125
        assert provider.create_usage_record.call_count == 2

    def test_usage_targets_metered_item(self, client, auth_headers, subscribed, provider):
        client.post('/api/usage', json={'numRequests': 10}, headers=auth_headers)

        args, _ = provider.create_usage_record.call_args
        assert args[0] == 'si_starter_requests'
        assert args[1] == 10

    @pytest.mark.parametrize('value', [0, -5, 1.5, '10', None, True])
    def test_rejects_non_positive_integers(self, client, auth_headers, subscribed,
                                           provider, value):
        response = client.post('/api/usage', json={'numRequests': value},
                               headers=auth_headers)

        assert response.status_code == 400
        provider.create_usage_record.assert_not_called()
        assert Subscription.query.one().metered_usage == 0

    def test_usage_without_subscription(self, client, auth_headers, provider):
        response = client.post('/api/usage', json={'numRequests': 1}, headers=auth_headers)

        assert response.status_code == 404
        provider.create_usage_record.assert_not_called()

    def test_counts_usage_metric(self, app, client, auth_headers, subscribed):
        client.post('/api/usage', json={'numRequests': 7}, headers=auth_headers)

        metrics = client.get('/metrics').get_data(as_text=True)

        assert 'typographic_usage_units_total 7.0' in metrics


class TestRecordUsage:

    def test_timestamp_in_seconds(self, app, subscribed, provider):
        record_usage(subscribed, 3, now_ms=1700000000999)

        args, _ = provider.create_usage_record.call_args
        assert args[2] == 1700000000

    def test_local_counter_untouched_when_stripe_fails(self, app, subscribed, provider):
        from typographic.errors import BillingProviderError
        provider.create_usage_record.side_effect = BillingProviderError("Stripe down")

        with pytest.raises(BillingProviderError):
            record_usage(subscribed, 3)

        assert subscribed.metered_usage == 0

    def test_rejects_zero_directly(self, app, subscribed):
        from typographic.errors import ValidationFailed

        with pytest.raises(ValidationFailed):
            record_usage(subscribed, 0)


@pytest.mark.parametrize('now_ms, expected', [
    (0, 0),
    (999, 0),
    (1000, 1),
    (1700000000500.7, 1700000000),
])
def test_stripe_timestamp_truncates(now_ms, expected):
    assert stripe_timestamp(now_ms) == expected
