from typing import Any, Dict, List, Optional

import pytest
import requests

from storelens.core.config import settings
from storelens.integrations.shopify import webhook_client as wc
from storelens.integrations.shopify.webhook_client import ShopifyWebhookClient, webhook_address


class FakeResponse:
    def __init__(self, status_code: int, payload: Optional[dict] = None, headers: Optional[dict] = None):
        self.status_code = status_code
        self._payload = payload or {}
        self.headers = headers or {}
        self.text = str(self._payload)

    def json(self):
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class FakeSession:
    """按顺序吐出预设响应，并记录每次请求。"""

    def __init__(self, responses: List[Any]):
        self._responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch):
    sleeps: List[float] = []
    monkeypatch.setattr(wc.time, "sleep", lambda s: sleeps.append(s))
    return sleeps


def _client(responses) -> ShopifyWebhookClient:
    return ShopifyWebhookClient("Demo.MyShopify.com", "shpat_x", api_version="2025-07", session=FakeSession(responses))


def test_create_webhook_posts_to_rest_endpoint():
    client = _client([FakeResponse(201, {"webhook": {"id": 1}})])
    assert client.create_webhook("orders/create", "https://app.test/api/v1/webhooks/shopify") == "created"

    call = client._http.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://demo.myshopify.com/admin/api/2025-07/webhooks.json"
    assert call["headers"]["X-Shopify-Access-Token"] == "shpat_x"
    assert call["json"]["webhook"]["topic"] == "orders/create"


def test_already_registered_topic_is_not_an_error():
    client = _client([FakeResponse(422, {"errors": {"address": ["for this topic has already been taken"]}})])
    assert client.create_webhook("orders/create", "https://app.test/hook") == "exists"


def test_throttled_request_is_retried(_no_sleep):
    client = _client([FakeResponse(429, headers={"Retry-After": "2"}), FakeResponse(201)])
    assert client.create_webhook("products/update", "https://app.test/hook") == "created"
    assert len(client._http.calls) == 2
    assert _no_sleep == [2.0]


def test_server_errors_retry_then_raise():
    responses = [FakeResponse(502) for _ in range(settings.SHOPIFY_HTTP_RETRIES + 1)]
    client = _client(responses)
    with pytest.raises(requests.HTTPError):
        client.create_webhook("orders/create", "https://app.test/hook")
    assert len(client._http.calls) == settings.SHOPIFY_HTTP_RETRIES + 1


def test_client_errors_are_not_retried():
    client = _client([FakeResponse(401)])
    with pytest.raises(requests.HTTPError):
        client.create_webhook("orders/create", "https://app.test/hook")
    assert len(client._http.calls) == 1


def test_timeout_is_retried():
    client = _client([requests.Timeout("slow"), FakeResponse(201)])
    assert client.create_webhook("orders/create", "https://app.test/hook") == "created"


def test_register_topics_defaults_to_subscribed_topics():
    client = _client([FakeResponse(201) for _ in settings.WEBHOOK_TOPICS])
    result = client.register_topics("https://app.test/hook")
    assert set(result) == set(settings.WEBHOOK_TOPICS)
    assert set(result.values()) == {"created"}


def test_list_webhooks():
    client = _client([FakeResponse(200, {"webhooks": [{"id": 1, "topic": "orders/create"}]})])
    assert client.list_webhooks() == [{"id": 1, "topic": "orders/create"}]


def test_webhook_address_uses_api_prefix():
    assert webhook_address("https://app.test/") == f"https://app.test{settings.API_PREFIX}/webhooks/shopify"


def test_webhook_address_requires_app_url(monkeypatch):
    monkeypatch.setattr(settings, "APP_URL", None)
    with pytest.raises(ValueError):
        webhook_address()
