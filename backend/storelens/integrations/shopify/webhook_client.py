"""面向 Admin REST 的 webhook 订阅 Client：给某个租户的店铺注册/列出 webhook"""
from __future__ import annotations

import time, logging, requests
from typing import Any, Dict, Iterable, List, Optional
from requests import HTTPError, Timeout, RequestException

from storelens.core.config import settings


logger = logging.getLogger(__name__)


class ShopifyWebhookClient:

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        *,
        api_version: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        if not shop_domain or not access_token:
            raise ValueError("shop_domain and access_token are required")
        self.shop_domain = shop_domain.strip().lower()
        self.access_token = access_token
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self._http = session or requests.Session()

    # ---------------- 基础：端点 & 认证 ----------------
    def _endpoint(self, path: str) -> str:
        return f"https://{self.shop_domain}/admin/api/{self.api_version}/{path}"

    def _headers(self) -> dict:
        return {
            "Content-Type": "application/json",
            "X-Shopify-Access-Token": self.access_token,
            "User-Agent": "Storelens/WebhookClient (+python)",
        }

    '''
    通用 REST 请求（带日志 + 重试）
        - 429：优先按 Retry-After 等待，否则指数退避
        - 5xx / 超时 / 网络异常：指数退避重试
        - 其余 4xx：不重试，直接把 response 交回调用方判断（例如 422 已存在）
    '''
    def _request(self, method: str, path: str, *, json: Optional[dict] = None, op_name: str = "") -> requests.Response:
        timeout = settings.SHOPIFY_HTTP_TIMEOUT
        max_retries = max(0, int(settings.SHOPIFY_HTTP_RETRIES))
        backoff_ms = max(50, int(settings.SHOPIFY_HTTP_BACKOFF_MS))

        for attempt in range(max_retries + 1):
            start = time.perf_counter()
            try:
                resp = self._http.request(
                    method,
                    self._endpoint(path),
                    headers=self._headers(),
                    json=json,
                    timeout=timeout,
                )
            except Timeout:
                latency_ms = int((time.perf_counter() - start) * 1000)
                logger.warning("shopify.rest.timeout op=%s latency_ms=%s attempt=%s/%s",
                    op_name, latency_ms, attempt, max_retries)
                if attempt == max_retries:
                    raise
                time.sleep((backoff_ms / 1000.0) * (2 ** attempt))
                continue
            except RequestException as e:
                logger.warning("shopify.rest.request_exception op=%s attempt=%s/%s err=%s",
                    op_name, attempt, max_retries, type(e).__name__)
                if attempt == max_retries:
                    raise
                time.sleep((backoff_ms / 1000.0) * (2 ** attempt))
                continue

            latency_ms = int((time.perf_counter() - start) * 1000)
            status = resp.status_code

            if status == 429 and attempt < max_retries:
                retry_after = resp.headers.get("Retry-After")
                try:
                    sleep_s = max(0.1, float(retry_after))
                except (TypeError, ValueError):
                    sleep_s = (backoff_ms / 1000.0) * (2 ** attempt)
                logger.warning("shopify.rest.429_throttled op=%s attempt=%s/%s retry_after=%s",
                    op_name, attempt, max_retries, retry_after)
                time.sleep(sleep_s)
                continue

            if 500 <= status < 600 and attempt < max_retries:
                logger.warning("shopify.rest.server_error op=%s status=%s attempt=%s/%s",
                    op_name, status, attempt, max_retries)
                time.sleep((backoff_ms / 1000.0) * (2 ** attempt))
                continue

            logger.info("shopify.rest.done op=%s status=%s latency_ms=%s attempt=%s",
                op_name, status, latency_ms, attempt)
            return resp

        # range 至少跑一次，走不到这里
        raise RuntimeError(f"shopify request exhausted retries: op={op_name}")

    # 当前店铺已注册的 webhook
    def list_webhooks(self) -> List[Dict[str, Any]]:
        resp = self._request("GET", "webhooks.json", op_name="webhooks.list")
        resp.raise_for_status()
        return resp.json().get("webhooks", [])

    '''
    注册单个 topic
      - 201 → "created"
      - 422 且提示已存在 → "exists"（重复注册不是错误）
      - 其他错误 → raise HTTPError
    '''
    def create_webhook(self, topic: str, address: str) -> str:
        body = {"webhook": {"topic": topic, "address": address, "format": "json"}}
        resp = self._request("POST", "webhooks.json", json=body, op_name=f"webhooks.create:{topic}")

        if resp.status_code == 422:
            logger.info("shopify.webhook.exists topic=%s shop=%s", topic, self.shop_domain)
            return "exists"
        try:
            resp.raise_for_status()
        except HTTPError:
            logger.error("shopify.webhook.create_failed topic=%s shop=%s status=%s body=%s",
                topic, self.shop_domain, resp.status_code, resp.text[:500])
            raise
        return "created"

    def register_topics(self, address: str, topics: Optional[Iterable[str]] = None) -> Dict[str, str]:
        """Register every subscribed topic against ``address``; returns ``{topic: "created"|"exists"}``."""
        results: Dict[str, str] = {}
        for topic in topics or settings.WEBHOOK_TOPICS:
            results[topic] = self.create_webhook(topic, address)
        return results


def webhook_address(app_url: Optional[str] = None) -> str:
    base = (app_url or settings.APP_URL or "").rstrip("/")
    if not base:
        raise ValueError("APP_URL is not configured")
    return f"{base}{settings.API_PREFIX}/webhooks/shopify"
