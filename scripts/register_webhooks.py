#!/usr/bin/env python3
from __future__ import annotations
import sys, json, argparse

from storelens.core.logging import configure_logging
from storelens.db.session import SessionLocal
from storelens.integrations.shopify.webhook_client import ShopifyWebhookClient, webhook_address
from storelens.repository.tenant_repo import get_active_by_domain


'''
运维小脚本：给某个已安装的店铺把摄取用的 webhook 订阅配好
    - 店铺 token 从 tenants 表读（安装回调写进去的）
    - 回调地址默认 APP_URL + API_PREFIX + /webhooks/shopify，也可 --address 覆盖
    - 已存在的订阅（422）视为成功
    - 用法：
    python scripts/register_webhooks.py --shop demo.myshopify.com
    python scripts/register_webhooks.py --shop demo.myshopify.com --topic orders/create --topic orders/updated
'''
def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Register Shopify webhook subscriptions for one tenant.")
    ap.add_argument("--shop", required=True, help="myshopify domain, e.g. demo.myshopify.com")
    ap.add_argument("--address", help="Public HTTPS callback URL (default: APP_URL + /api/v1/webhooks/shopify)")
    ap.add_argument("--topic", action="append", dest="topics", help="Topic to register (repeatable, default: WEBHOOK_TOPICS)")
    args = ap.parse_args(argv)

    configure_logging()

    with SessionLocal() as db:
        tenant = get_active_by_domain(db, args.shop)
    if tenant is None:
        print(f"ERROR: no active tenant for {args.shop}", file=sys.stderr)
        return 2
    if not tenant.access_token:
        print(f"ERROR: tenant {args.shop} has no access token", file=sys.stderr)
        return 2

    try:
        address = args.address or webhook_address()
    except ValueError as e:
        print(f"ERROR: {e}; pass --address", file=sys.stderr)
        return 2

    client = ShopifyWebhookClient(tenant.store_domain, tenant.access_token)
    result = client.register_topics(address, args.topics)
    print(json.dumps({"shop": tenant.store_domain, "address": address, "topics": result}, ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
