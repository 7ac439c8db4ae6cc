#!/usr/bin/env python3
from __future__ import annotations
import sys, argparse

from storelens.core.logging import configure_logging
from storelens.db import create_all
from storelens.db.session import session_scope
from storelens.repository.tenant_repo import upsert_installation


# 本地联调用：建表 + 写一个演示租户，之后就能用 curl 签名打 webhook
#   python scripts/seed_demo_tenant.py --shop demo.myshopify.com --token shpat_xxx

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Create tables and seed a demo tenant.")
    ap.add_argument("--shop", default="demo.myshopify.com")
    ap.add_argument("--token", default="demo-token")
    ap.add_argument("--name", default="Demo Store")
    args = ap.parse_args(argv)

    logger = configure_logging()
    create_all()

    with session_scope() as db:
        tenant = upsert_installation(db, args.shop, args.token, name=args.name)
        logger.info("seed.tenant id=%s shop=%s active=%s", tenant.id, tenant.store_domain, tenant.is_active)
        print(f"tenant {tenant.id} {tenant.store_domain}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
