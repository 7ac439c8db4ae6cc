"""测试公共夹具：每个用例一份独立的 SQLite 库（支持 SAVEPOINT），再加 webhook 签名工具。"""

import os

# 必须在 import storelens 之前设置：settings / engine 在模块加载时就读取环境
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SHOPIFY_WEBHOOK_SECRET"] = "test-secret"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import json
from typing import Any, Callable, Dict, Optional, Tuple

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker

from storelens.core.config import settings
from storelens.db import Base
from storelens.db.model import Tenant
from storelens.integrations.shopify.signature import compute_signature
from storelens.repository import tenant_repo


WEBHOOK_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def _webhook_secret(monkeypatch):
    monkeypatch.setattr(settings, "SHOPIFY_WEBHOOK_SECRET", WEBHOOK_SECRET)


@pytest.fixture()
def engine(tmp_path):
    eng = create_engine(
        f"sqlite:///{tmp_path / 'storelens-test.db'}",
        connect_args={"check_same_thread": False},
    )

    # pysqlite 自带的事务处理会吞掉 SAVEPOINT，改成由 SQLAlchemy 显式 BEGIN
    @event.listens_for(eng, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")   # 读事务不挡写事务（日志和 upsert 各用各的会话）
        cursor.close()

    @event.listens_for(eng, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture()
def session_factory(engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False, class_=Session)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_tenant(session_factory) -> Callable[..., Tenant]:
    def _make(store_domain: str = "demo.myshopify.com", *, name: Optional[str] = None, is_active: bool = True) -> Tenant:
        with session_factory() as s:
            return tenant_repo.create_tenant(
                s,
                name=name or store_domain,
                store_domain=store_domain,
                access_token="shpat_test",
                is_active=is_active,
            )
    return _make


@pytest.fixture()
def tenant(make_tenant) -> Tenant:
    return make_tenant("demo.myshopify.com")


@pytest.fixture()
def signed() -> Callable[[Any], Tuple[bytes, str]]:
    """把 payload 序列化成 body 字节并签名，返回 (body, hmac_header)。"""
    def _sign(payload: Any, secret: str = WEBHOOK_SECRET) -> Tuple[bytes, str]:
        body = payload if isinstance(payload, bytes) else json.dumps(payload).encode("utf-8")
        return body, compute_signature(secret, body)
    return _sign


@pytest.fixture()
def webhook_headers(signed) -> Callable[..., Tuple[bytes, Dict[str, str]]]:
    def _headers(payload: Any, topic: str, shop: str = "demo.myshopify.com") -> Tuple[bytes, Dict[str, str]]:
        body, hmac_b64 = signed(payload)
        return body, {
            "X-Shopify-Hmac-Sha256": hmac_b64,
            "X-Shopify-Topic": topic,
            "X-Shopify-Shop-Domain": shop,
            "Content-Type": "application/json",
        }
    return _headers
