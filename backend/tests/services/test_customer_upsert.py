from decimal import Decimal

import pytest
from sqlalchemy import select

from storelens.core.errors import InvalidPayload
from storelens.db import upsert as upsert_module
from storelens.db.model import Customer
from storelens.repository import customer_repo
from storelens.services.ingest.customer_upsert import upsert_customer


def _customers(db, tenant_id):
    return list(db.execute(select(Customer).where(Customer.tenant_id == tenant_id)).scalars())


def test_create_then_replay_is_idempotent(db, tenant):
    payload = {"id": 501, "email": "Ada@Example.com", "first_name": "Ada", "total_spent": "10.00", "orders_count": 1}

    first = upsert_customer(db, tenant.id, payload)
    db.commit()
    second = upsert_customer(db, tenant.id, payload)
    db.commit()

    assert first.id == second.id
    rows = _customers(db, tenant.id)
    assert len(rows) == 1
    assert rows[0].external_customer_id == "501"
    assert rows[0].email == "ada@example.com"
    assert rows[0].orders_count == 1


def test_partial_update_keeps_absent_fields(db, tenant):
    upsert_customer(db, tenant.id, {"id": 1, "email": "a@x.io", "first_name": "Ada", "phone": "+100"})
    db.commit()

    updated = upsert_customer(db, tenant.id, {"id": 1, "last_name": "Lovelace", "phone": None})
    db.commit()

    assert updated.first_name == "Ada"
    assert updated.last_name == "Lovelace"
    assert updated.email == "a@x.io"
    assert updated.phone is None


def test_counters_are_replaced_not_incremented(db, tenant):
    upsert_customer(db, tenant.id, {"id": 1, "orders_count": 3, "total_spent": "30"})
    c = upsert_customer(db, tenant.id, {"id": 1, "orders_count": 4, "total_spent": "41.5"})
    db.commit()
    assert c.orders_count == 4
    assert c.total_spent == Decimal("41.50")


def test_new_customer_gets_defaults(db, tenant):
    c = upsert_customer(db, tenant.id, {"id": 9})
    db.commit()
    assert c.orders_count == 0
    assert c.total_spent == Decimal("0.00")
    assert c.email is None


def test_guest_customer_is_keyed_by_email(db, tenant):
    a = upsert_customer(db, tenant.id, {"email": "guest@x.io", "first_name": "G"})
    b = upsert_customer(db, tenant.id, {"email": "GUEST@x.io", "last_name": "Uest"})
    db.commit()

    assert a.id == b.id
    assert b.external_customer_id is None
    assert b.first_name == "G"
    assert b.last_name == "Uest"
    assert customer_repo.count_for_tenant(db, tenant.id) == 1


def test_guest_and_registered_customer_with_same_email_are_separate(db, tenant):
    upsert_customer(db, tenant.id, {"email": "same@x.io"})
    upsert_customer(db, tenant.id, {"id": 77, "email": "same@x.io"})
    db.commit()
    assert customer_repo.count_for_tenant(db, tenant.id) == 2


def test_no_id_and_no_email_is_invalid(db, tenant):
    with pytest.raises(InvalidPayload):
        upsert_customer(db, tenant.id, {"first_name": "Nobody"})


def test_same_external_id_in_two_tenants_stays_separate(db, make_tenant):
    t1 = make_tenant("one.myshopify.com")
    t2 = make_tenant("two.myshopify.com")

    upsert_customer(db, t1.id, {"id": 5, "first_name": "One"})
    upsert_customer(db, t2.id, {"id": 5, "first_name": "Two"})
    db.commit()

    assert [c.first_name for c in _customers(db, t1.id)] == ["One"]
    assert [c.first_name for c in _customers(db, t2.id)] == ["Two"]


def test_guest_with_same_email_in_two_tenants_stays_separate(db, make_tenant):
    t1 = make_tenant("one.myshopify.com")
    t2 = make_tenant("two.myshopify.com")

    first = upsert_customer(db, t1.id, {"email": "guest@x.io", "first_name": "One"})
    second = upsert_customer(db, t2.id, {"email": "GUEST@x.io", "first_name": "Two"})
    db.commit()

    assert first.id != second.id
    assert [c.first_name for c in _customers(db, t1.id)] == ["One"]
    assert [c.first_name for c in _customers(db, t2.id)] == ["Two"]
    assert all(c.external_customer_id is None for c in _customers(db, t1.id) + _customers(db, t2.id))


def test_concurrent_create_race_converges_to_one_row(db, tenant, monkeypatch):
    # 模拟另一个请求在“查不到”之后抢先插入：本次走 INSERT ... ON CONFLICT DO UPDATE
    upsert_customer(db, tenant.id, {"id": 11, "first_name": "Ada", "email": "ada@x.io"})
    db.commit()

    monkeypatch.setattr(upsert_module, "find_existing", lambda *a, **kw: None)
    c = upsert_customer(db, tenant.id, {"id": 11, "last_name": "Lovelace"})
    db.commit()

    assert customer_repo.count_for_tenant(db, tenant.id) == 1
    assert c.first_name == "Ada"
    assert c.last_name == "Lovelace"
    assert c.email == "ada@x.io"


def test_guest_race_uses_partial_unique_index(db, tenant, monkeypatch):
    upsert_customer(db, tenant.id, {"email": "g@x.io", "first_name": "G"})
    db.commit()

    monkeypatch.setattr(upsert_module, "find_existing", lambda *a, **kw: None)
    c = upsert_customer(db, tenant.id, {"email": "g@x.io", "phone": "+1"})
    db.commit()

    assert customer_repo.count_for_tenant(db, tenant.id) == 1
    assert c.first_name == "G"
    assert c.phone == "+1"
