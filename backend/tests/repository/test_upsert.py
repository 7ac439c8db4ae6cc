import pytest

from storelens.core.errors import StorageConflict
from storelens.db import upsert as upsert_module
from storelens.db.model import Product
from storelens.db.upsert import write_entity
from storelens.repository import product_repo


def test_conflict_without_returned_row_falls_back_to_update(db, tenant, monkeypatch):
    product_repo.upsert_by_external_id(db, tenant.id, "p-1", {"title": "Old"})
    db.commit()

    real_find = upsert_module.find_existing
    calls = {"n": 0}

    def _find_second_time(*args, **kwargs):
        calls["n"] += 1
        return None if calls["n"] == 1 else real_find(*args, **kwargs)

    def _conflict(*args, **kwargs):
        raise StorageConflict("no row returned")

    monkeypatch.setattr(upsert_module, "find_existing", _find_second_time)
    monkeypatch.setattr(upsert_module, "insert_or_update", _conflict)

    row = write_entity(
        db,
        Product,
        lookup={"tenant_id": tenant.id, "external_product_id": "p-1"},
        changes={"title": "New"},
        defaults=product_repo.CREATE_DEFAULTS,
    )
    db.commit()

    assert row.title == "New"
    assert product_repo.count_for_tenant(db, tenant.id) == 1


def test_unrecoverable_conflict_propagates(db, tenant, monkeypatch):
    def _conflict(*args, **kwargs):
        raise StorageConflict("no row returned")

    monkeypatch.setattr(upsert_module, "insert_or_update", _conflict)
    with pytest.raises(StorageConflict):
        write_entity(
            db,
            Product,
            lookup={"tenant_id": tenant.id, "external_product_id": "p-404"},
            changes={},
            defaults=product_repo.CREATE_DEFAULTS,
        )


def test_dialect_insert_rejects_unknown_dialect(db, monkeypatch):
    monkeypatch.setattr(db.get_bind().dialect, "name", "mssql")
    with pytest.raises(NotImplementedError):
        upsert_module.dialect_insert(db, Product)
