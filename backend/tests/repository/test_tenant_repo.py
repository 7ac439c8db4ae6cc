import pytest

from storelens.repository import tenant_repo


def test_create_tenant_normalises_domain(db):
    t = tenant_repo.create_tenant(db, name="Demo", store_domain="  Demo.MyShopify.com ")
    assert t.store_domain == "demo.myshopify.com"
    assert t.is_active is True


def test_upsert_installation_creates_then_reactivates(db):
    t = tenant_repo.upsert_installation(db, "shop.myshopify.com", "tok-1")
    assert t.name == "shop.myshopify.com"

    tenant_repo.deactivate(db, "shop.myshopify.com")
    assert tenant_repo.get_active_by_domain(db, "shop.myshopify.com") is None

    again = tenant_repo.upsert_installation(db, "SHOP.myshopify.com", "tok-2", name="Shop")
    assert again.id == t.id
    assert again.access_token == "tok-2"
    assert again.is_active is True
    assert again.name == "Shop"


def test_upsert_installation_requires_domain(db):
    with pytest.raises(ValueError):
        tenant_repo.upsert_installation(db, "  ", "tok")


def test_get_by_domain_blank(db):
    assert tenant_repo.get_by_domain(db, "") is None
