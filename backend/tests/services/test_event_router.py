import pytest

from storelens.core.errors import InvalidPayload
from storelens.repository import customer_repo, order_repo, product_repo
from storelens.services.event_router import parse_topic, route_event


@pytest.mark.parametrize(
    "topic, expected",
    [
        ("orders/create", ("orders", "create")),
        ("Orders/Updated", ("orders", "updated")),
        ("app/uninstalled", ("app", "uninstalled")),
        ("", ("", "")),
        (None, ("", "")),
    ],
)
def test_parse_topic(topic, expected):
    assert parse_topic(topic) == expected


def test_routes_each_resource(db, tenant):
    assert route_event(db, tenant.id, "customers/create", {"id": 1, "email": "a@b.c"}).handled
    assert route_event(db, tenant.id, "products/update", {"id": 2, "title": "P"}).handled
    result = route_event(db, tenant.id, "orders/paid", {"id": 3, "financial_status": "paid"})
    db.commit()

    assert result.resource == "orders"
    assert result.action == "paid"
    assert result.entity_id is not None
    assert customer_repo.count_for_tenant(db, tenant.id) == 1
    assert product_repo.count_for_tenant(db, tenant.id) == 1
    assert order_repo.count_for_tenant(db, tenant.id) == 1


def test_wrapped_payload_is_unwrapped(db, tenant):
    result = route_event(db, tenant.id, "orders/create", {"order": {"id": 99, "name": "#99"}})
    db.commit()
    assert result.handled
    assert order_repo.count_for_tenant(db, tenant.id) == 1


def test_unknown_topic_is_ignored(db, tenant):
    result = route_event(db, tenant.id, "app/uninstalled", {"id": 1})
    assert result.handled is False
    assert result.entity_id is None


def test_non_object_payload_for_known_topic_is_invalid(db, tenant):
    with pytest.raises(InvalidPayload):
        route_event(db, tenant.id, "orders/create", [1, 2, 3])
