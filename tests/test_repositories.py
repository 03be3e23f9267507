from datetime import datetime, timezone

from product_catalog.repositories import open_store


def _row(product_id, created_at, **extra):
    return {
        "id": product_id,
        "name": product_id,
        "price": 1,
        "description": None,
        "created_at": created_at,
        "updated_at": created_at,
        "deleted_at": None,
        **extra,
    }


def test_open_store_round_trip():
    t1 = datetime(2026, 1, 1, tzinfo=timezone.utc)
    t2 = datetime(2026, 1, 2, tzinfo=timezone.utc)

    with open_store("sqlite://", create_schema=True) as store:
        assert store.read_active() == []

        store.insert(_row("b", t2))
        store.insert(_row("a", t1))
        store.insert(_row("gone", t1, deleted_at=t2))

        assert [p.id for p in store.read_active()] == ["a", "b"]
        assert store.get("gone").is_deleted
        assert store.get("missing") is None


def test_update_reports_matched_rows():
    t1 = datetime(2026, 1, 1, tzinfo=timezone.utc)

    with open_store("sqlite://", create_schema=True) as store:
        store.insert(_row("a", t1))

        assert store.update("a", {"price": 5}) == 1
        assert store.update("missing", {"price": 5}) == 0
        assert store.get("a").price == 5
