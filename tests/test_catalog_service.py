from decimal import Decimal

import pytest

from app.core.errors import NotFoundError
from app.services import catalog_service


def test_update_destination_fields(db, catalog):
    beach = catalog_service.create_category(db, "Beach", "beach")

    d = catalog_service.update_destination(
        db, catalog["patong"].id, {"category_id": beach.id, "price": "250000", "description": None}
    )

    assert d.category_id == beach.id
    assert d.price == Decimal("250000")
    assert d.name == "Patong Beach"


def test_update_destination_unknown_category(db, catalog):
    with pytest.raises(NotFoundError) as exc:
        catalog_service.update_destination(db, catalog["patong"].id, {"category_id": "missing", "price": "1"})

    assert exc.value.field == "category_id"
    d = catalog_service.get_destination(db, catalog["patong"].id)
    assert d.category_id is None
    assert d.price == Decimal("200000")


def test_translation_slugs_stay_distinct(db, catalog):
    a = catalog_service.upsert_translation(db, catalog["uluwatu"].id, "EN", "Cliff Temple & Sunset")
    b = catalog_service.upsert_translation(db, catalog["terrace"].id, "en", "Cliff temple sunset")
    again = catalog_service.upsert_translation(db, catalog["uluwatu"].id, "en", "Cliff Temple & Sunset", "updated")

    assert a.slug == "cliff-temple-sunset"
    assert b.slug == "cliff-temple-sunset-2"
    assert again.id == a.id
    assert again.slug == "cliff-temple-sunset"

    d, language = catalog_service.find_by_slug(db, "Cliff-Temple-Sunset-2")
    assert d.id == catalog["terrace"].id
    assert language == "en"


def test_slug_of_deleted_destination(db, catalog):
    catalog_service.upsert_translation(db, catalog["patong"].id, "en", "Patong")
    catalog_service.delete_destination(db, catalog["patong"].id)

    with pytest.raises(NotFoundError):
        catalog_service.find_by_slug(db, "patong")
