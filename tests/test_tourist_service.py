import pytest

from app.core.errors import (
    DuplicateInBatchError,
    NotFoundError,
    PassportAlreadyRegisteredError,
    PassportConflictError,
    ValidationError,
)
from app.models.tourist import Gender, Tourist
from app.services import booking_service, tourist_service

from helpers import TODAY, day, make_user, person


@pytest.fixture()
def booking(db, traveller, catalog):
    return booking_service.add_destination(db, traveller.id, catalog["uluwatu"].id, day(5), today=TODAY)


def test_add_one(db, traveller, booking):
    t = tourist_service.add_one(db, booking.id, traveller.id, person("A1", name=" Ayu "))
    assert t.name == "Ayu"
    assert t.gender == Gender.MS
    assert t.phone_number is None


def test_add_one_rejects_registered_passport(db, traveller, booking):
    tourist_service.add_one(db, booking.id, traveller.id, person("A1"))
    with pytest.raises(PassportAlreadyRegisteredError) as exc:
        tourist_service.add_one(db, booking.id, traveller.id, person("A1", name="Budi", gender="Mr"))
    assert exc.value.passports == ["A1"]


def test_add_one_requires_owned_booking(db, booking):
    stranger = make_user(db)
    with pytest.raises(NotFoundError):
        tourist_service.add_one(db, booking.id, stranger.id, person("A1"))


def test_invalid_gender(db, traveller, booking):
    with pytest.raises(ValidationError):
        tourist_service.add_one(db, booking.id, traveller.id, person("A1", gender="Dr"))


def test_add_many_inserts_all(db, traveller, booking):
    rows = tourist_service.add_many(db, booking.id, traveller.id, [person("A1"), person("A2", name="Budi", gender="Mr")])
    assert len(rows) == 2
    assert tourist_service.count_for_booking(db, booking.id) == 2


def test_add_many_duplicate_in_batch_inserts_nothing(db, traveller, booking):
    with pytest.raises(DuplicateInBatchError):
        tourist_service.add_many(db, booking.id, traveller.id, [person("A1"), person("A2"), person("A1")])
    assert db.query(Tourist).count() == 0


def test_add_many_lists_every_registered_passport(db, traveller, booking):
    tourist_service.add_many(db, booking.id, traveller.id, [person("A1"), person("A2")])

    with pytest.raises(PassportAlreadyRegisteredError) as exc:
        tourist_service.add_many(db, booking.id, traveller.id, [person("A2"), person("A3"), person("A1")])
    assert exc.value.passports == ["A1", "A2"]
    assert db.query(Tourist).count() == 2


def test_update_passport_conflict(db, traveller, booking):
    a = tourist_service.add_one(db, booking.id, traveller.id, person("A1"))
    tourist_service.add_one(db, booking.id, traveller.id, person("A2"))

    with pytest.raises(PassportConflictError):
        tourist_service.update(db, a.id, traveller.id, {"passport_number": "A2"})

    updated = tourist_service.update(db, a.id, traveller.id, {"passport_number": "A9", "phone_number": "+62 811"})
    assert updated.passport_number == "A9"
    assert updated.phone_number == "+62 811"


def test_update_keeping_own_passport(db, traveller, booking):
    a = tourist_service.add_one(db, booking.id, traveller.id, person("A1"))
    updated = tourist_service.update(db, a.id, traveller.id, {"passport_number": "A1", "name": "Ayu Lestari"})
    assert updated.name == "Ayu Lestari"


def test_update_clears_phone_number(db, traveller, booking):
    a = tourist_service.add_one(db, booking.id, traveller.id, {**person("A1"), "phone_number": "+62 811"})

    updated = tourist_service.update(db, a.id, traveller.id, {"phone_number": None})

    assert updated.phone_number is None
    assert updated.passport_number == "A1"
    assert updated.name == "Ayu"


def test_remove_and_reads_check_ownership(db, traveller, booking):
    a = tourist_service.add_one(db, booking.id, traveller.id, person("A1"))
    stranger = make_user(db)

    with pytest.raises(NotFoundError):
        tourist_service.get(db, a.id, stranger.id)
    with pytest.raises(NotFoundError):
        tourist_service.remove(db, a.id, stranger.id)
    assert tourist_service.list_for_traveller(db, stranger.id) == []

    assert [t.id for t in tourist_service.list_for_booking(db, booking.id, traveller.id)] == [a.id]
    tourist_service.remove(db, a.id, traveller.id)
    assert tourist_service.list_for_traveller(db, traveller.id) == []
