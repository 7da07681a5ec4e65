import pytest

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.profile import Profile
from app.services import profile_service

ADDRESS = {"phone_number": "+62 811 000", "address": "Jl. Sunset Road 8", "state": "Bali", "country": "Indonesia"}


def test_create_then_update(db, traveller):
    p = profile_service.create(db, traveller.id, {**ADDRESS, "address": "  Jl. Sunset Road 8 "})
    assert p.address == "Jl. Sunset Road 8"

    updated = profile_service.update(db, traveller.id, {"state": "Jakarta"})
    assert updated.state == "Jakarta"
    assert updated.country == "Indonesia"
    assert profile_service.get_mine(db, traveller.id).id == p.id


def test_one_profile_per_user(db, traveller):
    profile_service.create(db, traveller.id, ADDRESS)
    with pytest.raises(ConflictError):
        profile_service.create(db, traveller.id, ADDRESS)
    assert db.query(Profile).count() == 1


def test_required_fields_cannot_be_blanked(db, traveller):
    with pytest.raises(ValidationError):
        profile_service.create(db, traveller.id, {**ADDRESS, "state": " "})

    profile_service.create(db, traveller.id, ADDRESS)
    with pytest.raises(ValidationError) as exc:
        profile_service.update(db, traveller.id, {"address": None})
    assert exc.value.field == "address"


def test_delete(db, traveller):
    profile_service.create(db, traveller.id, ADDRESS)
    profile_service.delete(db, traveller.id)

    with pytest.raises(NotFoundError):
        profile_service.get_mine(db, traveller.id)
    with pytest.raises(NotFoundError):
        profile_service.delete(db, traveller.id)
