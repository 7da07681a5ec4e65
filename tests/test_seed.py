from app import seed
from app.core.security import verify_password
from app.models.country import Country
from app.models.destination import Destination
from app.models.user import Role, User


def test_seed_is_repeatable(session_factory, monkeypatch):
    monkeypatch.setattr(seed, "SessionLocal", session_factory)

    seed.run()
    seed.run()

    db = session_factory()
    try:
        admin = db.query(User).filter(User.email == "admin@tours.local").one()
        assert admin.role == Role.ADMIN
        assert admin.is_verified
        assert verify_password("admin12345", admin.password_hash)
        assert db.query(User).filter(User.role == Role.OWNER).count() == 1
        assert db.query(Country).filter(Country.iso == "ID").count() == 1
        assert db.query(Destination).count() >= 2
    finally:
        db.close()
