import uuid
import logging
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError

from app.db.session import SessionLocal
from app.core.security import hash_password
from app.models.user import Role, User
from app.models.country import Country, State
from app.models.destination import CategoryDestination, Destination

logger = logging.getLogger(__name__)

CATEGORIES = [
    ("Beach", "beach"),
    ("Temple", "temple"),
    ("Nature", "nature"),
]

# (state, [(destination, category code, price IDR)])
SAMPLE_CATALOG = [
    ("Bali", [
        ("Uluwatu Temple", "temple", "500000"),
        ("Tegallalang Rice Terrace", "nature", "300000"),
        ("Nusa Dua Beach", "beach", "250000"),
    ]),
    ("Yogyakarta", [
        ("Borobudur", "temple", "450000"),
        ("Prambanan", "temple", "400000"),
    ]),
]


def ensure_user(db: Session, email: str, password: str, role: Role, name: str):
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            full_name=name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
            is_verified=True,
        )
    )
    db.commit()


def ensure_catalog(db: Session) -> int:
    """Indonesia with a couple of states and destinations; no-op once the country exists."""
    if db.query(Country).filter(Country.iso == "ID").first():
        return 0
    country = Country(id=str(uuid.uuid4()), iso="ID", name="Indonesia", flag="🇮🇩", phone_code="+62", currency="IDR")
    db.add(country)

    categories = {}
    for name, code in CATEGORIES:
        cat = db.query(CategoryDestination).filter(CategoryDestination.code == code).first()
        if not cat:
            cat = CategoryDestination(id=str(uuid.uuid4()), name=name, code=code)
            db.add(cat)
        categories[code] = cat

    created = 0
    for state_name, destinations in SAMPLE_CATALOG:
        state = State(id=str(uuid.uuid4()), country_id=country.id, name=state_name)
        db.add(state)
        for dest_name, code, price in destinations:
            db.add(Destination(
                id=str(uuid.uuid4()),
                state_id=state.id,
                category_id=categories[code].id,
                name=dest_name,
                price=Decimal(price),
            ))
            created += 1
    db.commit()
    return created


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except ProgrammingError:
            db.rollback()
            logger.warning("users table not found yet, skipping seeding (run alembic upgrade head)")
            return

        ensure_user(db, "admin@tours.local", "admin12345", Role.ADMIN, "Admin")
        ensure_user(db, "owner@tours.local", "owner12345", Role.OWNER, "Owner")
        created = ensure_catalog(db)
        logger.info("seed done (%d sample destinations created)", created)
    finally:
        db.close()


if __name__ == "__main__":
    from app.core.logging_config import configure_logging

    configure_logging()
    run()
