import re
import uuid
import logging
from decimal import Decimal

from sqlalchemy.orm import Session, selectinload

from app.core.errors import ConflictError, NotFoundError, service_boundary
from app.db.types import utcnow
from app.models.country import Country, State
from app.models.destination import CategoryDestination, Destination, DestinationTranslation

logger = logging.getLogger(__name__)


# --- countries / states ---

def _get_country(db: Session, country_id: str) -> Country:
    c = db.get(Country, country_id)
    if not c or c.deleted_at is not None:
        raise NotFoundError("Country not found")
    return c


@service_boundary("list countries")
def list_countries(db: Session) -> list[Country]:
    return db.query(Country).filter(Country.deleted_at.is_(None)).order_by(Country.name.asc()).all()


@service_boundary("get country")
def get_country(db: Session, country_id: str) -> Country:
    return _get_country(db, country_id)


@service_boundary("create country")
def create_country(db: Session, iso: str, name: str, flag: str = "", phone_code: str = "", currency: str = "IDR") -> Country:
    iso = iso.strip().upper()
    if db.query(Country).filter(Country.iso == iso).first():
        raise ConflictError(f"Country {iso} already exists", field="iso")
    c = Country(
        id=str(uuid.uuid4()),
        iso=iso,
        name=name.strip(),
        flag=flag,
        phone_code=phone_code,
        currency=currency.strip().upper(),
    )
    db.add(c)
    db.commit()
    db.refresh(c)
    logger.info("country %s created (%s)", c.id, c.iso)
    return c


@service_boundary("update country")
def update_country(db: Session, country_id: str, fields: dict) -> Country:
    c = _get_country(db, country_id)
    for key in ("name", "flag", "phone_code", "currency"):
        if fields.get(key) is not None:
            setattr(c, key, fields[key])
    db.commit()
    db.refresh(c)
    return c


@service_boundary("delete country")
def delete_country(db: Session, country_id: str) -> None:
    c = _get_country(db, country_id)
    c.deleted_at = utcnow()
    db.commit()


@service_boundary("list states")
def list_states(db: Session, country_id: str) -> list[State]:
    _get_country(db, country_id)
    return (
        db.query(State)
        .filter(State.country_id == country_id, State.deleted_at.is_(None))
        .order_by(State.name.asc())
        .all()
    )


@service_boundary("create state")
def create_state(db: Session, country_id: str, name: str, latitude: str = "", longitude: str = "") -> State:
    _get_country(db, country_id)
    s = State(id=str(uuid.uuid4()), country_id=country_id, name=name.strip(), latitude=latitude, longitude=longitude)
    db.add(s)
    db.commit()
    db.refresh(s)
    return s


# --- categories ---

@service_boundary("list categories")
def list_categories(db: Session) -> list[CategoryDestination]:
    return (
        db.query(CategoryDestination)
        .filter(CategoryDestination.deleted_at.is_(None))
        .order_by(CategoryDestination.name.asc())
        .all()
    )


@service_boundary("create category")
def create_category(db: Session, name: str, code: str) -> CategoryDestination:
    code = code.strip().lower()
    if db.query(CategoryDestination).filter(CategoryDestination.code == code).first():
        raise ConflictError(f"Category {code} already exists", field="code")
    cat = CategoryDestination(id=str(uuid.uuid4()), name=name.strip(), code=code)
    db.add(cat)
    db.commit()
    db.refresh(cat)
    return cat


# --- destinations ---

def find_destination(db: Session, destination_id: str) -> Destination | None:
    """Live destination with its state loaded, or None."""
    d = (
        db.query(Destination)
        .options(selectinload(Destination.state), selectinload(Destination.translations))
        .filter(Destination.id == destination_id, Destination.deleted_at.is_(None))
        .first()
    )
    return d


@service_boundary("list destinations")
def list_destinations(db: Session, country_id: str | None = None, category_id: str | None = None) -> list[Destination]:
    q = (
        db.query(Destination)
        .options(selectinload(Destination.state), selectinload(Destination.translations))
        .filter(Destination.deleted_at.is_(None))
    )
    if country_id:
        q = q.join(State, State.id == Destination.state_id).filter(State.country_id == country_id)
    if category_id:
        q = q.filter(Destination.category_id == category_id)
    return q.order_by(Destination.name.asc()).all()


@service_boundary("get destination")
def get_destination(db: Session, destination_id: str) -> Destination:
    d = find_destination(db, destination_id)
    if not d:
        raise NotFoundError("Destination not found")
    return d


@service_boundary("create destination")
def create_destination(db: Session, state_id: str, name: str, price: Decimal, category_id: str | None = None,
                       description: str = "", image_url: str = "") -> Destination:
    state = db.get(State, state_id)
    if not state or state.deleted_at is not None:
        raise NotFoundError("State not found", field="state_id")
    if category_id and not db.get(CategoryDestination, category_id):
        raise NotFoundError("Category not found", field="category_id")
    d = Destination(
        id=str(uuid.uuid4()),
        state_id=state_id,
        category_id=category_id,
        name=name.strip(),
        description=description,
        price=Decimal(price),
        image_url=image_url,
    )
    db.add(d)
    db.commit()
    logger.info("destination %s created at price %s", d.id, d.price)
    return find_destination(db, d.id)


@service_boundary("update destination")
def update_destination(db: Session, destination_id: str, fields: dict) -> Destination:
    d = find_destination(db, destination_id)
    if not d:
        raise NotFoundError("Destination not found")
    category_id = fields.get("category_id")
    if category_id and not db.get(CategoryDestination, category_id):
        raise NotFoundError("Category not found", field="category_id")
    for key in ("name", "description", "image_url", "category_id"):
        if fields.get(key) is not None:
            setattr(d, key, fields[key])
    if fields.get("price") is not None:
        # existing bookings keep the subtotal they were built with
        d.price = Decimal(fields["price"])
    db.commit()
    return find_destination(db, destination_id)


@service_boundary("delete destination")
def delete_destination(db: Session, destination_id: str) -> None:
    d = find_destination(db, destination_id)
    if not d:
        raise NotFoundError("Destination not found")
    d.deleted_at = utcnow()
    db.commit()


def slugify(name: str) -> str:
    return re.sub(r"[^\w]+", "-", name.strip().lower()).strip("-")


def _free_slug(db: Session, destination_id: str, name: str) -> str:
    """Slug from ``name``, suffixed when another destination already uses it."""
    base = slugify(name) or destination_id
    slug, n = base, 1
    while (
        db.query(DestinationTranslation.id)
        .filter(DestinationTranslation.slug == slug, DestinationTranslation.destination_id != destination_id)
        .first()
    ):
        n += 1
        slug = f"{base}-{n}"
    return slug


@service_boundary("upsert destination translation")
def upsert_translation(db: Session, destination_id: str, language: str, name: str, description: str = "") -> DestinationTranslation:
    d = find_destination(db, destination_id)
    if not d:
        raise NotFoundError("Destination not found")
    language = language.strip().lower()
    tr = (
        db.query(DestinationTranslation)
        .filter(DestinationTranslation.destination_id == destination_id, DestinationTranslation.language == language)
        .first()
    )
    slug = _free_slug(db, destination_id, name)
    if tr:
        tr.name = name
        tr.slug = slug
        tr.description = description
    else:
        tr = DestinationTranslation(
            id=str(uuid.uuid4()),
            destination_id=destination_id,
            language=language,
            name=name,
            slug=slug,
            description=description,
        )
        db.add(tr)
    db.commit()
    db.refresh(tr)
    return tr


@service_boundary("find destination by slug")
def find_by_slug(db: Session, slug: str) -> tuple[Destination, str]:
    """Destination whose translation carries ``slug``, with that translation's language."""
    tr = (
        db.query(DestinationTranslation)
        .join(Destination, Destination.id == DestinationTranslation.destination_id)
        .filter(DestinationTranslation.slug == slug.strip().lower(), Destination.deleted_at.is_(None))
        .order_by(DestinationTranslation.created_at)
        .first()
    )
    if not tr:
        raise NotFoundError("Destination not found", field="slug")
    return find_destination(db, tr.destination_id), tr.language


def localized(d: Destination, language: str | None) -> tuple[str, str]:
    """Name and description in ``language`` when a translation exists."""
    if language:
        for tr in d.translations:
            if tr.language == language.lower():
                return tr.name, tr.description
    return d.name, d.description
