from typing import List, Optional

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import staff
from app.models.destination import Destination
from app.models.user import User
from app.schemas.catalog import (
    CategoryIn,
    CategoryOut,
    CountryIn,
    CountryOut,
    CountryPatch,
    DestinationIn,
    DestinationOut,
    DestinationPatch,
    StateIn,
    StateOut,
    TranslationIn,
    TranslationOut,
)
from app.services import catalog_service

router = APIRouter(tags=["catalog"])


def _destination_out(d: Destination, language: Optional[str] = None) -> DestinationOut:
    name, description = catalog_service.localized(d, language)
    return DestinationOut(
        id=d.id,
        state_id=d.state_id,
        country_id=d.country_id,
        category_id=d.category_id,
        name=name,
        description=description or "",
        price=d.price,
        image_url=d.image_url or "",
        language=language,
        created_at=d.created_at,
        translations=sorted(t.language for t in d.translations),
    )


# Countries / states

@router.get("/countries", response_model=List[CountryOut])
def list_countries(db: Session = Depends(get_db)):
    return catalog_service.list_countries(db)


@router.post("/countries", response_model=CountryOut, status_code=201)
def create_country(body: CountryIn, db: Session = Depends(get_db), user: User = Depends(staff)):
    return catalog_service.create_country(db, body.iso, body.name, body.flag, body.phone_code, body.currency)


@router.get("/countries/{country_id}", response_model=CountryOut)
def get_country(country_id: str, db: Session = Depends(get_db)):
    return catalog_service.get_country(db, country_id)


@router.patch("/countries/{country_id}", response_model=CountryOut)
def update_country(country_id: str, body: CountryPatch, db: Session = Depends(get_db), user: User = Depends(staff)):
    return catalog_service.update_country(db, country_id, body.model_dump(exclude_unset=True))


@router.delete("/countries/{country_id}", status_code=204)
def delete_country(country_id: str, db: Session = Depends(get_db), user: User = Depends(staff)):
    catalog_service.delete_country(db, country_id)
    return Response(status_code=204)


@router.get("/countries/{country_id}/states", response_model=List[StateOut])
def list_states(country_id: str, db: Session = Depends(get_db)):
    return catalog_service.list_states(db, country_id)


@router.post("/countries/{country_id}/states", response_model=StateOut, status_code=201)
def create_state(country_id: str, body: StateIn, db: Session = Depends(get_db), user: User = Depends(staff)):
    return catalog_service.create_state(db, country_id, body.name, body.latitude, body.longitude)


# Categories

@router.get("/categories", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return catalog_service.list_categories(db)


@router.post("/categories", response_model=CategoryOut, status_code=201)
def create_category(body: CategoryIn, db: Session = Depends(get_db), user: User = Depends(staff)):
    return catalog_service.create_category(db, body.name, body.code)


# Destinations

@router.get("/destinations", response_model=List[DestinationOut])
def list_destinations(
    country_id: Optional[str] = None,
    category_id: Optional[str] = None,
    lang: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return [_destination_out(d, lang) for d in catalog_service.list_destinations(db, country_id, category_id)]


@router.post("/destinations", response_model=DestinationOut, status_code=201)
def create_destination(body: DestinationIn, db: Session = Depends(get_db), user: User = Depends(staff)):
    d = catalog_service.create_destination(
        db,
        state_id=body.state_id,
        name=body.name,
        price=body.price,
        category_id=body.category_id,
        description=body.description,
        image_url=body.image_url,
    )
    return _destination_out(d)


@router.get("/destinations/slug/{slug}", response_model=DestinationOut)
def get_destination_by_slug(slug: str, db: Session = Depends(get_db)):
    d, language = catalog_service.find_by_slug(db, slug)
    return _destination_out(d, language)


@router.get("/destinations/{destination_id}", response_model=DestinationOut)
def get_destination(destination_id: str, lang: Optional[str] = None, db: Session = Depends(get_db)):
    return _destination_out(catalog_service.get_destination(db, destination_id), lang)


@router.patch("/destinations/{destination_id}", response_model=DestinationOut)
def update_destination(destination_id: str, body: DestinationPatch, db: Session = Depends(get_db), user: User = Depends(staff)):
    return _destination_out(catalog_service.update_destination(db, destination_id, body.model_dump(exclude_unset=True)))


@router.delete("/destinations/{destination_id}", status_code=204)
def delete_destination(destination_id: str, db: Session = Depends(get_db), user: User = Depends(staff)):
    catalog_service.delete_destination(db, destination_id)
    return Response(status_code=204)


@router.post("/destinations/{destination_id}/translations", response_model=TranslationOut)
def upsert_translation(destination_id: str, body: TranslationIn, db: Session = Depends(get_db), user: User = Depends(staff)):
    return catalog_service.upsert_translation(db, destination_id, body.language, body.name, body.description)
