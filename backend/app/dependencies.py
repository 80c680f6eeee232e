from __future__ import annotations

from typing import Iterator

from fastapi import Depends
from sqlalchemy.orm import Session

from tour_builder.data_sources import load_brand_config
from tour_builder.models import BrandConfig

from .config import get_settings
from .database import SessionLocal
from .repositories import FormRepository


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_repository(db: Session = Depends(get_db)) -> FormRepository:
    return FormRepository(db)


def get_brand() -> BrandConfig:
    return load_brand_config(get_settings().brand_config)
