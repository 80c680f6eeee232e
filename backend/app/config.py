from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel, Field

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _default_db_url() -> str:
    return f"sqlite:///{PROJECT_ROOT / 'data' / 'tours.db'}"


class Settings(BaseModel):
    """Service settings. `TOUR_DB_URL` and `TOUR_BRAND_CONFIG` override the defaults."""

    db_url: str = Field(default_factory=_default_db_url)
    brand_config: Optional[Path] = None
    api_title: str = "Tour Package API"
    api_description: str = "Saved tour forms, drafts, backups and PDF downloads."
    api_version: str = "0.1.0"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        values = {}
        if environ.get("TOUR_DB_URL"):
            values["db_url"] = environ["TOUR_DB_URL"]
        if environ.get("TOUR_BRAND_CONFIG"):
            values["brand_config"] = Path(environ["TOUR_BRAND_CONFIG"])
        return cls(**values)


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
