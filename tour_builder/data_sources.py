from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict

import yaml

from .exceptions import InvalidPayloadError
from .logging_utils import get_logger
from .models import BrandConfig, TourPackage

logger = get_logger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent / "config"
DEFAULT_BRAND_PATH = CONFIG_DIR / "brand.yml"
BRAND_DEFAULTS_PATH = CONFIG_DIR / "brand.defaults.yml"
FORM_DEFAULTS_PATH = CONFIG_DIR / "form.defaults.yml"


def load_yaml_config(path: Path | None) -> Dict[str, Any]:
    """
    Load a single YAML config. Returns empty dict if the file is missing.
    """
    if path is None or not Path(path).exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def merge_overrides(target: dict, override: dict):
    """
    Shallow merge of override dict into target; modifies target in place.
    """
    if not override:
        return
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(target.get(k), dict):
            target[k].update(v)
        else:
            target[k] = v


def _resolve_logo(value: str | None, base_dir: Path) -> str | None:
    if not value:
        return None
    if value.startswith(("data:", "http://", "https://")):
        return value
    path = Path(value)
    if not path.is_absolute():
        path = base_dir / path
    return str(path.resolve())


def load_brand_config(path: Path | None = None) -> BrandConfig:
    """
    Load brand defaults + overrides.
    - Defaults live in brand.defaults.yml
    - Overrides live in brand.yml (or a custom `path`)
    """
    merged: Dict[str, Any] = {}
    merge_overrides(merged, load_yaml_config(BRAND_DEFAULTS_PATH))
    override_path = Path(path) if path else DEFAULT_BRAND_PATH
    override = load_yaml_config(override_path)
    merge_overrides(merged, override)

    # Relative logo paths are relative to the file that declared them
    logo_base = override_path.parent if override.get("logo") else BRAND_DEFAULTS_PATH.parent
    merged["logo"] = _resolve_logo(merged.get("logo"), logo_base)
    return BrandConfig.from_dict(merged)


def load_form_defaults(path: Path | None = None) -> Dict[str, Any]:
    """Defaults a brand-new tour form starts from."""
    defaults = load_yaml_config(FORM_DEFAULTS_PATH)
    merge_overrides(defaults, load_yaml_config(path))
    return defaults


# ---------------- Payload files ----------------

def load_json_object(path: Path) -> Dict[str, Any]:
    """
    Read a JSON file that must hold an object (a saved record or a raw payload).
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as exc:
        raise InvalidPayloadError(f"{path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidPayloadError(f"{path} does not contain a JSON object")
    return data


def payload_from_document(document: Dict[str, Any]) -> Dict[str, Any]:
    """Return the tour payload whether `document` is a saved record or raw."""
    if document.get("id") and isinstance(document.get("data"), dict):
        return document["data"]
    return document


def load_tour_package(path: Path) -> TourPackage:
    document = load_json_object(path)
    package = TourPackage.from_dict(payload_from_document(document))
    logger.debug("Loaded tour '%s' from %s", package.tour_name, path)
    return package


__all__ = [
    "load_yaml_config",
    "merge_overrides",
    "load_brand_config",
    "load_form_defaults",
    "load_json_object",
    "payload_from_document",
    "load_tour_package",
    "DEFAULT_BRAND_PATH",
    "BRAND_DEFAULTS_PATH",
    "FORM_DEFAULTS_PATH",
]
