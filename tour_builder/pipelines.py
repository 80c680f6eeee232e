"""
Pipeline entrypoints for building tour PDFs.

Thin orchestration so callers (CLI, API, scripts) can supply paths/config
without touching the renderer: load the payload and brand config, render into
memory, then write the file in one step.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional

from .data_sources import load_brand_config, load_tour_package
from .exceptions import InvalidPayloadError, PDFGenerationError
from .logging_utils import get_logger
from .models import BrandConfig, BuildConfig, TourPackage
from .renderers.pdf_renderer import RenderResult, render_pdf

logger = get_logger(__name__)


def write_pdf(result: RenderResult, destination: Path) -> Path:
    destination = Path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(result.pdf)
    except OSError as e:
        raise PDFGenerationError(f"Could not write {destination}: {e}") from e
    logger.info("Wrote %s (%d page(s))", destination, result.page_count)
    return destination


def generate_pdf(
    package: TourPackage,
    output_dir: Path,
    brand: BrandConfig | None = None,
    output_pdf: Optional[Path] = None,
    is_cancelled: Optional[Callable[[], bool]] = None,
) -> Path:
    """
    Render `package` and write it to `output_pdf`, or to
    `output_dir/<TourName>_<tag>.pdf` when no explicit file is given.
    Nothing is written if rendering fails or is cancelled.
    """
    brand = brand or load_brand_config()
    result = render_pdf(package, brand, is_cancelled=is_cancelled)
    destination = Path(output_pdf) if output_pdf else Path(output_dir) / result.filename
    return write_pdf(result, destination)


def build_pdf(config: BuildConfig | None = None, output_overridden: bool = False) -> Path:
    """
    Build the tour PDF described by `config` (payload file + brand overrides).
    """
    cfg = config or BuildConfig.default()
    if cfg.payload_path is None:
        raise InvalidPayloadError("No tour payload file given")

    package = load_tour_package(Path(cfg.payload_path))
    brand = load_brand_config(cfg.brand_config_path)
    output_pdf = cfg.output_pdf if output_overridden else None
    return generate_pdf(package, Path(cfg.output_dir), brand, output_pdf=output_pdf)


__all__ = ["build_pdf", "generate_pdf", "write_pdf"]
