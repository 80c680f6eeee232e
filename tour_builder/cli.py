#!/usr/bin/env python3
"""
CLI wrapper for tour package forms and PDFs.

Usage:
    python -m tour_builder.cli new --tour-name "Goa Getaway" --start 2024-01-10 --end 2024-01-13 -o goa.json
    python -m tour_builder.cli build goa.json                      # -> exports/GoaGetaway_sangeethaholidays.pdf
    python -m tour_builder.cli build goa.json --output out/goa.pdf --brand my_brand.yml
    python -m tour_builder.cli save goa.json
    python -m tour_builder.cli list --search goa
    python -m tour_builder.cli export form_1700000000000_abc123xyz
    python -m tour_builder.cli import GoaGetaway_form_backup.json
    python -m tour_builder.cli delete form_1700000000000_abc123xyz
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from .data_sources import load_form_defaults, load_json_object
from .exceptions import TourBuilderError
from .logging_utils import get_logger, setup_logging
from .models import BuildConfig, new_tour_package, parse_iso_date
from .pipelines import build_pdf

logger = get_logger(__name__)


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Build tour package PDFs and manage saved forms")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("--log-file", dest="log_file", help="Also write logs to this file")
    p.add_argument("--db", dest="db_url", help="Database URL (defaults to TOUR_DB_URL / data/tours.db)")
    sub = p.add_subparsers(dest="command", required=True)

    new = sub.add_parser("new", help="Write a new tour payload pre-filled with the form defaults")
    new.add_argument("-o", "--output", dest="output", type=Path, required=True)
    new.add_argument("--tour-name", dest="tour_name", default="")
    new.add_argument("--customer", dest="customer_name", default="")
    new.add_argument("--start", dest="start_date")
    new.add_argument("--end", dest="end_date")
    new.add_argument("--package-type", dest="package_type", choices=["domestic", "international"], default="domestic")

    build = sub.add_parser("build", help="Render a payload or saved-record JSON file to PDF")
    build.add_argument("payload", type=Path)
    build.add_argument("--output", dest="output_pdf", type=Path)
    build.add_argument("--output-dir", dest="output_dir", type=Path)
    build.add_argument("--brand", dest="brand_config_path", type=Path)

    save = sub.add_parser("save", help="Save a payload file as a new form (or update --id)")
    save.add_argument("payload", type=Path)
    save.add_argument("--id", dest="form_id")

    lst = sub.add_parser("list", help="List saved forms, newest first")
    lst.add_argument("--search", default=None)

    export = sub.add_parser("export", help="Write a saved form's payload to a JSON backup")
    export.add_argument("form_id")
    export.add_argument("--output-dir", dest="output_dir", type=Path, default=Path("."))

    imp = sub.add_parser("import", help="Import a JSON backup or raw payload")
    imp.add_argument("path", type=Path)

    delete = sub.add_parser("delete", help="Delete a saved form")
    delete.add_argument("form_id")

    return p.parse_args(argv)


def _repository(db_url: str | None):
    # Storage lives in the service package; only needed for the storage commands
    from sqlalchemy.orm import sessionmaker

    from backend.app.config import get_settings
    from backend.app.database import init_db, make_engine
    from backend.app.repositories import FormRepository

    engine = make_engine(db_url or get_settings().db_url)
    init_db(engine)
    session = sessionmaker(bind=engine, autoflush=False, future=True)()
    return FormRepository(session)


def cmd_new(args) -> int:
    overrides = {
        "tour_name": args.tour_name,
        "customer_name": args.customer_name,
        "package_type": args.package_type,
        "start_date": parse_iso_date(args.start_date),
        "end_date": parse_iso_date(args.end_date),
    }
    package = new_tour_package(load_form_defaults(), **overrides)
    args.output.parent.mkdir(parents=True, exist_ok=True)
    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(package.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info("Wrote new tour payload with %d day(s) to %s", len(package.itinerary), args.output)
    return 0


def cmd_build(args) -> int:
    cfg = BuildConfig.default()
    cfg.payload_path = args.payload
    if args.output_dir:
        cfg.output_dir = args.output_dir
    if args.brand_config_path:
        cfg.brand_config_path = args.brand_config_path
    output_overridden = False
    if args.output_pdf:
        cfg.output_pdf = args.output_pdf
        output_overridden = True
    path = build_pdf(cfg, output_overridden=output_overridden)
    print(path)
    return 0


def cmd_save(args) -> int:
    repo = _repository(args.db_url)
    record = repo.save(load_json_object(args.payload), form_id=args.form_id)
    print(record.id)
    return 0


def cmd_list(args) -> int:
    repo = _repository(args.db_url)
    for record in repo.list(args.search):
        name = record.tour_name or "Untitled Tour"
        customer = record.customer_name or "-"
        print(f"{record.id}\t{name}\t{customer}\t{record.updated_at}")
    return 0


def cmd_export(args) -> int:
    from backend.app.repositories import export_filename, export_payload

    repo = _repository(args.db_url)
    record = repo.get(args.form_id)
    destination = Path(args.output_dir) / export_filename(record.tour_name)
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(export_payload(record), encoding="utf-8")
    print(destination)
    return 0


def cmd_import(args) -> int:
    repo = _repository(args.db_url)
    record, _ = repo.import_record(load_json_object(args.path))
    print(record.id)
    return 0


def cmd_delete(args) -> int:
    repo = _repository(args.db_url)
    repo.delete(args.form_id)
    return 0


COMMANDS = {
    "new": cmd_new,
    "build": cmd_build,
    "save": cmd_save,
    "list": cmd_list,
    "export": cmd_export,
    "import": cmd_import,
    "delete": cmd_delete,
}


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)
    try:
        return COMMANDS[args.command](args)
    except TourBuilderError as e:
        logger.error("%s failed: %s", args.command, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
