"""
Saved-form persistence.

`FormRepository` wraps one SQLAlchemy session and speaks in `SavedFormRecord`
objects; every database failure leaves it as `StorageError` so callers never
see driver exceptions. Import/export helpers live alongside because they
share the record format.
"""

from __future__ import annotations

import json
import random
import re
import string
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tour_builder.exceptions import FormNotFoundError, InvalidPayloadError, StorageError
from tour_builder.logging_utils import get_logger

from . import models
from .schemas import DraftRecord, SavedFormRecord, summary_from_payload

logger = get_logger(__name__)

_ID_ALPHABET = string.digits + string.ascii_lowercase


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _epoch_ms() -> int:
    return int(time.time() * 1000)


def generate_form_id(rng: random.Random | None = None) -> str:
    """`form_<epoch ms>_<9 base36 chars>`"""
    rng = rng or random.SystemRandom()
    suffix = "".join(rng.choice(_ID_ALPHABET) for _ in range(9))
    return f"form_{_epoch_ms()}_{suffix}"


def generate_draft_id() -> str:
    return f"draft_{_epoch_ms()}"


# ---------------- Import / export ----------------

def normalize_import(obj: Any) -> tuple[SavedFormRecord, bool]:
    """
    Turn an imported JSON document into a record.

    A document with both `id` and a `data` object is taken as a full saved
    record (its id and createdAt are kept). Anything else is treated as a raw
    tour payload and wrapped with a fresh UUID and timestamps. Returns the
    record and whether it was wrapped.
    """
    if not isinstance(obj, dict):
        raise InvalidPayloadError("Imported file must contain a JSON object")

    now = utc_now_iso()
    if obj.get("id") and isinstance(obj.get("data"), dict):
        payload = obj["data"]
        record = SavedFormRecord(
            id=str(obj["id"]),
            created_at=str(obj.get("createdAt") or now),
            updated_at=str(obj.get("updatedAt") or now),
            data=payload,
            **summary_from_payload(payload),
        )
        return record, False

    record = SavedFormRecord(
        id=str(uuid.uuid4()),
        created_at=now,
        updated_at=now,
        data=obj,
        **summary_from_payload(obj),
    )
    return record, True


def export_payload(record: SavedFormRecord) -> str:
    """Pretty JSON of the form payload, ready to be imported again."""
    return json.dumps(record.data, indent=2, ensure_ascii=False)


def export_filename(tour_name: str) -> str:
    stem = re.sub(r"\s+", "", tour_name or "") or "TourForm"
    return f"{stem}_form_backup.json"


# ---------------- Repository ----------------

def _load_data(raw: str, form_id: str) -> Dict[str, Any]:
    try:
        data = json.loads(raw or "{}")
    except json.JSONDecodeError as e:
        raise StorageError(f"Stored data for {form_id} is corrupt: {e}") from e
    return data if isinstance(data, dict) else {}


def _to_record(row: models.SavedForm) -> SavedFormRecord:
    return SavedFormRecord(
        id=row.id,
        tour_name=row.tour_name or "",
        customer_name=row.customer_name or "",
        start_date=row.start_date or "",
        end_date=row.end_date or "",
        num_travellers=row.num_travellers or "",
        cost_per_person=row.cost_per_person or "",
        package_type=row.package_type or "domestic",
        created_at=row.created_at,
        updated_at=row.updated_at,
        data=_load_data(row.data, row.id),
    )


class FormRepository:
    def __init__(self, session: Session):
        self.session = session

    def _commit(self, action: str):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Failed to %s: %s", action, e)
            raise StorageError(f"Failed to {action}") from e

    def _write(self, record: SavedFormRecord) -> SavedFormRecord:
        try:
            row = self.session.get(models.SavedForm, record.id)
            if row is None:
                row = models.SavedForm(id=record.id)
                self.session.add(row)
            row.tour_name = record.tour_name
            row.customer_name = record.customer_name
            row.start_date = record.start_date
            row.end_date = record.end_date
            row.num_travellers = record.num_travellers
            row.cost_per_person = record.cost_per_person
            row.package_type = record.package_type
            row.created_at = record.created_at
            row.updated_at = record.updated_at
            row.data = json.dumps(record.data, ensure_ascii=False)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"Failed to save form {record.id}") from e
        self._commit(f"save form {record.id}")
        return record

    def save(self, payload: Dict[str, Any], form_id: Optional[str] = None) -> SavedFormRecord:
        """
        Create a new record, or update `form_id` keeping its createdAt.
        Summary fields are always re-derived from `payload`.
        """
        now = utc_now_iso()
        created_at = now
        if form_id:
            existing = self._get_row(form_id)
            if existing is not None:
                created_at = existing.created_at
        record = SavedFormRecord(
            id=form_id or generate_form_id(),
            created_at=created_at,
            updated_at=now,
            data=payload,
            **summary_from_payload(payload),
        )
        self._write(record)
        logger.info("Saved form %s (%s)", record.id, record.tour_name or "untitled")
        return record

    def _get_row(self, form_id: str) -> Optional[models.SavedForm]:
        try:
            return self.session.get(models.SavedForm, form_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load form {form_id}") from e

    def get(self, form_id: str) -> SavedFormRecord:
        row = self._get_row(form_id)
        if row is None:
            raise FormNotFoundError(form_id)
        return _to_record(row)

    def list(self, search: Optional[str] = None) -> List[SavedFormRecord]:
        """All saved forms, newest update first, optionally filtered by tour/customer name."""
        stmt = select(models.SavedForm)
        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(models.SavedForm.tour_name).like(pattern),
                    func.lower(models.SavedForm.customer_name).like(pattern),
                )
            )
        stmt = stmt.order_by(models.SavedForm.updated_at.desc())
        try:
            rows = self.session.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise StorageError("Failed to list saved forms") from e
        return [_to_record(row) for row in rows]

    def delete(self, form_id: str) -> None:
        row = self._get_row(form_id)
        if row is None:
            raise FormNotFoundError(form_id)
        self.session.delete(row)
        self._commit(f"delete form {form_id}")
        logger.info("Deleted form %s", form_id)

    def import_record(self, obj: Any) -> tuple[SavedFormRecord, bool]:
        record, wrapped = normalize_import(obj)
        self._write(record)
        logger.info("Imported form %s (%s)", record.id, "wrapped payload" if wrapped else "full record")
        return record, wrapped

    # ---- drafts ----

    def autosave_draft(self, payload: Dict[str, Any], draft_id: Optional[str] = None) -> DraftRecord:
        draft = DraftRecord(id=draft_id or generate_draft_id(), data=payload, timestamp=utc_now_iso())
        try:
            row = self.session.get(models.FormDraft, draft.id)
            if row is None:
                row = models.FormDraft(id=draft.id)
                self.session.add(row)
            row.data = json.dumps(payload, ensure_ascii=False)
            row.timestamp = draft.timestamp
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError(f"Failed to save draft {draft.id}") from e
        self._commit(f"save draft {draft.id}")
        return draft

    def load_draft(self, draft_id: str) -> Optional[DraftRecord]:
        try:
            row = self.session.get(models.FormDraft, draft_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to load draft {draft_id}") from e
        if row is None:
            return None
        return DraftRecord(id=row.id, data=_load_data(row.data, row.id), timestamp=row.timestamp)

    def clear_draft(self, draft_id: str) -> None:
        try:
            row = self.session.get(models.FormDraft, draft_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Failed to clear draft {draft_id}") from e
        if row is None:
            return
        self.session.delete(row)
        self._commit(f"clear draft {draft_id}")


__all__ = [
    "FormRepository",
    "normalize_import",
    "export_payload",
    "export_filename",
    "generate_form_id",
    "generate_draft_id",
    "utc_now_iso",
]
