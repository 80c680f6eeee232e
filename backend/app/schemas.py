from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

SUMMARY_KEYS = {
    "tour_name": "tourName",
    "customer_name": "customerName",
    "start_date": "startDate",
    "end_date": "endDate",
    "num_travellers": "numTravellers",
    "cost_per_person": "costPerPerson",
    "package_type": "packageType",
}


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def summary_from_payload(payload: Dict[str, Any]) -> Dict[str, str]:
    """
    Listing/search columns copied out of a tour payload. The payload stays
    the source of truth; these are rebuilt on every save and import.
    """
    summary = {field: _text(payload.get(key)) for field, key in SUMMARY_KEYS.items()}
    summary["package_type"] = summary["package_type"] or "domestic"
    return summary


class SavedFormSummary(BaseModel):
    id: str
    tour_name: str = Field("", alias="tourName")
    customer_name: str = Field("", alias="customerName")
    start_date: str = Field("", alias="startDate")
    end_date: str = Field("", alias="endDate")
    num_travellers: str = Field("", alias="numTravellers")
    cost_per_person: str = Field("", alias="costPerPerson")
    package_type: str = Field("domestic", alias="packageType")
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True)


class SavedFormRecord(SavedFormSummary):
    data: Dict[str, Any]


class SavedFormList(BaseModel):
    results: List[SavedFormSummary]
    total: int


class DraftRecord(BaseModel):
    id: str
    data: Dict[str, Any]
    timestamp: str


class ImportResult(BaseModel):
    id: str
    tour_name: str = Field("", alias="tourName")
    wrapped: bool

    model_config = ConfigDict(populate_by_name=True)
