from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Response, status

from tour_builder.models import BrandConfig, TourPackage
from tour_builder.renderers.pdf_renderer import render_pdf

from .. import schemas
from ..dependencies import get_brand, get_repository
from ..repositories import FormRepository, export_filename, export_payload

router = APIRouter(prefix="/forms", tags=["forms"])
drafts_router = APIRouter(prefix="/drafts", tags=["drafts"])


def _attachment(filename: str) -> Dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/", response_model=schemas.SavedFormList, summary="List saved forms, newest first")
def list_forms(
    search: str | None = Query(None, description="Partial match on tour or customer name"),
    repo: FormRepository = Depends(get_repository),
) -> schemas.SavedFormList:
    records = repo.list(search)
    results = [schemas.SavedFormSummary.model_validate(r.model_dump(exclude={"data"})) for r in records]
    return schemas.SavedFormList(results=results, total=len(results))


@router.post(
    "/",
    response_model=schemas.SavedFormRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Save a new tour form",
)
def create_form(
    payload: Dict[str, Any] = Body(...),
    repo: FormRepository = Depends(get_repository),
) -> schemas.SavedFormRecord:
    return repo.save(payload)


@router.post("/import", response_model=schemas.ImportResult, summary="Import a backup file or raw payload")
def import_form(
    document: Any = Body(...),
    repo: FormRepository = Depends(get_repository),
) -> schemas.ImportResult:
    record, wrapped = repo.import_record(document)
    return schemas.ImportResult(id=record.id, tour_name=record.tour_name, wrapped=wrapped)


@router.get("/{form_id}", response_model=schemas.SavedFormRecord, summary="Get one saved form")
def get_form(form_id: str, repo: FormRepository = Depends(get_repository)) -> schemas.SavedFormRecord:
    return repo.get(form_id)


@router.put("/{form_id}", response_model=schemas.SavedFormRecord, summary="Update a saved form")
def update_form(
    form_id: str,
    payload: Dict[str, Any] = Body(...),
    repo: FormRepository = Depends(get_repository),
) -> schemas.SavedFormRecord:
    repo.get(form_id)
    return repo.save(payload, form_id=form_id)


@router.delete("/{form_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a saved form")
def delete_form(form_id: str, repo: FormRepository = Depends(get_repository)) -> Response:
    repo.delete(form_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{form_id}/export", summary="Download the form payload as a JSON backup")
def export_form(form_id: str, repo: FormRepository = Depends(get_repository)) -> Response:
    record = repo.get(form_id)
    return Response(
        content=export_payload(record),
        media_type="application/json",
        headers=_attachment(export_filename(record.tour_name)),
    )


@router.get("/{form_id}/pdf", summary="Render the saved form as a PDF")
def form_pdf(
    form_id: str,
    repo: FormRepository = Depends(get_repository),
    brand: BrandConfig = Depends(get_brand),
) -> Response:
    record = repo.get(form_id)
    result = render_pdf(TourPackage.from_dict(record.data), brand)
    return Response(content=result.pdf, media_type="application/pdf", headers=_attachment(result.filename))


# ---------------- Drafts ----------------

@drafts_router.post(
    "/",
    response_model=schemas.DraftRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Autosave a new draft",
)
def create_draft(
    payload: Dict[str, Any] = Body(...),
    repo: FormRepository = Depends(get_repository),
) -> schemas.DraftRecord:
    return repo.autosave_draft(payload)


@drafts_router.put("/{draft_id}", response_model=schemas.DraftRecord, summary="Autosave over an existing draft")
def save_draft(
    draft_id: str,
    payload: Dict[str, Any] = Body(...),
    repo: FormRepository = Depends(get_repository),
) -> schemas.DraftRecord:
    return repo.autosave_draft(payload, draft_id)


@drafts_router.get("/{draft_id}", response_model=schemas.DraftRecord, summary="Load a draft")
def load_draft(draft_id: str, repo: FormRepository = Depends(get_repository)) -> schemas.DraftRecord:
    draft = repo.load_draft(draft_id)
    if draft is None:
        raise HTTPException(status_code=404, detail=f"Draft not found: {draft_id}")
    return draft


@drafts_router.delete("/{draft_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Discard a draft")
def clear_draft(draft_id: str, repo: FormRepository = Depends(get_repository)) -> Response:
    repo.clear_draft(draft_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
