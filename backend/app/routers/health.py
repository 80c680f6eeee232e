from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tour_builder.exceptions import StorageError
from tour_builder.logging_utils import get_logger

from ..config import get_settings
from ..dependencies import get_db

logger = get_logger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", summary="Service and database health check")
def healthcheck(db: Session = Depends(get_db)) -> dict[str, str]:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Health check could not reach the database: %s", e)
        raise StorageError("Database unavailable") from e
    return {"status": "ok", "database": "ok", "version": get_settings().api_version}
