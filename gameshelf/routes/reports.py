import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import User
from ..services.reports import build_reports, parse_report_types
from .deps import require_admin

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api/reports/{reportType}")
def get_reports(
    reportType: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    report_types = parse_report_types(reportType)
    logger.info("Report request %s by admin id=%s", report_types, admin.id)
    try:
        return build_reports(db, report_types)
    except SQLAlchemyError as exc:
        logger.exception("Error building reports %s", report_types)
        raise HTTPException(status_code=500, detail="Internal Server Error") from exc
