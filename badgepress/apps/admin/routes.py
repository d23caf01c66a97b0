"""Badge Admin API Routes"""

import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from badgepress.badges.errors import AttachmentError, BadgeError
from badgepress.badges.pipeline import DesignerPublishPipeline
from badgepress.badges.schemas import (
    BadgeCreateRequest,
    BadgeDetailResponse,
    BadgeListItem,
    BadgeUpdateRequest,
    DesignerLaunchResponse,
    DesignerPublishRequest,
)
from badgepress.badges.service import BadgeService
from badgepress.config import settings
from badgepress.core.auth.nonce import require_designer_nonce
from badgepress.core.data.database import get_db
from badgepress.core.data.repositories import AssetRepository, RecordRepository

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["badges"])


def _badge_service(db: Session) -> BadgeService:
    return BadgeService(RecordRepository(db), AssetRepository(db))


def _badge_detail(service: BadgeService, record, warnings=None) -> BadgeDetailResponse:
    snapshot = service.validity.stored(record.id)
    if warnings is None:
        warnings = service.warnings_for(record, snapshot)

    return BadgeDetailResponse(
        id=record.id,
        title=record.title,
        display_title=service.display_title(record),
        status=record.status,
        criteria=record.criteria,
        description=service.get_description(record),
        version=service.get_version(record.id),
        image_asset_id=record.image_asset_id,
        image_url=service.image_url(record),
        validity=snapshot.to_dict() if snapshot else None,
        warnings=[w.to_dict() for w in warnings],
    )


@router.get("/badges", response_model=list[BadgeListItem])
def list_badges(
    status: str | None = Query(None),
    invalid_only: bool = Query(False),
    db: Session = Depends(get_db),
):
    """List badges with version and invalid state"""
    rows = _badge_service(db).list_badges(status)
    if invalid_only:
        rows = [row for row in rows if row["invalid"]]
    return rows


@router.post("/badges", response_model=BadgeDetailResponse, status_code=201)
def create_badge(badge_data: BadgeCreateRequest, db: Session = Depends(get_db)):
    """Create a draft badge"""
    service = _badge_service(db)
    outcome = service.create_badge(
        title=badge_data.title,
        criteria=badge_data.criteria,
        description=badge_data.description,
        version=badge_data.version,
    )
    return _badge_detail(service, outcome.record, outcome.warnings)


@router.get("/badges/{record_id}", response_model=BadgeDetailResponse)
def get_badge(record_id: int, db: Session = Depends(get_db)):
    """Badge detail with its stored validity"""
    service = _badge_service(db)
    return _badge_detail(service, service.get_badge(record_id))


@router.put("/badges/{record_id}", response_model=BadgeDetailResponse)
def save_badge(
    record_id: int, badge_data: BadgeUpdateRequest, db: Session = Depends(get_db)
):
    """Save a badge; validity is recomputed and warnings returned"""
    service = _badge_service(db)
    outcome = service.save_badge(
        record_id,
        title=badge_data.title,
        criteria=badge_data.criteria,
        status=badge_data.status,
        description=badge_data.description,
        version=badge_data.version,
    )
    return _badge_detail(service, outcome.record, outcome.warnings)


@router.delete("/badges/{record_id}/image", response_model=BadgeDetailResponse)
def remove_badge_image(record_id: int, db: Session = Depends(get_db)):
    """Detach the badge image and recompute validity"""
    service = _badge_service(db)
    outcome = service.remove_image(record_id)
    return _badge_detail(service, outcome.record, outcome.warnings)


@router.get("/badges/{record_id}/designer", response_model=DesignerLaunchResponse)
def get_designer_launch(
    record_id: int,
    email: str | None = Query(None),
    db: Session = Depends(get_db),
):
    """Designer link and nonce for a badge without an image"""
    service = _badge_service(db)
    return service.designer_launch(service.get_badge(record_id), email=email)


def _designer_error(exc: BadgeError) -> JSONResponse:
    data = exc.to_dict()
    data["filename"] = settings.DESIGNER_FILENAME
    return JSONResponse(
        content={"success": False, "data": data}, status_code=exc.status_code
    )


@router.post("/designer/publish")
def publish_designer_badge(
    publish_request: DesignerPublishRequest, db: Session = Depends(get_db)
):
    """Receive a designed badge, store its image and set it on the badge"""
    require_designer_nonce(publish_request.nonce, publish_request.record_id)

    content_store = RecordRepository(db)
    asset_store = AssetRepository(db)
    pipeline = DesignerPublishPipeline(content_store, asset_store)

    try:
        result = pipeline.publish(publish_request.badge_data(), publish_request.record_id)
    except AttachmentError as e:
        logger.error(
            "Designer image stored as asset %s but not attached to badge %s",
            e.asset_id,
            publish_request.record_id,
        )
        return _designer_error(e)
    except BadgeError as e:
        logger.warning(
            "Designer publish for badge %s failed: %s (%s)",
            publish_request.record_id,
            e.message,
            e.code,
        )
        return _designer_error(e)

    data = result.to_dict()
    data["image_set"]["image_url"] = asset_store.get_asset_url(result.asset_id)
    return {"success": True, "data": data}
