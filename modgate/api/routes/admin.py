"""Admin routes: review queue, transcripts, accept and reject."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from modgate.api.auth import get_current_admin
from modgate.clients import get_application_store, get_review_service
from modgate.exceptions import NotFoundError, UnprocessableError
from modgate.models.tables import APPLICATION_STATUSES, STATUS_ACCEPTED, STATUS_PENDING, STATUS_REJECTED
from modgate.schemas.pydantic import (
    AcceptOutcome,
    ApplicationListResponse,
    ApplicationOut,
    ApplicationStats,
    ConversationResponse,
    RejectOutcome,
    RejectRequest,
    SessionUser,
)
from modgate.services.application_store import ApplicationStore
from modgate.services.identity import is_synthetic_identity
from modgate.services.review_service import ERROR_NOT_FOUND, ReviewService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/api/applications", response_model=ApplicationListResponse)
async def list_applications(
    status: str | None = None,
    include_test: bool = False,
    store: ApplicationStore = Depends(get_application_store),
    admin: SessionUser = Depends(get_current_admin),
):
    """Review queue, newest first. Test identities are hidden unless asked for."""
    if status is not None and status not in APPLICATION_STATUSES:
        raise UnprocessableError(f"Invalid status. Must be one of: {', '.join(APPLICATION_STATUSES)}")

    apps = await store.list_applications()
    if not include_test:
        apps = [a for a in apps if not is_synthetic_identity(a.discord_username, a.discord_id)]
    logger.info("Admin %s listed %d applications", admin.username, len(apps))

    stats = ApplicationStats(
        total=len(apps),
        pending=sum(1 for a in apps if a.status == STATUS_PENDING),
        accepted=sum(1 for a in apps if a.status == STATUS_ACCEPTED),
        rejected=sum(1 for a in apps if a.status == STATUS_REJECTED),
    )
    if status is not None:
        apps = [a for a in apps if a.status == status]
    return ApplicationListResponse(
        applications=[ApplicationOut.model_validate(a) for a in apps],
        stats=stats,
    )


@router.get("/api/applications/{application_id}", response_model=ApplicationOut)
async def get_application(
    application_id: int,
    store: ApplicationStore = Depends(get_application_store),
    admin: SessionUser = Depends(get_current_admin),
):
    app = await store.get(application_id)
    if app is None:
        raise NotFoundError("Application not found")
    return ApplicationOut.model_validate(app)


@router.get("/conversation/{application_id}", response_model=ConversationResponse)
async def get_conversation(
    application_id: int,
    store: ApplicationStore = Depends(get_application_store),
    admin: SessionUser = Depends(get_current_admin),
):
    """Full test transcript for one application."""
    app = await store.get(application_id)
    if app is None:
        raise NotFoundError("Application not found")
    return ConversationResponse(
        conversation=app.conversation_log or app.answers or "No conversation log available."
    )


@router.post("/accept/{application_id}", response_model=AcceptOutcome)
async def accept_application(
    application_id: int,
    service: ReviewService = Depends(get_review_service),
    admin: SessionUser = Depends(get_current_admin),
):
    """Accept an application.

    Every handled case, including automation and store failures, is
    reported in the body with HTTP 200 so the dashboard can update at once.
    """
    outcome = await service.accept(application_id, admin.display_name)
    if outcome.error_code == ERROR_NOT_FOUND:
        raise NotFoundError("Application not found")
    return outcome


@router.post("/reject/{application_id}", response_model=RejectOutcome)
async def reject_application(
    application_id: int,
    body: RejectRequest | None = None,
    service: ReviewService = Depends(get_review_service),
    admin: SessionUser = Depends(get_current_admin),
):
    """Reject an application with an optional reason."""
    reason = body.reason if body is not None else None
    outcome = await service.reject(application_id, admin.display_name, reason)
    if outcome.error_code == ERROR_NOT_FOUND:
        raise NotFoundError("Application not found")
    return outcome
