"""Submission routes: intake of finished moderator tests."""

import logging

from fastapi import APIRouter, Depends, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from modgate.clients import get_application_store, get_audit_log
from modgate.config import get_settings
from modgate.schemas.pydantic import SubmissionCreate, SubmissionResponse
from modgate.services.application_store import ApplicationStore
from modgate.services.audit_log import AuditLog
from modgate.services.discord_client import submission_footer
from modgate.utils import dump_json, new_submission_id, parse_score, truncate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["submissions"])
limiter = Limiter(key_func=get_remote_address)

COLOR_SUBMISSION = 0x00FF00


@router.post("/submit", response_model=SubmissionResponse)
@limiter.limit("30/hour")
async def submit_test_results(
    request: Request,
    body: SubmissionCreate,
    store: ApplicationStore = Depends(get_application_store),
    audit_log: AuditLog = Depends(get_audit_log),
):
    """Store a finished test as a pending application and announce it."""
    settings = get_settings()
    submission_id = new_submission_id()
    logger.info("Submission %s for %s (%s)", submission_id, body.discord_username, body.discord_id)

    parsed_correct, parsed_total = parse_score(body.score, settings.default_total_questions)
    total = body.total_questions or parsed_total
    correct = min(body.correct_answers if body.correct_answers is not None else parsed_correct, total)
    wrong = body.wrong_answers if body.wrong_answers is not None else total - correct
    score = body.score or f"{correct}/{total}"
    transcript = body.conversation_log or body.answers

    app = await store.insert({
        "discord_id": body.discord_id,
        "discord_username": body.discord_username,
        "answers": transcript or "No conversation log",
        "conversation_log": body.conversation_log,
        "questions_with_answers": dump_json(body.questions_with_answers),
        "test_results": dump_json(body.test_results),
        "score": score,
        "total_questions": total,
        "correct_answers": correct,
        "wrong_answers": wrong,
    })
    logger.info("Saved submission %s as application %s", submission_id, app.id)

    preview = truncate(transcript or "No conversation log provided", settings.conversation_preview_chars)
    await audit_log.record(
        "📝 NEW MOD TEST SUBMISSION",
        f"**User:** {body.discord_username}\n**Discord ID:** {body.discord_id}\n"
        f"**Score:** {score}\n**Status:** Pending Review",
        COLOR_SUBMISSION,
        [
            ("📊 Test Results", f"```\nScore: {score}\nSubmission ID: {submission_id}\n```", True),
            ("📝 Conversation Log", f"```\n{preview}\n```", False),
        ],
        footer=submission_footer(app.id),
    )

    return SubmissionResponse(
        success=True,
        message="Test submitted successfully!",
        submission_id=submission_id,
        application_id=app.id,
    )
