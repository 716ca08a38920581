"""Admin routes: test questions, quiz questions and mod roles."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.exc import OperationalError, ProgrammingError

from modgate.api.auth import get_current_admin
from modgate.clients import get_mod_role_store, get_quiz_question_store, get_test_question_store
from modgate.config import Settings, get_settings
from modgate.exceptions import NotFoundError
from modgate.schemas.pydantic import (
    DeleteResponse,
    ModRoleCreate,
    ModRoleListResponse,
    ModRoleOut,
    ModRoleUpdate,
    QuizQuestionCreate,
    QuizQuestionListResponse,
    QuizQuestionOut,
    QuizQuestionUpdate,
    SessionUser,
    TestQuestionCreate,
    TestQuestionListResponse,
    TestQuestionOut,
    TestQuestionUpdate,
)
from modgate.services.catalog_store import DEFAULT_QUIZ_QUESTIONS, DEFAULT_TEST_QUESTIONS, CatalogStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/api", tags=["catalog"])

# Raised when the catalog migration has not been applied yet.
_MISSING_TABLE = (ProgrammingError, OperationalError)


async def _update_or_404(store: CatalogStore, row_id: int, body) -> object:
    row = await store.update(row_id, body.model_dump(exclude_unset=True))
    if row is None:
        raise NotFoundError(f"No {store.table_name} row {row_id}")
    return row


async def _delete_or_404(store: CatalogStore, row_id: int) -> DeleteResponse:
    if not await store.delete(row_id):
        raise NotFoundError(f"No {store.table_name} row {row_id}")
    return DeleteResponse()


# ── Test questions ─────────────────────────────────────────────────────


@router.get("/test-questions", response_model=TestQuestionListResponse)
async def list_test_questions(
    store: CatalogStore = Depends(get_test_question_store),
    admin: SessionUser = Depends(get_current_admin),
):
    try:
        rows = await store.list_rows()
    except _MISSING_TABLE as exc:
        logger.warning("test_questions unavailable, serving defaults: %s", exc)
        return TestQuestionListResponse(questions=DEFAULT_TEST_QUESTIONS)
    return TestQuestionListResponse(questions=[TestQuestionOut.model_validate(r) for r in rows])


@router.post("/test-questions", response_model=TestQuestionOut)
async def create_test_question(
    body: TestQuestionCreate,
    store: CatalogStore = Depends(get_test_question_store),
    admin: SessionUser = Depends(get_current_admin),
):
    row = await store.create(body.model_dump())
    logger.info("Admin %s added test question %s", admin.username, row.id)
    return TestQuestionOut.model_validate(row)


@router.put("/test-questions/{question_id}", response_model=TestQuestionOut)
async def update_test_question(
    question_id: int,
    body: TestQuestionUpdate,
    store: CatalogStore = Depends(get_test_question_store),
    admin: SessionUser = Depends(get_current_admin),
):
    return TestQuestionOut.model_validate(await _update_or_404(store, question_id, body))


@router.delete("/test-questions/{question_id}", response_model=DeleteResponse)
async def delete_test_question(
    question_id: int,
    store: CatalogStore = Depends(get_test_question_store),
    admin: SessionUser = Depends(get_current_admin),
):
    return await _delete_or_404(store, question_id)


# ── Quiz questions ─────────────────────────────────────────────────────


@router.get("/quiz-questions", response_model=QuizQuestionListResponse)
async def list_quiz_questions(
    store: CatalogStore = Depends(get_quiz_question_store),
    admin: SessionUser = Depends(get_current_admin),
):
    try:
        rows = await store.list_rows()
    except _MISSING_TABLE as exc:
        logger.warning("quiz_questions unavailable, serving defaults: %s", exc)
        return QuizQuestionListResponse(questions=DEFAULT_QUIZ_QUESTIONS)
    return QuizQuestionListResponse(questions=[QuizQuestionOut.model_validate(r) for r in rows])


@router.post("/quiz-questions", response_model=QuizQuestionOut)
async def create_quiz_question(
    body: QuizQuestionCreate,
    store: CatalogStore = Depends(get_quiz_question_store),
    admin: SessionUser = Depends(get_current_admin),
):
    row = await store.create(body.model_dump())
    logger.info("Admin %s added quiz question %s", admin.username, row.id)
    return QuizQuestionOut.model_validate(row)


@router.put("/quiz-questions/{question_id}", response_model=QuizQuestionOut)
async def update_quiz_question(
    question_id: int,
    body: QuizQuestionUpdate,
    store: CatalogStore = Depends(get_quiz_question_store),
    admin: SessionUser = Depends(get_current_admin),
):
    return QuizQuestionOut.model_validate(await _update_or_404(store, question_id, body))


@router.delete("/quiz-questions/{question_id}", response_model=DeleteResponse)
async def delete_quiz_question(
    question_id: int,
    store: CatalogStore = Depends(get_quiz_question_store),
    admin: SessionUser = Depends(get_current_admin),
):
    return await _delete_or_404(store, question_id)


# ── Mod roles ──────────────────────────────────────────────────────────


def _configured_roles(settings: Settings) -> list[ModRoleOut]:
    if not settings.mod_role_id:
        return []
    return [ModRoleOut(id=1, role_id=str(settings.mod_role_id), role_name="Role 1",
                       description="From environment variables")]


@router.get("/mod-roles", response_model=ModRoleListResponse)
async def list_mod_roles(
    store: CatalogStore = Depends(get_mod_role_store),
    settings: Settings = Depends(get_settings),
    admin: SessionUser = Depends(get_current_admin),
):
    try:
        rows = await store.list_rows()
    except _MISSING_TABLE as exc:
        logger.warning("mod_roles unavailable, serving MOD_ROLE_ID: %s", exc)
        return ModRoleListResponse(roles=_configured_roles(settings))
    return ModRoleListResponse(roles=[ModRoleOut.model_validate(r) for r in rows])


@router.post("/mod-roles", response_model=ModRoleOut)
async def create_mod_role(
    body: ModRoleCreate,
    store: CatalogStore = Depends(get_mod_role_store),
    admin: SessionUser = Depends(get_current_admin),
):
    row = await store.create(body.model_dump())
    logger.info("Admin %s added mod role %s", admin.username, body.role_id)
    return ModRoleOut.model_validate(row)


@router.put("/mod-roles/{entry_id}", response_model=ModRoleOut)
async def update_mod_role(
    entry_id: int,
    body: ModRoleUpdate,
    store: CatalogStore = Depends(get_mod_role_store),
    admin: SessionUser = Depends(get_current_admin),
):
    return ModRoleOut.model_validate(await _update_or_404(store, entry_id, body))


@router.delete("/mod-roles/{entry_id}", response_model=DeleteResponse)
async def delete_mod_role(
    entry_id: int,
    store: CatalogStore = Depends(get_mod_role_store),
    admin: SessionUser = Depends(get_current_admin),
):
    return await _delete_or_404(store, entry_id)
