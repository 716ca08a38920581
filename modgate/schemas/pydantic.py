"""Pydantic v2 models for all request/response shapes."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Shared config for all response schemas that are built from ORM objects
_ORM_CONFIG = ConfigDict(from_attributes=True)

# The review frontend speaks camelCase JSON
_CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Submissions ────────────────────────────────────────────────────────
class SubmissionCreate(BaseModel):
    model_config = _CAMEL_CONFIG
    discord_id: str = Field(min_length=1, max_length=32)
    discord_username: str = Field(min_length=1, max_length=100)
    score: str | None = Field(None, max_length=20)
    answers: str | None = Field(None, max_length=100_000)
    conversation_log: str | None = Field(None, max_length=100_000)
    questions_with_answers: list | dict | None = None
    test_results: dict | None = None
    total_questions: int | None = Field(None, ge=0, le=1000)
    correct_answers: int | None = Field(None, ge=0, le=1000)
    wrong_answers: int | None = Field(None, ge=0, le=1000)

    @field_validator("discord_id", "discord_username")
    @classmethod
    def _strip_identity(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class SubmissionResponse(BaseModel):
    model_config = _CAMEL_CONFIG
    success: bool
    message: str
    submission_id: str
    application_id: int | None


# ── Applications ───────────────────────────────────────────────────────
class ApplicationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)
    id: int
    discord_id: str
    discord_username: str
    score: str | None
    total_questions: int | None
    correct_answers: int | None
    wrong_answers: int | None
    status: str
    reviewed_by: str | None
    reviewed_at: datetime | None
    rejection_reason: str | None
    review_notes: str | None
    created_at: datetime
    updated_at: datetime


class ApplicationStats(BaseModel):
    total: int
    pending: int
    accepted: int
    rejected: int


class ApplicationListResponse(BaseModel):
    applications: list[ApplicationOut]
    stats: ApplicationStats


class ConversationResponse(BaseModel):
    success: bool = True
    conversation: str


# ── Review transitions ─────────────────────────────────────────────────
class RejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=1000)


class AcceptOutcome(BaseModel):
    """Result of an accept call. Automation failures are reported, never raised."""

    model_config = _CAMEL_CONFIG
    success: bool
    already_processed: bool = False
    role_assigned: bool = False
    dm_sent: bool = False
    status_committed: bool = False
    status: str | None = None
    error: str | None = None
    error_code: str | None = None


class RejectOutcome(BaseModel):
    """Result of a reject call."""

    model_config = _CAMEL_CONFIG
    success: bool
    already_processed: bool = False
    dm_sent: bool = False
    is_test_identity: bool = False
    status_committed: bool = False
    status: str | None = None
    error: str | None = None
    error_code: str | None = None


# ── Auth ───────────────────────────────────────────────────────────────
class SessionUser(BaseModel):
    """Identity carried in the signed session cookie."""

    model_config = _CAMEL_CONFIG
    discord_id: str
    username: str
    global_name: str | None = None
    is_admin: bool = False

    @property
    def display_name(self) -> str:
        return self.global_name or self.username


# ── Test content and role catalog ──────────────────────────────────────
_CATALOG_OUT_CONFIG = ConfigDict(from_attributes=True, alias_generator=to_camel, populate_by_name=True)


class TestQuestionCreate(BaseModel):
    model_config = _CAMEL_CONFIG
    user_message: str = Field(..., min_length=1, max_length=2000)
    username: str | None = Field(None, max_length=100)
    avatar_color: str | None = Field(None, max_length=20)
    keywords: list[str] = Field(default_factory=list)
    required_matches: int = Field(2, ge=0)
    explanation: str | None = Field(None, max_length=2000)


class TestQuestionUpdate(BaseModel):
    model_config = _CAMEL_CONFIG
    user_message: str | None = Field(None, min_length=1, max_length=2000)
    username: str | None = Field(None, max_length=100)
    avatar_color: str | None = Field(None, max_length=20)
    keywords: list[str] | None = None
    required_matches: int | None = Field(None, ge=0)
    explanation: str | None = Field(None, max_length=2000)


class TestQuestionOut(TestQuestionCreate):
    model_config = _CATALOG_OUT_CONFIG
    id: int


class QuizQuestionCreate(BaseModel):
    model_config = _CAMEL_CONFIG
    question_number: int = Field(..., ge=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    optimal_response: str | None = Field(None, max_length=2000)
    key_elements: list[str] = Field(default_factory=list)
    avoid: list[str] = Field(default_factory=list)


class QuizQuestionUpdate(BaseModel):
    model_config = _CAMEL_CONFIG
    question_number: int | None = Field(None, ge=1)
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=2000)
    optimal_response: str | None = Field(None, max_length=2000)
    key_elements: list[str] | None = None
    avoid: list[str] | None = None


class QuizQuestionOut(QuizQuestionCreate):
    model_config = _CATALOG_OUT_CONFIG
    id: int


class ModRoleCreate(BaseModel):
    model_config = _CAMEL_CONFIG
    role_id: str = Field(..., min_length=1, max_length=32)
    role_name: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=500)


class ModRoleUpdate(BaseModel):
    model_config = _CAMEL_CONFIG
    role_id: str | None = Field(None, min_length=1, max_length=32)
    role_name: str | None = Field(None, max_length=100)
    description: str | None = Field(None, max_length=500)


class ModRoleOut(ModRoleCreate):
    model_config = _CATALOG_OUT_CONFIG
    id: int


class TestQuestionListResponse(BaseModel):
    success: bool = True
    questions: list[TestQuestionOut]


class QuizQuestionListResponse(BaseModel):
    success: bool = True
    questions: list[QuizQuestionOut]


class ModRoleListResponse(BaseModel):
    success: bool = True
    roles: list[ModRoleOut]


class DeleteResponse(BaseModel):
    success: bool = True
