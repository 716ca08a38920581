"""Accept/reject workflow for moderator applications.

A decision is recorded in the store even when Discord automation fails:
role grant, DM and audit log are isolated best-effort steps whose results
are reported in the outcome for manual follow-up. Only the status write
itself can make a transition fail.

Transitions on one application id are serialised by an in-process lock,
and the status write is a compare-and-swap against ``pending`` so that
several workers racing on the same id still produce one decision.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from dataclasses import dataclass
from typing import Awaitable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from modgate.config import Settings
from modgate.exceptions import AutomationError, BotUnavailableError
from modgate.models.tables import (
    STATUS_ACCEPTED,
    STATUS_PENDING,
    STATUS_REJECTED,
    Application,
    utcnow,
)
from modgate.schemas.pydantic import AcceptOutcome, RejectOutcome
from modgate.services.application_store import ApplicationStore
from modgate.services.audit_log import AuditLog
from modgate.services.discord_client import COLOR_DANGER, COLOR_SUCCESS, DiscordNotifier
from modgate.services.identity import IdentityPredicate, is_synthetic_identity

logger = logging.getLogger(__name__)

T = TypeVar("T")

ERROR_NOT_FOUND = "not_found"
ERROR_CONFLICT = "conflict"
ERROR_TEST_IDENTITY = "test_identity"
ERROR_STORE_FAILURE = "store_failure"

TEST_IDENTITY_MESSAGE = "cannot process test identity"


@dataclass
class RoleGrant:
    assigned: bool
    newly_added: bool = False
    role_name: str | None = None
    error: str | None = None


@dataclass
class _Commit:
    committed: bool
    status: str | None = None
    error: str | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


class ReviewService:
    """Turns an admin's accept/reject decision into a stored status plus notifications."""

    def __init__(
        self,
        store: ApplicationStore,
        notifier: DiscordNotifier,
        audit_log: AuditLog,
        settings: Settings,
        *,
        identity_predicate: IdentityPredicate = is_synthetic_identity,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._audit_log = audit_log
        self._settings = settings
        self._is_synthetic = identity_predicate
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, application_id: int) -> asyncio.Lock:
        lock = self._locks.get(application_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[application_id] = lock
        return lock

    async def _bounded(self, awaitable: Awaitable[T]) -> T:
        return await asyncio.wait_for(awaitable, timeout=self._settings.discord_call_timeout)

    # ── Accept ──

    async def accept(self, application_id: int, reviewer: str) -> AcceptOutcome:
        async with self._lock_for(application_id):
            return await self._accept(application_id, reviewer)

    async def _accept(self, application_id: int, reviewer: str) -> AcceptOutcome:
        logger.info("Accepting application %s (reviewer=%s)", application_id, reviewer)
        try:
            app = await self._store.get(application_id)
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Could not load application %s: %s", application_id, exc)
            return AcceptOutcome(
                success=False, error=f"Could not load application: {exc}", error_code=ERROR_STORE_FAILURE
            )
        if app is None:
            return AcceptOutcome(success=False, error="Application not found", error_code=ERROR_NOT_FOUND)
        if app.status == STATUS_ACCEPTED:
            logger.info("Application %s already accepted", application_id)
            return AcceptOutcome(
                success=True, already_processed=True, status_committed=True, status=app.status
            )
        if app.status != STATUS_PENDING:
            return AcceptOutcome(
                success=False,
                status=app.status,
                error=f"Application already {app.status}",
                error_code=ERROR_CONFLICT,
            )
        if self._is_synthetic(app.discord_username, app.discord_id):
            logger.warning(
                "Refusing to accept test identity %s (%s)", app.discord_username, app.discord_id
            )
            return AcceptOutcome(
                success=False,
                status=app.status,
                error=TEST_IDENTITY_MESSAGE,
                error_code=ERROR_TEST_IDENTITY,
            )

        grant = await self._assign_role(app)
        dm_sent = False
        if grant.newly_added:
            title, body = self._welcome_message(app, grant.role_name)
            dm_sent = await self._send_dm(app.discord_id, title, body, COLOR_SUCCESS, "Welcome to the Mod Team!")

        commit = await self._commit(
            application_id,
            {
                "status": STATUS_ACCEPTED,
                "reviewed_by": reviewer,
                "reviewed_at": utcnow(),
                "review_notes": self._acceptance_notes(grant, dm_sent),
            },
        )
        outcome = AcceptOutcome(
            success=commit.committed,
            role_assigned=grant.assigned,
            dm_sent=dm_sent,
            status_committed=commit.committed,
            status=commit.status,
            error=grant.error,
        )
        if commit.failed:
            outcome.error = commit.error
            outcome.error_code = ERROR_STORE_FAILURE
            return outcome
        if not commit.committed:
            if commit.status == STATUS_ACCEPTED:
                outcome.success = True
                outcome.already_processed = True
            else:
                outcome.error = f"Application already {commit.status}"
                outcome.error_code = ERROR_CONFLICT
            return outcome

        await self._audit(
            "✅ Application Accepted",
            f"**User:** {app.discord_username} ({app.discord_id})\n**Reviewed by:** {reviewer}",
            COLOR_SUCCESS,
            [
                ("Role", "Assigned" if grant.assigned else f"Failed: {grant.error}", True),
                ("DM", "Sent" if dm_sent else "Not sent", True),
            ],
        )
        await self._mark_submission(application_id, STATUS_ACCEPTED, reviewer)
        return outcome

    async def _assign_role(self, app: Application) -> RoleGrant:
        settings = self._settings
        if not settings.role_automation_configured:
            logger.warning("DISCORD_GUILD_ID / MOD_ROLE_ID not set, skipping role grant")
            return RoleGrant(assigned=False, error="Missing Discord configuration.")
        try:
            if not await self._bounded(self._notifier.ensure_ready()):
                raise BotUnavailableError()
            member = await self._bounded(
                self._notifier.resolve_member(settings.discord_guild_id, app.discord_id)
            )
            role = await self._bounded(
                self._notifier.resolve_role(settings.discord_guild_id, settings.mod_role_id)
            )
            added = await self._bounded(self._notifier.grant_role(member, role))
        except AutomationError as exc:
            logger.warning("Role assignment for %s failed: %s", app.discord_id, exc.detail)
            return RoleGrant(assigned=False, error=exc.detail)
        except asyncio.TimeoutError:
            logger.warning("Role assignment for %s timed out", app.discord_id)
            return RoleGrant(assigned=False, error="Discord did not respond in time.")
        except Exception as exc:
            logger.exception("Unexpected error assigning role to %s", app.discord_id)
            return RoleGrant(assigned=False, error=f"Unexpected error: {exc}")
        return RoleGrant(assigned=True, newly_added=added, role_name=role.name)

    def _welcome_message(self, app: Application, role_name: str | None) -> tuple[str, str]:
        title = f"🎉 Welcome to the {self._settings.team_name}!"
        body = (
            f"Congratulations {app.discord_username}! Your moderator application has been **approved**.\n\n"
            f"You have been granted the **{role_name}** role.\n\n"
            "**Next Steps:**\n"
            "1. Read #staff-rules-and-info\n"
            "2. Introduce yourself in #staff-introductions\n"
            "3. Join our next mod training session\n"
            "4. Start with ticket duty in #mod-tickets\n\n"
            "If you have any questions, ping @Senior Staff in #staff-chat.\n\n"
            "We're excited to have you on the team!"
        )
        return title, body

    @staticmethod
    def _acceptance_notes(grant: RoleGrant, dm_sent: bool) -> str:
        if not grant.assigned:
            role = f"Role not assigned ({grant.error}), follow up manually"
        elif grant.newly_added:
            role = f"Role {grant.role_name} assigned"
        else:
            role = f"Member already had role {grant.role_name}"
        return f"{role}; welcome DM {'sent' if dm_sent else 'not sent'}"

    # ── Reject ──

    async def reject(self, application_id: int, reviewer: str, reason: str | None = None) -> RejectOutcome:
        async with self._lock_for(application_id):
            return await self._reject(application_id, reviewer, reason)

    async def _reject(self, application_id: int, reviewer: str, reason: str | None) -> RejectOutcome:
        logger.info("Rejecting application %s (reviewer=%s)", application_id, reviewer)
        try:
            app = await self._store.get(application_id)
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Could not load application %s: %s", application_id, exc)
            return RejectOutcome(
                success=False, error=f"Could not load application: {exc}", error_code=ERROR_STORE_FAILURE
            )
        if app is None:
            return RejectOutcome(success=False, error="Application not found", error_code=ERROR_NOT_FOUND)

        synthetic = self._is_synthetic(app.discord_username, app.discord_id)
        if app.status == STATUS_REJECTED:
            logger.info("Application %s already rejected", application_id)
            return RejectOutcome(
                success=True,
                already_processed=True,
                is_test_identity=synthetic,
                status_committed=True,
                status=app.status,
            )
        if app.status != STATUS_PENDING:
            return RejectOutcome(
                success=False,
                is_test_identity=synthetic,
                status=app.status,
                error=f"Application already {app.status}",
                error_code=ERROR_CONFLICT,
            )

        reason = (reason or "").strip() or self._settings.default_rejection_reason
        dm_sent = False
        if synthetic:
            logger.info("Test identity %s: marking rejected without DM", app.discord_username)
            notes = "Test identity, no DM attempted"
        else:
            title, body = self._rejection_message(app, reason)
            dm_sent = await self._send_dm(app.discord_id, title, body, COLOR_DANGER, "Better luck next time!")
            notes = f"Rejection DM {'sent' if dm_sent else 'not sent'}"

        commit = await self._commit(
            application_id,
            {
                "status": STATUS_REJECTED,
                "reviewed_by": reviewer,
                "reviewed_at": utcnow(),
                "rejection_reason": reason,
                "review_notes": notes,
            },
        )
        outcome = RejectOutcome(
            success=commit.committed,
            dm_sent=dm_sent,
            is_test_identity=synthetic,
            status_committed=commit.committed,
            status=commit.status,
        )
        if commit.failed:
            outcome.error = commit.error
            outcome.error_code = ERROR_STORE_FAILURE
            return outcome
        if not commit.committed:
            if commit.status == STATUS_REJECTED:
                outcome.success = True
                outcome.already_processed = True
            else:
                outcome.error = f"Application already {commit.status}"
                outcome.error_code = ERROR_CONFLICT
            return outcome

        if not synthetic:
            await self._audit(
                "❌ Application Rejected",
                f"**User:** {app.discord_username} ({app.discord_id})\n"
                f"**Reviewed by:** {reviewer}\n**Reason:** {reason}",
                COLOR_DANGER,
                [("DM", "Sent" if dm_sent else "Not sent", True)],
            )
        await self._mark_submission(application_id, STATUS_REJECTED, reviewer, reason)
        return outcome

    def _rejection_message(self, app: Application, reason: str) -> tuple[str, str]:
        body = (
            f"Hello {app.discord_username},\n\n"
            "After careful review, your moderator application has **not been approved** at this time.\n\n"
            f"**Reason:** {reason}\n\n"
            f"**You can reapply in {self._settings.reapply_days} days.**\n"
            "In the meantime, remain active in the community and consider improving your "
            "knowledge of our rules and procedures.\n\n"
            f"Thank you for your interest in joining the {self._settings.team_name}!"
        )
        return "❌ Application Status Update", body

    # ── Shared steps ──

    async def _send_dm(self, discord_id: str, title: str, body: str, color: int, footer: str) -> bool:
        try:
            return await self._bounded(
                self._notifier.send_direct_message(discord_id, title, body, color, footer)
            )
        except asyncio.TimeoutError:
            logger.warning("DM to %s timed out", discord_id)
        except Exception:
            logger.exception("Unexpected error sending DM to %s", discord_id)
        return False

    async def _commit(self, application_id: int, fields: dict) -> _Commit:
        """Write the decision only if the application is still pending."""
        try:
            updated = await self._store.transition(application_id, fields, expected_status=STATUS_PENDING)
            if updated is not None:
                logger.info("Application %s is now %s", application_id, updated.status)
                return _Commit(committed=True, status=updated.status)
            current = await self._store.get(application_id)
        except (SQLAlchemyError, OSError) as exc:
            logger.error("Could not save status for application %s: %s", application_id, exc)
            return _Commit(committed=False, error=f"Could not save application status: {exc}")

        # Another worker decided first.
        status = current.status if current is not None else None
        logger.warning("Application %s changed to %s during review", application_id, status)
        return _Commit(committed=False, status=status)

    async def _audit(self, title: str, description: str, color: int, fields: list) -> None:
        try:
            await self._bounded(self._audit_log.record(title, description, color, fields))
        except asyncio.TimeoutError:
            logger.warning("Audit log timed out for %r", title)
        except Exception:
            logger.exception("Audit log failed for %r", title)

    async def _mark_submission(
        self, application_id: int, status: str, reviewer: str, reason: str | None = None
    ) -> None:
        """Flip the submission announcement in the log channel to the decided status."""
        if not self._settings.log_channel_id:
            return
        try:
            await self._bounded(
                self._notifier.update_submission_message(
                    self._settings.log_channel_id, application_id, status, reviewer, reason
                )
            )
        except asyncio.TimeoutError:
            logger.warning("Updating submission message for %s timed out", application_id)
        except Exception:
            logger.exception("Could not update submission message for %s", application_id)
