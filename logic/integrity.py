"""Cascading deletion of wardrobe items across the outfit collection."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, FrozenSet, List, Literal, Optional

from client_app.logging_config import get_logger, log_event, operation_context
from logic.errors import (
    AuthRequired,
    DeletionFailed,
    Forbidden,
    GatewayError,
    IntegrityCheckFailed,
    Transport,
)
from models.outfit import Outfit
from tools.backend import BatchOperation
from tools.gateway import RemoteCallGateway
from tools.observability import instrument_call
from tools.prompts import UserPrompter
from tools.wardrobe_store import RelatedOutfitFinder

LOGGER = get_logger(__name__)

DeletionStatus = Literal["deleted", "cancelled", "failed", "auth_required", "integrity_check_failed"]

OPTION_DELETE_OUTFITS = "Delete the outfits too"
OPTION_KEEP_OUTFITS = "Keep the outfits, remove this item from them"


class DeletionMode(str, enum.Enum):
    ITEM_ONLY = "ITEM_ONLY"
    ITEM_AND_OUTFITS = "ITEM_AND_OUTFITS"


@dataclass(frozen=True)
class DeletionPlan:
    """Per-request plan; never persisted."""

    target_item_id: str
    related_outfit_ids: FrozenSet[str]
    mode: DeletionMode


@dataclass
class DeletionResult:
    status: DeletionStatus
    plan: Optional[DeletionPlan] = None
    error: Optional[GatewayError] = None
    refresh_required: bool = False
    affected_outfits: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == "deleted"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ReferentialIntegrityCoordinator:
    """Deletes an item while keeping outfits consistent with the item list.

    With related outfits, the user picks whether they are purged or only
    de-referenced, then confirms again. The item delete and every outfit
    write are committed as one batch.
    """

    def __init__(
        self,
        gateway: RemoteCallGateway,
        finder: RelatedOutfitFinder,
        prompter: UserPrompter,
        item_collection: str = "items",
        outfit_collection: str = "outfits",
        strict_integrity_check: bool = True,
        clock: Callable[[], str] = _utc_now,
    ) -> None:
        self.gateway = gateway
        self.finder = finder
        self.prompter = prompter
        self.item_collection = item_collection
        self.outfit_collection = outfit_collection
        self.strict_integrity_check = strict_integrity_check
        self.clock = clock

    @instrument_call("delete_item")
    def delete_item(self, item_id: str) -> DeletionResult:
        with operation_context("coordinator:delete_item") as correlation_id:
            if not self.gateway.has_active_session():
                self.prompter.navigate_to_login("delete_requires_session")
                return DeletionResult(status="auth_required", error=AuthRequired())

            try:
                related = self.finder.find_related(item_id)
            except (Transport, Forbidden, ValueError) as exc:
                outcome = self._lookup_failed(item_id, exc)
                if outcome is not None:
                    return outcome
                related = []

            mode = self._ask_mode(related)
            if mode is None:
                log_event(LOGGER, logging.INFO, "deletion_cancelled", item_id=item_id, correlation_id=correlation_id)
                return DeletionResult(status="cancelled")

            plan = DeletionPlan(
                target_item_id=item_id,
                related_outfit_ids=frozenset(outfit.outfit_id for outfit in related),
                mode=mode,
            )
            return self._execute(plan, related)

    def _lookup_failed(self, item_id: str, exc: Exception) -> Optional[DeletionResult]:
        if not self.strict_integrity_check:
            log_event(
                LOGGER,
                logging.WARNING,
                "related_lookup_failed_assuming_none",
                item_id=item_id,
                reason=str(exc),
            )
            return None

        log_event(LOGGER, logging.ERROR, "related_lookup_failed", item_id=item_id, reason=str(exc))
        error = IntegrityCheckFailed(
            "Could not check which outfits use this item, nothing was deleted",
            details={"item_id": item_id},
        )
        self.prompter.alert("Delete not possible", f"{error.message}. Please try again later.")
        return DeletionResult(status="integrity_check_failed", error=error)

    def _ask_mode(self, related: List[Outfit]) -> Optional[DeletionMode]:
        if not related:
            confirmed = self.prompter.confirm(
                "Delete item",
                "Delete this item? This cannot be undone.",
                confirm_text="Delete",
            )
            return DeletionMode.ITEM_ONLY if confirmed else None

        count = len(related)
        choice = self.prompter.choose(
            f"This item is used by {count} outfit{'s' if count != 1 else ''}",
            [OPTION_DELETE_OUTFITS, OPTION_KEEP_OUTFITS],
        )
        if choice == 0:
            mode = DeletionMode.ITEM_AND_OUTFITS
            content = f"Delete this item and the {count} outfit(s) using it? This cannot be undone."
        elif choice == 1:
            mode = DeletionMode.ITEM_ONLY
            content = f"Delete this item and remove it from {count} outfit(s)? This cannot be undone."
        else:
            return None

        confirmed = self.prompter.confirm("Confirm delete", content, confirm_text="Delete")
        return mode if confirmed else None

    def build_operations(self, plan: DeletionPlan, related: List[Outfit]) -> List[BatchOperation]:
        operations = [BatchOperation(kind="delete", collection=self.item_collection, doc_id=plan.target_item_id)]
        for outfit in related:
            if plan.mode is DeletionMode.ITEM_AND_OUTFITS:
                operations.append(
                    BatchOperation(kind="delete", collection=self.outfit_collection, doc_id=outfit.outfit_id)
                )
            else:
                remaining = outfit.without_item(plan.target_item_id)
                operations.append(
                    BatchOperation(
                        kind="update",
                        collection=self.outfit_collection,
                        doc_id=outfit.outfit_id,
                        patch={
                            "items": [entry.to_document() for entry in remaining],
                            "updateTime": self.clock(),
                        },
                    )
                )
        return operations

    def _execute(self, plan: DeletionPlan, related: List[Outfit]) -> DeletionResult:
        operations = self.build_operations(plan, related)
        try:
            self.gateway.commit_batch(operations)
        except GatewayError as exc:
            log_event(
                LOGGER,
                logging.ERROR,
                "deletion_batch_failed",
                item_id=plan.target_item_id,
                mode=plan.mode.value,
                error_code=exc.error_code,
            )
            self.prompter.toast("Delete failed, please try again")
            error = DeletionFailed(exc.message, details={"item_id": plan.target_item_id, "cause": exc.error_code})
            error.__cause__ = exc
            return DeletionResult(status="failed", plan=plan, error=error)

        log_event(
            LOGGER,
            logging.INFO,
            "deletion_committed",
            item_id=plan.target_item_id,
            mode=plan.mode.value,
            outfit_count=len(plan.related_outfit_ids),
        )
        self.prompter.toast("Deleted")
        return DeletionResult(
            status="deleted",
            plan=plan,
            refresh_required=True,
            affected_outfits=sorted(plan.related_outfit_ids),
        )


__all__ = [
    "DeletionMode",
    "DeletionPlan",
    "DeletionResult",
    "ReferentialIntegrityCoordinator",
]
