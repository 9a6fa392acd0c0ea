"""
Split Deriver

Turns one user-entered entry into a split family and writes it atomically.

A family is a primary entry (the full amount, linked_id=None) plus zero,
one or two shadows holding a persona's half (linked_id=primary id):

    owner == shared         -> master + <id>_main + <id>_partner
    split requested         -> primary + <id>_<other persona>
    otherwise               -> primary only, old shadows removed

DESIGN DECISION: Shadows are real rows maintained on write, not computed
on read. Every family write (primary, shadows, stale shadow cleanup)
happens inside ONE storage transaction, so the ledger is never observed
with a primary whose shadows disagree with it.

Only this module creates, changes or deletes shadows.
"""

from enum import Enum
from typing import Any, Mapping, Optional, Union

from household_ledger.activity import ActivityLogger
from household_ledger.models.ledger import (
    PERSONAS,
    EntryBase,
    EntryKind,
    Owner,
)
from household_ledger.services.errors import InvariantViolationError, ManagedEntryError
from household_ledger.services.storage import (
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from household_ledger.validation.validator import LedgerValidationError, LedgerValidator


class SplitCase(str, Enum):
    """Which derivation rule produced a family."""
    MASTER = "master"
    PAYER_SPLIT = "payer_split"
    UNSPLIT = "unsplit"


def derive_family(
    entry: EntryBase,
    split_requested: bool = False,
) -> tuple[EntryBase, list[EntryBase], SplitCase]:
    """
    Derive the primary and the desired shadows for a validated entry.

    Pure function: nothing is read or written.

    Returns:
        (primary, shadows, split_case)
    """
    if entry.owner == Owner.SHARED:
        primary = entry.model_copy(update={"is_shared": True, "linked_id": None})
        shadows = [primary.share_for(persona) for persona in PERSONAS]
        return primary, shadows, SplitCase.MASTER

    if split_requested:
        primary = entry.model_copy(update={"is_shared": True, "linked_id": None})
        return primary, [primary.share_for(entry.owner.counterpart)], SplitCase.PAYER_SPLIT

    primary = entry.model_copy(update={"is_shared": False, "linked_id": None})
    return primary, [], SplitCase.UNSPLIT


def _draft_field(draft: Union[Mapping[str, Any], EntryBase], *names: str) -> Any:
    if isinstance(draft, EntryBase):
        return getattr(draft, names[0])
    for name in names:
        if draft.get(name) is not None:
            return draft[name]
    return None


class SplitDeriver:
    """
    Writes and deletes split families.

    Every rejected write is logged as a rejection; every storage failure
    is logged as such. Both are re-raised unchanged.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[LedgerValidator] = None,
        activity: Optional[ActivityLogger] = None,
    ):
        self._storage = storage
        self._validator = validator or LedgerValidator()
        self._activity = activity or ActivityLogger()

    def upsert_entry(
        self,
        category: Union[EntryKind, str],
        draft: Union[Mapping[str, Any], EntryBase],
        split_requested: bool = False,
    ) -> str:
        """
        Create or update an entry and its shadows in one transaction.

        Args:
            category: fixed, budget, income or savings
            draft: Entry fields. An `id` edits that entry; without one a new
                   id is generated. isShared and isSecurity are ignored.
            split_requested: Split a persona-owned entry 50/50 with the
                             other persona

        Returns:
            The primary entry's id

        Raises:
            ManagedEntryError: If the draft targets a shadow
            LedgerValidationError: If the draft is invalid
            StorageError: If the transaction fails
        """
        entry_id = _draft_field(draft, "id")

        try:
            if _draft_field(draft, "linked_id", "linkedId") is not None:
                raise ManagedEntryError(entry_id or "<new>")

            with self._storage.transaction() as session:
                if entry_id:
                    existing = session.get_entry(entry_id)
                    if existing is not None and existing.is_shadow:
                        raise ManagedEntryError(entry_id)

                entry = self._validator.validate_entry(
                    category,
                    draft,
                    known_accounts=[account.name for account in session.list_accounts()],
                )
                primary, shadows, split_case = derive_family(entry, split_requested)

                session.save_entry(primary)
                for shadow in shadows:
                    session.save_entry(shadow)
                removed = session.delete_linked(
                    primary.id, keep=[shadow.id for shadow in shadows]
                )
        except (LedgerValidationError, InvariantViolationError) as e:
            self._activity.log_rejected("entry", entry_id, e)
            raise
        except StorageError as e:
            self._activity.log_storage_failed("upsert_entry", e)
            raise

        self._activity.log_entry_saved(
            entry_id=primary.id,
            kind=primary.kind,
            split_case=split_case.value,
            shadow_ids=[shadow.id for shadow in shadows],
        )
        self._activity.log_shadows_removed(primary.id, removed)
        return primary.id

    def delete_entry(self, entry_id: str) -> list[str]:
        """
        Delete a primary entry and every shadow linked to it.

        Returns:
            IDs of the shadows removed with it

        Raises:
            NotFoundError: If no entry has this id
            ManagedEntryError: If the id names a shadow
        """
        try:
            with self._storage.transaction() as session:
                entry = session.get_entry(entry_id)
                if entry is None:
                    raise NotFoundError(f"Entry '{entry_id}' not found")
                if entry.is_shadow:
                    raise ManagedEntryError(entry_id)

                removed = session.delete_linked(entry_id)
                session.delete_entry(entry_id)
        except (NotFoundError, InvariantViolationError) as e:
            self._activity.log_rejected("entry", entry_id, e)
            raise
        except StorageError as e:
            self._activity.log_storage_failed("delete_entry", e)
            raise

        self._activity.log_entry_deleted(entry_id, removed)
        return removed
