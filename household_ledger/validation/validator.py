"""
Two-Stage Ledger Validation

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Type checking (amounts are integer cents, never floats)
- Required field presence
- Enum values, IBAN format and checksum

STAGE 2 - SEMANTIC VALIDATION:
- Entry accounts must exist (or be the "Unassigned" sentinel)
- Ids ending in a persona suffix are reserved for shadows
- Imported split families must be complete and consistent

IMPORTANT: Validation NEVER silently fixes issues.
Every problem is reported as a ValidationIssue and the write is refused.
"""

from collections import defaultdict
from typing import Any, Iterable, Mapping, Optional, Union

from pydantic import ValidationError

from household_ledger.models.ledger import (
    ENTRY_MODELS,
    PERSONAS,
    SHADOW_SUFFIXES,
    UNASSIGNED_ACCOUNT,
    Account,
    EntryBase,
    EntryKind,
    LedgerSnapshot,
    Owner,
    ValidationIssue,
    shadow_id,
)
from household_ledger.money import half_share


# Fields derived by the split deriver; input values are ignored
DERIVED_FIELDS = ("is_shared", "isShared", "linked_id", "linkedId", "is_security", "isSecurity")

SUGGESTED_FIXES = {
    "missing": "Provide a value for this field",
    "int_type": "Enter the amount in whole cents",
    "greater_than_equal": "Amounts cannot be negative",
    "enum": "Choose one of the allowed values",
    "literal_error": "Choose one of the allowed values",
    "string_too_short": "This field cannot be empty",
}


class LedgerValidationError(Exception):
    """A draft or snapshot failed validation."""

    def __init__(self, issues: list[ValidationIssue]):
        self.issues = issues
        details = "; ".join(f"{issue.field}: {issue.message}" for issue in issues)
        super().__init__(f"Validation failed: {details}")


def issues_from_pydantic(error: ValidationError) -> list[ValidationIssue]:
    """Convert a pydantic ValidationError into ValidationIssues."""
    issues = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "entry"
        issues.append(ValidationIssue(
            field=field,
            issue_type=err["type"],
            message=err["msg"],
            severity="error",
            suggested_fix=SUGGESTED_FIXES.get(err["type"]),
        ))
    return issues


def _draft_to_dict(draft: Union[Mapping[str, Any], EntryBase]) -> dict[str, Any]:
    if isinstance(draft, EntryBase):
        return draft.model_dump(exclude={"is_security"})
    return dict(draft)


class LedgerValidator:
    """
    Validates entry and account drafts before they are written, and full
    snapshots before they replace the ledger.
    """

    def validate_entry(
        self,
        kind: Union[EntryKind, str],
        draft: Union[Mapping[str, Any], EntryBase],
        known_accounts: Optional[Iterable[str]] = None,
    ) -> EntryBase:
        """
        Run both stages on an entry draft.

        Args:
            kind: Category the entry is written to
            draft: Entry fields (snake_case or camelCase keys) or a model
            known_accounts: Names of existing accounts. If None, the
                            account reference is not checked.

        Returns:
            The validated entry model for `kind`

        Raises:
            LedgerValidationError: If any error-level issue was found
        """
        try:
            kind = EntryKind(kind)
        except ValueError:
            raise LedgerValidationError([ValidationIssue(
                field="kind",
                issue_type="enum",
                message=f"Unknown category: {kind!r}",
                suggested_fix="Use one of fixed, budget, income, savings",
            )])

        data = _draft_to_dict(draft)
        for key in DERIVED_FIELDS:
            data.pop(key, None)
        # A missing id means a new entry
        if not data.get("id"):
            data.pop("id", None)

        if data.get("kind", kind.value) != kind.value:
            raise LedgerValidationError([ValidationIssue(
                field="kind",
                issue_type="kind_mismatch",
                message=f"Draft is a {data['kind']} entry but was written to {kind.value}",
            )])
        data["kind"] = kind.value

        # Stage 1: schema
        try:
            entry = ENTRY_MODELS[kind].model_validate(data)
        except ValidationError as e:
            raise LedgerValidationError(issues_from_pydantic(e))

        # Stage 2: semantics
        issues = []
        if entry.id.endswith(SHADOW_SUFFIXES):
            issues.append(ValidationIssue(
                field="id",
                issue_type="reserved_id",
                message=f"Ids ending in {' or '.join(SHADOW_SUFFIXES)} are reserved for split shares",
                suggested_fix="Leave the id empty to have one generated",
            ))

        if known_accounts is not None:
            issues.extend(self._check_account_reference(
                "account", entry.account, set(known_accounts)
            ))

        if issues:
            raise LedgerValidationError(issues)
        return entry

    def validate_account(
        self,
        draft: Union[Mapping[str, Any], Account],
    ) -> Account:
        """
        Schema validation of an account draft.

        Raises:
            LedgerValidationError: On malformed name, owner or IBAN
        """
        data = draft.model_dump() if isinstance(draft, Account) else dict(draft)
        try:
            return Account.model_validate(data)
        except ValidationError as e:
            raise LedgerValidationError(issues_from_pydantic(e))

    def _check_account_reference(
        self,
        field: str,
        account: str,
        known_accounts: set[str],
    ) -> list[ValidationIssue]:
        if account == UNASSIGNED_ACCOUNT or account in known_accounts:
            return []
        return [ValidationIssue(
            field=field,
            issue_type="unknown_account",
            message=f"Account '{account}' does not exist",
            suggested_fix="Create the account first or pick an existing one",
        )]

    def check_snapshot(self, snapshot: LedgerSnapshot) -> list[ValidationIssue]:
        """
        Semantic checks on a parsed snapshot.

        Verifies unique ids and account names, account references, and that
        every split family is complete: shadows point at a primary of the same
        category, carry the deterministic id and half the primary's amount,
        match their primary in every other field,
        and each primary has exactly the shadows its ownership calls for.

        Returns:
            List of issues (empty if the snapshot may be imported)
        """
        issues = []

        # Accounts
        seen_account_ids = set()
        seen_account_names = set()
        for index, account in enumerate(snapshot.accounts):
            if account.id in seen_account_ids:
                issues.append(ValidationIssue(
                    field=f"accounts.{index}.id",
                    issue_type="duplicate_id",
                    message=f"Account id '{account.id}' appears more than once",
                ))
            if account.name in seen_account_names:
                issues.append(ValidationIssue(
                    field=f"accounts.{index}.name",
                    issue_type="duplicate_name",
                    message=f"Account name '{account.name}' appears more than once",
                ))
            seen_account_ids.add(account.id)
            seen_account_names.add(account.name)

        # Entry ids and account references
        seen_entry_ids = set()
        primaries: dict[str, EntryBase] = {}
        shadows_by_primary: dict[str, list[tuple[str, EntryBase]]] = defaultdict(list)

        for kind in EntryKind:
            for index, entry in enumerate(snapshot.of_kind(kind)):
                where = f"{kind.value}.{index}"
                if entry.id in seen_entry_ids:
                    issues.append(ValidationIssue(
                        field=f"{where}.id",
                        issue_type="duplicate_id",
                        message=f"Entry id '{entry.id}' appears more than once",
                    ))
                seen_entry_ids.add(entry.id)

                issues.extend(self._check_account_reference(
                    f"{where}.account", entry.account, seen_account_names
                ))

                if entry.is_shadow:
                    shadows_by_primary[entry.linked_id].append((where, entry))
                else:
                    if entry.id.endswith(SHADOW_SUFFIXES):
                        issues.append(ValidationIssue(
                            field=f"{where}.id",
                            issue_type="reserved_id",
                            message=f"Entry '{entry.id}' uses an id reserved for split shares",
                        ))
                    primaries[entry.id] = entry

        # Split families
        for primary in primaries.values():
            if primary.owner == Owner.SHARED and not primary.is_shared:
                issues.append(ValidationIssue(
                    field=f"{primary.kind}.{primary.id}.isShared",
                    issue_type="inconsistent",
                    message=f"Shared entry '{primary.id}' must be marked as shared",
                ))
            issues.extend(self._check_family(
                primary, shadows_by_primary.get(primary.id, [])
            ))

        for linked_id, shadows in shadows_by_primary.items():
            if linked_id in primaries:
                continue
            for where, shadow in shadows:
                issues.append(ValidationIssue(
                    field=f"{where}.linkedId",
                    issue_type="dangling_link",
                    message=f"Share '{shadow.id}' points at missing entry '{linked_id}'",
                ))

        return issues

    def _check_family(
        self,
        primary: EntryBase,
        shadows: list[tuple[str, EntryBase]],
    ) -> list[ValidationIssue]:
        issues = []

        if primary.owner == Owner.SHARED:
            expected = set(PERSONAS)
        elif primary.is_shared:
            expected = {primary.owner.counterpart}
        else:
            expected = set()

        found = set()
        for where, shadow in shadows:
            if shadow.kind != primary.kind:
                issues.append(ValidationIssue(
                    field=f"{where}.linkedId",
                    issue_type="category_mismatch",
                    message=f"Share '{shadow.id}' is not in the same category as its entry",
                ))
            if shadow.owner not in expected:
                issues.append(ValidationIssue(
                    field=f"{where}.owner",
                    issue_type="unexpected_share",
                    message=f"Entry '{primary.id}' has no {shadow.owner.value} share",
                ))
                continue
            found.add(shadow.owner)
            if shadow.id != shadow_id(primary.id, shadow.owner):
                issues.append(ValidationIssue(
                    field=f"{where}.id",
                    issue_type="invalid_share_id",
                    message=f"Share id must be '{shadow_id(primary.id, shadow.owner)}'",
                ))
            if shadow.amount != half_share(primary.amount):
                issues.append(ValidationIssue(
                    field=f"{where}.amount",
                    issue_type="invalid_share_amount",
                    message=(
                        f"Share '{shadow.id}' is {shadow.amount} but half of "
                        f"{primary.amount} is {half_share(primary.amount)}"
                    ),
                ))

            if shadow.kind != primary.kind:
                continue
            expected_fields = primary.share_for(shadow.owner).model_dump(by_alias=True)
            actual_fields = shadow.model_dump(by_alias=True)
            differing = sorted(
                key for key, value in expected_fields.items()
                if key not in ("id", "amount") and actual_fields.get(key) != value
            )
            if differing:
                issues.append(ValidationIssue(
                    field=f"{where}.{differing[0]}",
                    issue_type="inconsistent_share",
                    message=(
                        f"Share '{shadow.id}' does not match entry '{primary.id}' "
                        f"in: {', '.join(differing)}"
                    ),
                ))

        for persona in sorted(expected - found, key=lambda p: p.value):
            issues.append(ValidationIssue(
                field=f"{primary.kind}.{primary.id}",
                issue_type="missing_share",
                message=f"Entry '{primary.id}' is missing its {persona.value} share",
            ))

        return issues

    def get_user_friendly_summary(self, issues: list[ValidationIssue]) -> str:
        """
        Generate a user-friendly summary of validation issues.

        This is what the dashboard shows next to a rejected form.
        """
        if not issues:
            return "✅ All checks passed."

        lines = ["❌ Please fix the following:"]
        for issue in issues:
            lines.append(f"   • {issue.field}: {issue.message}")
            if issue.suggested_fix:
                lines.append(f"     💡 {issue.suggested_fix}")
        return "\n".join(lines)
