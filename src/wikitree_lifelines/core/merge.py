"""
Field-level merging of two versions of the same profile.

When a profile is seen twice (for instance once as an embedded relative and
once as a fetched record) the newer values are folded into the stored
record. Values that genuinely conflict are decided by a decider callable;
standing decisions ("always" / "never") are remembered per field for the
life of the resolver.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Protocol

import click

from wikitree_lifelines.core.errors import ConflictUnresolved, InvalidRecord
from wikitree_lifelines.core.models import DERIVED_FIELDS, Person, date_text

logger = logging.getLogger(__name__)


class MergeDecision(str, Enum):
    """Answer to a merge conflict."""
    REPLACE_ONCE = "replace_once"
    KEEP_ONCE = "keep_once"
    ALWAYS_REPLACE = "always_replace"
    NEVER_REPLACE = "never_replace"

    @property
    def replaces(self) -> bool:
        return self in (MergeDecision.REPLACE_ONCE, MergeDecision.ALWAYS_REPLACE)

    @property
    def standing(self) -> bool:
        """True for decisions that apply to all later conflicts on the field."""
        return self in (MergeDecision.ALWAYS_REPLACE, MergeDecision.NEVER_REPLACE)


class ConflictDecider(Protocol):
    """Decides whether a conflicting incoming value replaces the stored one."""

    def __call__(
        self, field: str, old: Any, new: Any, person: Person
    ) -> MergeDecision | None: ...


class FixedDecider:
    """Answers every conflict the same way."""

    def __init__(self, decision: MergeDecision):
        self.decision = decision

    def __call__(self, field: str, old: Any, new: Any, person: Person) -> MergeDecision:
        return self.decision


class ScriptedDecider:
    """
    Answers conflicts from a script.

    Per-field answers take precedence; otherwise the next queued answer is
    used. Returns None when the script has no answer left.
    """

    def __init__(
        self,
        answers: Iterable[MergeDecision] = (),
        by_field: Mapping[str, MergeDecision] | None = None,
    ):
        self.answers = deque(answers)
        self.by_field = dict(by_field or {})
        self.asked: list[tuple[str, Any, Any]] = []

    def __call__(
        self, field: str, old: Any, new: Any, person: Person
    ) -> MergeDecision | None:
        self.asked.append((field, old, new))
        if field in self.by_field:
            return self.by_field[field]
        if self.answers:
            return self.answers.popleft()
        return None


class PromptDecider:
    """Asks on the terminal: Yes, No, Always, neVer."""

    CHOICES = {
        "Y": MergeDecision.REPLACE_ONCE,
        "N": MergeDecision.KEEP_ONCE,
        "A": MergeDecision.ALWAYS_REPLACE,
        "V": MergeDecision.NEVER_REPLACE,
    }

    def __init__(self, prompt: Callable[..., str] = click.prompt, echo: Callable[[str], Any] = click.echo):
        self.prompt = prompt
        self.echo = echo

    def __call__(
        self, field: str, old: Any, new: Any, person: Person
    ) -> MergeDecision | None:
        self.echo(f"{person.name or person.id}: values for {field} differ: {old!r} {new!r}")
        reply = self.prompt(
            "Should the second value replace the first [Yes,No,Always,neVer]?",
            default="N",
        )
        return self.CHOICES.get(reply.strip()[:1].upper())


def canonical(value: Any) -> str:
    """Canonical serialization of a multi-valued attribute."""
    return json.dumps(sorted(str(v) for v in value))


class MergeResolver:
    """
    Merges an incoming record into an existing one, field by field.

    Rules for each field set on the incoming record:

    - a null incoming value, or one equal to the stored value, is skipped
    - an absent or null stored value is replaced
    - for lists, a non-empty value beats an empty one either way, and
      lists with the same members are equal
    - anything else is a conflict for the decider
    """

    def __init__(self, decider: ConflictDecider | None = None):
        self.decider = decider
        self.standing: dict[str, bool] = {}

    def merge(self, existing: Person, incoming: Person) -> Person:
        """
        Fold incoming into existing and return existing.

        All decisions are taken before any field is written, so an
        unresolved conflict leaves existing unchanged.
        """
        if existing.id != incoming.id:
            raise InvalidRecord(
                f"Cannot merge {incoming.id} into {existing.id}: ids differ"
            )

        changes: dict[str, Any] = {}
        standing: dict[str, bool] = {}
        for field in sorted(incoming.model_fields_set - DERIVED_FIELDS):
            old = getattr(existing, field) if field in existing.model_fields_set else None
            new = getattr(incoming, field)
            if self._must_replace(existing, field, old, new, standing):
                changes[field] = new

        self.standing.update(standing)
        for field, value in standing.items():
            logger.info("Merge decision for %s from now on: %s", field,
                        "always replace" if value else "never replace")
        for field, value in changes.items():
            setattr(existing, field, value)
        if changes:
            logger.debug("Merged %s into %s", sorted(changes), existing.id)
        return existing

    def _must_replace(
        self, person: Person, field: str, old: Any, new: Any, standing: dict[str, bool]
    ) -> bool:
        if new is None or new == old:
            return False
        if old is None:
            return True
        if isinstance(old, list) and isinstance(new, list):
            if not old:
                return True
            if not new:
                return False
            if canonical(old) == canonical(new):
                return False
        elif date_text(old) == date_text(new):
            return False
        return self._decide(person, field, old, new, standing)

    def _decide(
        self, person: Person, field: str, old: Any, new: Any, standing: dict[str, bool]
    ) -> bool:
        if field in self.standing:
            return self.standing[field]
        if self.decider is None:
            raise ConflictUnresolved(person.id, field, old, new)
        decision = self.decider(field, old, new, person)
        if decision is None:
            raise ConflictUnresolved(person.id, field, old, new)
        decision = MergeDecision(decision)
        if decision.standing:
            # Kept aside until the whole merge is decided
            standing[field] = decision.replaces
        return decision.replaces
