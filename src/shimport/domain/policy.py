"""Add/keep/replace decision table shared by every reconciliation phase.

| fetched | compare | same  | replace | action  |
|---------|---------|-------|---------|---------|
| no      | -       | -     | -       | INSERT  |
| yes     | off     | -     | no      | KEEP    |
| yes     | off     | -     | yes     | REPLACE |
| yes     | on      | yes   | -       | KEEP    |
| yes     | on      | no    | no      | KEEP    |
| yes     | on      | no    | yes     | REPLACE |
"""

from __future__ import annotations

from enum import StrEnum


class Action(StrEnum):
    INSERT = "insert"
    KEEP = "keep"
    REPLACE = "replace"

    @property
    def deletes(self) -> bool:
        return self is Action.REPLACE

    @property
    def inserts(self) -> bool:
        return self is not Action.KEEP


def decide(*, fetched: bool, compare: bool, same: bool, replace: bool) -> Action:
    """Return the mutation for one entity; ``same`` is ignored unless ``compare`` is on."""

    if not fetched:
        return Action.INSERT
    if compare and same:
        return Action.KEEP
    return Action.REPLACE if replace else Action.KEEP
