"""Organization name to id resolution.

Resolution happens once per run, before any unique identity is reconciled:
the registry is filled (and, unless organizations are read-only, the store is
extended) while nothing else touches it. Workers afterwards only read, except
for the rare alias learned in read-only mode, which goes through the write
side of the registry lock.
"""

from __future__ import annotations

import logging
import re
import string
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .errors import MappingRuleError, OrganizationInsertError
from .locking import ReadWriteLock
from .normalize import strip_unicode
from .ports import InsertOutcome
from .scheduler import run_bounded

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from .ports import OrganizationStore

log = logging.getLogger(__name__)

_POSIX_CLASSES: dict[str, str] = {
    "alnum": "a-zA-Z0-9",
    "alpha": "a-zA-Z",
    "blank": " \\t",
    "cntrl": "\\x00-\\x1f\\x7f",
    "digit": "0-9",
    "graph": "\\x21-\\x7e",
    "lower": "a-z",
    "print": "\\x20-\\x7e",
    "punct": re.escape(string.punctuation),
    "space": " \\t\\n\\r\\f\\v",
    "upper": "A-Z",
    "xdigit": "0-9A-Fa-f",
}
_POSIX_CLASS_RE = re.compile(r"\[:([a-z]+):\]")


def translate_posix_classes(pattern: str) -> str:
    """Rewrite POSIX bracket classes (``[[:space:]]``) into ``re`` ranges."""

    def expand(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in _POSIX_CLASSES:
            raise MappingRuleError(f"unknown character class [:{name}:] in {pattern!r}")
        return _POSIX_CLASSES[name]

    return _POSIX_CLASS_RE.sub(expand, pattern)


@dataclass(frozen=True, slots=True)
class MappingRule:
    """Regex pattern mapping unknown organization names onto a canonical one."""

    pattern: re.Pattern[str]
    target: str

    @classmethod
    def compile(cls, pattern: str, target: str) -> MappingRule:
        """Compile an extended regex after collapsing ``\\\\`` into a literal backslash escape."""

        try:
            compiled = re.compile(translate_posix_classes(pattern.replace("\\\\", "\\")))
        except re.error as exc:
            raise MappingRuleError(f"invalid mapping pattern {pattern!r}: {exc}") from exc
        return cls(pattern=compiled, target=target)

    def matches(self, name: str) -> bool:
        return self.pattern.search(name) is not None


type RulesLoader = Callable[[], Sequence[MappingRule]]


class OrganizationRegistry:
    """Shared name -> id map plus the set of names nobody could resolve.

    Stored names (as loaded from, or inserted into, the store) are canonical:
    they populate the id -> name and lower-case lookups. Names learned through
    case-insensitive or regex resolution are aliases and only extend the
    name -> id map.
    """

    def __init__(self, existing: Mapping[str, int] | None = None) -> None:
        self.lock = ReadWriteLock()
        self._ids: dict[str, int] = {}
        self._names: dict[int, str] = {}
        self._lower_ids: dict[str, int] = {}
        self._missing: set[str] = set()
        for name, org_id in (existing or {}).items():
            self._add_canonical(name, org_id)

    def _add_canonical(self, name: str, org_id: int) -> None:
        self._ids[name] = org_id
        self._names.setdefault(org_id, name)
        self._lower_ids.setdefault(name.lower(), org_id)

    def get_id(self, name: str) -> int | None:
        with self.lock.read():
            return self._ids.get(name)

    def get_id_casefold(self, name: str) -> int | None:
        with self.lock.read():
            return self._lower_ids.get(name.lower())

    def name_for(self, org_id: int) -> str | None:
        with self.lock.read():
            return self._names.get(org_id)

    def register(self, name: str, org_id: int, *, canonical: bool = False) -> None:
        with self.lock.write():
            if canonical:
                self._add_canonical(name, org_id)
            else:
                self._ids[name] = org_id

    def mark_missing(self, name: str) -> None:
        with self.lock.write():
            self._missing.add(name)

    def missing(self) -> list[str]:
        with self.lock.read():
            return sorted(self._missing)

    def __len__(self) -> int:
        with self.lock.read():
            return len(self._ids)


@dataclass(slots=True)
class ResolutionSummary:
    known: int
    added: int
    missing: list[str]


class OrganizationResolver:
    """Fill an ``OrganizationRegistry`` for every name referenced by a batch."""

    def __init__(
        self,
        store: OrganizationStore,
        registry: OrganizationRegistry,
        *,
        read_only: bool = False,
        rules_loader: RulesLoader | None = None,
        debug: bool = False,
    ) -> None:
        self.store = store
        self.registry = registry
        self.read_only = read_only
        self.debug = debug
        self._rules_loader = rules_loader
        self._rules: tuple[MappingRule, ...] | None = None
        self._added = 0

    def resolve_all(self, names: Iterable[str], *, threads: int = 1) -> ResolutionSummary:
        if self.read_only:
            run_bounded(sorted(names), self.resolve_read_only, threads=threads, name="orgs")
        else:
            for name in sorted(names):
                self.resolve_or_add(name)
        return ResolutionSummary(
            known=len(self.registry),
            added=self._added,
            missing=self.registry.missing(),
        )

    def resolve_or_add(self, name: str) -> int:
        org_id = self.registry.get_id(name)
        if org_id is None:
            org_id, existed = self.add_organization(name)
            self.registry.register(name, org_id, canonical=True)
            if not existed:
                self._added += 1
        if self.debug:
            log.debug("Org '%s' -> %d", name, org_id)
        return org_id

    def add_organization(self, name: str) -> tuple[int, bool]:
        """Insert ``name`` unless it exists and return ``(id, existed)``."""

        stored_name = strip_unicode(name)
        outcome = self.store.insert_organization(stored_name)
        org_id = self.store.find_organization_id(stored_name)
        if org_id is None:
            raise OrganizationInsertError(name)
        return org_id, outcome is InsertOutcome.CONFLICT

    def rules(self) -> tuple[MappingRule, ...]:
        """Mapping rules, loaded on first use and at most once."""

        with self.registry.lock.read():
            rules = self._rules
        if rules is not None:
            return rules
        with self.registry.lock.write():
            if self._rules is None:
                loaded = self._rules_loader() if self._rules_loader is not None else ()
                self._rules = tuple(loaded)
                log.debug("Loaded %d organization mapping rules", len(self._rules))
            return self._rules

    def resolve_read_only(self, name: str) -> int | None:
        """Resolve ``name`` without creating organizations; ``None`` marks it missing."""

        org_id = self.registry.get_id(name)
        if org_id is not None:
            return org_id

        org_id = self.registry.get_id_casefold(name)
        if org_id is not None:
            self._learn(name, org_id, "case-insensitive")
            return org_id

        rules = self.rules()
        org_id = self._match_rules(name, name, rules, self.registry.get_id)
        if org_id is None:
            lowered = name.lower()
            org_id = self._match_rules(
                name,
                lowered,
                rules,
                lambda target: self.registry.get_id_casefold(target.lower()),
            )
        if org_id is not None:
            return org_id

        log.info("nothing found for '%s'", name)
        self.registry.mark_missing(name)
        return None

    def _match_rules(
        self,
        name: str,
        candidate: str,
        rules: Sequence[MappingRule],
        lookup: Callable[[str], int | None],
    ) -> int | None:
        for rule in rules:
            if not rule.matches(candidate):
                if self.debug:
                    log.debug("'%s' is not matching '%s'", candidate, rule.pattern.pattern)
                continue
            org_id = lookup(rule.target)
            if org_id is None:
                log.warning("'%s' maps to '%s' which cannot be found", candidate, rule.target)
                continue
            self._learn(name, org_id, f"rule '{rule.pattern.pattern}' -> '{rule.target}'")
            return org_id
        return None

    def _learn(self, name: str, org_id: int, how: str) -> None:
        if self.debug:
            log.debug("added mapping '%s' -> %d via %s", name, org_id, how)
        self.registry.register(name, org_id)
