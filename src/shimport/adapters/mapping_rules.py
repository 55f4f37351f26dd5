"""Organization mapping rules stored as YAML.

Expected document::

    mappings:
      - ["^Acme.*", "Acme Inc"]
      - ["(?i)^the linux foundation$", "Linux Foundation"]

Each entry is ``[pattern, canonical organization name]``; order matters, the
first matching rule wins.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from shimport.config.errors import ConfigurationError
from shimport.domain.errors import MappingRuleError
from shimport.domain.organizations import MappingRule

if TYPE_CHECKING:
    from pathlib import Path

log = logging.getLogger(__name__)


class MappingFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mappings: list[tuple[str, str]] = Field(default_factory=list["tuple[str, str]"])


def parse_mapping_rules(text: str) -> list[MappingRule]:
    loaded = yaml.safe_load(text)
    if loaded is None:
        return []
    document = MappingFile.model_validate(loaded)
    return [MappingRule.compile(pattern, target) for pattern, target in document.mappings]


def load_mapping_rules(path: Path) -> list[MappingRule]:
    """Read and compile the rules in ``path``; any problem is a configuration error."""

    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read organization mappings {path}: {exc}") from exc
    try:
        rules = parse_mapping_rules(text)
    except (yaml.YAMLError, ValidationError, MappingRuleError) as exc:
        raise ConfigurationError(f"Invalid organization mappings in {path}: {exc}") from exc
    log.info("Loaded %d organization mapping rules from %s", len(rules), path)
    return rules
