from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class ExpansionRule:
    abbreviation: str
    expansion: str
    folder_scope: str = ""
    manual_only: bool = False

    @property
    def is_scoped(self) -> bool:
        return bool(self.folder_scope)

    def applies_to(self, document_path: str) -> bool:
        if not self.folder_scope:
            return True
        return document_path.startswith(self.folder_scope)

    def to_payload(self) -> dict[str, Any]:
        return {
            "abbreviation": self.abbreviation,
            "expansion": self.expansion,
            "folderScope": self.folder_scope,
            "manualOnly": self.manual_only,
        }


def _first_present(item: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in item and item[key] is not None:
            return item[key]
    return ""


def parse_flag(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text == "true":
            return True
        if text == "false":
            return False
    return default


def rule_from_payload(item: Any) -> ExpansionRule | None:
    if not isinstance(item, dict):
        return None
    abbreviation = str(_first_present(item, "abbreviation", "abbr")).strip()
    expansion = str(_first_present(item, "expansion", "expanded")).strip()
    if not abbreviation or not expansion:
        return None
    return ExpansionRule(
        abbreviation=abbreviation,
        expansion=expansion,
        folder_scope=str(_first_present(item, "folderScope", "folder")).strip(),
        manual_only=parse_flag(item.get("manualOnly")),
    )


def sanitize_rules(rules: Iterable[ExpansionRule]) -> list[ExpansionRule]:
    cleaned: list[ExpansionRule] = []
    for rule in rules:
        abbreviation = rule.abbreviation.strip()
        expansion = rule.expansion.strip()
        if not abbreviation or not expansion:
            continue
        cleaned.append(
            ExpansionRule(
                abbreviation=abbreviation,
                expansion=expansion,
                folder_scope=rule.folder_scope.strip(),
                manual_only=rule.manual_only,
            )
        )
    return cleaned


def matches_search(rule: ExpansionRule, query: str) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    return (
        needle in rule.abbreviation.lower()
        or needle in rule.expansion.lower()
        or needle in rule.folder_scope.lower()
    )
