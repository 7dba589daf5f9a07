from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from src.core.rules import ExpansionRule, parse_flag, rule_from_payload, sanitize_rules
from src.core.runtime_paths import settings_path_default


logger = logging.getLogger("shorthand.settings")


@dataclass
class ExpansionSettings:
    auto_replace_enabled: bool = True
    replacements: list[ExpansionRule] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {
            "autoReplaceEnabled": self.auto_replace_enabled,
            "replacements": [rule.to_payload() for rule in self.replacements],
        }


class SettingsStore:
    def __init__(self, path: Path):
        self.path = path

    @classmethod
    def default(cls) -> "SettingsStore":
        return cls(settings_path_default())

    def load(self) -> ExpansionSettings:
        if not self.path.exists():
            settings = ExpansionSettings()
            self._persist(settings)
            return settings

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            if not isinstance(raw, dict):
                raise ValueError(
                    f"expected a JSON object, got {type(raw).__name__}"
                )
        except (OSError, ValueError):
            logger.exception("Failed to load settings from %s", self.path)
            return ExpansionSettings()

        settings = ExpansionSettings()
        should_save = False

        if "autoReplaceEnabled" in raw:
            settings.auto_replace_enabled = parse_flag(raw["autoReplaceEnabled"], default=True)
        elif "autoReplace" in raw:
            settings.auto_replace_enabled = parse_flag(raw["autoReplace"], default=True)
            should_save = True

        raw_rules = raw.get("replacements", [])
        if isinstance(raw_rules, dict):
            settings.replacements = sanitize_rules(
                ExpansionRule(
                    abbreviation=str(abbreviation),
                    expansion=str(expansion),
                )
                for abbreviation, expansion in raw_rules.items()
                if expansion is not None
            )
            logger.info(
                "Migrated legacy replacements mapping. rules=%s",
                len(settings.replacements),
            )
            should_save = True
        elif isinstance(raw_rules, list):
            for item in raw_rules:
                rule = rule_from_payload(item)
                if rule is None:
                    should_save = True
                    continue
                if rule.to_payload() != item:
                    should_save = True
                settings.replacements.append(rule)
        else:
            logger.warning(
                "Ignoring replacements of unexpected type %s",
                type(raw_rules).__name__,
            )
            should_save = True

        if should_save:
            self._persist(settings)
        return settings

    def _persist(self, settings: ExpansionSettings) -> None:
        # Startup keeps the in-memory settings even when the file is read-only.
        try:
            self.save(settings)
        except OSError:
            logger.exception("Failed to write settings to %s", self.path)

    def save(self, settings: ExpansionSettings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(settings.to_payload(), indent=2, ensure_ascii=False),
            encoding="utf-8",
        )
