from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from src.core.rules import ExpansionRule


# Separators that may surround an abbreviation in manual mode. The trailing
# side is a lookahead so one separator can close a match and open the next.
BOUNDARY_CLASS = r"[\s.,!?;:\n()\[\]{}<>]"


@dataclass
class ReplacementResult:
    text: str
    replacement_hits: int


def compile_rule_pattern(abbreviation: str) -> re.Pattern[str]:
    escaped = re.escape(abbreviation)
    return re.compile(
        rf"(^|{BOUNDARY_CLASS})({escaped})(?=$|{BOUNDARY_CLASS})",
        re.IGNORECASE,
    )


def sort_by_abbreviation_length(rules: Iterable[ExpansionRule]) -> list[ExpansionRule]:
    return sorted(rules, key=lambda rule: len(rule.abbreviation), reverse=True)


def apply_rules_to_text(
    text: str,
    rules: list[ExpansionRule],
) -> ReplacementResult:
    """Run every rule over ``text`` in the given order.

    Each rule scans the output of the previous one, so an expansion that
    contains another rule's abbreviation is expanded again by later rules.
    """
    updated = text
    total_hits = 0
    for rule in rules:
        pattern = compile_rule_pattern(rule.abbreviation)
        expansion = rule.expansion
        updated, hits = pattern.subn(
            lambda match: match.group(1) + expansion,
            updated,
        )
        total_hits += hits
    return ReplacementResult(text=updated, replacement_hits=total_hits)
