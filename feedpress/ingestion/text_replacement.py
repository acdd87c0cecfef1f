"""
Text Replacement Rules
======================

Operator-configured literal find/replace rules applied to extracted titles and
bodies in list order.
"""

import re
from typing import Iterable, List, Optional

from ..database.models import TextReplacementRule
from ..utils.logging import get_logger_for_component


class TextReplacer:
    """Applies active replacement rules in order."""

    def __init__(self, rules: Optional[Iterable[TextReplacementRule]] = None, enabled: bool = True):
        self.rules: List[TextReplacementRule] = list(rules or [])
        self.enabled = enabled
        self.logger = get_logger_for_component("text_replacement")

    @classmethod
    def from_settings(cls, settings) -> "TextReplacer":
        rules = [
            TextReplacementRule(find=r.find, replace=r.replace, is_active=r.is_active)
            for r in settings.text_replacements
        ]
        return cls(rules, enabled=settings.features.text_replacements_enabled)

    def active_rules(self) -> List[TextReplacementRule]:
        # Rules without both a find and a replace value are ignored
        return [r for r in self.rules if r.is_active and r.find and r.replace]

    def apply(self, text: str) -> str:
        if not self.enabled or not text:
            return text

        for rule in self.active_rules():
            pattern = re.compile(re.escape(rule.find))
            # Function replacement keeps backslashes in ``replace`` literal
            text = pattern.sub(lambda _m, value=rule.replace: value, text)
        return text
