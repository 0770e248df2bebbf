"""Immutable id -> Rule mapping.

The catalog is the only place rules are registered. Matching and orchestration
code asks it for the rules of a language and never names individual rules.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, Iterable, Iterator, List, Optional

from . import languages as langs
from .loader import discover_rule_packs
from .models import Category, Rule


class CatalogError(ValueError):
    pass


class RuleCatalog:
    def __init__(self, rules: Iterable[Rule]) -> None:
        by_id: Dict[str, Rule] = {}
        for rule in rules:
            if rule.id in by_id:
                raise CatalogError(f"Duplicate rule id: {rule.id}")
            by_id[rule.id] = rule
        self._rules = by_id

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules.values())

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._rules.get(rule_id)

    @property
    def ids(self) -> List[str]:
        return list(self._rules)

    def list_rules(self, language: Optional[str]) -> List[Rule]:
        """Rules applicable to ``language``.

        A rule naming the language always applies. Wildcard rules apply only
        to the languages in ``languages.LANGUAGES``, so an unknown label gets
        nothing unless a rule names it explicitly.
        """

        label = langs.normalize(language)
        return [rule for rule in self._rules.values() if rule.applies_to(label)]

    def extend(self, rules: Iterable[Rule]) -> "RuleCatalog":
        return RuleCatalog(list(self._rules.values()) + list(rules))

    def select(self, selector: Optional[str]) -> "RuleCatalog":
        """Narrow the catalog.

        ``selector`` is ``all``/``*`` or a comma-separated list of rule ids,
        categories (``security``) or id prefixes (``python``, ``typescript:``).
        """

        selector = (selector or "").strip()
        if selector.lower() in ("", "all", "*"):
            return self
        categories = {c.value for c in Category}
        picked: Dict[str, Rule] = {}
        for token in (t.strip() for t in selector.split(",") if t.strip()):
            lowered = token.lower()
            for rule in self._rules.values():
                if (
                    rule.id == token
                    or (lowered in categories and rule.category.value == lowered)
                    or rule.id.lower().startswith(lowered.rstrip(":") + ":")
                ):
                    picked.setdefault(rule.id, rule)
        # keep catalog order
        return RuleCatalog(rule for rule in self._rules.values() if rule.id in picked)


@lru_cache(maxsize=1)
def default_catalog() -> RuleCatalog:
    rules: List[Rule] = []
    for pack in discover_rule_packs().values():
        rules.extend(pack)
    return RuleCatalog(rules)
