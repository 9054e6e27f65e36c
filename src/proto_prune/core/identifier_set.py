from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from proto_prune.models import ProtoMember, ProtoType

logger = logging.getLogger(__name__)


def _candidate_rules(identifier: str) -> Iterator[str]:
    """Yield the rules that could match ``identifier``, most specific first.

    ``a.b.C#d`` yields ``a.b.C#d``, ``a.b.C``, ``a.b.C.*``, ``a.b``, ``a.b.*``, ``a``, ``a.*``.
    """
    yield identifier
    name = identifier.split("#", 1)[0]
    if name != identifier:
        yield name
        yield f"{name}.*"
    while "." in name:
        name = name.rsplit(".", 1)[0]
        yield name
        yield f"{name}.*"


class RuleIdentifierSet:
    """Selects types and members using include and exclude identifiers.

    Identifiers name a type (``pkg.Message``), a member (``pkg.Message#field``),
    or everything under a prefix (``pkg.*``). The most specific matching rule
    decides; an exclude beats an include at the same level. With no includes,
    everything that is not excluded is selected.
    """

    def __init__(self, includes: Iterable[str] = (), excludes: Iterable[str] = ()) -> None:
        self.includes_rules = frozenset(self._validate(r) for r in includes)
        self.excludes_rules = frozenset(self._validate(r) for r in excludes)
        self._used_includes: set[str] = set()
        self._used_excludes: set[str] = set()

    @staticmethod
    def _validate(rule: str) -> str:
        rule = rule.strip()
        if not rule or rule.startswith(".") or rule.endswith("#") or rule.count("#") > 1:
            raise ValueError(f"Illegal identifier: {rule!r}")
        wildcard = rule == "*" or (rule.endswith(".*") and rule.count("*") == 1 and "#" not in rule)
        if "*" in rule and not wildcard:
            raise ValueError(f"Illegal identifier: {rule!r}")
        return rule

    def includes(self, node: ProtoType | ProtoMember) -> bool:
        if isinstance(node, ProtoType):
            if self._has_member_excludes(node):
                return False
        elif not isinstance(node, ProtoMember):
            raise AssertionError(f"Unexpected node: {node!r}")
        return self._includes(str(node))

    def _has_member_excludes(self, proto_type: ProtoType) -> bool:
        prefix = f"{proto_type}#"
        return any(rule.startswith(prefix) for rule in self.excludes_rules)

    def _includes(self, identifier: str) -> bool:
        for rule in [*_candidate_rules(identifier), "*"]:
            if rule in self.excludes_rules:
                self._used_excludes.add(rule)
                return False
            if rule in self.includes_rules:
                self._used_includes.add(rule)
                return True
        return not self.includes_rules

    def unused_includes(self) -> list[str]:
        return sorted(self.includes_rules - self._used_includes)

    def unused_excludes(self) -> list[str]:
        return sorted(self.excludes_rules - self._used_excludes)

    def warn_unused(self) -> None:
        for rule in self.unused_includes():
            logger.warning("Unused include: %s", rule)
        for rule in self.unused_excludes():
            logger.warning("Unused exclude: %s", rule)
