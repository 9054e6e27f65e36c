from __future__ import annotations

from proto_prune.models import ProtoMember, ProtoType


class MarkSet:
    """Types and members proven reachable during a single pruning run.

    A type is either a shell (only its individually marked members are wanted)
    or fully marked (every member is wanted). Marks only ever grow.
    """

    def __init__(self) -> None:
        # Value is True when all members of the type are wanted.
        self._types: dict[ProtoType, bool] = {}
        self._members: dict[ProtoType, set[str]] = {}
        self._roots: list[ProtoType | ProtoMember] = []
        self._root_set: set[ProtoType | ProtoMember] = set()

    def root(self, node: ProtoType | ProtoMember) -> None:
        self.mark(node)
        if node not in self._root_set:
            self._root_set.add(node)
            self._roots.append(node)

    def mark(self, node: ProtoType | ProtoMember) -> bool:
        """Mark a type as fully wanted, or a single member.

        Returns True when the mark is new, including a shell being upgraded to a full mark.
        """
        if isinstance(node, ProtoType):
            if self._types.get(node) is True:
                return False
            self._types[node] = True
            return True
        if isinstance(node, ProtoMember):
            members = self._members.setdefault(node.type, set())
            if node.member in members:
                return False
            members.add(node.member)
            return True
        raise AssertionError(f"Unexpected node: {node!r}")

    def mark_partial(self, proto_type: ProtoType) -> bool:
        """Mark a type as a shell. Returns True only when the type was unmarked."""
        if proto_type in self._types:
            return False
        self._types[proto_type] = False
        return True

    def contains_all_members(self, proto_type: ProtoType) -> bool:
        return self._types.get(proto_type, False)

    def contains(self, node: ProtoType | ProtoMember) -> bool:
        if isinstance(node, ProtoType):
            return node in self._types
        if isinstance(node, ProtoMember):
            return self.contains_all_members(node.type) or node.member in self._members.get(node.type, ())
        raise AssertionError(f"Unexpected node: {node!r}")

    def is_root(self, node: ProtoType | ProtoMember) -> bool:
        return node in self._root_set

    @property
    def roots(self) -> list[ProtoType | ProtoMember]:
        return list(self._roots)

    def marked_types(self) -> list[ProtoType]:
        return list(self._types)

    def marked_members(self) -> list[ProtoMember]:
        return [ProtoMember(t, m) for t, names in self._members.items() for m in sorted(names)]
