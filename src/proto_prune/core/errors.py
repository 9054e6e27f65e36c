"""Errors raised when a schema and a selection disagree about what exists."""

from __future__ import annotations

from proto_prune.models import ProtoMember, ProtoType


class PruneError(ValueError):
    """Base class for schema consistency errors surfaced by the pruner."""


class UnresolvedTypeError(PruneError):
    def __init__(self, proto_type: ProtoType) -> None:
        self.proto_type = proto_type
        super().__init__(f"Unexpected type: {proto_type} is not declared in the schema")


class UnresolvedMemberError(PruneError):
    def __init__(self, proto_member: ProtoMember) -> None:
        self.proto_member = proto_member
        super().__init__(f"Unexpected member: {proto_member} is not declared on {proto_member.type}")
