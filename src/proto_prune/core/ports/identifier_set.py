from typing import Protocol

from proto_prune.models import ProtoMember, ProtoType


class IdentifierSet(Protocol):
    def includes(self, node: ProtoType | ProtoMember) -> bool: ...
