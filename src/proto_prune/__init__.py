from proto_prune.core.errors import PruneError, UnresolvedMemberError, UnresolvedTypeError
from proto_prune.core.identifier_set import RuleIdentifierSet
from proto_prune.core.mark_set import MarkSet
from proto_prune.core.pruner import Pruner, prune
from proto_prune.models import ProtoMember, ProtoType, Schema

__all__ = [
    "MarkSet",
    "ProtoMember",
    "ProtoType",
    "PruneError",
    "Pruner",
    "RuleIdentifierSet",
    "Schema",
    "UnresolvedMemberError",
    "UnresolvedTypeError",
    "prune",
]
