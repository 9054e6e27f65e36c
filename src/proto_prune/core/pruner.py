"""Reachability analysis that decides which parts of a schema survive pruning."""

from __future__ import annotations

import logging
from collections import deque

from proto_prune.core.errors import UnresolvedMemberError, UnresolvedTypeError
from proto_prune.core.mark_set import MarkSet
from proto_prune.core.ports.identifier_set import IdentifierSet
from proto_prune.core.retain import retain_schema
from proto_prune.models import (
    EnumType,
    Field,
    MessageType,
    Options,
    ProtoFile,
    ProtoMember,
    ProtoType,
    ProtoTypeDef,
    Rpc,
    ScalarType,
    Schema,
    Service,
)

logger = logging.getLogger(__name__)


class Pruner:
    """Creates a schema holding only the selected types and members plus their dependencies.

    Each instance performs one run: it owns its mark set and worklist, and never
    mutates the input schema.
    """

    def __init__(self, schema: Schema, identifier_set: IdentifierSet) -> None:
        self.schema = schema
        self.identifier_set = identifier_set
        self.marks = MarkSet()
        # Types and members whose immediate dependencies have not been visited yet.
        self.queue: deque[ProtoType | ProtoMember] = deque()

    def prune(self, keep_empty_files: bool = False) -> Schema:
        self.mark_roots()
        logger.info("Seeded %d root(s)", len(self.marks.roots))

        self.mark_reachable()
        while self._mark_file_options():
            self.mark_reachable()

        pruned = retain_schema(self.schema, self.marks, keep_empty_files=keep_empty_files)
        logger.info(
            "Kept %d of %d type(s) and %d of %d service(s)",
            sum(1 for _ in pruned.types()),
            sum(1 for _ in self.schema.types()),
            sum(1 for _ in pruned.services()),
            sum(1 for _ in self.schema.services()),
        )
        return pruned

    # ------------------------------------------------------------------
    # Roots
    # ------------------------------------------------------------------

    def mark_roots(self) -> None:
        for proto_file in self.schema.files:
            for t in proto_file.types:
                self._mark_type_roots(t)
            for service in proto_file.services:
                self._mark_service_roots(service)

    def _mark_type_roots(self, t: ProtoTypeDef) -> None:
        proto_type = t.name
        if self.identifier_set.includes(proto_type):
            self._root(proto_type)
        elif isinstance(t, MessageType):
            for f in t.fields_and_one_of_fields():
                self._mark_member_root(ProtoMember.get(proto_type, f.name))
            for f in t.extension_fields:
                self._mark_member_root(ProtoMember.get(proto_type, f.name))
        elif isinstance(t, EnumType):
            for constant in t.constants:
                self._mark_member_root(ProtoMember.get(proto_type, constant.name))
        else:
            raise AssertionError(f"Unexpected type declaration: {t!r}")

        for nested in t.nested_types:
            self._mark_type_roots(nested)

    def _mark_service_roots(self, service: Service) -> None:
        if self.identifier_set.includes(service.name):
            self._root(service.name)
            return
        for rpc in service.rpcs:
            self._mark_member_root(ProtoMember.get(service.name, rpc.name))

    def _mark_member_root(self, proto_member: ProtoMember) -> None:
        if self.identifier_set.includes(proto_member):
            self._root(proto_member)

    def _root(self, node: ProtoType | ProtoMember) -> None:
        self.marks.root(node)
        self.queue.append(node)

    # ------------------------------------------------------------------
    # Fixpoint
    # ------------------------------------------------------------------

    def mark_reachable(self) -> None:
        """Mark everything reachable from the queue, queueing new nodes as they are found."""
        expanded = 0
        while self.queue:
            node = self.queue.popleft()
            expanded += 1
            if isinstance(node, ProtoMember):
                self._expand_member(node)
            elif isinstance(node, ProtoType):
                self._expand_type(node)
            else:
                raise AssertionError(f"Unexpected node: {node!r}")
        logger.debug("Expanded %d node(s)", expanded)

    def _expand_type(self, proto_type: ProtoType) -> None:
        declaration = self.schema.lookup(proto_type)
        if isinstance(declaration, ScalarType):
            if proto_type.is_map:
                assert proto_type.key_type is not None and proto_type.value_type is not None
                self._mark(proto_type.key_type)
                self._mark(proto_type.value_type)
        elif isinstance(declaration, (MessageType, EnumType)):
            self._mark_type(declaration)
        elif isinstance(declaration, Service):
            self._mark_service(declaration)
        elif declaration is None:
            raise UnresolvedTypeError(proto_type)
        else:
            raise AssertionError(f"Unexpected declaration: {declaration!r}")

    def _expand_member(self, proto_member: ProtoMember) -> None:
        # The owner must exist in the output, but only as a shell.
        self._mark_partial(proto_member.type)

        owner = self.schema.lookup(proto_member.type)
        if isinstance(owner, MessageType):
            f = owner.field(proto_member.member) or owner.extension_field(proto_member.member)
            if f is not None:
                self._mark_field(f)
                return
        elif isinstance(owner, EnumType):
            constant = owner.constant(proto_member.member)
            if constant is not None:
                self._mark_options(constant.options)
                return
        elif isinstance(owner, Service):
            rpc = owner.rpc(proto_member.member)
            if rpc is not None:
                self._mark_rpc(rpc)
                return
        elif owner is None:
            raise UnresolvedTypeError(proto_member.type)

        raise UnresolvedMemberError(proto_member)

    def _mark_type(self, t: ProtoTypeDef) -> None:
        self._mark_options(t.options)

        enclosing_name = t.name.enclosing_type_or_package
        if enclosing_name is not None:
            enclosing = self.schema.get_type(enclosing_name)
            if enclosing is not None:
                self._mark_partial(enclosing.name)

        if not self.marks.contains_all_members(t.name):
            return
        if isinstance(t, MessageType):
            for f in t.fields_and_one_of_fields():
                self._mark_field(f)
            for f in t.extension_fields:
                self._mark_field(f)
        else:
            for constant in t.constants:
                self._mark_options(constant.options)

    def _mark_service(self, service: Service) -> None:
        self._mark_options(service.options)
        if self.marks.contains_all_members(service.name):
            for rpc in service.rpcs:
                self._mark_rpc(rpc)

    def _mark_field(self, f: Field) -> None:
        self._mark_options(f.options)
        self._mark(f.type)

    def _mark_rpc(self, rpc: Rpc) -> None:
        self._mark_options(rpc.options)
        self._mark(rpc.request_type)
        self._mark(rpc.response_type)

    def _mark_options(self, options: Options) -> None:
        for option_field in options.fields():
            self._mark(option_field)

    def _mark_file_options(self) -> bool:
        """Mark the options of every file that keeps something. Returns True if anything was queued."""
        for proto_file in self.schema.files:
            if self._retains_anything(proto_file):
                self._mark_options(proto_file.options)
        return bool(self.queue)

    def _retains_anything(self, proto_file: ProtoFile) -> bool:
        return any(self.marks.contains(t.name) for t in proto_file.types) or any(
            self.marks.contains(s.name) for s in proto_file.services
        )

    def _mark(self, node: ProtoType | ProtoMember) -> None:
        if isinstance(node, ProtoType) and node.is_scalar:
            return
        if self.marks.mark(node):
            self.queue.append(node)  # The transitive dependencies of this node must be visited.

    def _mark_partial(self, proto_type: ProtoType) -> None:
        if self.marks.mark_partial(proto_type):
            self.queue.append(proto_type)


def prune(schema: Schema, identifier_set: IdentifierSet, keep_empty_files: bool = False) -> Schema:
    """Return a copy of ``schema`` holding only what ``identifier_set`` selects and its dependencies."""
    return Pruner(schema, identifier_set).prune(keep_empty_files=keep_empty_files)
