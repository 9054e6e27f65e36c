"""Copy a schema keeping only what a finished mark set retained.

Ordering of files, types and members is preserved so pruned output diffs cleanly.
"""

from __future__ import annotations

from proto_prune.core.mark_set import MarkSet
from proto_prune.models import (
    EnumType,
    Field,
    MessageType,
    OneOf,
    ProtoFile,
    ProtoMember,
    ProtoType,
    ProtoTypeDef,
    Schema,
    Service,
)


def retain_schema(schema: Schema, marks: MarkSet, keep_empty_files: bool = False) -> Schema:
    """Files left without types or services are dropped unless ``keep_empty_files`` is set."""
    retained: list[ProtoFile] = []
    for proto_file in schema.files:
        kept = retain_file(proto_file, marks)
        if kept.types or kept.services or keep_empty_files:
            retained.append(kept)
    return Schema(files=retained)


def retain_file(proto_file: ProtoFile, marks: MarkSet) -> ProtoFile:
    types = [kept for t in proto_file.types if (kept := retain_type(t, marks)) is not None]
    services = [kept for s in proto_file.services if (kept := retain_service(s, marks)) is not None]
    return proto_file.model_copy(
        update={
            "types": types,
            "services": services,
            "options": proto_file.options.retain_all(marks),
        }
    )


def retain_type(t: ProtoTypeDef, marks: MarkSet) -> ProtoTypeDef | None:
    if isinstance(t, MessageType):
        return _retain_message(t, marks)
    if isinstance(t, EnumType):
        return _retain_enum(t, marks)
    raise AssertionError(f"Unexpected type declaration: {t!r}")


def _retain_message(message: MessageType, marks: MarkSet) -> MessageType | None:
    nested_types = [kept for n in message.nested_types if (kept := retain_type(n, marks)) is not None]
    if not marks.contains(message.name) and not nested_types:
        return None

    one_ofs: list[OneOf] = []
    for one_of in message.one_ofs:
        one_of_fields = _retain_fields(message.name, one_of.fields, marks)
        if one_of_fields:
            one_ofs.append(
                one_of.model_copy(update={"fields": one_of_fields, "options": one_of.options.retain_all(marks)})
            )

    return message.model_copy(
        update={
            "fields": _retain_fields(message.name, message.fields, marks),
            "one_ofs": one_ofs,
            "nested_types": nested_types,
            "extension_fields": _retain_fields(message.name, message.extension_fields, marks),
            "options": message.options.retain_all(marks),
        }
    )


def _retain_fields(owner: ProtoType, fields: list[Field], marks: MarkSet) -> list[Field]:
    return [
        f.model_copy(update={"options": f.options.retain_all(marks)})
        for f in fields
        if marks.contains(ProtoMember.get(owner, f.name))
    ]


def _retain_enum(enum: EnumType, marks: MarkSet) -> EnumType | None:
    if not marks.contains(enum.name):
        return None
    constants = [
        c.model_copy(update={"options": c.options.retain_all(marks)})
        for c in enum.constants
        if marks.contains(ProtoMember.get(enum.name, c.name))
    ]
    return enum.model_copy(update={"constants": constants, "options": enum.options.retain_all(marks)})


def retain_service(service: Service, marks: MarkSet) -> Service | None:
    if not marks.contains(service.name):
        return None
    rpcs = [
        r.model_copy(update={"options": r.options.retain_all(marks)})
        for r in service.rpcs
        if marks.contains(ProtoMember.get(service.name, r.name))
    ]
    return service.model_copy(update={"rpcs": rpcs, "options": service.options.retain_all(marks)})
