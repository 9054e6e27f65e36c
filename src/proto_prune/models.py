from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, PlainSerializer, PlainValidator, PrivateAttr, RootModel

if TYPE_CHECKING:
    from proto_prune.core.mark_set import MarkSet

_SCALARS = frozenset(
    {
        "bool",
        "bytes",
        "double",
        "float",
        "fixed32",
        "fixed64",
        "int32",
        "int64",
        "sfixed32",
        "sfixed64",
        "sint32",
        "sint64",
        "string",
        "uint32",
        "uint64",
    }
)


@dataclass(frozen=True)
class ProtoType:
    """A qualified type name, a scalar kind, or a ``map<K, V>``."""

    name: str
    key_type: ProtoType | None = None
    value_type: ProtoType | None = None

    @classmethod
    def get(cls, name: str) -> ProtoType:
        name = name.strip()
        if name.startswith("map<") and name.endswith(">"):
            key, sep, value = name[4:-1].partition(",")
            if not sep:
                raise ValueError(f"Malformed map type: {name!r}")
            key_type = cls.get(key)
            value_type = cls.get(value)
            return cls(f"map<{key_type}, {value_type}>", key_type, value_type)
        if not name:
            raise ValueError("Type name must not be empty")
        return cls(name)

    @property
    def is_scalar(self) -> bool:
        return self.name in _SCALARS

    @property
    def is_map(self) -> bool:
        return self.key_type is not None

    @property
    def simple_name(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def enclosing_type_or_package(self) -> str | None:
        if self.is_scalar or self.is_map or "." not in self.name:
            return None
        return self.name.rsplit(".", 1)[0]

    def nested_type(self, name: str) -> ProtoType:
        return ProtoType(f"{self.name}.{name}")

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ProtoMember:
    """A field, enum constant or rpc identified by its owner and name."""

    type: ProtoType
    member: str

    @classmethod
    def get(cls, owner: ProtoType | str, member: str | None = None) -> ProtoMember:
        if member is None:
            if not isinstance(owner, str) or "#" not in owner:
                raise ValueError(f"Malformed member reference: {owner!r}")
            owner, member = owner.split("#", 1)
        if not member:
            raise ValueError(f"Member name must not be empty for {owner}")
        owner_type = owner if isinstance(owner, ProtoType) else ProtoType.get(owner)
        return cls(owner_type, member)

    def __str__(self) -> str:
        return f"{self.type}#{self.member}"


def _to_proto_type(value: Any) -> ProtoType:
    if isinstance(value, ProtoType):
        return value
    if isinstance(value, str):
        return ProtoType.get(value)
    raise ValueError(f"Expected a type name, got {type(value).__name__}")


def _to_proto_member(value: Any) -> ProtoMember:
    if isinstance(value, ProtoMember):
        return value
    if isinstance(value, str):
        return ProtoMember.get(value)
    raise ValueError(f"Expected a member reference, got {type(value).__name__}")


TypeRef = Annotated[ProtoType, PlainValidator(_to_proto_type), PlainSerializer(str, return_type=str)]
MemberRef = Annotated[ProtoMember, PlainValidator(_to_proto_member), PlainSerializer(str, return_type=str)]


class Options(RootModel[dict[MemberRef, Any]]):
    """Option assignments keyed by the option's backing field."""

    model_config = ConfigDict(frozen=True)

    root: dict[MemberRef, Any] = {}

    def fields(self) -> list[ProtoMember]:
        return list(self.root)

    def retain_all(self, marks: MarkSet) -> Options:
        return Options({k: v for k, v in self.root.items() if marks.contains(k)})


class Field(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: TypeRef
    tag: int | None = None
    label: Literal["optional", "required", "repeated"] | None = None
    options: Options = Options()


class OneOf(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    fields: list[Field] = []
    options: Options = Options()


class EnumConstant(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    tag: int
    options: Options = Options()


class MessageType(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["message"] = "message"
    name: TypeRef
    fields: list[Field] = []
    one_ofs: list[OneOf] = []
    nested_types: list[MessageType | EnumType] = []
    extension_fields: list[Field] = []
    options: Options = Options()

    def field(self, name: str) -> Field | None:
        for f in self.fields_and_one_of_fields():
            if f.name == name:
                return f
        return None

    def extension_field(self, name: str) -> Field | None:
        for f in self.extension_fields:
            if f.name == name:
                return f
        return None

    def fields_and_one_of_fields(self) -> list[Field]:
        result = list(self.fields)
        for one_of in self.one_ofs:
            result.extend(one_of.fields)
        return result


class EnumType(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["enum"] = "enum"
    name: TypeRef
    constants: list[EnumConstant] = []
    options: Options = Options()

    @property
    def nested_types(self) -> list[MessageType | EnumType]:
        return []

    def constant(self, name: str) -> EnumConstant | None:
        for c in self.constants:
            if c.name == name:
                return c
        return None


MessageType.model_rebuild()  # necessary for recursive types

ProtoTypeDef = MessageType | EnumType


class Rpc(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    request_type: TypeRef
    response_type: TypeRef
    request_streaming: bool = False
    response_streaming: bool = False
    options: Options = Options()


class Service(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: TypeRef
    rpcs: list[Rpc] = []
    options: Options = Options()

    def rpc(self, name: str) -> Rpc | None:
        for r in self.rpcs:
            if r.name == name:
                return r
        return None


@dataclass(frozen=True)
class ScalarType:
    """Resolution result for built-in scalar and map types."""

    name: ProtoType


class ProtoFile(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    package: str | None = None
    types: list[MessageType | EnumType] = []
    services: list[Service] = []
    options: Options = Options()


class Schema(BaseModel):
    """A linked set of proto files with qualified-name lookup."""

    model_config = ConfigDict(frozen=True)

    files: list[ProtoFile] = []

    _types_index: dict[str, ProtoTypeDef] = PrivateAttr(default_factory=dict)
    _services_index: dict[str, Service] = PrivateAttr(default_factory=dict)

    def model_post_init(self, context: Any, /) -> None:
        for proto_file in self.files:
            for t in proto_file.types:
                self._index_type(t)
            for service in proto_file.services:
                self._services_index[service.name.name] = service

    def _index_type(self, t: ProtoTypeDef) -> None:
        self._types_index[t.name.name] = t
        for nested in t.nested_types:
            self._index_type(nested)

    def get_type(self, name: ProtoType | str) -> ProtoTypeDef | None:
        key = name.name if isinstance(name, ProtoType) else name
        return self._types_index.get(key)

    def get_service(self, name: ProtoType | str) -> Service | None:
        key = name.name if isinstance(name, ProtoType) else name
        return self._services_index.get(key)

    def lookup(self, proto_type: ProtoType) -> MessageType | EnumType | Service | ScalarType | None:
        """Resolve a type reference to its declaration, or ``None`` if nothing declares it."""
        if proto_type.is_scalar or proto_type.is_map:
            return ScalarType(proto_type)
        declared = self.get_type(proto_type)
        if declared is not None:
            return declared
        return self.get_service(proto_type)

    def types(self) -> Iterator[ProtoTypeDef]:
        def walk(t: ProtoTypeDef) -> Iterator[ProtoTypeDef]:
            yield t
            for nested in t.nested_types:
                yield from walk(nested)

        for proto_file in self.files:
            for t in proto_file.types:
                yield from walk(t)

    def services(self) -> Iterator[Service]:
        for proto_file in self.files:
            yield from proto_file.services
