"""Shared fixtures and helpers for tests."""

from collections.abc import Callable, Iterable
from pathlib import Path

import pytest

from proto_prune.models import (
    EnumConstant,
    EnumType,
    Field,
    MessageType,
    OneOf,
    Options,
    ProtoFile,
    ProtoMember,
    ProtoType,
    Rpc,
    Schema,
    Service,
)

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag every test under tests/unit as "unit"
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        if rel.parts and rel.parts[0] == "unit":
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Selection predicates
# ---------------------------------------------------------------------------


class ExactSelection:
    """Selects exactly the named types and members, nothing by prefix."""

    def __init__(self, identifiers: Iterable[str]) -> None:
        self.identifiers = frozenset(identifiers)

    def includes(self, node: ProtoType | ProtoMember) -> bool:
        return str(node) in self.identifiers


@pytest.fixture
def select() -> Callable[..., ExactSelection]:
    def _select(*identifiers: str) -> ExactSelection:
        return ExactSelection(identifiers)

    return _select


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


def _message(name: str, *fields: tuple[str, str], **kwargs: object) -> MessageType:
    return MessageType(
        name=ProtoType.get(name),
        fields=[Field(name=n, type=ProtoType.get(t), tag=i + 1) for i, (n, t) in enumerate(fields)],
        **kwargs,  # type: ignore[arg-type]
    )


@pytest.fixture
def abc_schema() -> Schema:
    """``A { b: B; c: C }`` with empty ``B`` and ``C``."""
    return Schema(
        files=[
            ProtoFile(
                path="abc.proto",
                types=[
                    _message("A", ("b", "B"), ("c", "C")),
                    _message("B"),
                    _message("C"),
                ],
            )
        ]
    )


@pytest.fixture
def nested_schema() -> Schema:
    """``Outer`` holding a scalar field and nested ``P`` and ``Q``."""
    return Schema(
        files=[
            ProtoFile(
                path="outer.proto",
                types=[
                    _message(
                        "Outer",
                        ("x", "string"),
                        nested_types=[
                            _message("Outer.P", ("y", "string"), ("z", "int32")),
                            _message("Outer.Q"),
                            EnumType(
                                name=ProtoType.get("Outer.Kind"),
                                constants=[EnumConstant(name="UNKNOWN", tag=0)],
                            ),
                        ],
                    ),
                ],
            )
        ]
    )


@pytest.fixture
def service_schema() -> Schema:
    return Schema(
        files=[
            ProtoFile(
                path="acme/api/users.proto",
                package="acme.api",
                types=[
                    _message("acme.api.GetRequest", ("id", "string")),
                    _message("acme.api.GetResponse", ("user", "acme.api.User")),
                    _message("acme.api.DeleteRequest", ("id", "string")),
                    _message("acme.api.User", ("name", "string"), ("role", "acme.api.Role")),
                    EnumType(
                        name=ProtoType.get("acme.api.Role"),
                        constants=[EnumConstant(name="MEMBER", tag=0), EnumConstant(name="ADMIN", tag=1)],
                    ),
                    _message("acme.api.Orphan", ("note", "string")),
                ],
                services=[
                    Service(
                        name=ProtoType.get("acme.api.UserService"),
                        rpcs=[
                            Rpc(
                                name="Get",
                                request_type=ProtoType.get("acme.api.GetRequest"),
                                response_type=ProtoType.get("acme.api.GetResponse"),
                            ),
                            Rpc(
                                name="Delete",
                                request_type=ProtoType.get("acme.api.DeleteRequest"),
                                response_type=ProtoType.get("acme.api.GetResponse"),
                            ),
                        ],
                    )
                ],
            )
        ]
    )


@pytest.fixture
def options_schema() -> Schema:
    """A user schema whose declarations carry options backed by ``google.protobuf`` option messages."""
    descriptor = ProtoFile(
        path="google/protobuf/descriptor.proto",
        package="google.protobuf",
        types=[
            MessageType(
                name=ProtoType.get("google.protobuf.FieldOptions"),
                fields=[
                    Field(name="packed", type=ProtoType.get("bool"), tag=2),
                    Field(name="deprecated", type=ProtoType.get("bool"), tag=3),
                ],
                extension_fields=[Field(name="acme.redacted", type=ProtoType.get("bool"), tag=22200)],
            ),
            _message("google.protobuf.MessageOptions", ("deprecated", "bool")),
            _message("google.protobuf.FileOptions", ("java_package", "string"), ("go_package", "string")),
        ],
    )
    user = ProtoFile(
        path="acme/user.proto",
        package="acme",
        options=Options({ProtoMember.get("google.protobuf.FileOptions#java_package"): "com.acme"}),
        types=[
            MessageType(
                name=ProtoType.get("acme.User"),
                fields=[
                    Field(name="id", type=ProtoType.get("string"), tag=1),
                    Field(
                        name="password",
                        type=ProtoType.get("string"),
                        tag=2,
                        options=Options({ProtoMember.get("google.protobuf.FieldOptions#acme.redacted"): True}),
                    ),
                    Field(name="status", type=ProtoType.get("acme.Status"), tag=3),
                ],
                one_ofs=[
                    OneOf(
                        name="contact",
                        fields=[
                            Field(name="email", type=ProtoType.get("string"), tag=4),
                            Field(name="phone", type=ProtoType.get("string"), tag=5),
                        ],
                    )
                ],
                options=Options({ProtoMember.get("google.protobuf.MessageOptions#deprecated"): True}),
            ),
            EnumType(
                name=ProtoType.get("acme.Status"),
                constants=[EnumConstant(name="ACTIVE", tag=0), EnumConstant(name="BANNED", tag=1)],
            ),
            _message("acme.Unused", ("note", "string")),
        ],
    )
    return Schema(files=[descriptor, user])


def retained_nodes(schema: Schema) -> set[str]:
    """Every type, service and member identifier present in ``schema``."""
    nodes: set[str] = set()
    for t in schema.types():
        nodes.add(str(t.name))
        if isinstance(t, MessageType):
            members = [f.name for f in t.fields_and_one_of_fields()] + [f.name for f in t.extension_fields]
        else:
            members = [c.name for c in t.constants]
        nodes.update(str(ProtoMember.get(t.name, m)) for m in members)
    for service in schema.services():
        nodes.add(str(service.name))
        nodes.update(str(ProtoMember.get(service.name, r.name)) for r in service.rpcs)
    return nodes


@pytest.fixture
def nodes_of() -> Callable[[Schema], set[str]]:
    return retained_nodes
