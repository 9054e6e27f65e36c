from pathlib import Path

from proto_prune.models import Schema


def load_schema(path: str) -> Schema:
    """Read a linked schema from its JSON form."""
    file_path = Path(path)
    try:
        raw = file_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileNotFoundError(f"Schema file not found: {path}") from None
    return Schema.model_validate_json(raw)


def dump_schema(schema: Schema, indent: int | None = 2) -> str:
    return schema.model_dump_json(indent=indent)


def write_schema(schema: Schema, path: str) -> None:
    Path(path).write_text(dump_schema(schema) + "\n", encoding="utf-8")
