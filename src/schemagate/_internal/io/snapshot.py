"""Live-schema snapshot documents (internal).

An external introspection tool hands schemagate a JSON snapshot instead of
files; it is converted to the same model the extractor produces so every gate
behaves identically on either input.
"""

import json
from pathlib import Path
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from schemagate.errors import InvocationError
from schemagate.kernel.extract import extract_migration
from schemagate.kernel.model import (
    ArtifactKind,
    ColumnDefinition,
    ExtractionResult,
    Identifier,
    IdentifierKind,
    IndexColumn,
    IndexDefinition,
    SchemaArtifact,
    TableDefinition,
)
from schemagate.kernel.types import classify

SNAPSHOT_LABEL = "<snapshot>"


class SnapshotIndexColumn(BaseModel):
    name: str
    prefix_length: Optional[int] = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class SnapshotIndex(BaseModel):
    name: Optional[str] = None
    kind: Literal["primary", "unique", "index", "fulltext", "spatial"] = "index"
    columns: List[SnapshotIndexColumn] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class SnapshotColumn(BaseModel):
    name: str
    type: str
    charset: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class SnapshotTable(BaseModel):
    name: str
    engine: Optional[str] = None
    charset: Optional[str] = None
    collation: Optional[str] = None
    has_primary_key: Optional[bool] = None  # derived from a primary index when omitted
    columns: List[SnapshotColumn] = Field(default_factory=list)
    indexes: List[SnapshotIndex] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class SnapshotMigration(BaseModel):
    """A migration as applied on the live server (e.g. from a migrations table)."""
    path: str
    up_sql: str
    down_sql: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class SchemaSnapshot(BaseModel):
    """Snapshot document handed over by a live-introspection collaborator."""
    tables: List[SnapshotTable] = Field(default_factory=list)
    migrations: List[SnapshotMigration] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


def load_snapshot(path: Union[str, Path]) -> SchemaSnapshot:
    """Read and validate a snapshot file; any failure is an InvocationError."""
    snapshot_path = Path(path)
    try:
        data = json.loads(snapshot_path.read_bytes().decode("utf-8"))
    except OSError as exc:
        raise InvocationError(f"Cannot read snapshot {snapshot_path}: {exc}") from exc
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvocationError(f"Snapshot {snapshot_path} is not valid JSON: {exc}") from exc
    return parse_snapshot(data, str(snapshot_path))


def parse_snapshot(data: object, origin: str = SNAPSHOT_LABEL) -> SchemaSnapshot:
    if not isinstance(data, dict):
        raise InvocationError(f"Snapshot {origin} must be a JSON object")
    try:
        return SchemaSnapshot(**data)
    except ValidationError as exc:
        raise InvocationError(f"Snapshot {origin} is invalid: {exc}") from exc


def _table_definition(table: SnapshotTable, label: str) -> TableDefinition:
    columns = tuple(
        ColumnDefinition(name=c.name, declared_type=c.type, charset=c.charset, **classify(c.type))
        for c in table.columns
    )
    indexes = tuple(
        IndexDefinition(
            name=i.name,
            kind=i.kind,
            columns=tuple(IndexColumn(name=c.name, prefix_length=c.prefix_length) for c in i.columns),
        )
        for i in table.indexes
    )
    has_pk = table.has_primary_key
    if has_pk is None:
        has_pk = any(i.kind == "primary" for i in indexes)
    return TableDefinition(
        name=table.name,
        source_artifact=label,
        engine=table.engine,
        charset=table.charset,
        collation=table.collation,
        columns=columns,
        has_primary_key=has_pk,
        indexes=indexes,
    )


def snapshot_to_extraction(snapshot: SchemaSnapshot, label: str = SNAPSHOT_LABEL) -> ExtractionResult:
    """Convert a snapshot into the extractor's model, in document order."""
    result = ExtractionResult()
    for table in snapshot.tables:
        definition = _table_definition(table, label)
        result.tables.append(definition)
        result.identifiers.append(Identifier(name=table.name, kind=IdentifierKind.TABLE, source_artifact=label))
        for column in table.columns:
            result.identifiers.append(Identifier(
                name=column.name, kind=IdentifierKind.COLUMN, source_artifact=label, table=table.name,
            ))
        for index in table.indexes:
            if index.name and index.kind != "primary":
                result.identifiers.append(Identifier(
                    name=index.name, kind=IdentifierKind.INDEX, source_artifact=label, table=table.name,
                ))

    for migration in snapshot.migrations:
        down = None
        if migration.down_sql is not None:
            down = SchemaArtifact(
                path=f"{migration.path}#down", kind=ArtifactKind.MIGRATION, raw_text=migration.down_sql,
                strategy="snapshot",
            )
        artifact = SchemaArtifact(
            path=migration.path,
            kind=ArtifactKind.MIGRATION,
            raw_text=migration.up_sql,
            strategy="snapshot",
            rollback=down,
        )
        result.extend(extract_migration(artifact))
    return result


def snapshot_artifacts(snapshot: SchemaSnapshot) -> List[SchemaArtifact]:
    """Migration artifacts carried by a snapshot, for the report's artifact list."""
    return [
        SchemaArtifact(path=m.path, kind=ArtifactKind.MIGRATION, raw_text=m.up_sql, strategy="snapshot")
        for m in snapshot.migrations
    ]
