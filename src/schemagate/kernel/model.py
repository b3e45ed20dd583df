"""Schema model: artifacts, identifiers, table definitions and migration statements.

Everything in here is an immutable record. Artifacts are produced by the
locator, the rest by the extractor; gates only ever read them.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .lexicons import Lexicons
from .reserved_words import ReservedWordRegistry


class ArtifactKind(str, Enum):
    """Kind of a discovered schema artifact."""
    SCHEMA_DUMP = "schema_dump"
    MIGRATION = "migration"
    ORM_SCHEMA = "orm_schema"


class IdentifierKind(str, Enum):
    """Kind of a named schema object."""
    TABLE = "table"
    COLUMN = "column"
    INDEX = "index"
    CONSTRAINT = "constraint"


class StatementClass(str, Enum):
    """Classification of a migration statement."""
    DDL = "DDL"
    DML = "DML"
    DESTRUCTIVE = "Destructive"
    GUARDED = "Guarded"


SCHEMA_MUTATING = frozenset({StatementClass.DDL, StatementClass.DESTRUCTIVE, StatementClass.GUARDED})


@dataclass(frozen=True)
class SchemaArtifact:
    """A single file read from the repository.

    `path` is repository-relative and POSIX-style so reports are identical
    across platforms. `rollback` is the companion down/undo file when the
    discovering strategy resolved one.
    """
    path: str
    kind: ArtifactKind
    raw_text: str
    strategy: str = ""
    rollback: Optional["SchemaArtifact"] = None


@dataclass(frozen=True)
class Identifier:
    """A table/column/index/constraint name and where it was declared."""
    name: str
    kind: IdentifierKind
    source_artifact: str
    source_line: Optional[int] = None
    table: Optional[str] = None  # owning table for columns, indexes and constraints


@dataclass(frozen=True)
class ColumnDefinition:
    name: str
    declared_type: str
    is_enum: bool = False
    enum_value_count: int = 0
    is_floating_point: bool = False
    is_string: bool = False
    is_text_or_blob: bool = False
    charset: Optional[str] = None
    line: Optional[int] = None


@dataclass(frozen=True)
class IndexColumn:
    name: str
    prefix_length: Optional[int] = None


@dataclass(frozen=True)
class IndexDefinition:
    name: Optional[str]
    kind: str  # primary | unique | index | fulltext | spatial
    columns: Tuple[IndexColumn, ...] = ()
    line: Optional[int] = None
    source_artifact: Optional[str] = None  # set when declared outside the CREATE TABLE


@dataclass(frozen=True)
class TableDefinition:
    """One CREATE TABLE (or ORM model) worth of structure.

    engine/charset/collation are None when the definition does not state them;
    that defers to the server default and is reported as such.
    """
    name: str
    source_artifact: str
    line: Optional[int] = None
    engine: Optional[str] = None
    charset: Optional[str] = None
    collation: Optional[str] = None
    columns: Tuple[ColumnDefinition, ...] = ()
    has_primary_key: bool = False
    indexes: Tuple[IndexDefinition, ...] = ()

    def get_column(self, name: str) -> Optional[ColumnDefinition]:
        """Case-insensitive column lookup."""
        wanted = name.lower()
        for column in self.columns:
            if column.name.lower() == wanted:
                return column
        return None


@dataclass(frozen=True)
class IndexAddition:
    """An index or primary key added to an existing table.

    Produced by CREATE INDEX and ALTER TABLE ... ADD INDEX/KEY/PRIMARY KEY;
    folded into the table's definition when extractions are merged.
    """
    table: str
    index: IndexDefinition


@dataclass(frozen=True)
class ColumnChange:
    """Column-level change in an ALTER TABLE (ADD, MODIFY or CHANGE COLUMN)."""
    table: str
    column: str
    new_name: str
    new_type: str
    operation: str = "modify"  # add | modify | change


@dataclass(frozen=True)
class Statement:
    classification: StatementClass
    verb: str  # e.g. "ALTER TABLE", "CREATE INDEX", "DROP TABLE", "INSERT"
    text: str
    line: int
    table: Optional[str] = None
    online_hint: bool = False
    guarded: bool = False  # adjacent guard/irreversible annotation present
    destructive_clauses: Tuple[str, ...] = ()
    column_changes: Tuple[ColumnChange, ...] = ()
    creates_table: bool = False


@dataclass(frozen=True)
class MigrationFile:
    up_artifact: SchemaArtifact
    down_artifact: Optional[SchemaArtifact] = None
    statements: Tuple[Statement, ...] = ()
    inline_rollback: bool = False
    irreversible: bool = False
    irreversible_reason: Optional[str] = None
    # MODIFY/CHANGE COLUMN clauses of the down file or down section; they
    # restore, and so reveal, the column types this migration started from.
    rollback_changes: Tuple[ColumnChange, ...] = ()

    @property
    def path(self) -> str:
        return self.up_artifact.path

    @property
    def has_rollback(self) -> bool:
        return self.down_artifact is not None or self.inline_rollback

    def is_schema_mutating(self) -> bool:
        return any(s.classification in SCHEMA_MUTATING for s in self.statements)


@dataclass(frozen=True)
class ParseNote:
    """Observability record for input the extractor could not classify."""
    artifact_path: str
    line: Optional[int]
    message: str


@dataclass
class ExtractionResult:
    """Extractor output for one artifact, or the ordered merge of many."""
    tables: List[TableDefinition] = field(default_factory=list)
    identifiers: List[Identifier] = field(default_factory=list)
    migrations: List[MigrationFile] = field(default_factory=list)
    parse_notes: List[ParseNote] = field(default_factory=list)
    index_additions: List[IndexAddition] = field(default_factory=list)

    def extend(self, other: "ExtractionResult") -> None:
        """Append `other`, folding its index additions into the tables seen so far."""
        self.tables.extend(other.tables)
        for addition in other.index_additions:
            self._fold_index(addition)
        self.identifiers.extend(other.identifiers)
        self.migrations.extend(other.migrations)
        self.parse_notes.extend(other.parse_notes)
        self.index_additions.extend(other.index_additions)

    def _fold_index(self, addition: IndexAddition) -> None:
        # The most recent definition of the table is the one being altered.
        wanted = addition.table.lower()
        for position in range(len(self.tables) - 1, -1, -1):
            table = self.tables[position]
            if table.name.lower() == wanted:
                self.tables[position] = replace(
                    table,
                    indexes=table.indexes + (addition.index,),
                    has_primary_key=table.has_primary_key or addition.index.kind == "primary",
                )
                return


def merge_extractions(results: List[ExtractionResult]) -> ExtractionResult:
    """Merge per-artifact results, preserving the input order."""
    merged = ExtractionResult()
    for result in results:
        merged.extend(result)
    return merged


@dataclass(frozen=True)
class GateInput:
    """Everything a gate may read. Shared read-only across gates.

    `preconditions` maps a gate name to the reason its required input is
    unusable; the engine skips that gate instead of running it.
    """
    tables: Tuple[TableDefinition, ...] = ()
    identifiers: Tuple[Identifier, ...] = ()
    migrations: Tuple[MigrationFile, ...] = ()
    registry: Optional[ReservedWordRegistry] = None
    lexicons: Optional[Lexicons] = None
    preconditions: Dict[str, str] = field(default_factory=dict)
    require_explicit_charset: bool = False

    @classmethod
    def from_extraction(cls, extraction: ExtractionResult, **kwargs) -> "GateInput":
        return cls(
            tables=tuple(extraction.tables),
            identifiers=tuple(extraction.identifiers),
            migrations=tuple(extraction.migrations),
            **kwargs,
        )
