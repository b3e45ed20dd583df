"""Identifier and statement extraction from SQL artifacts.

Pattern-based and deliberately forgiving: every statement that does not match
a known shape becomes a parse note and is left out of gate evaluation. One
odd statement never aborts an artifact.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .extract_orm import extract_orm_schema
from .model import (
    ArtifactKind,
    ColumnChange,
    ColumnDefinition,
    ExtractionResult,
    Identifier,
    IdentifierKind,
    IndexAddition,
    IndexColumn,
    IndexDefinition,
    MigrationFile,
    ParseNote,
    SchemaArtifact,
    Statement,
    StatementClass,
    TableDefinition,
)
from .sql_text import (
    IDENT,
    QUALIFIED_IDENT,
    Comment,
    RawStatement,
    find_matching_paren,
    leading_offset,
    split_statements,
    split_top_level,
    unquote_identifier,
)
from .types import classify

_I = re.IGNORECASE
_IS = re.IGNORECASE | re.DOTALL

CREATE_TABLE_RE = re.compile(
    rf"CREATE\s+(?:TEMPORARY\s+)?TABLE\s+(?:IF\s+NOT\s+EXISTS\s+)?({QUALIFIED_IDENT})", _I
)
ALTER_TABLE_RE = re.compile(rf"ALTER\s+(?:ONLINE\s+|IGNORE\s+)*TABLE\s+({QUALIFIED_IDENT})", _I)
CREATE_INDEX_RE = re.compile(
    rf"CREATE\s+(?:(UNIQUE|FULLTEXT|SPATIAL)\s+)?INDEX\s+({IDENT})\s+(?:USING\s+\w+\s+)?ON\s+({QUALIFIED_IDENT})",
    _I,
)
DROP_TABLE_RE = re.compile(rf"DROP\s+(?:TEMPORARY\s+)?TABLES?\s+(?:IF\s+EXISTS\s+)?({QUALIFIED_IDENT})", _I)
DROP_INDEX_RE = re.compile(rf"DROP\s+INDEX\s+({IDENT})\s+ON\s+({QUALIFIED_IDENT})", _I)
DROP_DATABASE_RE = re.compile(r"DROP\s+(?:DATABASE|SCHEMA)\b", _I)
DROP_OTHER_RE = re.compile(r"DROP\s+(VIEW|TRIGGER|PROCEDURE|FUNCTION|EVENT|USER|ROLE)\b", _I)
TRUNCATE_RE = re.compile(rf"TRUNCATE\s+(?:TABLE\s+)?({QUALIFIED_IDENT})", _I)
RENAME_TABLE_RE = re.compile(r"RENAME\s+TABLES?\s+", _I)
CREATE_OTHER_RE = re.compile(
    r"CREATE\b(?:[^(;]*?)\b(VIEW|TRIGGER|PROCEDURE|FUNCTION|EVENT|DATABASE|SCHEMA)\b", _I
)
DML_RE = re.compile(
    rf"(?:(INSERT|REPLACE)\s+(?:LOW_PRIORITY\s+|DELAYED\s+|HIGH_PRIORITY\s+|IGNORE\s+)*(?:INTO\s+)?({QUALIFIED_IDENT})"
    rf"|(UPDATE)\s+(?:LOW_PRIORITY\s+|IGNORE\s+)*({QUALIFIED_IDENT})"
    rf"|(DELETE)\s+(?:LOW_PRIORITY\s+|QUICK\s+|IGNORE\s+)*(?:FROM\s+)?({QUALIFIED_IDENT})"
    rf"|(LOAD\s+DATA)\b|(CALL)\b)",
    _I,
)
IGNORED_RE = re.compile(
    r"(?:SET|USE|BEGIN|START\s+TRANSACTION|COMMIT|ROLLBACK|SAVEPOINT|RELEASE\s+SAVEPOINT"
    r"|LOCK\s+TABLES?|UNLOCK\s+TABLES?|SELECT|WITH|FLUSH|ANALYZE|OPTIMIZE|GRANT|REVOKE|SHOW|DO)\b",
    _I,
)

ENGINE_RE = re.compile(r"\bENGINE\s*=?\s*['\"]?([A-Za-z0-9_]+)", _I)
CHARSET_RE = re.compile(r"\b(?:CHARSET|CHARACTER\s+SET)\s*=?\s*['\"]?([A-Za-z0-9_]+)", _I)
COLLATE_RE = re.compile(r"\bCOLLATE\s*=?\s*['\"]?([A-Za-z0-9_]+)", _I)
COMMENT_OPTION_RE = re.compile(r"\bCOMMENT\s*=?\s*(?:'(?:[^'\\]|\\.|'')*'|\"(?:[^\"\\]|\\.)*\")", _IS)
QUOTED_STRING_RE = re.compile(r"'(?:[^'\\]|\\.|'')*'|\"(?:[^\"\\]|\\.)*\"", re.DOTALL)
ONLINE_OPTION_RE = re.compile(r"\bALGORITHM\s*=?\s*(?:INPLACE|INSTANT)\b|\bLOCK\s*=?\s*NONE\b", _I)

TYPE_RE = re.compile(r"([A-Za-z]+(?:\s+PRECISION|\s+VARYING)?)\s*", _I)
TYPE_MODIFIER_RE = re.compile(r"\s*(UNSIGNED|SIGNED|ZEROFILL)\b", _I)

GUARD_RE = re.compile(r"^(?:schemagate\s*:\s*guarded\b|guarded\s*:|safe-destructive\s*:)", _I)
IRREVERSIBLE_RE = re.compile(r"^(?:schemagate\s*:\s*irreversible\b|irreversible\s*:)[\s:=-]*(.*)$", _IS)
ONLINE_ANNOTATION_RE = re.compile(r"^schemagate\s*:\s*online\b|\bgh-ost\b|\bpt-online-schema-change\b", _I)
LIQUIBASE_ROLLBACK_RE = re.compile(r"^rollback\b\s*\S", _I)
DBMATE_DOWN_RE = re.compile(r"^[ \t]*--[ \t]*migrate:down\b.*$", re.IGNORECASE | re.MULTILINE)

_NON_COLUMN_KEYWORDS = {
    "PRIMARY", "KEY", "INDEX", "UNIQUE", "FULLTEXT", "SPATIAL", "CONSTRAINT", "FOREIGN", "CHECK",
}


@dataclass
class _ScriptModel:
    tables: List[TableDefinition] = field(default_factory=list)
    identifiers: List[Identifier] = field(default_factory=list)
    statements: List[Statement] = field(default_factory=list)
    notes: List[ParseNote] = field(default_factory=list)
    comments: List[Comment] = field(default_factory=list)
    index_additions: List[IndexAddition] = field(default_factory=list)


def extract_artifact(artifact: SchemaArtifact) -> ExtractionResult:
    """Extract tables, identifiers and (for migrations) a MigrationFile."""
    if artifact.kind == ArtifactKind.ORM_SCHEMA:
        return extract_orm_schema(artifact)
    if artifact.kind == ArtifactKind.MIGRATION:
        return extract_migration(artifact)
    model = analyze_script(artifact.path, artifact.raw_text)
    return ExtractionResult(
        tables=model.tables,
        identifiers=model.identifiers,
        parse_notes=model.notes,
        index_additions=model.index_additions,
    )


def extract_migration(artifact: SchemaArtifact) -> ExtractionResult:
    """Extract a migration: its statements, rollback availability and markers."""
    text = artifact.raw_text
    inline_rollback = False
    rollback_texts = []
    down_match = DBMATE_DOWN_RE.search(text)
    if down_match:
        down_statements, _ = split_statements(text[down_match.end():])
        inline_rollback = bool(down_statements)
        rollback_texts.append(text[down_match.end():])
        text = text[:down_match.start()]
    if artifact.rollback is not None:
        rollback_texts.append(artifact.rollback.raw_text)

    model = analyze_script(artifact.path, text)
    notes = list(model.notes)

    irreversible = False
    irreversible_reason: Optional[str] = None
    for comment in model.comments:
        if LIQUIBASE_ROLLBACK_RE.match(comment.text):
            inline_rollback = True
        match = IRREVERSIBLE_RE.match(comment.text)
        if match:
            reason = match.group(1).strip()
            if reason:
                if not irreversible:
                    irreversible = True
                    irreversible_reason = reason
            else:
                notes.append(ParseNote(
                    artifact_path=artifact.path,
                    line=comment.line,
                    message="irreversible marker without justification ignored",
                ))

    migration = MigrationFile(
        up_artifact=artifact,
        down_artifact=artifact.rollback,
        statements=tuple(model.statements),
        inline_rollback=inline_rollback,
        irreversible=irreversible,
        irreversible_reason=irreversible_reason,
        rollback_changes=tuple(_rollback_changes(artifact.path, rollback_texts)),
    )
    return ExtractionResult(
        tables=model.tables,
        identifiers=model.identifiers,
        migrations=[migration],
        parse_notes=notes,
        index_additions=model.index_additions,
    )


def _rollback_changes(path: str, texts: List[str]) -> List[ColumnChange]:
    """MODIFY/CHANGE COLUMN clauses of the rollback scripts.

    Only the column changes are kept; the rollback's parse notes are dropped.
    """
    changes: List[ColumnChange] = []
    for text in texts:
        for statement in analyze_script(path, text).statements:
            changes.extend(c for c in statement.column_changes if c.operation != "add")
    return changes


def analyze_script(path: str, text: str) -> _ScriptModel:
    """Run every statement of a script through the statement analyzers."""
    raw_statements, comments = split_statements(text)
    model = _ScriptModel(comments=comments)
    for raw in raw_statements:
        _analyze_statement(path, raw, model)
    return model


def _snippet(text: str, limit: int = 60) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else flat[:limit - 3] + "..."


def _adjacent_comments(raw: RawStatement) -> List[Comment]:
    """Comments in the contiguous block just above a statement, or inside it."""
    first = raw.line
    covered = set()
    for comment in raw.comments:
        covered.update(range(comment.line, comment.last_line + 1))
    top = first
    while (top - 1) in covered:
        top -= 1
    return [c for c in raw.comments if c.last_line >= top and c.line <= raw.end_line]


def _annotations(raw: RawStatement) -> Tuple[bool, bool]:
    """(guarded, online) annotation flags for a statement."""
    guarded = False
    online = False
    for comment in _adjacent_comments(raw):
        text = comment.text
        if GUARD_RE.match(text):
            guarded = True
        match = IRREVERSIBLE_RE.match(text)
        if match and match.group(1).strip():
            guarded = True
        if ONLINE_ANNOTATION_RE.search(text):
            online = True
    return guarded, online


def _finish_class(destructive: bool, guarded: bool) -> StatementClass:
    if destructive:
        return StatementClass.GUARDED if guarded else StatementClass.DESTRUCTIVE
    return StatementClass.DDL


def _analyze_statement(path: str, raw: RawStatement, model: _ScriptModel) -> None:
    text = raw.text
    pos = leading_offset(text)
    body = raw.body
    guarded, online_annotation = _annotations(raw)
    online = online_annotation or bool(ONLINE_OPTION_RE.search(_without_strings(body)))

    match = CREATE_TABLE_RE.match(text, pos)
    if match:
        table = _parse_create_table(path, raw, match, model)
        model.statements.append(Statement(
            classification=StatementClass.DDL,
            verb="CREATE TABLE",
            text=body,
            line=raw.line,
            table=table,
            online_hint=online,
            guarded=guarded,
            creates_table=True,
        ))
        return

    match = ALTER_TABLE_RE.match(text, pos)
    if match:
        table = unquote_identifier(match.group(1))
        destructive, changes = _parse_alter_table(path, raw, match, table, model)
        model.statements.append(Statement(
            classification=_finish_class(bool(destructive), guarded),
            verb="ALTER TABLE",
            text=body,
            line=raw.line,
            table=table,
            online_hint=online,
            guarded=guarded,
            destructive_clauses=tuple(destructive),
            column_changes=tuple(changes),
        ))
        return

    match = CREATE_INDEX_RE.match(text, pos)
    if match:
        table = unquote_identifier(match.group(3))
        name = unquote_identifier(match.group(2))
        model.identifiers.append(Identifier(
            name=name, kind=IdentifierKind.INDEX, source_artifact=path, source_line=raw.line, table=table,
        ))
        model.index_additions.append(IndexAddition(table=table, index=IndexDefinition(
            name=name,
            kind=(match.group(1) or "index").lower(),
            columns=_index_columns(text[match.end():]),
            line=raw.line,
            source_artifact=path,
        )))
        model.statements.append(Statement(
            classification=StatementClass.DDL,
            verb="CREATE INDEX",
            text=body,
            line=raw.line,
            table=table,
            online_hint=online,
            guarded=guarded,
        ))
        return

    match = DROP_TABLE_RE.match(text, pos)
    if match:
        table = unquote_identifier(match.group(1))
        model.statements.append(Statement(
            classification=_finish_class(True, guarded),
            verb="DROP TABLE",
            text=body,
            line=raw.line,
            table=table,
            online_hint=online,
            guarded=guarded,
            destructive_clauses=(f"DROP TABLE {table}",),
        ))
        return

    match = DROP_INDEX_RE.match(text, pos)
    if match:
        model.statements.append(Statement(
            classification=StatementClass.DDL,
            verb="DROP INDEX",
            text=body,
            line=raw.line,
            table=unquote_identifier(match.group(2)),
            online_hint=online,
            guarded=guarded,
        ))
        return

    if DROP_DATABASE_RE.match(text, pos):
        model.statements.append(Statement(
            classification=_finish_class(True, guarded),
            verb="DROP DATABASE",
            text=body,
            line=raw.line,
            guarded=guarded,
            destructive_clauses=("DROP DATABASE",),
        ))
        return

    match = TRUNCATE_RE.match(text, pos)
    if match:
        table = unquote_identifier(match.group(1))
        model.statements.append(Statement(
            classification=_finish_class(True, guarded),
            verb="TRUNCATE",
            text=body,
            line=raw.line,
            table=table,
            guarded=guarded,
            destructive_clauses=(f"TRUNCATE {table}",),
        ))
        return

    match = RENAME_TABLE_RE.match(text, pos)
    if match:
        _parse_rename_table(path, raw, match.end(), model)
        model.statements.append(Statement(
            classification=StatementClass.DDL,
            verb="RENAME TABLE",
            text=body,
            line=raw.line,
            guarded=guarded,
        ))
        return

    match = DROP_OTHER_RE.match(text, pos) or CREATE_OTHER_RE.match(text, pos)
    if match:
        verb = f"{body.split()[0].upper()} {match.group(1).upper()}"
        model.statements.append(Statement(
            classification=StatementClass.DDL,
            verb=verb,
            text=body,
            line=raw.line,
            guarded=guarded,
        ))
        return

    match = DML_RE.match(text, pos)
    if match:
        groups = match.groups()
        verb = next(g for g in (groups[0], groups[2], groups[4], groups[6], groups[7]) if g)
        target = next((g for g in (groups[1], groups[3], groups[5]) if g), None)
        model.statements.append(Statement(
            classification=StatementClass.DML,
            verb=" ".join(verb.upper().split()),
            text=body,
            line=raw.line,
            table=unquote_identifier(target) if target else None,
            guarded=guarded,
        ))
        return

    if IGNORED_RE.match(text, pos):
        return

    model.notes.append(ParseNote(
        artifact_path=path,
        line=raw.line,
        message=f"unrecognized statement skipped: {_snippet(body)}",
    ))


def _without_strings(text: str) -> str:
    return QUOTED_STRING_RE.sub("''", text)


def _parse_create_table(path: str, raw: RawStatement, match: re.Match, model: _ScriptModel) -> str:
    text = raw.text
    name = unquote_identifier(match.group(1))
    model.identifiers.append(Identifier(
        name=name, kind=IdentifierKind.TABLE, source_artifact=path, source_line=raw.line,
    ))

    rest = match.end()
    open_idx = text.find("(", rest)
    if open_idx < 0 or text[rest:open_idx].strip():
        model.notes.append(ParseNote(
            artifact_path=path,
            line=raw.line,
            message=f"CREATE TABLE {name} has no column list (LIKE/AS SELECT); structure not analyzed",
        ))
        return name

    close_idx = find_matching_paren(text, open_idx)
    if close_idx < 0:
        model.notes.append(ParseNote(
            artifact_path=path, line=raw.line, message=f"CREATE TABLE {name}: unterminated column list",
        ))
        close_idx = len(text)

    columns: List[ColumnDefinition] = []
    indexes: List[IndexDefinition] = []
    has_pk = False
    body = text[open_idx + 1:close_idx]
    for offset, part in split_top_level(body):
        element = part.strip()
        if not element:
            continue
        line = raw.line_at(open_idx + 1 + offset + leading_offset(part))
        pk = _parse_table_element(path, name, element, line, columns, indexes, model)
        has_pk = has_pk or pk

    options = COMMENT_OPTION_RE.sub(" ", text[close_idx + 1:])
    engine = _first_group(ENGINE_RE, options)
    charset = _first_group(CHARSET_RE, options)
    collation = _first_group(COLLATE_RE, options)

    model.tables.append(TableDefinition(
        name=name,
        source_artifact=path,
        line=raw.line,
        engine=engine,
        charset=charset,
        collation=collation,
        columns=tuple(columns),
        has_primary_key=has_pk,
        indexes=tuple(indexes),
    ))
    return name


def _first_group(pattern: re.Pattern, text: str) -> Optional[str]:
    match = pattern.search(text)
    return match.group(1) if match else None


def _parse_table_element(
    path: str,
    table: str,
    element: str,
    line: int,
    columns: List[ColumnDefinition],
    indexes: List[IndexDefinition],
    model: _ScriptModel,
) -> bool:
    """Parse one comma-separated element of a CREATE TABLE body.

    Returns True when the element declares the primary key.
    """
    upper = element.upper()
    first_word = upper.split(None, 1)[0] if upper.split() else ""
    first_word = first_word.split("(", 1)[0]

    if first_word == "CONSTRAINT":
        m = re.match(rf"CONSTRAINT\s+(?:({IDENT})\s+)?(PRIMARY\s+KEY|UNIQUE|FOREIGN\s+KEY|CHECK)\b(.*)", element, _IS)
        if not m:
            model.notes.append(ParseNote(path, line, f"unrecognized constraint in {table}: {_snippet(element)}"))
            return False
        constraint_name = unquote_identifier(m.group(1)) if m.group(1) else None
        what = " ".join(m.group(2).upper().split())
        if constraint_name:
            model.identifiers.append(Identifier(
                name=constraint_name, kind=IdentifierKind.CONSTRAINT, source_artifact=path,
                source_line=line, table=table,
            ))
        if what == "PRIMARY KEY":
            indexes.append(IndexDefinition(name=constraint_name, kind="primary", columns=_index_columns(m.group(3)), line=line))
            return True
        if what == "UNIQUE":
            indexes.append(IndexDefinition(name=constraint_name, kind="unique", columns=_index_columns(m.group(3)), line=line))
        return False

    if re.match(r"PRIMARY\s+KEY\b", element, _I):
        indexes.append(IndexDefinition(name=None, kind="primary", columns=_index_columns(element), line=line))
        return True

    m = re.match(rf"(UNIQUE|FULLTEXT|SPATIAL|KEY|INDEX)\b(?:\s+(?:KEY|INDEX)\b)?\s*(?:(?!USING\b)({IDENT}))?", element, _I)
    if m and first_word in ("UNIQUE", "FULLTEXT", "SPATIAL", "KEY", "INDEX"):
        kind = m.group(1).lower()
        if kind in ("key",):
            kind = "index"
        index_name = unquote_identifier(m.group(2)) if m.group(2) else None
        if index_name:
            model.identifiers.append(Identifier(
                name=index_name, kind=IdentifierKind.INDEX, source_artifact=path, source_line=line, table=table,
            ))
        indexes.append(IndexDefinition(name=index_name, kind=kind, columns=_index_columns(element[m.end():]), line=line))
        return False

    if first_word == "FOREIGN":
        m = re.match(rf"FOREIGN\s+KEY\s*({IDENT})?", element, _I)
        if m and m.group(1):
            model.identifiers.append(Identifier(
                name=unquote_identifier(m.group(1)), kind=IdentifierKind.CONSTRAINT, source_artifact=path,
                source_line=line, table=table,
            ))
        return False

    if first_word in ("CHECK", "PERIOD"):
        return False

    column = _parse_column(element, line)
    if column is None:
        model.notes.append(ParseNote(path, line, f"unrecognized element in {table}: {_snippet(element)}"))
        return False
    columns.append(column)
    model.identifiers.append(Identifier(
        name=column.name, kind=IdentifierKind.COLUMN, source_artifact=path, source_line=line, table=table,
    ))
    rest = _without_strings(re.sub(rf"^{IDENT}", "", element))
    pk = bool(re.search(r"\bPRIMARY\s+KEY\b", rest, _I))
    if pk:
        indexes.append(IndexDefinition(name=None, kind="primary", columns=(IndexColumn(column.name),), line=line))
    elif re.search(r"\bUNIQUE\b", rest, _I):
        indexes.append(IndexDefinition(name=None, kind="unique", columns=(IndexColumn(column.name),), line=line))
    return pk


def _parse_column_type(text: str) -> Tuple[Optional[str], str]:
    """Split ``VARCHAR(20) NOT NULL`` into (``VARCHAR(20)``, `` NOT NULL``)."""
    m = TYPE_RE.match(text)
    if not m:
        return None, text
    keyword = " ".join(m.group(1).upper().split())
    idx = m.end()
    declared = keyword
    if idx < len(text) and text[idx] == "(":
        close = find_matching_paren(text, idx)
        if close < 0:
            close = len(text) - 1
        declared = f"{keyword}({text[idx + 1:close].strip()})"
        idx = close + 1
    while True:
        mod = TYPE_MODIFIER_RE.match(text, idx)
        if not mod:
            break
        declared += " " + mod.group(1).upper()
        idx = mod.end()
    return declared, text[idx:]


def _parse_column(element: str, line: Optional[int]) -> Optional[ColumnDefinition]:
    m = re.match(rf"({IDENT})\s+", element)
    if not m:
        return None
    name = unquote_identifier(m.group(1))
    if name.upper() in _NON_COLUMN_KEYWORDS and not m.group(1).startswith("`"):
        return None
    declared, rest = _parse_column_type(element[m.end():])
    if not declared:
        return None
    rest_clean = _without_strings(rest)
    charset = _first_group(CHARSET_RE, rest_clean)
    return ColumnDefinition(name=name, declared_type=declared, charset=charset, line=line, **classify(declared))


def _index_columns(text: str) -> Tuple[IndexColumn, ...]:
    """Parse the first parenthesized key-part list in `text`."""
    open_idx = text.find("(")
    if open_idx < 0:
        return ()
    close_idx = find_matching_paren(text, open_idx)
    if close_idx < 0:
        close_idx = len(text)
    parts: List[IndexColumn] = []
    for _, part in split_top_level(text[open_idx + 1:close_idx]):
        part = part.strip()
        m = re.match(rf"({IDENT})\s*(?:\(\s*(\d+)\s*\))?", part)
        if not m or part.startswith("("):
            continue  # functional key part
        prefix = int(m.group(2)) if m.group(2) else None
        parts.append(IndexColumn(name=unquote_identifier(m.group(1)), prefix_length=prefix))
    return tuple(parts)


def _parse_alter_table(
    path: str, raw: RawStatement, match: re.Match, table: str, model: _ScriptModel
) -> Tuple[List[str], List[ColumnChange]]:
    """Collect identifiers, destructive clauses and column changes of an ALTER TABLE."""
    text = raw.text
    destructive: List[str] = []
    changes: List[ColumnChange] = []
    start = match.end()

    for offset, part in split_top_level(text[start:]):
        spec = part.strip()
        if not spec:
            continue
        line = raw.line_at(start + offset + leading_offset(part))
        upper = " ".join(spec.upper().split())

        if upper.startswith("ADD"):
            _parse_alter_add(path, table, spec, line, changes, model)
        elif upper.startswith("DROP"):
            m = re.match(r"DROP\s+(?:(INDEX|KEY|FOREIGN\s+KEY|PRIMARY\s+KEY|CONSTRAINT|CHECK|DEFAULT|PARTITION|COLUMN)\b)?", spec, _I)
            target_kind = " ".join(m.group(1).upper().split()) if m and m.group(1) else "COLUMN"
            if target_kind == "COLUMN":
                cm = re.match(rf"DROP\s+(?:COLUMN\s+)?({IDENT})", spec, _I)
                column = unquote_identifier(cm.group(1)) if cm else "?"
                destructive.append(f"DROP COLUMN {column}")
            elif target_kind == "PARTITION":
                destructive.append("DROP PARTITION")
        elif upper.startswith("TRUNCATE PARTITION"):
            destructive.append("TRUNCATE PARTITION")
        elif upper.startswith("MODIFY"):
            m = re.match(rf"MODIFY\s+(?:COLUMN\s+)?({IDENT})\s+(.*)", spec, _IS)
            if m:
                column = unquote_identifier(m.group(1))
                declared, _ = _parse_column_type(m.group(2))
                if declared:
                    changes.append(ColumnChange(table=table, column=column, new_name=column, new_type=declared, operation="modify"))
        elif upper.startswith("CHANGE"):
            m = re.match(rf"CHANGE\s+(?:COLUMN\s+)?({IDENT})\s+({IDENT})\s+(.*)", spec, _IS)
            if m:
                old = unquote_identifier(m.group(1))
                new = unquote_identifier(m.group(2))
                declared, _ = _parse_column_type(m.group(3))
                if declared:
                    changes.append(ColumnChange(table=table, column=old, new_name=new, new_type=declared, operation="change"))
                if new.lower() != old.lower():
                    model.identifiers.append(Identifier(
                        name=new, kind=IdentifierKind.COLUMN, source_artifact=path, source_line=line, table=table,
                    ))
        elif upper.startswith("RENAME"):
            m = re.match(rf"RENAME\s+(COLUMN|INDEX|KEY)\s+{IDENT}\s+TO\s+({IDENT})", spec, _I)
            if m:
                kind = IdentifierKind.COLUMN if m.group(1).upper() == "COLUMN" else IdentifierKind.INDEX
                model.identifiers.append(Identifier(
                    name=unquote_identifier(m.group(2)), kind=kind, source_artifact=path, source_line=line, table=table,
                ))
            else:
                m = re.match(rf"RENAME\s+(?:TO\s+|AS\s+)?({QUALIFIED_IDENT})", spec, _I)
                if m:
                    model.identifiers.append(Identifier(
                        name=unquote_identifier(m.group(1)), kind=IdentifierKind.TABLE, source_artifact=path,
                        source_line=line,
                    ))
    return destructive, changes


def _parse_alter_add(
    path: str, table: str, spec: str, line: int, changes: List[ColumnChange], model: _ScriptModel
) -> None:
    after = re.sub(r"^ADD\s+", "", spec, flags=_I)
    upper = after.upper()

    if re.match(r"COLUMN\s*\(|\(", after, _I):
        open_idx = after.find("(")
        close_idx = find_matching_paren(after, open_idx)
        inner = after[open_idx + 1:close_idx if close_idx >= 0 else len(after)]
        for _, part in split_top_level(inner):
            _record_added_column(path, table, part.strip(), line, changes, model)
        return

    if re.match(r"(CONSTRAINT|PRIMARY\s+KEY|FOREIGN\s+KEY|CHECK)\b", upper):
        constraint_name = None
        m = re.match(rf"CONSTRAINT\s+(?!PRIMARY\b|UNIQUE\b|FOREIGN\b|CHECK\b)({IDENT})", after, _I)
        if m:
            constraint_name = unquote_identifier(m.group(1))
            model.identifiers.append(Identifier(
                name=constraint_name, kind=IdentifierKind.CONSTRAINT, source_artifact=path,
                source_line=line, table=table,
            ))
        what = re.match(rf"(?:CONSTRAINT\s+(?:(?!PRIMARY\b|UNIQUE\b){IDENT}\s+)?)?(PRIMARY\s+KEY|UNIQUE)\b", after, _I)
        if what:
            kind = "primary" if what.group(1).upper().startswith("PRIMARY") else "unique"
            _record_added_index(path, table, constraint_name, kind, after[what.end():], line, model)
        return

    if re.match(r"(UNIQUE|FULLTEXT|SPATIAL|INDEX|KEY)\b", upper):
        m = re.match(
            rf"(UNIQUE|FULLTEXT|SPATIAL)?\s*(?:INDEX|KEY)?\s*({IDENT})?\s*(?:USING\s+\w+\s*)?\(", after, _I,
        )
        index_name = None
        if m and m.group(2) and m.group(2).upper() not in ("INDEX", "KEY", "USING"):
            index_name = unquote_identifier(m.group(2))
            model.identifiers.append(Identifier(
                name=index_name, kind=IdentifierKind.INDEX, source_artifact=path,
                source_line=line, table=table,
            ))
        kind = m.group(1).lower() if m and m.group(1) else "index"
        _record_added_index(path, table, index_name, kind, after, line, model)
        return

    if re.match(r"PARTITION\b", upper):
        return

    _record_added_column(path, table, re.sub(r"^COLUMN\s+", "", after, flags=_I), line, changes, model)


def _record_added_index(
    path: str, table: str, name: Optional[str], kind: str, key_parts: str, line: int, model: _ScriptModel
) -> None:
    model.index_additions.append(IndexAddition(table=table, index=IndexDefinition(
        name=name, kind=kind, columns=_index_columns(key_parts), line=line, source_artifact=path,
    )))


def _record_added_column(
    path: str, table: str, element: str, line: int, changes: List[ColumnChange], model: _ScriptModel
) -> None:
    column = _parse_column(element, line)
    if column is None:
        model.notes.append(ParseNote(path, line, f"unrecognized ALTER TABLE {table} clause: {_snippet(element)}"))
        return
    model.identifiers.append(Identifier(
        name=column.name, kind=IdentifierKind.COLUMN, source_artifact=path, source_line=line, table=table,
    ))
    changes.append(ColumnChange(
        table=table, column=column.name, new_name=column.name, new_type=column.declared_type, operation="add",
    ))


def _parse_rename_table(path: str, raw: RawStatement, start: int, model: _ScriptModel) -> None:
    text = raw.text
    for offset, part in split_top_level(text[start:]):
        m = re.match(rf"\s*{QUALIFIED_IDENT}\s+TO\s+({QUALIFIED_IDENT})", part, _I)
        if m:
            model.identifiers.append(Identifier(
                name=unquote_identifier(m.group(1)),
                kind=IdentifierKind.TABLE,
                source_artifact=path,
                source_line=raw.line_at(start + offset + leading_offset(part)),
            ))
