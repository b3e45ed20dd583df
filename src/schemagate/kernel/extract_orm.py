"""Extraction from ORM schema files (Prisma ``schema.prisma``, Rails ``db/schema.rb``).

Both formats are mapped onto the same TableDefinition/Identifier model the SQL
extractor produces, using the column types each ORM emits for MySQL.
"""

import re
from typing import Dict, List, Optional, Tuple

from .model import (
    ColumnDefinition,
    ExtractionResult,
    Identifier,
    IdentifierKind,
    IndexColumn,
    IndexDefinition,
    ParseNote,
    SchemaArtifact,
    TableDefinition,
)
from .types import classify

# Prisma scalar -> MySQL column type (Prisma's MySQL connector defaults)
PRISMA_TYPES = {
    "String": "VARCHAR(191)",
    "Int": "INT",
    "BigInt": "BIGINT",
    "Float": "DOUBLE",
    "Decimal": "DECIMAL(65,30)",
    "Boolean": "TINYINT(1)",
    "DateTime": "DATETIME(3)",
    "Json": "JSON",
    "Bytes": "LONGBLOB",
}

RAILS_TYPES = {
    "string": "VARCHAR(255)",
    "text": "TEXT",
    "integer": "INT",
    "bigint": "BIGINT",
    "float": "FLOAT",
    "decimal": "DECIMAL",
    "boolean": "TINYINT(1)",
    "date": "DATE",
    "datetime": "DATETIME",
    "timestamp": "TIMESTAMP",
    "time": "TIME",
    "binary": "BLOB",
    "blob": "BLOB",
    "json": "JSON",
    "virtual": "VARCHAR(255)",
}
_RAILS_TEXT_SIZES = {"tiny": "TINYTEXT", "medium": "MEDIUMTEXT", "long": "LONGTEXT"}
_RAILS_BLOB_SIZES = {"tiny": "TINYBLOB", "medium": "MEDIUMBLOB", "long": "LONGBLOB"}


def extract_orm_schema(artifact: SchemaArtifact) -> ExtractionResult:
    if artifact.path.endswith(".prisma"):
        return extract_prisma(artifact)
    return extract_rails_schema(artifact)


# --------------------------------------------------------------------------
# Prisma
# --------------------------------------------------------------------------

_PRISMA_BLOCK_RE = re.compile(r"^\s*(model|enum|view)\s+(\w+)\s*\{\s*$")
_PRISMA_FIELD_RE = re.compile(r"^\s*(\w+)\s+(\w+)(\[\])?(\?)?\s*(.*)$")
_PRISMA_MAP_RE = re.compile(r"@map\(\s*(?:name\s*:\s*)?\"([^\"]+)\"")
_PRISMA_NATIVE_RE = re.compile(r"@db\.(\w+)(?:\(([^)]*)\))?")
_PRISMA_BLOCK_ATTR_RE = re.compile(r"^\s*@@(\w+)\((.*)\)\s*$")


def _strip_prisma_comment(line: str) -> str:
    quote = False
    for idx, ch in enumerate(line):
        if ch == '"':
            quote = not quote
        elif not quote and line.startswith("//", idx):
            return line[:idx]
    return line


def _prisma_field_list(args: str) -> List[Tuple[str, Optional[int]]]:
    """Parse ``[a, b(length: 10)]`` into [(a, None), (b, 10)]."""
    start = args.find("[")
    end = args.find("]", start)
    if start < 0 or end < 0:
        return []
    fields = []
    for part in re.split(r",(?![^(]*\))", args[start + 1:end]):
        part = part.strip()
        if not part:
            continue
        m = re.match(r"(\w+)(?:\((.*)\))?", part)
        if not m:
            continue
        length = None
        if m.group(2):
            lm = re.search(r"length\s*:\s*(\d+)", m.group(2))
            if lm:
                length = int(lm.group(1))
        fields.append((m.group(1), length))
    return fields


def _prisma_named_arg(args: str, key: str) -> Optional[str]:
    m = re.search(rf"\b{key}\s*:\s*\"([^\"]+)\"", args)
    return m.group(1) if m else None


def extract_prisma(artifact: SchemaArtifact) -> ExtractionResult:
    """Map Prisma models onto table definitions."""
    path = artifact.path
    lines = artifact.raw_text.splitlines()
    notes: List[ParseNote] = []

    # first pass: enum blocks, so enum-typed fields get their value counts
    enums: Dict[str, List[str]] = {}
    blocks: List[Tuple[str, str, int, List[Tuple[int, str]]]] = []
    current: Optional[Tuple[str, str, int, List[Tuple[int, str]]]] = None
    for lineno, raw in enumerate(lines, start=1):
        line = _strip_prisma_comment(raw).rstrip()
        if current is None:
            m = _PRISMA_BLOCK_RE.match(line)
            if m:
                current = (m.group(1), m.group(2), lineno, [])
            continue
        if line.strip() == "}":
            blocks.append(current)
            current = None
            continue
        if line.strip():
            current[3].append((lineno, line))
    if current is not None:
        notes.append(ParseNote(path, current[2], f"unterminated {current[0]} block {current[1]}"))

    for kind, name, _, body in blocks:
        if kind == "enum":
            enums[name] = [line.split()[0] for _, line in body if not line.strip().startswith("@@")]

    model_names = {name for kind, name, _, _ in blocks if kind in ("model", "view")}
    tables: List[TableDefinition] = []
    identifiers: List[Identifier] = []

    for kind, model_name, block_line, body in blocks:
        if kind != "model":
            continue
        table_name = model_name
        columns: List[ColumnDefinition] = []
        indexes: List[IndexDefinition] = []
        field_to_column: Dict[str, str] = {}
        table_identifiers: List[Identifier] = []
        has_pk = False

        for lineno, line in body:
            attr = _PRISMA_BLOCK_ATTR_RE.match(line)
            if attr:
                attr_name, args = attr.group(1), attr.group(2)
                if attr_name == "map":
                    m = re.search(r"\"([^\"]+)\"", args)
                    if m:
                        table_name = m.group(1)
                elif attr_name in ("id", "unique", "index", "fulltext"):
                    index_kind = {"id": "primary", "unique": "unique", "index": "index", "fulltext": "fulltext"}[attr_name]
                    index_name = _prisma_named_arg(args, "map") or _prisma_named_arg(args, "name")
                    if attr_name == "id":
                        has_pk = True
                    fields = _prisma_field_list(args)
                    indexes.append(IndexDefinition(
                        name=index_name,
                        kind=index_kind,
                        columns=tuple(IndexColumn(field_to_column.get(f, f), length) for f, length in fields),
                        line=lineno,
                    ))
                    if index_name:
                        table_identifiers.append(Identifier(
                            name=index_name, kind=IdentifierKind.INDEX, source_artifact=path, source_line=lineno,
                        ))
                continue
            if line.strip().startswith("@@"):
                continue

            m = _PRISMA_FIELD_RE.match(line)
            if not m:
                notes.append(ParseNote(path, lineno, f"unrecognized line in model {model_name}"))
                continue
            field_name, field_type, is_list, _, attrs = m.groups()
            if is_list or field_type in model_names or "@relation" in attrs:
                continue  # relation fields have no column of their own

            map_match = _PRISMA_MAP_RE.search(attrs)
            column_name = map_match.group(1) if map_match else field_name
            field_to_column[field_name] = column_name

            native = _PRISMA_NATIVE_RE.search(attrs)
            if native:
                declared = native.group(1).upper()
                if native.group(2):
                    declared += f"({native.group(2).strip()})"
            elif field_type in enums:
                values = ",".join(f"'{v}'" for v in enums[field_type])
                declared = f"ENUM({values})"
            elif field_type in PRISMA_TYPES:
                declared = PRISMA_TYPES[field_type]
            else:
                notes.append(ParseNote(path, lineno, f"unknown Prisma type {field_type} on {model_name}.{field_name}"))
                continue

            columns.append(ColumnDefinition(name=column_name, declared_type=declared, line=lineno, **classify(declared)))
            table_identifiers.append(Identifier(
                name=column_name, kind=IdentifierKind.COLUMN, source_artifact=path, source_line=lineno,
            ))
            if re.search(r"@id\b", attrs):
                has_pk = True
                indexes.append(IndexDefinition(name=None, kind="primary", columns=(IndexColumn(column_name),), line=lineno))
            elif re.search(r"@unique\b", attrs):
                indexes.append(IndexDefinition(name=None, kind="unique", columns=(IndexColumn(column_name),), line=lineno))

        identifiers.append(Identifier(
            name=table_name, kind=IdentifierKind.TABLE, source_artifact=path, source_line=block_line,
        ))
        for ident in table_identifiers:
            identifiers.append(Identifier(
                name=ident.name, kind=ident.kind, source_artifact=path, source_line=ident.source_line, table=table_name,
            ))
        tables.append(TableDefinition(
            name=table_name,
            source_artifact=path,
            line=block_line,
            columns=tuple(columns),
            has_primary_key=has_pk,
            indexes=tuple(indexes),
        ))

    return ExtractionResult(tables=tables, identifiers=identifiers, parse_notes=notes)


# --------------------------------------------------------------------------
# Rails schema.rb
# --------------------------------------------------------------------------

_RAILS_CREATE_RE = re.compile(r"^\s*create_table\s+[\"':]([\w$]+)[\"']?(.*?)\s+do\s*\|\s*(\w+)\s*\|\s*$")
_RAILS_END_RE = re.compile(r"^\s*end\s*$")
_RAILS_COLUMN_RE = re.compile(r"^\s*(\w+)\.(\w+)\s+[\"':]([\w$]+)[\"']?(.*)$")
_RAILS_ADD_INDEX_RE = re.compile(r"^\s*add_index\s+[\"':]([\w$]+)[\"']?\s*,\s*(.*)$")
_RAILS_OPTION_RE = re.compile(r"\b(\w+):\s*(\"[^\"]*\"|:\w+|\d+|true|false|nil|\{[^}]*\})")


def _rails_options(text: str) -> Dict[str, str]:
    options = {}
    for key, value in _RAILS_OPTION_RE.findall(text):
        options[key] = value.strip('"').lstrip(":")
    return options


def _rails_index_columns(text: str, options: Dict[str, str]) -> Tuple[IndexColumn, ...]:
    m = re.match(r"\s*\[([^\]]*)\]", text) or re.match(r"\s*[\"':]([\w$]+)[\"']?", text)
    if not m:
        return ()
    names = re.findall(r"[\"':]([\w$]+)[\"']?", m.group(0))
    length_spec = options.get("length")
    lengths: Dict[str, int] = {}
    if length_spec:
        if length_spec.startswith("{"):
            for col, value in re.findall(r"[\"']?([\w$]+)[\"']?\s*(?::|=>)\s*(\d+)", length_spec):
                lengths[col] = int(value)
        elif length_spec.isdigit():
            lengths = {name: int(length_spec) for name in names}
    return tuple(IndexColumn(name, lengths.get(name)) for name in names)


def _rails_column_type(col_type: str, options: Dict[str, str], rest: str) -> Optional[str]:
    if col_type == "column":
        m = re.match(r"\s*,\s*(?:\"([^\"]+)\"|:(\w+))", rest)
        if not m:
            return None
        if m.group(1):
            return m.group(1).upper()
        col_type = m.group(2)
    if col_type in ("references", "belongs_to"):
        return "BIGINT"
    if col_type == "text" and options.get("size") in _RAILS_TEXT_SIZES:
        return _RAILS_TEXT_SIZES[options["size"]]
    if col_type in ("binary", "blob") and options.get("size") in _RAILS_BLOB_SIZES:
        return _RAILS_BLOB_SIZES[options["size"]]
    if col_type == "integer" and options.get("limit", "").isdigit():
        limit = int(options["limit"])
        return {1: "TINYINT", 2: "SMALLINT", 3: "MEDIUMINT", 8: "BIGINT"}.get(limit, "INT")
    if col_type == "string" and options.get("limit", "").isdigit():
        return f"VARCHAR({options['limit']})"
    if col_type == "decimal" and "precision" in options:
        return f"DECIMAL({options['precision']},{options.get('scale', '0')})"
    return RAILS_TYPES.get(col_type)


def extract_rails_schema(artifact: SchemaArtifact) -> ExtractionResult:
    """Map ``create_table`` blocks and ``add_index`` calls onto table definitions."""
    path = artifact.path
    tables: Dict[str, dict] = {}
    order: List[str] = []
    identifiers: List[Identifier] = []
    notes: List[ParseNote] = []

    current: Optional[dict] = None
    block_var = "t"
    for lineno, raw in enumerate(artifact.raw_text.splitlines(), start=1):
        line = raw.split("#", 1)[0].rstrip() if not raw.lstrip().startswith("#") else ""
        if not line.strip():
            continue

        if current is None:
            m = _RAILS_CREATE_RE.match(line)
            if m:
                name, header, block_var = m.group(1), m.group(2), m.group(3)
                options = _rails_options(header)
                engine = None
                engine_match = re.search(r"ENGINE=(\w+)", options.get("options", ""), re.IGNORECASE)
                if engine_match:
                    engine = engine_match.group(1)
                charset = options.get("charset")
                if charset is None:
                    cm = re.search(r"CHARSET=(\w+)", options.get("options", ""), re.IGNORECASE)
                    charset = cm.group(1) if cm else None
                collation = options.get("collation")
                if collation is None:
                    cm = re.search(r"COLLATE=(\w+)", options.get("options", ""), re.IGNORECASE)
                    collation = cm.group(1) if cm else None
                current = {
                    "name": name, "line": lineno, "engine": engine, "charset": charset,
                    "collation": collation, "columns": [], "indexes": [], "has_pk": True,
                }
                identifiers.append(Identifier(name=name, kind=IdentifierKind.TABLE, source_artifact=path, source_line=lineno))
                id_option = options.get("id")
                pk_name = options.get("primary_key", "id")
                if id_option == "false":
                    current["has_pk"] = "primary_key" in options
                else:
                    id_type = _rails_column_type(id_option, {}, "") if id_option not in (None, "true") else None
                    declared = id_type or "BIGINT"
                    current["columns"].append(ColumnDefinition(name=pk_name, declared_type=declared, line=lineno, **classify(declared)))
                    current["indexes"].append(IndexDefinition(name=None, kind="primary", columns=(IndexColumn(pk_name),), line=lineno))
                    identifiers.append(Identifier(
                        name=pk_name, kind=IdentifierKind.COLUMN, source_artifact=path, source_line=lineno, table=name,
                    ))
                continue
            m = _RAILS_ADD_INDEX_RE.match(line)
            if m:
                table_name, rest = m.group(1), m.group(2)
                options = _rails_options(rest)
                index_name = options.get("name")
                index = IndexDefinition(
                    name=index_name,
                    kind="unique" if options.get("unique") == "true" else "index",
                    columns=_rails_index_columns(rest, options),
                    line=lineno,
                )
                if table_name in tables:
                    tables[table_name]["indexes"].append(index)
                if index_name:
                    identifiers.append(Identifier(
                        name=index_name, kind=IdentifierKind.INDEX, source_artifact=path, source_line=lineno,
                        table=table_name,
                    ))
            continue

        if _RAILS_END_RE.match(line):
            tables[current["name"]] = current
            order.append(current["name"])
            current = None
            continue

        m = re.match(rf"^\s*{block_var}\.index\s+(.*)$", line)
        if m:
            rest = m.group(1)
            options = _rails_options(rest)
            index_name = options.get("name")
            current["indexes"].append(IndexDefinition(
                name=index_name,
                kind="unique" if options.get("unique") == "true" else (options.get("type") or "index"),
                columns=_rails_index_columns(rest, options),
                line=lineno,
            ))
            if index_name:
                identifiers.append(Identifier(
                    name=index_name, kind=IdentifierKind.INDEX, source_artifact=path, source_line=lineno,
                    table=current["name"],
                ))
            continue
        if re.match(rf"^\s*{block_var}\.timestamps\b", line):
            for stamp in ("created_at", "updated_at"):
                current["columns"].append(ColumnDefinition(name=stamp, declared_type="DATETIME", line=lineno, **classify("DATETIME")))
                identifiers.append(Identifier(
                    name=stamp, kind=IdentifierKind.COLUMN, source_artifact=path, source_line=lineno,
                    table=current["name"],
                ))
            continue

        m = _RAILS_COLUMN_RE.match(line)
        if not m or m.group(1) != block_var:
            notes.append(ParseNote(path, lineno, f"unrecognized line in create_table {current['name']}"))
            continue
        _, col_type, col_name, rest = m.groups()
        options = _rails_options(rest)
        declared = _rails_column_type(col_type, options, rest)
        if declared is None:
            notes.append(ParseNote(path, lineno, f"unknown column type {col_type} for {current['name']}.{col_name}"))
            continue
        if col_type in ("references", "belongs_to"):
            col_name = f"{col_name}_id"
        current["columns"].append(ColumnDefinition(
            name=col_name, declared_type=declared, charset=options.get("charset"), line=lineno, **classify(declared),
        ))
        identifiers.append(Identifier(
            name=col_name, kind=IdentifierKind.COLUMN, source_artifact=path, source_line=lineno, table=current["name"],
        ))

    if current is not None:
        notes.append(ParseNote(path, current["line"], f"unterminated create_table {current['name']}"))

    definitions = [
        TableDefinition(
            name=entry["name"],
            source_artifact=path,
            line=entry["line"],
            engine=entry["engine"],
            charset=entry["charset"],
            collation=entry["collation"],
            columns=tuple(entry["columns"]),
            has_primary_key=entry["has_pk"],
            indexes=tuple(entry["indexes"]),
        )
        for entry in (tables[name] for name in order)
    ]
    return ExtractionResult(tables=definitions, identifiers=identifiers, parse_notes=notes)
