"""Column type classification and type-narrowing rules."""

import re
from typing import List, Optional, Tuple

FLOAT_TYPES = {"FLOAT", "DOUBLE", "REAL"}
STRING_TYPES = {"CHAR", "VARCHAR", "TINYTEXT", "TEXT", "MEDIUMTEXT", "LONGTEXT", "NCHAR", "NVARCHAR"}
TEXT_BLOB_TYPES = {
    "TINYTEXT", "TEXT", "MEDIUMTEXT", "LONGTEXT",
    "TINYBLOB", "BLOB", "MEDIUMBLOB", "LONGBLOB",
}

# Families ordered from narrowest to widest.
_INTEGER_RANK = {"TINYINT": 1, "SMALLINT": 2, "MEDIUMINT": 3, "INT": 4, "INTEGER": 4, "BIGINT": 5}
_TEXT_RANK = {"TINYTEXT": 255, "TEXT": 65535, "MEDIUMTEXT": 16777215, "LONGTEXT": 4294967295}
_BLOB_RANK = {"TINYBLOB": 255, "BLOB": 65535, "MEDIUMBLOB": 16777215, "LONGBLOB": 4294967295}
_FLOAT_RANK = {"FLOAT": 1, "REAL": 2, "DOUBLE": 2}

_TYPE_RE = re.compile(r"^\s*([A-Za-z]+)(?:\s+PRECISION)?\s*(?:\((.*)\))?", re.DOTALL)


def base_type(declared_type: str) -> str:
    """Return the upper-cased type keyword (``VARCHAR(32) NOT NULL`` -> ``VARCHAR``)."""
    match = _TYPE_RE.match(declared_type or "")
    if not match:
        return ""
    return match.group(1).upper()


def type_arguments(declared_type: str) -> Optional[str]:
    """Return the raw text inside the type's parentheses, if any."""
    text = declared_type or ""
    start = text.find("(")
    if start < 0:
        return None
    depth = 0
    quote: Optional[str] = None
    for idx in range(start, len(text)):
        ch = text[idx]
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"'):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return text[start + 1:idx]
    return text[start + 1:]


def count_enum_values(arguments: Optional[str]) -> int:
    """Count quoted values in an ENUM/SET argument list (``'a','b'`` -> 2)."""
    if not arguments:
        return 0
    count = 0
    idx = 0
    while idx < len(arguments):
        ch = arguments[idx]
        if ch in ("'", '"'):
            quote = ch
            idx += 1
            while idx < len(arguments):
                if arguments[idx] == quote:
                    # doubled quote is an escaped quote
                    if idx + 1 < len(arguments) and arguments[idx + 1] == quote:
                        idx += 2
                        continue
                    break
                if arguments[idx] == "\\":
                    idx += 1
                idx += 1
            count += 1
        idx += 1
    return count


def _numeric_arguments(declared_type: str) -> List[int]:
    arguments = type_arguments(declared_type)
    if not arguments:
        return []
    values = []
    for part in arguments.split(","):
        part = part.strip()
        if part.isdigit():
            values.append(int(part))
    return values


def classify(declared_type: str) -> dict:
    """Derive the classification flags used by ColumnDefinition."""
    keyword = base_type(declared_type)
    is_enum = keyword == "ENUM"
    return {
        "is_enum": is_enum,
        "enum_value_count": count_enum_values(type_arguments(declared_type)) if is_enum else 0,
        "is_floating_point": keyword in FLOAT_TYPES,
        "is_string": keyword in STRING_TYPES,
        "is_text_or_blob": keyword in TEXT_BLOB_TYPES,
    }


def _string_capacity(keyword: str, declared_type: str) -> Optional[int]:
    if keyword in _TEXT_RANK:
        return _TEXT_RANK[keyword]
    if keyword in ("CHAR", "VARCHAR", "NCHAR", "NVARCHAR"):
        args = _numeric_arguments(declared_type)
        if args:
            return args[0]
        return 1 if keyword in ("CHAR", "NCHAR") else None
    return None


def _decimal_shape(declared_type: str) -> Tuple[int, int]:
    args = _numeric_arguments(declared_type)
    precision = args[0] if args else 10
    scale = args[1] if len(args) > 1 else 0
    return precision, scale


def is_narrowing(old_type: str, new_type: str) -> bool:
    """Whether changing a column from `old_type` to `new_type` can lose data.

    Same-family changes compare widths; changes across families (e.g. VARCHAR
    to INT) are treated as narrowing. Unknown keywords never count.
    """
    old_kw = base_type(old_type)
    new_kw = base_type(new_type)
    if not old_kw or not new_kw:
        return False

    if old_kw in _INTEGER_RANK and new_kw in _INTEGER_RANK:
        if _INTEGER_RANK[new_kw] < _INTEGER_RANK[old_kw]:
            return True
        old_unsigned = "UNSIGNED" in old_type.upper()
        new_unsigned = "UNSIGNED" in new_type.upper()
        return old_unsigned != new_unsigned and _INTEGER_RANK[new_kw] == _INTEGER_RANK[old_kw]

    old_cap = _string_capacity(old_kw, old_type)
    new_cap = _string_capacity(new_kw, new_type)
    if old_cap is not None and new_cap is not None:
        return new_cap < old_cap

    if old_kw in _BLOB_RANK and new_kw in _BLOB_RANK:
        return _BLOB_RANK[new_kw] < _BLOB_RANK[old_kw]

    if old_kw in ("DECIMAL", "NUMERIC") and new_kw in ("DECIMAL", "NUMERIC"):
        old_p, old_s = _decimal_shape(old_type)
        new_p, new_s = _decimal_shape(new_type)
        return new_s < old_s or (new_p - new_s) < (old_p - old_s)

    if old_kw in _FLOAT_RANK and new_kw in _FLOAT_RANK:
        return _FLOAT_RANK[new_kw] < _FLOAT_RANK[old_kw]

    if old_kw in ("ENUM", "SET") and new_kw == old_kw:
        old_values = count_enum_values(type_arguments(old_type))
        new_values = count_enum_values(type_arguments(new_type))
        return new_values < old_values

    if old_kw == new_kw:
        return False

    widening = {
        ("INT", "DECIMAL"), ("BIGINT", "DECIMAL"), ("SMALLINT", "DECIMAL"), ("TINYINT", "DECIMAL"),
        ("FLOAT", "DECIMAL"), ("DATE", "DATETIME"), ("DATE", "TIMESTAMP"),
    }
    if (old_kw, new_kw) in widening:
        return False
    if old_kw in _INTEGER_RANK and (new_kw in STRING_TYPES or new_kw in FLOAT_TYPES):
        return False
    if old_kw in ("CHAR", "VARCHAR") and new_kw in _TEXT_RANK:
        return False
    return True
