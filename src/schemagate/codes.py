"""Violation codes, severity classes and status constants for schemagate.

These constants prevent stringly-typed codes and ensure CI integrations
and renderers agree on the values they match against.
"""

from enum import Enum
from typing import Dict


class GateStatus(str, Enum):
    """Execution state of a gate. NOT_RUN and RUNNING never appear in a report."""

    NOT_RUN = "NOT_RUN"
    RUNNING = "RUNNING"
    PASS = "PASS"
    FAIL = "FAIL"
    SKIP = "SKIP"


class Mode(str, Enum):
    FULL = "full"
    QUICK = "quick"


class Severity(str, Enum):
    """Severity class, used to prioritize the remediation list."""

    DATA_LOSS = "data-loss"
    CORRECTNESS = "correctness"
    STYLE = "style"


SEVERITY_RANK: Dict[Severity, int] = {
    Severity.DATA_LOSS: 0,
    Severity.CORRECTNESS: 1,
    Severity.STYLE: 2,
}


class ViolationCode(str, Enum):
    """Violation codes, grouped by gate."""

    # naming
    NAMING_INVALID_CHARACTERS = "NAMING_INVALID_CHARACTERS"
    NAMING_RESERVED_WORD = "NAMING_RESERVED_WORD"

    # engine_charset
    ENGINE_NOT_INNODB = "ENGINE_NOT_INNODB"
    ENGINE_UNSPECIFIED = "ENGINE_UNSPECIFIED"
    CHARSET_LEGACY_UTF8 = "CHARSET_LEGACY_UTF8"
    CHARSET_NOT_UTF8MB4 = "CHARSET_NOT_UTF8MB4"
    CHARSET_UNSPECIFIED = "CHARSET_UNSPECIFIED"
    COLLATION_SUBOPTIMAL = "COLLATION_SUBOPTIMAL"
    COLLATION_CHARSET_MISMATCH = "COLLATION_CHARSET_MISMATCH"
    COLUMN_CHARSET_OVERRIDE = "COLUMN_CHARSET_OVERRIDE"

    # antipatterns
    MISSING_PRIMARY_KEY = "MISSING_PRIMARY_KEY"
    ENUM_ON_BUSINESS_ENTITY = "ENUM_ON_BUSINESS_ENTITY"
    FLOAT_MONETARY_COLUMN = "FLOAT_MONETARY_COLUMN"
    TEXT_PREFIX_INDEX = "TEXT_PREFIX_INDEX"
    STRING_IDENTIFIER_COLUMN = "STRING_IDENTIFIER_COLUMN"

    # migration_hygiene
    UNGUARDED_DESTRUCTIVE = "UNGUARDED_DESTRUCTIVE"
    MISSING_ROLLBACK = "MISSING_ROLLBACK"
    MIXED_DDL_DML = "MIXED_DDL_DML"
    POTENTIAL_TABLE_LOCK = "POTENTIAL_TABLE_LOCK"

    # engine
    GATE_ERROR = "GATE_ERROR"


CODE_SEVERITY: Dict[ViolationCode, Severity] = {
    ViolationCode.NAMING_INVALID_CHARACTERS: Severity.STYLE,
    ViolationCode.NAMING_RESERVED_WORD: Severity.CORRECTNESS,
    ViolationCode.ENGINE_NOT_INNODB: Severity.DATA_LOSS,
    ViolationCode.ENGINE_UNSPECIFIED: Severity.CORRECTNESS,
    ViolationCode.CHARSET_LEGACY_UTF8: Severity.DATA_LOSS,
    ViolationCode.CHARSET_NOT_UTF8MB4: Severity.CORRECTNESS,
    ViolationCode.CHARSET_UNSPECIFIED: Severity.CORRECTNESS,
    ViolationCode.COLLATION_SUBOPTIMAL: Severity.STYLE,
    ViolationCode.COLLATION_CHARSET_MISMATCH: Severity.CORRECTNESS,
    ViolationCode.COLUMN_CHARSET_OVERRIDE: Severity.CORRECTNESS,
    ViolationCode.MISSING_PRIMARY_KEY: Severity.CORRECTNESS,
    ViolationCode.ENUM_ON_BUSINESS_ENTITY: Severity.STYLE,
    ViolationCode.FLOAT_MONETARY_COLUMN: Severity.DATA_LOSS,
    ViolationCode.TEXT_PREFIX_INDEX: Severity.STYLE,
    ViolationCode.STRING_IDENTIFIER_COLUMN: Severity.CORRECTNESS,
    ViolationCode.UNGUARDED_DESTRUCTIVE: Severity.DATA_LOSS,
    ViolationCode.MISSING_ROLLBACK: Severity.DATA_LOSS,
    ViolationCode.MIXED_DDL_DML: Severity.CORRECTNESS,
    ViolationCode.POTENTIAL_TABLE_LOCK: Severity.CORRECTNESS,
    ViolationCode.GATE_ERROR: Severity.CORRECTNESS,
}


def severity_for(code: ViolationCode) -> Severity:
    return CODE_SEVERITY[code]
