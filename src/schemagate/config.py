"""Run configuration for schemagate.

Passed explicitly into the API; there is no environment or global settings
layer.
"""

import os
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_DUMP_PATTERNS = ["schema.sql", "structure.sql", "*schema*.sql", "*dump*.sql"]
DEFAULT_DUMP_DIRECTORIES = ["schema", "schemas", "sql", "db", "database"]
DEFAULT_EXCLUDED_DIRECTORIES = [
    ".git", "node_modules", "vendor", ".venv", "venv", "__pycache__", "dist", "build", "target", ".tox",
]


def default_workers() -> int:
    return min(32, (os.cpu_count() or 1) + 4)


class GateConfig(BaseModel):
    """Options for one validation run."""
    workers: int = Field(default_factory=default_workers, ge=1, description="Thread pool size; 1 disables pooling")
    parallel_gates: bool = False
    reserved_words_path: Optional[str] = None
    lexicons_path: Optional[str] = None
    require_explicit_charset: bool = False
    dump_patterns: List[str] = Field(default_factory=lambda: list(DEFAULT_DUMP_PATTERNS))
    dump_directories: List[str] = Field(default_factory=lambda: list(DEFAULT_DUMP_DIRECTORIES))
    excluded_directories: List[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDED_DIRECTORIES))

    model_config = ConfigDict(extra="forbid")

    @field_validator("dump_patterns", "dump_directories", "excluded_directories")
    @classmethod
    def non_empty_entries(cls, v: List[str]) -> List[str]:
        if any(not entry.strip() for entry in v):
            raise ValueError("entries must be non-empty")
        return v
