"""Pytest configuration for tests.

No sys.path hacks - tests should import from installed schemagate package.
"""

from pathlib import Path
from typing import Dict

import pytest

from schemagate.config import GateConfig
from schemagate.kernel.extract import extract_artifact
from schemagate.kernel.model import ArtifactKind, GateInput, SchemaArtifact


def write_repo(root: Path, files: Dict[str, str]) -> Path:
    """Write `files` (POSIX relative path -> text) under `root`."""
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


def dump_artifact(sql: str, path: str = "schema.sql") -> SchemaArtifact:
    return SchemaArtifact(path=path, kind=ArtifactKind.SCHEMA_DUMP, raw_text=sql, strategy="schema_dump")


def migration_artifact(sql: str, path: str = "migrations/001_change.up.sql", rollback: str = None) -> SchemaArtifact:
    down = None
    if rollback is not None:
        down = SchemaArtifact(path=path.replace(".up.sql", ".down.sql"), kind=ArtifactKind.MIGRATION, raw_text=rollback)
    return SchemaArtifact(path=path, kind=ArtifactKind.MIGRATION, raw_text=sql, strategy="paired", rollback=down)


def gate_input_for(*artifacts: SchemaArtifact, **kwargs) -> GateInput:
    """Extract each artifact and build the GateInput the gates see."""
    from schemagate.kernel.model import merge_extractions

    extraction = merge_extractions([extract_artifact(a) for a in artifacts])
    return GateInput.from_extraction(extraction, **kwargs)


@pytest.fixture
def make_repo(tmp_path):
    """Factory fixture: make_repo({"schema.sql": "..."}) -> repository root."""
    def _make(files: Dict[str, str]) -> Path:
        return write_repo(tmp_path, files)
    return _make


@pytest.fixture
def serial_config():
    """Single-threaded run configuration."""
    return GateConfig(workers=1)
