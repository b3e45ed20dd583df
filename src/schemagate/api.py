"""Public API for schemagate.

High-level functions that return complete, structured results. The CLI is a
thin wrapper over these; integrations should use them instead of importing
from _internal.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from schemagate.codes import Mode
from schemagate.config import GateConfig
from schemagate.contracts import ValidationReport
from schemagate.errors import DiscoveryEmpty, GatePreconditionError, InvocationError
from schemagate.kernel.extract import extract_artifact
from schemagate.kernel.gates import run_gates
from schemagate.kernel.lexicons import Lexicons
from schemagate.kernel.model import (
    ExtractionResult,
    GateInput,
    ParseNote,
    SchemaArtifact,
    merge_extractions,
)
from schemagate.kernel.report import aggregate
from schemagate.kernel.reserved_words import ReservedWordRegistry
from schemagate._internal.io.locator import collect_artifacts, detect_signals, locate_artifacts, pool_map
from schemagate._internal.io.overrides import load_lexicons, load_reserved_words
from schemagate._internal.io.snapshot import (
    SchemaSnapshot,
    load_snapshot,
    parse_snapshot,
    snapshot_artifacts,
    snapshot_to_extraction,
)

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike, Path]
SnapshotInput = Union[PathLike, Dict, SchemaSnapshot]


def _normalize_path(path: PathLike) -> Path:
    """Normalize path input to Path object."""
    return Path(path) if not isinstance(path, Path) else path


def _normalize_mode(mode: Union[str, Mode]) -> Mode:
    try:
        return Mode(mode)
    except ValueError:
        raise InvocationError(f"Unknown mode {mode!r}; expected 'full' or 'quick'") from None


def _normalize_root(root: PathLike) -> Path:
    path = _normalize_path(root)
    if not path.exists():
        raise InvocationError(f"Repository root does not exist: {path}")
    if not path.is_dir():
        raise InvocationError(f"Repository root is not a directory: {path}")
    return path


def _coerce_snapshot(snapshot: SnapshotInput) -> Tuple[SchemaSnapshot, str]:
    """Accept a SchemaSnapshot, a parsed dict, or a path to a JSON file."""
    if isinstance(snapshot, SchemaSnapshot):
        return snapshot, "<snapshot>"
    if isinstance(snapshot, dict):
        return parse_snapshot(snapshot), "<snapshot>"
    path = _normalize_path(snapshot)
    return load_snapshot(path), path.name


def _load_overrides(
    root: Optional[Path], config: GateConfig
) -> Tuple[Optional[ReservedWordRegistry], Optional[Lexicons], Dict[str, str]]:
    """Load override files; a malformed one becomes that gate's skip reason."""
    preconditions: Dict[str, str] = {}
    registry: Optional[ReservedWordRegistry] = None
    lexicons: Optional[Lexicons] = None
    try:
        registry = load_reserved_words(root, config.reserved_words_path)
    except GatePreconditionError as exc:
        preconditions[exc.gate] = exc.reason
    try:
        lexicons = load_lexicons(root, config.lexicons_path)
    except GatePreconditionError as exc:
        preconditions[exc.gate] = exc.reason
    return registry, lexicons, preconditions


def _extract(artifact: SchemaArtifact) -> ExtractionResult:
    """Extract one artifact; an extractor bug is confined to that artifact."""
    try:
        return extract_artifact(artifact)
    except Exception as exc:
        logger.exception("Extraction of %s failed", artifact.path)
        return ExtractionResult(parse_notes=[
            ParseNote(artifact.path, None, f"extraction failed: {type(exc).__name__}: {exc}"),
        ])


def _log_parse_notes(notes: List[ParseNote]) -> None:
    for note in notes:
        logger.debug("%s:%s: %s", note.artifact_path, note.line if note.line is not None else "-", note.message)


def locate(root: PathLike, config: Optional[GateConfig] = None) -> List[SchemaArtifact]:
    """
    Discover schema artifacts under a repository root.

    Returns artifacts in discovery order. Raises InvocationError for an
    invalid root and DiscoveryEmpty when nothing is found.
    """
    return locate_artifacts(_normalize_root(root), config or GateConfig())


def validate_snapshot(
    snapshot: SnapshotInput,
    mode: Union[str, Mode] = Mode.FULL,
    config: Optional[GateConfig] = None,
    root: Optional[PathLike] = None,
) -> ValidationReport:
    """
    Validate a live-schema snapshot instead of repository files.

    Args:
        snapshot: SchemaSnapshot, dict, or path to a snapshot JSON file
        mode: "full" or "quick"
        config: run configuration
        root: optional repository root, used only to find override files

    Returns:
        ValidationReport with the same gate semantics as repository validation
    """
    run_mode = _normalize_mode(mode)
    config = config or GateConfig()
    root_path = _normalize_root(root) if root is not None else None
    parsed, label = _coerce_snapshot(snapshot)
    registry, lexicons, preconditions = _load_overrides(root_path, config)

    extraction = snapshot_to_extraction(parsed, label)
    _log_parse_notes(extraction.parse_notes)
    gate_input = GateInput.from_extraction(
        extraction,
        registry=registry,
        lexicons=lexicons,
        preconditions=preconditions,
        require_explicit_charset=config.require_explicit_charset,
    )
    results = run_gates(gate_input, run_mode, parallel=config.parallel_gates, workers=config.workers)
    return aggregate(
        results,
        run_mode,
        source="snapshot",
        artifacts=snapshot_artifacts(parsed),
        parse_notes=extraction.parse_notes,
    )


def validate_repository(
    root: PathLike,
    mode: Union[str, Mode] = Mode.FULL,
    config: Optional[GateConfig] = None,
    snapshot: Optional[SnapshotInput] = None,
    fallback_snapshot: Optional[SnapshotInput] = None,
) -> ValidationReport:
    """
    Validate the schema artifacts committed to a repository.

    Args:
        root: repository root directory
        mode: "full" (all gates) or "quick" (naming and engine/charset only)
        config: run configuration
        snapshot: validate this live-schema snapshot instead of discovered files
        fallback_snapshot: validate this snapshot only if discovery finds nothing

    Returns:
        ValidationReport

    Raises:
        InvocationError: conflicting arguments, invalid root or unreadable snapshot
        DiscoveryEmpty: no artifacts found and no fallback snapshot supplied
    """
    run_mode = _normalize_mode(mode)
    config = config or GateConfig()
    if snapshot is not None and fallback_snapshot is not None:
        raise InvocationError("snapshot and fallback_snapshot are mutually exclusive")
    root_path = _normalize_root(root)

    if snapshot is not None:
        return validate_snapshot(snapshot, run_mode, config, root_path)

    try:
        located = collect_artifacts(root_path, config)
    except DiscoveryEmpty:
        if fallback_snapshot is None:
            raise
        logger.warning("No artifacts found under %s; validating fallback snapshot", root_path)
        return validate_snapshot(fallback_snapshot, run_mode, config, root_path)

    registry, lexicons, preconditions = _load_overrides(root_path, config)
    extraction = merge_extractions(pool_map(_extract, located.artifacts, config.workers))
    parse_notes = located.notes + extraction.parse_notes
    _log_parse_notes(parse_notes)

    gate_input = GateInput.from_extraction(
        extraction,
        registry=registry,
        lexicons=lexicons,
        preconditions=preconditions,
        require_explicit_charset=config.require_explicit_charset,
    )
    results = run_gates(gate_input, run_mode, parallel=config.parallel_gates, workers=config.workers)
    return aggregate(
        results,
        run_mode,
        source="repository",
        artifacts=located.artifacts,
        parse_notes=parse_notes,
        signals=detect_signals(root_path),
    )
