"""Repository override files: reserved words and heuristic lexicons (internal).

A missing override falls back to the built-in list. A malformed override is a
gate precondition failure: the owning gate is skipped, the others still run.
"""

import json
import logging
from pathlib import Path
from typing import Optional, Tuple

from pydantic import ValidationError

from schemagate.errors import GatePreconditionError, InvocationError
from schemagate.kernel.gate_antipattern import GATE_NAME as ANTIPATTERN_GATE
from schemagate.kernel.gate_naming import GATE_NAME as NAMING_GATE
from schemagate.kernel.lexicons import Lexicons
from schemagate.kernel.reserved_words import ReservedWordRegistry, parse_word_list

logger = logging.getLogger(__name__)

RESERVED_WORD_LOCATIONS: Tuple[str, ...] = ("docs/db/mysql-reserved-words.txt", ".mysql/reserved-words.txt")
LEXICON_LOCATIONS: Tuple[str, ...] = ("docs/db/mysql-lexicons.json", ".mysql/lexicons.json")


def _find_override(root: Optional[Path], explicit: Optional[str], conventional: Tuple[str, ...]) -> Optional[Path]:
    if explicit:
        path = Path(explicit)
        if not path.is_absolute() and root is not None and not path.exists():
            path = root / path
        if not path.is_file():
            raise InvocationError(f"Override file not found: {explicit}")
        return path
    if root is None:
        return None
    for rel in conventional:
        candidate = root / rel
        if candidate.is_file():
            return candidate
    return None


def _display(path: Path, root: Optional[Path]) -> str:
    if root is not None:
        try:
            return path.resolve().relative_to(root.resolve()).as_posix()
        except ValueError:
            pass
    return str(path)


def load_reserved_words(root: Optional[Path], explicit: Optional[str] = None) -> ReservedWordRegistry:
    """Load the reserved-word registry for a repository.

    Raises GatePreconditionError (naming gate) for an override that is not
    UTF-8, has a non-identifier line, or lists no words.
    """
    path = _find_override(root, explicit, RESERVED_WORD_LOCATIONS)
    if path is None:
        return ReservedWordRegistry.builtin()

    origin = _display(path, root)
    try:
        text = path.read_bytes().decode("utf-8")
    except UnicodeDecodeError as exc:
        raise GatePreconditionError(
            NAMING_GATE, f"reserved-word override {origin} is not valid UTF-8 ({exc.reason})", origin,
        ) from exc
    try:
        words = parse_word_list(text)
    except ValueError as exc:
        raise GatePreconditionError(NAMING_GATE, f"reserved-word override {origin} is malformed: {exc}", origin) from exc
    if not words:
        raise GatePreconditionError(NAMING_GATE, f"reserved-word override {origin} lists no words", origin)

    logger.info("Using reserved-word override %s (%d words)", origin, len(words))
    return ReservedWordRegistry.from_words(words, origin=origin)


def load_lexicons(root: Optional[Path], explicit: Optional[str] = None) -> Lexicons:
    """Load heuristic lexicons; missing keys keep their defaults.

    Raises GatePreconditionError (antipattern gate) for unreadable JSON or
    unknown/invalid keys.
    """
    path = _find_override(root, explicit, LEXICON_LOCATIONS)
    if path is None:
        return Lexicons()

    origin = _display(path, root)
    try:
        data = json.loads(path.read_bytes().decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise GatePreconditionError(ANTIPATTERN_GATE, f"lexicon override {origin} is not valid JSON: {exc}", origin) from exc
    if not isinstance(data, dict):
        raise GatePreconditionError(ANTIPATTERN_GATE, f"lexicon override {origin} must be a JSON object", origin)
    try:
        lexicons = Lexicons(**data)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise GatePreconditionError(ANTIPATTERN_GATE, f"lexicon override {origin} is invalid: {errors}", origin) from exc

    logger.info("Using lexicon override %s", origin)
    return lexicons
