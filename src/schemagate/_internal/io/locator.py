"""Artifact discovery (internal).

Each discovery strategy is a plain function over a pruned listing of the
repository. Strategies are independent: they run on a thread pool and their
results are folded back in declaration order, deduplicated by resolved path
with the first occurrence winning.
"""

import fnmatch
import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

from schemagate.config import GateConfig
from schemagate.contracts import Signal
from schemagate.errors import DiscoveryEmpty
from schemagate.kernel.model import ArtifactKind, ParseNote, SchemaArtifact
from schemagate._internal.io.changelog import changelog_references, compose_database_images

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

PAIRED_UP_RE = re.compile(r"^(\d+)_(.+)\.up\.sql$", re.IGNORECASE)
PAIRED_DOWN_RE = re.compile(r"^(\d+)_(.+)\.down\.sql$", re.IGNORECASE)
DIESEL_DIR_RE = re.compile(r"^\d[\d_-]*_[\w-]+$")
TIMESTAMPED_RE = re.compile(r"^\d{14}_.+\.sql$", re.IGNORECASE)
VERSIONED_RE = re.compile(r"^V(\d+(?:[._]\d+)*)__(.+)\.sql$")
UNDO_RE = re.compile(r"^U(\d+(?:[._]\d+)*)__(.+)\.sql$")
CHANGELOG_RE = re.compile(r"changelog.*\.(xml|ya?ml|json)$", re.IGNORECASE)
COMPOSE_FILES = ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")

# Directories whose .sql files are migrations, never dumps.
MIGRATION_DIRECTORY_NAMES = {"migrations", "migration", "migrate", "changelog", "changelogs", "changes"}


@dataclass(frozen=True)
class RepoTree:
    """Pruned, sorted listing of every file under a root (POSIX relative paths)."""
    root: Path
    files: Tuple[str, ...]
    file_set: FrozenSet[str] = frozenset()

    def exists(self, rel: str) -> bool:
        return rel in self.file_set


@dataclass(frozen=True)
class DiscoveredPath:
    path: str  # POSIX, relative to the root
    kind: ArtifactKind
    strategy: str
    rollback: Optional[str] = None


@dataclass(frozen=True)
class DiscoveryStrategy:
    """A named discovery rule; `find` is a pure function of the tree and config."""
    name: str
    searched: str  # human description used in DiscoveryEmpty guidance
    find: Callable[[RepoTree, GateConfig], List[DiscoveredPath]]


def walk_repository(root: Path, excluded: Iterable[str]) -> RepoTree:
    """List files under `root`, pruning excluded directory names."""
    excluded_names = set(excluded)
    files: List[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded_names)
        rel_dir = Path(dirpath).relative_to(root).as_posix()
        for name in filenames:
            files.append(name if rel_dir == "." else f"{rel_dir}/{name}")
    files.sort()
    return RepoTree(root=root, files=tuple(files), file_set=frozenset(files))


def _name(rel: str) -> str:
    return PurePosixPath(rel).name


def _parent(rel: str) -> str:
    parent = PurePosixPath(rel).parent.as_posix()
    return "" if parent == "." else parent


def _join(directory: str, name: str) -> str:
    return f"{directory}/{name}" if directory else name


def is_migration_name(rel: str) -> bool:
    """Whether a file follows one of the migration naming conventions."""
    name = _name(rel)
    if PAIRED_UP_RE.match(name) or PAIRED_DOWN_RE.match(name):
        return True
    if TIMESTAMPED_RE.match(name) or VERSIONED_RE.match(name) or UNDO_RE.match(name):
        return True
    if name.lower() in ("up.sql", "down.sql") and DIESEL_DIR_RE.match(_name(_parent(rel)) or ""):
        return True
    return False


def find_schema_dumps(tree: RepoTree, config: GateConfig) -> List[DiscoveredPath]:
    patterns = [p.lower() for p in config.dump_patterns]
    directories = {d.lower() for d in config.dump_directories}
    found = []
    for rel in tree.files:
        name = _name(rel).lower()
        if not name.endswith(".sql") or is_migration_name(rel):
            continue
        parents = [part.lower() for part in PurePosixPath(rel).parts[:-1]]
        if MIGRATION_DIRECTORY_NAMES.intersection(parents):
            continue
        if any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns) or directories.intersection(parents):
            found.append(DiscoveredPath(rel, ArtifactKind.SCHEMA_DUMP, "schema_dump"))
    return found


def find_paired_migrations(tree: RepoTree, config: GateConfig) -> List[DiscoveredPath]:
    found = []
    for rel in tree.files:
        name = _name(rel)
        directory = _parent(rel)
        match = PAIRED_UP_RE.match(name)
        if match:
            down = _join(directory, name[: -len(".up.sql")] + ".down.sql")
            found.append(DiscoveredPath(
                rel, ArtifactKind.MIGRATION, "paired", down if tree.exists(down) else None,
            ))
            continue
        if name.lower() == "up.sql" and DIESEL_DIR_RE.match(_name(directory) or ""):
            down = _join(directory, "down.sql")
            found.append(DiscoveredPath(
                rel, ArtifactKind.MIGRATION, "paired", down if tree.exists(down) else None,
            ))
    return found


def find_timestamped_migrations(tree: RepoTree, config: GateConfig) -> List[DiscoveredPath]:
    found = []
    for rel in tree.files:
        name = _name(rel)
        if TIMESTAMPED_RE.match(name) and not (PAIRED_UP_RE.match(name) or PAIRED_DOWN_RE.match(name)):
            found.append(DiscoveredPath(rel, ArtifactKind.MIGRATION, "timestamped"))
    return found


def find_versioned_migrations(tree: RepoTree, config: GateConfig) -> List[DiscoveredPath]:
    found = []
    for rel in tree.files:
        name = _name(rel)
        if VERSIONED_RE.match(name):
            undo = _join(_parent(rel), "U" + name[1:])
            found.append(DiscoveredPath(
                rel, ArtifactKind.MIGRATION, "versioned", undo if tree.exists(undo) else None,
            ))
    return found


def _resolve_reference(tree: RepoTree, changelog: str, ref: str) -> Optional[str]:
    ref = ref.replace("\\", "/")
    for base in (_parent(changelog), ""):
        candidate = os.path.normpath(_join(base, ref)).replace(os.sep, "/")
        if candidate.startswith("../"):
            continue
        if tree.exists(candidate):
            return candidate
    return None


def _resolve_directory(tree: RepoTree, changelog: str, ref: str) -> List[str]:
    ref = ref.replace("\\", "/").rstrip("/")
    for base in (_parent(changelog), ""):
        directory = os.path.normpath(_join(base, ref)).replace(os.sep, "/")
        if directory.startswith("../"):
            continue
        prefix = directory + "/" if directory not in ("", ".") else ""
        matches = [f for f in tree.files if f.startswith(prefix) and f.lower().endswith(".sql")]
        if matches:
            return matches
    return []


def find_changelog_includes(tree: RepoTree, config: GateConfig) -> List[DiscoveredPath]:
    found = []
    seen: Set[str] = set()
    for rel in tree.files:
        if not CHANGELOG_RE.search(_name(rel)):
            continue
        try:
            text = (tree.root / rel).read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Cannot read changelog %s: %s", rel, exc)
            continue
        referenced: List[str] = []
        for kind, ref in changelog_references(rel, text):
            if ref.lower().endswith(".sql"):
                resolved = _resolve_reference(tree, rel, ref)
                if resolved:
                    referenced.append(resolved)
            elif kind == "directory":
                referenced.extend(_resolve_directory(tree, rel, ref))
        for path in referenced:
            if path not in seen:
                seen.add(path)
                found.append(DiscoveredPath(path, ArtifactKind.MIGRATION, "changelog"))
    found.sort(key=lambda d: d.path)
    return found


def find_orm_schemas(tree: RepoTree, config: GateConfig) -> List[DiscoveredPath]:
    found = []
    for rel in tree.files:
        name = _name(rel)
        if name == "schema.prisma":
            found.append(DiscoveredPath(rel, ArtifactKind.ORM_SCHEMA, "orm"))
        elif name == "schema.rb" and _name(_parent(rel)) == "db":
            found.append(DiscoveredPath(rel, ArtifactKind.ORM_SCHEMA, "orm"))
    return found


STRATEGIES: Tuple[DiscoveryStrategy, ...] = (
    DiscoveryStrategy(
        "schema_dump",
        "schema dumps: schema.sql, structure.sql, *schema*.sql, *dump*.sql, or *.sql under "
        "schema/, schemas/, sql/, db/, database/",
        find_schema_dumps,
    ),
    DiscoveryStrategy(
        "paired",
        "paired migrations: <n>_<name>.up.sql + .down.sql, <version>_<name>/up.sql + down.sql",
        find_paired_migrations,
    ),
    DiscoveryStrategy(
        "timestamped",
        "timestamped migrations: <YYYYMMDDhhmmss>_<name>.sql (-- migrate:up / -- migrate:down)",
        find_timestamped_migrations,
    ),
    DiscoveryStrategy(
        "versioned",
        "versioned migrations: V<version>__<desc>.sql with undo U<version>__<desc>.sql",
        find_versioned_migrations,
    ),
    DiscoveryStrategy(
        "changelog",
        "changelog includes: *changelog*.xml|yaml|yml|json referencing .sql files",
        find_changelog_includes,
    ),
    DiscoveryStrategy(
        "orm",
        "ORM schema files: schema.prisma, db/schema.rb",
        find_orm_schemas,
    ),
)


def searched_locations() -> List[str]:
    return [strategy.searched for strategy in STRATEGIES]


def pool_map(func: Callable[[T], R], items: Sequence[T], workers: int) -> List[R]:
    """Map on a bounded pool; results come back in input order."""
    if workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as executor:
        return list(executor.map(func, items))


def discover(tree: RepoTree, config: GateConfig) -> List[DiscoveredPath]:
    """Run every strategy and fold the union in declaration order."""
    per_strategy = pool_map(lambda s: sorted(s.find(tree, config), key=lambda d: d.path), STRATEGIES, config.workers)
    union: List[DiscoveredPath] = []
    seen: Set[str] = set()
    for strategy, found in zip(STRATEGIES, per_strategy):
        logger.debug("Strategy %s found %d artifact(s)", strategy.name, len(found))
        for item in found:
            canonical = str((tree.root / item.path).resolve())
            if canonical in seen:
                continue
            seen.add(canonical)
            union.append(item)
    return union


@dataclass(frozen=True)
class LocatedArtifacts:
    """Artifacts that could be read, plus one note per file that could not."""
    artifacts: List[SchemaArtifact]
    notes: List[ParseNote]


def _unreadable(rel: str, exc: OSError) -> ParseNote:
    logger.warning("Cannot read %s: %s", rel, exc)
    return ParseNote(artifact_path=rel, line=None, message=f"cannot read {rel}: {exc.strerror or exc}")


def read_artifact(root: Path, found: DiscoveredPath) -> Tuple[Optional[SchemaArtifact], List[ParseNote]]:
    """Read one discovered artifact and its rollback companion.

    A file that cannot be read (dangling symlink, permissions) comes back as a
    parse note; the artifact, or only its rollback, is left out.
    """
    try:
        text = _read_text(root / found.path)
    except OSError as exc:
        return None, [_unreadable(found.path, exc)]
    notes: List[ParseNote] = []
    rollback = None
    if found.rollback is not None:
        try:
            rollback = SchemaArtifact(
                path=found.rollback,
                kind=ArtifactKind.MIGRATION,
                raw_text=_read_text(root / found.rollback),
                strategy=found.strategy,
            )
        except OSError as exc:
            notes.append(_unreadable(found.rollback, exc))
    artifact = SchemaArtifact(
        path=found.path,
        kind=found.kind,
        raw_text=text,
        strategy=found.strategy,
        rollback=rollback,
    )
    return artifact, notes


def _read_text(path: Path) -> str:
    data = path.read_bytes()
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("%s is not valid UTF-8; undecodable bytes replaced", path)
        return data.decode("utf-8", errors="replace")


def collect_artifacts(root: Path, config: Optional[GateConfig] = None) -> LocatedArtifacts:
    """Discover and read every schema artifact under `root`.

    Raises DiscoveryEmpty when no strategy finds anything.
    """
    config = config or GateConfig()
    tree = walk_repository(root, config.excluded_directories)
    found = discover(tree, config)
    if not found:
        raise DiscoveryEmpty(str(root), searched_locations())
    logger.info("Discovered %d artifact(s) under %s", len(found), root)
    artifacts: List[SchemaArtifact] = []
    notes: List[ParseNote] = []
    for artifact, read_notes in pool_map(lambda item: read_artifact(root, item), found, config.workers):
        if artifact is not None:
            artifacts.append(artifact)
        notes.extend(read_notes)
    return LocatedArtifacts(artifacts=artifacts, notes=notes)


def locate_artifacts(root: Path, config: Optional[GateConfig] = None) -> List[SchemaArtifact]:
    """The readable artifacts of collect_artifacts, in discovery order."""
    return collect_artifacts(root, config).artifacts


def detect_signals(root: Path) -> List[Signal]:
    """docker-compose files at the root that run a MySQL or MariaDB image."""
    signals = []
    for name in COMPOSE_FILES:
        path = root / name
        if not path.is_file():
            continue
        try:
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            logger.warning("Cannot read %s: %s", name, exc)
            continue
        for image, flavor in compose_database_images(name, text):
            signals.append(Signal(path=name, kind="compose_database", detail=f"docker-compose: {flavor} image ({image})"))
    return signals
