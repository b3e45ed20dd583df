"""The kernel works on text already in memory: no file, process or clock access."""

import re
from pathlib import Path

import pytest

KERNEL_DIR = Path(__file__).resolve().parents[1] / "src" / "schemagate" / "kernel"

# Filesystem reads and walks belong to _internal/io; the kernel only sees SchemaArtifact.raw_text.
IO_PATTERNS = {
    "open(": re.compile(r"(?<![A-Za-z0-9_.])open\s*\("),
    ".read_text(": re.compile(r"\.read_text\s*\("),
    ".read_bytes(": re.compile(r"\.read_bytes\s*\("),
    "os.walk": re.compile(r"\bos\.walk\b"),
    "os.path": re.compile(r"\bos\.path\b"),
    "pathlib": re.compile(r"\bpathlib\b"),
    "yaml": re.compile(r"^\s*(?:import|from)\s+yaml\b", re.MULTILINE),
}

# Output and nondeterminism belong to the CLI and the report writers.
SIDE_EFFECT_PATTERNS = {
    "argparse": re.compile(r"\bargparse\b"),
    "print(": re.compile(r"(?<![A-Za-z0-9_])print\s*\("),
    "warnings.": re.compile(r"\bwarnings\."),
    "datetime.now": re.compile(r"\bdatetime\.now\b"),
    "time.time": re.compile(r"\btime\.time\b"),
    "random": re.compile(r"^\s*(?:import|from)\s+random\b", re.MULTILINE),
}


def _kernel_sources():
    return [(path.name, path.read_text(encoding="utf-8")) for path in sorted(KERNEL_DIR.glob("*.py"))]


def _offenders(patterns):
    return [
        f"{name}: {token}"
        for name, contents in _kernel_sources()
        for token, pattern in patterns.items()
        if pattern.search(contents)
    ]


def test_kernel_modules_are_present():
    names = [name for name, _ in _kernel_sources()]
    assert "extract.py" in names
    assert "gates.py" in names


@pytest.mark.parametrize("patterns", [IO_PATTERNS, SIDE_EFFECT_PATTERNS], ids=["io", "side-effects"])
def test_kernel_has_no_forbidden_calls(patterns):
    offenders = _offenders(patterns)
    assert not offenders, "Forbidden kernel calls found: " + ", ".join(offenders)


def test_io_patterns_catch_file_reads():
    sample = "text = (root / rel).read_text(encoding='utf-8')\nfor d, _, f in os.walk(root):\n    pass\n"
    assert IO_PATTERNS[".read_text("].search(sample)
    assert IO_PATTERNS["os.walk"].search(sample)
    assert not IO_PATTERNS[".read_bytes("].search(sample)
