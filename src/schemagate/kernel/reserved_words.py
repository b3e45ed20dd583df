"""Reserved-word registry.

The built-in list is a curated subset of MySQL keywords that most often
collide with table and column names. It is not, and never claims to be, the
full keyword list of any server version.
"""

import re
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Literal, Optional

BUILTIN_RESERVED_WORDS: FrozenSet[str] = frozenset({
    "add", "all", "alter", "analyze", "and", "as", "asc", "before", "between", "both",
    "by", "call", "cascade", "case", "change", "check", "collate", "column", "condition",
    "constraint", "convert", "create", "cross", "cube", "current_date", "current_time",
    "current_timestamp", "current_user", "database", "default", "delete", "desc", "describe",
    "distinct", "div", "drop", "dual", "each", "else", "elseif", "exists", "explain",
    "fetch", "for", "force", "foreign", "from", "fulltext", "function", "generated", "grant", "group",
    "groups", "having", "if", "ignore", "in", "index", "inner", "insert", "interval", "into",
    "is", "join", "key", "keys", "kill", "lag", "lead", "leave", "left", "like", "limit",
    "lines", "load", "lock", "match", "mod", "natural", "not", "null", "of", "on",
    "option", "or", "order", "outer", "over", "partition", "primary", "range", "rank",
    "read", "references", "regexp", "release", "rename", "repeat", "replace", "require",
    "return", "revoke", "right", "rlike", "row", "rows", "schema", "select", "separator",
    "set", "show", "signal", "system", "table", "then", "to", "trigger", "union", "unique",
    "unlock", "update", "usage", "use", "using", "values", "when", "where", "while",
    "window", "with", "write", "xor",
})

_WORD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")


def is_valid_word(word: str) -> bool:
    return bool(_WORD_RE.match(word))


@dataclass(frozen=True)
class ReservedWordRegistry:
    """Immutable set of risky identifiers.

    `source` tells whether the list came from a repository override or the
    built-in subset; either way the list is non-exhaustive.
    """
    words: FrozenSet[str]
    source: Literal["builtin", "override"] = "builtin"
    origin: Optional[str] = None  # override path, if any

    exhaustive = False

    @classmethod
    def builtin(cls) -> "ReservedWordRegistry":
        return cls(words=BUILTIN_RESERVED_WORDS, source="builtin")

    @classmethod
    def from_words(cls, words: Iterable[str], origin: Optional[str] = None) -> "ReservedWordRegistry":
        return cls(words=frozenset(w.lower() for w in words), source="override", origin=origin)

    def lookup(self, name: str) -> bool:
        """Case-insensitive exact match."""
        return name.lower() in self.words

    def describe(self) -> str:
        if self.source == "override":
            return f"reserved-word list: repository override {self.origin} ({len(self.words)} words, non-exhaustive)"
        return f"reserved-word list: built-in curated subset ({len(self.words)} words, non-exhaustive)"


def parse_word_list(text: str) -> list:
    """Parse an override list: one word per line, ``#`` comments, blank lines ignored.

    Raises ValueError naming the first offending line.
    """
    words = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        if not is_valid_word(line):
            raise ValueError(f"line {lineno}: {raw.strip()!r} is not a single identifier")
        words.append(line)
    return words
