"""Heuristic word lists used by the antipattern gate.

These are heuristics, not truth: a repository can replace any of them with a
JSON override (see ``schemagate._internal.io.overrides``).
"""

import re
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Lexicons(BaseModel):
    """Word lists for name-based heuristics."""
    business_entities: List[str] = Field(
        default_factory=lambda: ["order", "user", "product", "status", "ticket"],
        description="Substrings marking a table as a mutable business entity",
    )
    monetary: List[str] = Field(
        default_factory=lambda: [
            "price", "cost", "amount", "balance", "fee", "tax", "total", "subtotal", "discount",
        ],
        description="Column name tokens that denote money",
    )
    identifier_suffixes: List[str] = Field(
        default_factory=lambda: ["_id"],
        description="Column name suffixes that denote a key value",
    )
    identifier_names: List[str] = Field(
        default_factory=lambda: ["id"],
        description="Exact column names that denote a key value",
    )
    enum_value_limit: int = Field(5, ge=1, description="ENUM value count above which a lookup table is suggested")

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("business_entities", "monetary", "identifier_suffixes", "identifier_names")
    @classmethod
    def normalize_words(cls, v: List[str]) -> List[str]:
        """Lowercase, strip and reject empty entries."""
        words = []
        for word in v:
            if not isinstance(word, str) or not word.strip():
                raise ValueError("lexicon entries must be non-empty strings")
            words.append(word.strip().lower())
        return words

    def is_business_entity(self, table_name: str) -> bool:
        lowered = table_name.lower()
        return any(word in lowered for word in self.business_entities)

    def is_monetary(self, column_name: str) -> bool:
        tokens = name_tokens(column_name)
        for token in tokens:
            for word in self.monetary:
                if token == word or token == word + "s" or token == word + "es":
                    return True
        return False

    def is_identifier_like(self, column_name: str) -> bool:
        lowered = column_name.lower()
        if lowered in self.identifier_names:
            return True
        return any(lowered.endswith(suffix) for suffix in self.identifier_suffixes)


_BOUNDARY_RE = re.compile(r"[^A-Za-z0-9]+")
_CAMEL_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def name_tokens(name: str) -> List[str]:
    """Split a name into lowercase words on separators and case changes."""
    tokens: List[str] = []
    for chunk in _BOUNDARY_RE.split(name):
        tokens.extend(part.lower() for part in _CAMEL_RE.findall(chunk))
    return tokens
