"""Tolerant SQL text handling: statement splitting, comments and identifiers.

This is not a SQL grammar. It only knows enough about quoting, comments and
DELIMITER to cut a script into statements without being fooled by a ``;``
inside a string, and it keeps comments aside (with line numbers) so callers
can look for annotations next to a statement.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class Comment:
    line: int
    text: str  # comment body without the leading marker
    end_line: int = 0

    @property
    def last_line(self) -> int:
        return max(self.line, self.end_line)


@dataclass
class RawStatement:
    """A statement with comments blanked out.

    `text` keeps every newline of the original so that offsets can be mapped
    back to source lines with :meth:`line_at`.
    """
    text: str
    start_line: int  # line on which `text` begins
    end_line: int  # line of the terminating delimiter
    comments: List[Comment] = field(default_factory=list)

    @property
    def line(self) -> int:
        """Line of the first non-blank character."""
        stripped = len(self.text) - len(self.text.lstrip())
        return self.line_at(stripped)

    def line_at(self, offset: int) -> int:
        return self.start_line + self.text.count("\n", 0, max(offset, 0))

    @property
    def body(self) -> str:
        return self.text.strip()


_DELIMITER_RE = re.compile(r"^[ \t]*DELIMITER[ \t]+(\S+)[ \t]*$", re.IGNORECASE | re.MULTILINE)


def split_statements(sql: str) -> Tuple[List[RawStatement], List[Comment]]:
    """Split a script into statements.

    Returns the statements and the full list of comments. Each statement also
    carries the comments found between the previous terminator and its own;
    a comment that starts on the same line as a terminator belongs to the
    statement that terminator closes.
    """
    statements: List[RawStatement] = []
    all_comments: List[Comment] = []
    delimiter = ";"

    buf: List[str] = []
    has_content = False
    pending: List[Comment] = []
    start_line = 1
    line = 1
    last_terminator_line = 0
    at_line_start = True
    i = 0
    n = len(sql)

    def flush(end_line: int) -> None:
        nonlocal buf, pending, has_content
        if has_content:
            statements.append(RawStatement(
                text="".join(buf), start_line=start_line, end_line=end_line, comments=pending,
            ))
            pending = []
        buf = []
        has_content = False

    def add_comment(comment: Comment) -> None:
        all_comments.append(comment)
        if comment.line == last_terminator_line and statements and not has_content:
            statements[-1].comments.append(comment)
        else:
            pending.append(comment)

    while i < n:
        ch = sql[i]

        if at_line_start and not has_content:
            match = _DELIMITER_RE.match(sql, i)
            if match:
                flush(line)
                delimiter = match.group(1)
                i = match.end()
                at_line_start = False
                continue

        if ch == "#" or sql.startswith("--", i):
            end = sql.find("\n", i)
            if end < 0:
                end = n
            marker = 1 if ch == "#" else 2
            add_comment(Comment(line=line, text=sql[i + marker:end].strip()))
            buf.append(" " * (end - i))
            i = end
            at_line_start = False
            continue

        if sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            end = n if end < 0 else end + 2
            chunk = sql[i:end]
            body = chunk[2:-2] if chunk.endswith("*/") else chunk[2:]
            add_comment(Comment(line=line, text=body.strip(), end_line=line + chunk.count("\n")))
            # keep newlines so line numbers stay right
            buf.append(re.sub(r"[^\n]", " ", chunk))
            line += chunk.count("\n")
            i = end
            at_line_start = False
            continue

        if ch in ("'", '"', "`"):
            j = i + 1
            while j < n:
                c = sql[j]
                if c == "\\" and ch != "`":
                    j += 2
                    continue
                if c == ch:
                    if j + 1 < n and sql[j + 1] == ch:
                        j += 2
                        continue
                    break
                j += 1
            chunk = sql[i:j + 1]
            buf.append(chunk)
            has_content = True
            line += chunk.count("\n")
            i = j + 1
            at_line_start = False
            continue

        if sql.startswith(delimiter, i):
            flush(line)
            last_terminator_line = line
            start_line = line
            i += len(delimiter)
            at_line_start = False
            continue

        if ch == "\n":
            line += 1
            at_line_start = True
            if has_content:
                buf.append(ch)
            else:
                # leading blank and comment-only lines are not part of the statement
                buf = []
                start_line = line
        else:
            buf.append(ch)
            if ch not in " \t\r":
                has_content = True
                at_line_start = False
        i += 1

    flush(line)
    return statements, all_comments


def unquote_identifier(token: str) -> str:
    """Strip backticks/double quotes and any schema qualifier: ```db`.`t``` -> ``t``."""
    token = token.strip()
    parts = split_qualified(token)
    name = parts[-1] if parts else token
    if len(name) >= 2 and name[0] == name[-1] and name[0] in ("`", '"', "'"):
        name = name[1:-1].replace(name[0] * 2, name[0])
    return name


def split_qualified(token: str) -> List[str]:
    parts: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    for ch in token:
        if quote:
            current.append(ch)
            if ch == quote:
                quote = None
            continue
        if ch in ("`", '"'):
            quote = ch
            current.append(ch)
        elif ch == ".":
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return [p for p in parts if p]


IDENT = r"(?:`(?:[^`]|``)+`|\"[^\"]+\"|[A-Za-z0-9_$\u0080-\uffff]+)"
QUALIFIED_IDENT = rf"{IDENT}(?:\s*\.\s*{IDENT})?"


def find_matching_paren(text: str, open_idx: int) -> int:
    """Index of the parenthesis closing the one at `open_idx` (or -1)."""
    depth = 0
    quote: Optional[str] = None
    for idx in range(open_idx, len(text)):
        ch = text[idx]
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"', "`"):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return idx
    return -1


def split_top_level(text: str, sep: str = ",") -> List[Tuple[int, str]]:
    """Split on `sep` outside parentheses and quotes.

    Returns ``(offset, part)`` pairs so callers can map parts to lines.
    """
    parts: List[Tuple[int, str]] = []
    depth = 0
    quote: Optional[str] = None
    start = 0
    for idx, ch in enumerate(text):
        if quote:
            if ch == quote:
                quote = None
            continue
        if ch in ("'", '"', "`"):
            quote = ch
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == sep and depth == 0:
            parts.append((start, text[start:idx]))
            start = idx + 1
    parts.append((start, text[start:]))
    return parts


def leading_offset(part: str) -> int:
    """Number of whitespace characters before the first token of `part`."""
    return len(part) - len(part.lstrip())
