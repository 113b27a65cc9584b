"""Checks for caller-supplied SQL.

Applied to the query text given to ``fetch_with_sql``. Statements the
engine builds itself are never sanitized.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from row_persist.core.exceptions import SQLSanitizationError

# Matches the first SQL keyword (used for verb allow-listing)
_FIRST_KEYWORD = re.compile(r"^\s*(\w+)")

# quote character -> token kind
_QUOTES = {"'": "string", '"': "identifier", "`": "identifier"}

# A line comment keeps its newline; an unclosed block comment runs to the end
_COMMENT = re.compile(r"--[^\n]*|/\*.*?(?:\*/|\Z)", re.DOTALL)


def _tokenize(sql: str) -> list[tuple[str, str]]:
    """Split *sql* into ``string``, ``identifier`` and ``code`` tokens.

    Quoted sections keep their doubled-quote escapes verbatim.

    Raises:
        SQLSanitizationError: On an unterminated literal or identifier.
    """
    tokens: list[tuple[str, str]] = []
    i = last = 0
    n = len(sql)

    while i < n:
        quote = sql[i]
        if quote not in _QUOTES:
            i += 1
            continue
        if i > last:
            tokens.append(("code", sql[last:i]))
        j = i + 1
        closed = False
        while j < n:
            if sql[j] == quote:
                if j + 1 < n and sql[j + 1] == quote:
                    j += 2
                    continue
                closed = True
                j += 1
                break
            j += 1
        if not closed:
            raise SQLSanitizationError(f"Unterminated {_QUOTES[quote]} ({quote}) in SQL")
        tokens.append((_QUOTES[quote], sql[i:j]))
        last = i = j

    if last < n:
        tokens.append(("code", sql[last:]))
    return tokens


def _strip_comments_in_code(code: str) -> str:
    """Remove ``--`` line comments and ``/* */`` block comments from a code segment."""
    return _COMMENT.sub(lambda m: " " if m.group().startswith("/*") else "", code)


def _strip_comments(sql: str) -> str:
    """Remove SQL comments while preserving string literals and identifiers."""
    return "".join(
        content if kind != "code" else _strip_comments_in_code(content)
        for kind, content in _tokenize(sql)
    )


def _check_single_statement(sql: str) -> None:
    """Raise if *sql* contains a semicolon followed by more content."""
    tokens = _tokenize(sql)
    for n, (kind, content) in enumerate(tokens):
        if kind != "code" or ";" not in content:
            continue
        rest = content[content.index(";") + 1 :] + "".join(c for _, c in tokens[n + 1 :])
        if rest.strip().strip(";").strip():
            raise SQLSanitizationError("Multiple SQL statements are not permitted")


def _check_verb(sql: str, allowed: frozenset[str]) -> None:
    """Raise if the leading SQL keyword is not in *allowed*."""
    m = _FIRST_KEYWORD.match(sql)
    verb = m.group(1).upper() if m else ""
    if verb not in allowed:
        raise SQLSanitizationError(
            f"SQL verb '{verb}' is not permitted; allowed: {sorted(allowed)}"
        )


@dataclass
class SQLSanitizer:
    """Configurable sanitizer for caller-supplied SQL.

    This is not an injection guard: values must still be passed as
    ``:name`` parameters, never formatted into the text.

    Attributes:
        strip_comments: Strip ``--`` and ``/* */`` comments first.
        block_multiple_statements: Reject a ``;`` followed by more SQL.
        allowed_verbs: Permitted first keywords. ``None`` means any.
    """

    strip_comments: bool = True
    block_multiple_statements: bool = True
    allowed_verbs: frozenset[str] | None = frozenset({"SELECT", "WITH"})

    def sanitize(self, sql: str) -> str:
        """Apply all configured checks to *sql* and return the cleaned SQL.

        Raises:
            SQLSanitizationError: If any enabled check fails.
        """
        if self.strip_comments:
            sql = _strip_comments(sql)
        if self.block_multiple_statements:
            _check_single_statement(sql)
        if self.allowed_verbs is not None:
            _check_verb(sql, self.allowed_verbs)
        return sql.strip().rstrip(";").rstrip()
