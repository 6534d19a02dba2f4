"""Identifier helpers: database names to code identifiers, glob filters, SQL quoting."""

from __future__ import annotations

import logging
import re
from typing import Iterable

logger = logging.getLogger(__name__)

_NON_LETTER_PLACEHOLDER = "_x"

_BARE_IDENTIFIER_RE = re.compile(r"^[a-z_]+$")

# Words kept fully upper case when joined into an identifier
COMMON_INITIALISMS = frozenset({
    "ACL", "API", "ASCII", "CPU", "CSS", "DNS", "EOF", "GUID", "HTML", "HTTP",
    "HTTPS", "ID", "IP", "JSON", "LHS", "QPS", "RAM", "RHS", "RPC", "SLA",
    "SMTP", "SQL", "SSH", "TCP", "TLS", "TTL", "UDP", "UI", "UID", "UUID",
    "URI", "URL", "UTF8", "VM", "XML", "XMPP", "XSRF", "XSS",
})


def replace_non_letters(raw: str) -> str:
    """Replace every character that isn't a letter or an underscore with a placeholder.

    Digits of any script (superscripts, roman numerals) are replaced too.
    """
    return "".join(c if c.isalpha() or c == "_" else _NON_LETTER_PLACEHOLDER for c in raw)


def snake_to_camel(name: str) -> str:
    """Join snake_case words into PascalCase, upper-casing common initialisms."""
    words = []
    for word in name.split("_"):
        if not word:
            continue
        if word.upper() in COMMON_INITIALISMS:
            words.append(word.upper())
        else:
            words.append(word[:1].upper() + word[1:])
    return "".join(words)


class IdentifierNormalizer:
    """Memoized, collision-free mapping from raw database names to identifiers.

    The same raw name always maps to the same identifier within one run, and
    two different raw names never share an identifier: a later name whose
    converted form is already taken gets the smallest free numeric suffix
    starting at 2.
    """

    def __init__(self) -> None:
        self._mapping: dict[str, str] = {}
        self._seen: set[str] = set()

    def __call__(self, raw: str) -> str:
        return self.normalize(raw)

    def normalize(self, raw: str) -> str:
        mapped = self._mapping.get(raw)
        if mapped is not None:
            return mapped

        candidate = snake_to_camel(replace_non_letters(raw))
        if candidate in self._seen:
            i = 2
            while f"{candidate}{i}" in self._seen:
                i += 1
            logger.debug(f"Identifier {candidate} already taken, using {candidate}{i} for '{raw}'")
            candidate = f"{candidate}{i}"

        self._seen.add(candidate)
        self._mapping[raw] = candidate
        return candidate


def glob_regexp(patterns: Iterable[str]) -> str:
    """Convert glob patterns (only * is special) into one anchored regex."""
    parts = [re.escape(p).replace(r"\*", ".*") for p in patterns]
    return "^(" + "|".join(parts) + ")$"


def table_patterns(include: Iterable[str], exclude: Iterable[str]) -> tuple[list[str], list[str]]:
    """Qualify table globs with a schema: includes default to public, excludes to any schema."""
    include = list(include) or ["public.*"]
    include = [p if "." in p else f"public.{p}" for p in include]
    exclude = [p if "." in p else f"*.{p}" for p in exclude]
    return include, exclude


def maybe_quote(name: str) -> str:
    """Double-quote an identifier unless it's plain lower case and underscores."""
    if _BARE_IDENTIFIER_RE.match(name):
        return name
    return '"' + name.replace('"', '""') + '"'


def unquote(name: str) -> str:
    if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
        return name[1:-1].replace('""', '"')
    return name
