from __future__ import annotations

import re

# One match per word piece, scanning left to right:
# - an uppercase run that ends where a Capitalized word starts: "HTTP" in "HTTPResponse", "O" in "OAuth"
# - an optionally Capitalized lowercase run: "camel", "Case"
# - a trailing uppercase run: "CASE" in "MixedCASE"
# - a digit run: "123"
# Everything else (whitespace, "_", "-", punctuation, non-ASCII) separates tokens.
_PIECE_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def tokenize(text: str, *, min_len: int = 1) -> list[str]:
    """Split text or code identifiers into lowercase word tokens.

    camelCase, PascalCase, snake_case, kebab-case and letter/digit boundaries
    all split the same way, so "DetailListingExtractor" and
    "detail listing extractor" tokenize identically.

    Examples:
        >>> tokenize("OAuth2Token")
        ['o', 'auth', '2', 'token']
        >>> tokenize("getUserById123_v2")
        ['get', 'user', 'by', 'id', '123', 'v', '2']
    """
    if not text:
        return []
    out: list[str] = []
    for m in _PIECE_RE.finditer(text):
        tok = m.group(0).lower()
        if len(tok) < min_len:
            continue
        out.append(tok)
    return out
