"""
Proxy tag matching.

Picks the persona a message should be relayed as, by the prefix/suffix tags
wrapped around its text.
"""

import re
from typing import Optional, Sequence

from .models import Candidate, Match

# A leading mention followed by whitespace, e.g. "<@123> [text]" or "@Alice [text]"
LEADING_MENTION_RE = re.compile(r"^(<@!?\d+>|@[^\s<>]+)\s+")


def split_leading_mention(text: str) -> tuple[Optional[str], str]:
    """Return (mention, remainder) if the text starts with an account mention."""
    found = LEADING_MENTION_RE.match(text)
    if not found:
        return None, text
    return found.group(1), text[found.end() :]


def _first_fit(text: str, ordered: Sequence[Candidate]) -> Optional[Match]:
    for candidate in ordered:
        prefix = candidate.prefix or ""
        suffix = candidate.suffix or ""
        if len(text) < len(prefix) + len(suffix):
            continue
        if not (text.startswith(prefix) and text.endswith(suffix)):
            continue
        inner = text[len(prefix) : len(text) - len(suffix)]
        return Match(candidate=candidate, inner_text=inner)
    return None


def match_tags(text: str, candidates: Sequence[Candidate]) -> Optional[Match]:
    """
    Find the candidate whose tags wrap the message text.

    Candidates are tried from the longest combined prefix+suffix down, so the
    most specific tag wins. Candidates with equal tag length keep the order
    they were given in. The first candidate that fits is returned.

    The full text is tried first, so tags that themselves start with "@" still
    match. Failing that, a leading mention is set aside, the remainder is
    matched, and the mention is moved inside the relayed text.

    Args:
        text: Raw message content
        candidates: Personas of the sending account, in lookup order

    Returns:
        Match with the inner text, or None if no tag fits
    """
    tagged = [c for c in candidates if c.has_tags]
    # sorted() is stable, equal lengths keep input order
    ordered = sorted(tagged, key=lambda c: c.tag_length, reverse=True)

    match = _first_fit(text, ordered)
    if match is not None:
        return match

    leading_mention, remainder = split_leading_mention(text)
    if leading_mention is None:
        return None

    match = _first_fit(remainder, ordered)
    if match is None:
        return None
    return Match(
        candidate=match.candidate, inner_text=f"{leading_mention} {match.inner_text}"
    )
