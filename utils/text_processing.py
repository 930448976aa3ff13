# koppla/utils/text_processing.py

import re
import unicodedata
from typing import Any, Dict, Iterable, List

from config.constants import LEGAL_SUFFIXES

_WHITESPACE_RE = re.compile(r"\s+")
# Everything that is not a word character, whitespace, hyphen or ampersand
_PUNCTUATION_RE = re.compile(r"[^\w\s\-&]")
# Hyphens/ampersands that are not inside a word
_LOOSE_JOINERS_RE = re.compile(r"(?<!\w)[\-&]|[\-&](?!\w)")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text or "").strip()


def strip_diacritics(text: str) -> str:
    """Remove combining marks after NFKD decomposition ("Göran" -> "Goran")."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def normalize_name(name: str, legal_suffixes: Iterable[str] = LEGAL_SUFFIXES) -> str:
    """
    Canonical equality key for a name: case folded, diacritics and punctuation
    stripped, legal-entity suffixes removed, whitespace collapsed.
    """
    if not name:
        return ""
    normalized = strip_diacritics(name).casefold()
    normalized = _PUNCTUATION_RE.sub(" ", normalized)
    normalized = _LOOSE_JOINERS_RE.sub(" ", normalized)
    suffixes = set(legal_suffixes)
    tokens = [token for token in normalized.split() if token not in suffixes]
    return " ".join(tokens)


def find_all_positions(text: str, needle: str) -> List[int]:
    """All case-insensitive start offsets of needle in text, overlaps included."""
    if not text or not needle:
        return []
    haystack = text.lower()
    target = needle.lower()
    positions = []
    pos = haystack.find(target)
    while pos != -1:
        positions.append(pos)
        pos = haystack.find(target, pos + 1)
    return positions


def extract_mention_contexts(name: str, text: str, radius: int = 50, max_contexts: int = 3) -> List[str]:
    """Up to max_contexts whitespace-collapsed snippets around occurrences of name."""
    contexts = []
    for index in find_all_positions(text, name):
        if len(contexts) >= max_contexts:
            break
        start = max(0, index - radius)
        end = min(len(text), index + len(name) + radius)
        contexts.append(collapse_whitespace(text[start:end]))
    return contexts


def names_overlap(name: str, other: str) -> bool:
    """Case-insensitive containment in either direction."""
    a = collapse_whitespace(name).lower()
    b = collapse_whitespace(other).lower()
    if not a or not b:
        return False
    shorter, longer = (a, b) if len(a) <= len(b) else (b, a)
    return shorter in longer


def pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """
    Return the first present key. Upstream collaborators send camelCase
    (``extractedBy``) while the engine uses snake_case (``extracted_by``).
    """
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def slugify(name: str, length: int = 6) -> str:
    return re.sub(r"[^a-z0-9]", "", strip_diacritics(name).lower())[:length]
