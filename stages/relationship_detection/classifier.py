# koppla/stages/relationship_detection/classifier.py

import re
from typing import Dict, Iterable

from config.constants import FINANCIAL_KEYWORDS, ORGANIZATIONAL_KEYWORDS_PATTERN, EVENT_KEYWORDS_PATTERN
from models.enums import RelationshipType

_ORGANIZATIONAL_RE = re.compile(ORGANIZATIONAL_KEYWORDS_PATTERN, re.IGNORECASE)
_EVENT_RE = re.compile(EVENT_KEYWORDS_PATTERN, re.IGNORECASE)


def contains_financial_keywords(text: str, keywords: Iterable[str] = FINANCIAL_KEYWORDS) -> bool:
    lowered = text.lower()
    return any(keyword in lowered for keyword in keywords)


def classify_relationship(context: str) -> RelationshipType:
    """Financial lexicon first, then titles, then legal/investigative terms."""
    if not context:
        return RelationshipType.CO_MENTION
    if contains_financial_keywords(context):
        return RelationshipType.FINANCIAL
    if _ORGANIZATIONAL_RE.search(context):
        return RelationshipType.ORGANIZATIONAL
    if _EVENT_RE.search(context):
        return RelationshipType.EVENT_BASED
    return RelationshipType.CO_MENTION


def co_mention_confidence(count: int, relationship_type: RelationshipType, base: float,
                          count_boosts: Dict[int, float], specific_type_boost: float) -> float:
    """
    base + the boost of the largest count threshold reached, plus a bonus when
    the context named a specific relationship type. Capped at 1.0.
    """
    confidence = base
    for threshold in sorted(count_boosts, reverse=True):
        if count >= threshold:
            confidence += count_boosts[threshold]
            break
    if relationship_type.is_specific:
        confidence += specific_type_boost
    return min(confidence, 1.0)
