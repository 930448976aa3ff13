# koppla/models/evidence.py
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from core.exceptions import DataFormatError, validate_required_fields
from models.enums import SourceType, EvidenceStatus
from utils.text_processing import pick


def _clean(value: Any, default: str) -> str:
    text = str(value).strip().lower() if value is not None else ""
    return text or default


@dataclass(frozen=True)
class EvidenceItem:
    """
    An atomic fact as delivered upstream. Source fields are kept verbatim
    (lower-cased); the scorer resolves them against its tables.
    """
    source_type: str = "unknown"
    category: str = ""
    severity: str = "medium"
    description: str = ""
    source: str = "unknown"
    source_url: str = ""
    matched_name: Optional[str] = None
    status: str = "unverified"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EvidenceItem':
        validate_required_fields(data, [], operation="evidence item")
        matched = pick(data, "matched_name", "matchedName")
        if matched is not None and not isinstance(matched, str):
            raise DataFormatError("Evidence 'matched_name' must be a string",
                                  expected_format="str", actual_format=type(matched).__name__)
        return cls(
            source_type=_clean(pick(data, "source_type", "sourceType"), "unknown"),
            category=_clean(data.get("category"), ""),
            severity=_clean(data.get("severity"), ""),
            description=str(data.get("description") or ""),
            source=str(data.get("source") or "unknown"),
            source_url=pick(data, "source_url", "sourceUrl", default=""),
            matched_name=matched.strip() if matched and matched.strip() else None,
            status=_clean(data.get("status"), "unverified"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_type": self.source_type,
            "category": self.category,
            "severity": self.severity,
            "description": self.description,
            "source": self.source,
            "source_url": self.source_url,
            "matched_name": self.matched_name,
            "status": self.status,
        }


@dataclass(frozen=True)
class ScoredEvidence:
    """An evidence item plus the derived scoring fields."""
    item: EvidenceItem
    source_type: SourceType
    status: EvidenceStatus
    credibility_weight: float
    severity_multiplier: float
    score: float

    @property
    def severity(self) -> str:
        return self.item.severity

    @property
    def category(self) -> str:
        return self.item.category

    @property
    def matched_name(self) -> Optional[str]:
        return self.item.matched_name

    def to_dict(self) -> Dict[str, Any]:
        data = self.item.to_dict()
        data.update({
            "source_type": self.source_type.value,
            "status": self.status.value,
            "credibility_weight": self.credibility_weight,
            "severity_multiplier": self.severity_multiplier,
            "score": self.score,
        })
        return data


@dataclass
class CategoryTotal:
    items: List[ScoredEvidence] = field(default_factory=list)
    total_score: float = 0.0

    @property
    def count(self) -> int:
        return len(self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {"total_score": self.total_score, "count": self.count,
                "items": [i.to_dict() for i in self.items]}


@dataclass
class ScoringResult:
    scored_evidence: List[ScoredEvidence] = field(default_factory=list)
    by_category: Dict[str, CategoryTotal] = field(default_factory=dict)
    overall_score: float = 0.0
    credible_source_count: int = 0

    @property
    def total_items(self) -> int:
        return len(self.scored_evidence)

    def of_source_type(self, source_type: SourceType) -> List[ScoredEvidence]:
        return [e for e in self.scored_evidence if e.source_type == source_type]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scored_evidence": [e.to_dict() for e in self.scored_evidence],
            "by_category": {k: v.to_dict() for k, v in self.by_category.items()},
            "overall_score": self.overall_score,
            "total_items": self.total_items,
            "credible_source_count": self.credible_source_count,
        }


@dataclass
class SanctionsCheck:
    """Summary handed over by the sanctions collaborators."""
    sanctioned: bool = False
    results: List[Dict[str, Any]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'SanctionsCheck':
        if data is None:
            return cls()
        validate_required_fields(data, [], operation="sanctions check")
        results = data.get("results") or []
        errors = data.get("errors") or []
        if not isinstance(results, list) or not isinstance(errors, list):
            raise DataFormatError("Sanctions 'results' and 'errors' must be lists", expected_format="list")
        return cls(
            sanctioned=bool(data.get("sanctioned", False)),
            results=list(results),
            errors=[str(e) for e in errors],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"sanctioned": self.sanctioned, "results": self.results, "errors": self.errors}


@dataclass
class LanguageProcessingSummary:
    texts_processed: int = 0
    languages_detected: List[str] = field(default_factory=list)
    translations_performed: int = 0

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'LanguageProcessingSummary':
        if data is None:
            return cls()
        validate_required_fields(data, [], operation="language processing summary")
        try:
            return cls(
                texts_processed=int(pick(data, "texts_processed", "textsProcessed", default=0)),
                languages_detected=[str(l) for l in pick(data, "languages_detected", "languagesDetected", default=[])],
                translations_performed=int(pick(data, "translations_performed", "translationsPerformed", default=0)),
            )
        except (TypeError, ValueError) as e:
            raise DataFormatError(f"Malformed language processing summary: {e}", expected_format="counts")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "texts_processed": self.texts_processed,
            "languages_detected": self.languages_detected,
            "translations_performed": self.translations_performed,
        }
