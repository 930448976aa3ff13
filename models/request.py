# koppla/models/request.py
from dataclasses import dataclass, field
from typing import List, Dict, Any

from core.exceptions import SchemaValidationError, InputValidationError, BaseAssessmentException
from models.entity import TextSource, SeedEntity
from models.evidence import EvidenceItem, SanctionsCheck, LanguageProcessingSummary
from utils.text_processing import pick


@dataclass
class AssessmentRequest:
    """Everything the engine needs for one assessment, already acquired upstream."""
    subject: str
    texts: List[TextSource] = field(default_factory=list)
    evidence: List[EvidenceItem] = field(default_factory=list)
    sanctions: SanctionsCheck = field(default_factory=SanctionsCheck)
    seeds: List[SeedEntity] = field(default_factory=list)
    language_processing: LanguageProcessingSummary = field(default_factory=LanguageProcessingSummary)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AssessmentRequest':
        if not isinstance(data, dict):
            raise SchemaValidationError(
                f"Assessment request must be a JSON object, got {type(data).__name__}",
                data_type="AssessmentRequest",
            )
        subject = pick(data, "subject", "org_name", "orgName")
        if not isinstance(subject, str) or not subject.strip():
            raise InputValidationError("Assessment request needs a non-empty 'subject'",
                                       data_type="AssessmentRequest", missing_fields=["subject"])

        for key in ("texts", "evidence", "seeds"):
            if data.get(key) is not None and not isinstance(data[key], list):
                raise SchemaValidationError(f"Request field '{key}' must be a list",
                                            data_type="AssessmentRequest", context={"field": key})

        try:
            return cls(
                subject=subject.strip(),
                texts=[TextSource.from_dict(t) for t in data.get("texts") or []],
                evidence=[EvidenceItem.from_dict(e) for e in data.get("evidence") or []],
                sanctions=SanctionsCheck.from_dict(data.get("sanctions")),
                seeds=[SeedEntity.from_dict(s) for s in data.get("seeds") or []],
                language_processing=LanguageProcessingSummary.from_dict(
                    pick(data, "language_processing", "languageProcessing")
                ),
            )
        except BaseAssessmentException as e:
            e.stage_name = e.stage_name or "request_validation"
            raise

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subject": self.subject,
            "texts": [t.to_dict() for t in self.texts],
            "evidence": [e.to_dict() for e in self.evidence],
            "sanctions": self.sanctions.to_dict(),
            "seeds": [s.to_dict() for s in self.seeds],
            "language_processing": self.language_processing.to_dict(),
        }
