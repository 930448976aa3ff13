# koppla/models/entity.py
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from core.exceptions import DataFormatError, InputValidationError, validate_required_fields
from models.enums import EntityType, ExtractionMethod, FrequencyEstimate
from utils.text_processing import pick


def parse_entity_type(value: Any, operation: str) -> EntityType:
    """Map an upstream type string onto EntityType, failing fast on anything else."""
    if isinstance(value, EntityType):
        return value
    lowered = str(value or "").strip().lower()
    if lowered in ("org", "organisation"):
        lowered = EntityType.ORGANIZATION.value
    for member in EntityType:
        if member.value == lowered:
            return member
    raise DataFormatError(
        f"Unknown entity type {value!r} in {operation}",
        expected_format="person|organization",
        actual_format=str(value),
        context={"operation": operation},
    )


@dataclass
class RawMention:
    """A single name found by an upstream extractor, before deduplication."""
    name: str
    type: EntityType
    extracted_by: Optional[ExtractionMethod] = None
    language: str = "en"
    matched_by: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RawMention':
        validate_required_fields(data, ["name"], operation="raw mention")
        if not isinstance(data["name"], str) or not data["name"].strip():
            raise InputValidationError("Raw mention name must be a non-empty string",
                                       data_type="RawMention", missing_fields=["name"])
        return cls(
            name=data["name"].strip(),
            type=parse_entity_type(data.get("type", "person"), "raw mention"),
            extracted_by=ExtractionMethod.parse(pick(data, "extracted_by", "extractedBy")),
            language=data.get("language") or "en",
            matched_by=pick(data, "matched_by", "matchedBy"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type.value,
            "extracted_by": self.extracted_by.value if self.extracted_by else None,
            "language": self.language,
            "matched_by": self.matched_by,
        }


@dataclass
class RoleMention:
    """A role/title keyword found in a text at a character offset."""
    role: str
    index: int
    language: str = "en"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RoleMention':
        validate_required_fields(data, ["role", "index"], operation="role mention")
        index = data["index"]
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise DataFormatError(
                f"Role mention offset must be a non-negative integer, got {index!r}",
                expected_format="int >= 0",
                actual_format=type(index).__name__,
            )
        return cls(role=str(data["role"]).strip(), index=index, language=data.get("language") or "en")

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role, "index": self.index, "language": self.language}


@dataclass
class TextSource:
    """One piece of acquired text plus whatever the extractors found in it."""
    text: str
    source: str = "unknown"
    source_url: str = ""
    language: str = "en"
    mentions: List[RawMention] = field(default_factory=list)
    roles: List[RoleMention] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TextSource':
        validate_required_fields(data, ["text"], operation="text source")
        if not isinstance(data["text"], str):
            raise DataFormatError("Text source 'text' must be a string",
                                  expected_format="str", actual_format=type(data["text"]).__name__)
        mentions = data.get("mentions") or []
        roles = data.get("roles") or []
        if not isinstance(mentions, list) or not isinstance(roles, list):
            raise DataFormatError("Text source 'mentions' and 'roles' must be lists", expected_format="list")
        return cls(
            text=data["text"],
            source=data.get("source") or "unknown",
            source_url=pick(data, "source_url", "sourceUrl", default=""),
            language=data.get("language") or "en",
            mentions=[RawMention.from_dict(m) for m in mentions],
            roles=[RoleMention.from_dict(r) for r in roles],
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "source": self.source,
            "source_url": self.source_url,
            "language": self.language,
            "mentions": [m.to_dict() for m in self.mentions],
            "roles": [r.to_dict() for r in self.roles],
        }


@dataclass
class SeedEntity:
    """An analyst-supplied entity, trusted at full confidence."""
    name: str
    type: EntityType = EntityType.PERSON
    role: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SeedEntity':
        validate_required_fields(data, ["name"], operation="seed entity")
        return cls(
            name=str(data["name"]).strip(),
            type=parse_entity_type(data.get("type", "person"), "seed entity"),
            role=(str(data["role"]).strip() or None) if data.get("role") else None,
        )

    @classmethod
    def from_cli(cls, value: str) -> 'SeedEntity':
        """Parse the CLI form ``"Name, ROLE"``."""
        name, _, role = value.partition(",")
        if not name.strip():
            raise InputValidationError(f"Seed {value!r} has no name", data_type="SeedEntity",
                                       missing_fields=["name"])
        return cls(name=name.strip(), role=role.strip() or None)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type.value, "role": self.role}


@dataclass
class Entity:
    """
    A canonical person or organization after deduplication.
    Enriched in place during resolution (roles, confidence, aliases), then
    treated as read-only by every later stage.
    """
    id: str
    name: str
    normalized_name: str
    type: EntityType
    roles: List[str] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)
    extraction_methods: List[ExtractionMethod] = field(default_factory=list)
    preferred_method: Optional[ExtractionMethod] = None
    matched_by: Optional[str] = None
    confidence: float = 0.0
    mention_count: int = 1
    source: str = "unknown"
    source_url: str = ""
    language: str = "en"
    mention_contexts: List[str] = field(default_factory=list)

    def add_method(self, method: Optional[ExtractionMethod]):
        if method is not None and method not in self.extraction_methods:
            self.extraction_methods.append(method)

    def add_alias(self, alias: str):
        if alias and alias != self.name and alias not in self.aliases:
            self.aliases.append(alias)

    def add_role(self, role: str):
        if role and role not in self.roles:
            self.roles.append(role)

    @property
    def is_person(self) -> bool:
        return self.type == EntityType.PERSON

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "normalized_name": self.normalized_name,
            "type": self.type.value,
            "roles": list(self.roles),
            "aliases": list(self.aliases),
            "extraction_methods": [m.value for m in self.extraction_methods],
            "extracted_by": self.preferred_method.value if self.preferred_method else None,
            "matched_by": self.matched_by,
            "confidence": self.confidence,
            "mention_count": self.mention_count,
            "source": self.source,
            "source_url": self.source_url,
            "language": self.language,
            "mention_contexts": list(self.mention_contexts),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Entity':
        validate_required_fields(data, ["id", "name"], operation="entity")
        confidence = data.get("confidence", 0.3)
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)) or not 0 <= confidence <= 1:
            raise DataFormatError(f"Entity confidence must be within [0, 1], got {confidence!r}",
                                  expected_format="float in [0, 1]", actual_format=repr(confidence))
        methods = [ExtractionMethod.parse(m) for m in pick(data, "extraction_methods", "extractionMethods", default=[])]
        return cls(
            id=data["id"],
            name=data["name"],
            normalized_name=pick(data, "normalized_name", "normalizedName", default=""),
            type=parse_entity_type(data.get("type", "person"), "entity"),
            roles=list(data.get("roles") or []),
            aliases=list(data.get("aliases") or []),
            extraction_methods=[m for m in methods if m is not None],
            preferred_method=ExtractionMethod.parse(pick(data, "extracted_by", "extractedBy")),
            matched_by=pick(data, "matched_by", "matchedBy"),
            confidence=float(confidence),
            mention_count=int(pick(data, "mention_count", "mentionCount", default=1)),
            source=data.get("source") or "unknown",
            source_url=pick(data, "source_url", "sourceUrl", default=""),
            language=data.get("language") or "en",
            mention_contexts=list(pick(data, "mention_contexts", "mentionContexts", default=[])),
        )


@dataclass
class ExtractionSummary:
    total_entities: int = 0
    people: int = 0
    organizations: int = 0

    @classmethod
    def from_entities(cls, entities: List[Entity]) -> 'ExtractionSummary':
        return cls(
            total_entities=len(entities),
            people=sum(1 for e in entities if e.type == EntityType.PERSON),
            organizations=sum(1 for e in entities if e.type == EntityType.ORGANIZATION),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"total_entities": self.total_entities, "people": self.people,
                "organizations": self.organizations}


@dataclass
class ResolutionResult:
    """Output of the EntityResolver."""
    entities: List[Entity] = field(default_factory=list)
    summary: ExtractionSummary = field(default_factory=ExtractionSummary)
    per_text_summaries: List[Dict[str, Any]] = field(default_factory=list)

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entities": [e.to_dict() for e in self.entities],
            "summary": self.summary.to_dict(),
            "per_text_summaries": self.per_text_summaries,
        }


@dataclass
class NameCommonalityResult:
    is_common: bool
    frequency_estimate: FrequencyEstimate
    warning: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_common": self.is_common,
            "frequency_estimate": self.frequency_estimate.value,
            "warning": self.warning,
            "details": self.details,
        }


@dataclass
class CommonNameWarning:
    """Caution attached to a person whose name alone cannot prove identity."""
    entity_id: str
    entity_name: str
    warning: str
    frequency_estimate: FrequencyEstimate
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_id": self.entity_id,
            "entity_name": self.entity_name,
            "warning": self.warning,
            "frequency_estimate": self.frequency_estimate.value,
            "recommendation": self.recommendation,
        }
