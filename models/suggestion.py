# koppla/models/suggestion.py
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from models.enums import SuggestionType, Priority


@dataclass(frozen=True)
class Suggestion:
    id: str
    type: SuggestionType
    priority: Priority
    description: str
    actionable: bool = False
    suggested_action: str = ""
    related_entity_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "priority": self.priority.value,
            "description": self.description,
            "actionable": self.actionable,
            "suggested_action": self.suggested_action,
            "related_entity_id": self.related_entity_id,
        }


@dataclass
class SuggestionResult:
    suggestions: List[Suggestion] = field(default_factory=list)

    @property
    def summary(self) -> Dict[str, int]:
        counts = {priority.value: 0 for priority in Priority}
        for suggestion in self.suggestions:
            counts[suggestion.priority.value] += 1
        return {
            "total": len(self.suggestions),
            **counts,
            "actionable": sum(1 for s in self.suggestions if s.actionable),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {"suggestions": [s.to_dict() for s in self.suggestions], "summary": self.summary}
