# koppla/core/run_context.py
import uuid
from dataclasses import dataclass, field

from utils.text_processing import slugify


@dataclass
class RunContext:
    """
    Run-scoped id counters. The caller creates one per assessment and passes it
    to the stages that mint ids, so two runs never share numbering.
    """
    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    entity_counter: int = 0
    hypothesis_counter: int = 0
    suggestion_counter: int = 0

    def next_entity_id(self, name: str) -> str:
        """entity-{n}-{first six alphanumerics of the name}"""
        self.entity_counter += 1
        return f"entity-{self.entity_counter}-{slugify(name)}"

    def next_hypothesis_id(self) -> str:
        self.hypothesis_counter += 1
        return f"hyp-{self.hypothesis_counter:03d}"

    def next_suggestion_id(self) -> str:
        self.suggestion_counter += 1
        return f"sug-{self.suggestion_counter:03d}"

    def to_dict(self):
        return {
            "run_id": self.run_id,
            "entities_issued": self.entity_counter,
            "hypotheses_issued": self.hypothesis_counter,
            "suggestions_issued": self.suggestion_counter,
        }
