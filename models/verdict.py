# koppla/models/verdict.py
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

from models.enums import FlagColor, FlagSeverity


@dataclass
class ThresholdInfo:
    """How far the current verdict sits from the neighbouring tiers."""
    current_flag: FlagColor
    yellow_indicators: int = 0
    yellow_threshold: int = 2
    red_conditions_met: List[str] = field(default_factory=list)
    unmet_red_conditions: List[str] = field(default_factory=list)
    distance_to_yellow: Optional[int] = None
    credible_source_gap: Optional[int] = None
    distance_to_red: str = ""
    distance_down: str = ""
    what_would_change: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "current_flag": self.current_flag.value,
            "yellow_indicators": self.yellow_indicators,
            "yellow_threshold": self.yellow_threshold,
            "red_conditions_met": list(self.red_conditions_met),
            "unmet_red_conditions": list(self.unmet_red_conditions),
            "distance_to_yellow": self.distance_to_yellow,
            "credible_source_gap": self.credible_source_gap,
            "distance_to_red": self.distance_to_red,
            "distance_down": self.distance_down,
            "what_would_change": list(self.what_would_change),
        }


@dataclass
class Verdict:
    flag: FlagColor
    reason: str
    details: List[str] = field(default_factory=list)
    severity: FlagSeverity = FlagSeverity.NONE
    threshold_info: Optional[ThresholdInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "flag": self.flag.value,
            "reason": self.reason,
            "details": list(self.details),
            "severity": self.severity.value,
            "threshold_info": self.threshold_info.to_dict() if self.threshold_info else None,
        }
