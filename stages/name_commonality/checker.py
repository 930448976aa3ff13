# koppla/stages/name_commonality/checker.py

import logging
from typing import List, Dict, Any, Optional

from config.name_constants import COMMON_FIRST_NAMES, COMMON_LAST_NAMES
from config.settings import BaseEngineConfig
from core.base_stage import BaseStage
from core.state import AssessmentState
from models.entity import Entity, NameCommonalityResult, CommonNameWarning
from models.enums import FrequencyEstimate

VERY_HIGH_RECOMMENDATION = "Verify with additional identifying information (DOB, address, national ID)"
HIGH_RECOMMENDATION = "Consider verifying identity with a second identifier"


def _in_any_locale(token: Optional[str], name_sets: Dict[str, set]) -> bool:
    if not token:
        return False
    return any(token in names for names in name_sets.values())


def is_first_name_common(name: str) -> bool:
    return _in_any_locale(name.lower(), COMMON_FIRST_NAMES)


def is_last_name_common(name: str) -> bool:
    return _in_any_locale(name.lower(), COMMON_LAST_NAMES)


def check_name_commonality(name: str) -> NameCommonalityResult:
    """
    Estimate how common a personal name is from its first and last tokens.
    For names of three or more tokens the last two are also tried hyphenated,
    so "Ahmed Al Rashid" is checked as "al-rashid".
    """
    if not name or not name.strip():
        return NameCommonalityResult(is_common=False, frequency_estimate=FrequencyEstimate.UNKNOWN)

    parts = name.lower().split()
    first_name = parts[0]
    last_name = parts[-1] if len(parts) > 1 else None
    hyphenated = "-".join(parts[-2:]) if len(parts) > 2 else None

    first_common = is_first_name_common(first_name)
    last_common = bool(last_name) and (is_last_name_common(last_name) or
                                       (hyphenated is not None and is_last_name_common(hyphenated)))

    warning = None
    if first_common and last_common:
        estimate = FrequencyEstimate.VERY_HIGH
        warning = (f'"{name}": both first and last name are very common. High false-positive risk. '
                   f'Verify with additional identifying information (date of birth, address, national ID).')
    elif first_common or last_common:
        estimate = FrequencyEstimate.HIGH
        which = "first" if first_common else "last"
        warning = (f'"{name}": {which} name is very common. Moderate false-positive risk. '
                   f'Consider verifying identity.')
    else:
        estimate = FrequencyEstimate.LOW

    return NameCommonalityResult(
        is_common=estimate != FrequencyEstimate.LOW,
        frequency_estimate=estimate,
        warning=warning,
        details={
            "first_name": first_name,
            "last_name": last_name,
            "first_name_common": first_common,
            "last_name_common": last_common,
        },
    )


def check_all_names(entities: List[Entity]) -> List[CommonNameWarning]:
    """Warnings for every person whose name is too common to trust on its own."""
    warnings = []
    for entity in entities:
        if not entity.is_person:
            continue
        result = check_name_commonality(entity.name)
        if not result.is_common:
            continue
        warnings.append(CommonNameWarning(
            entity_id=entity.id,
            entity_name=entity.name,
            warning=result.warning,
            frequency_estimate=result.frequency_estimate,
            recommendation=(VERY_HIGH_RECOMMENDATION
                            if result.frequency_estimate == FrequencyEstimate.VERY_HIGH
                            else HIGH_RECOMMENDATION),
        ))
    return warnings


class NameCommonalityChecker(BaseStage):
    """Annotates (never removes) people whose names are statistically common."""

    stage_name = "name_commonality"

    def __init__(self, config: BaseEngineConfig, logger: logging.Logger):
        super().__init__(config, logger)

    def check(self, name: str) -> NameCommonalityResult:
        return check_name_commonality(name)

    def check_all(self, entities: List[Entity]) -> List[CommonNameWarning]:
        return check_all_names(entities)

    def _run_implementation(self, state: AssessmentState) -> Dict[str, Any]:
        resolution = self._require(state, "resolution")
        state.name_warnings = self.check_all(resolution.entities)
        for warning in state.name_warnings:
            self.logger.debug(f"[{self.stage_name}] {warning.entity_name}: {warning.frequency_estimate.value}")
        self._update_stage_status(state, f"{len(state.name_warnings)} common-name warning(s)")
        return {"warnings": len(state.name_warnings)}
