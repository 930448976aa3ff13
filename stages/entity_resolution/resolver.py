# koppla/stages/entity_resolution/resolver.py

import logging
from dataclasses import replace
from typing import List, Dict, Optional, Any, Tuple

from config.settings import EntityResolutionConfig
from core.base_stage import BaseStage
from core.exceptions import ConfigurationError, EntityResolutionError
from core.run_context import RunContext
from core.state import AssessmentState
from models.entity import (
    Entity,
    ExtractionSummary,
    RawMention,
    ResolutionResult,
    RoleMention,
    SeedEntity,
    TextSource,
)
from models.enums import ExtractionMethod
from utils.similarity import calculate_name_similarity
from utils.text_processing import (
    normalize_name,
    find_all_positions,
    extract_mention_contexts,
)


class EntityResolver(BaseStage):
    """
    Merges raw name mentions into canonical entities.

    Per text: deduplicate mentions (exact normalized match or fuzzy similarity),
    attach nearby role keywords, score confidence from how the entity was found,
    then drop low-confidence entities. A second pass folds the same entity found
    in different texts together, applies analyst seeds and removes the subject.
    """

    stage_name = "entity_resolution"

    def __init__(self, config: EntityResolutionConfig, logger: logging.Logger):
        super().__init__(config, logger)
        if not isinstance(config, EntityResolutionConfig):
            raise ConfigurationError(
                f"Config must be EntityResolutionConfig, got {type(config)}",
                config_key="entity_resolution",
                stage_name=self.stage_name,
            )
        self.resolution_config = config

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def normalize(self, name: str) -> str:
        return normalize_name(name, self.resolution_config.legal_suffixes)

    def same_identity(self, normalized_a: str, normalized_b: str) -> bool:
        """Exact normalized equality, or similarity at/above the threshold."""
        if not normalized_a or not normalized_b:
            return False
        if normalized_a == normalized_b:
            return True
        return calculate_name_similarity(normalized_a, normalized_b) >= self.resolution_config.similarity_threshold

    def _find_match(self, normalized: str, entities: List[Entity]) -> Optional[Entity]:
        # First seen wins: later near-duplicates merge into the earliest entity
        for entity in entities:
            if self.same_identity(normalized, entity.normalized_name):
                return entity
        return None

    # ------------------------------------------------------------------
    # Per-text resolution
    # ------------------------------------------------------------------

    def deduplicate(self, mentions: List[RawMention], run_context: RunContext) -> List[Entity]:
        unique: List[Entity] = []
        for mention in mentions:
            if len(mention.name) < self.resolution_config.min_name_length:
                self.logger.debug(f"[{self.stage_name}] Skipping short mention {mention.name!r}")
                continue
            normalized = self.normalize(mention.name)
            if not normalized:
                continue
            if mention.extracted_by is None:
                self.logger.debug(f"[{self.stage_name}] Mention {mention.name!r} has no known extraction method")

            existing = self._find_match(normalized, unique)
            if existing is None:
                unique.append(Entity(
                    id=run_context.next_entity_id(mention.name),
                    name=mention.name,
                    normalized_name=normalized,
                    type=mention.type,
                    extraction_methods=[mention.extracted_by] if mention.extracted_by else [],
                    preferred_method=mention.extracted_by,
                    matched_by=mention.matched_by,
                    language=mention.language,
                ))
                continue

            existing.add_method(mention.extracted_by)
            upgrade = (mention.extracted_by == ExtractionMethod.NLP
                       and existing.preferred_method != ExtractionMethod.NLP)
            if upgrade:
                # NLP spelling becomes the display name; the pattern spelling is kept
                previous = existing.name
                existing.name = mention.name
                existing.normalized_name = normalized
                existing.preferred_method = ExtractionMethod.NLP
                existing.add_alias(previous)
                existing.aliases = [a for a in existing.aliases if a != existing.name]
            else:
                existing.add_alias(mention.name)
        return unique

    def assign_roles(self, entities: List[Entity], roles: List[RoleMention], text: str):
        """
        Attach each role mention to the strictly nearest entity occurrence within the radius.
        Occurrences of any alias spelling count as occurrences of the entity.
        """
        radius = self.resolution_config.role_proximity_chars
        positions = {
            entity.id: [pos for spelling in [entity.name] + entity.aliases
                        for pos in find_all_positions(text, spelling)]
            for entity in entities
        }
        for role in roles:
            closest: Optional[Entity] = None
            closest_distance = float("inf")
            for entity in entities:
                if not positions[entity.id]:
                    continue
                distance = min(abs(pos - role.index) for pos in positions[entity.id])
                if distance < closest_distance and distance < radius:
                    closest_distance = distance
                    closest = entity
            if closest is not None:
                closest.add_role(role.role)
                self.logger.debug(f"[{self.stage_name}] Role {role.role!r} -> {closest.name!r} ({closest_distance} chars)")

    def score_confidence(self, entity: Entity) -> float:
        table = self.resolution_config.confidence_table
        has_nlp = ExtractionMethod.NLP in entity.extraction_methods
        has_pattern = ExtractionMethod.PATTERN in entity.extraction_methods
        has_role = bool(entity.roles)

        if has_nlp and has_role:
            return table["nlp_role"]
        if has_nlp and has_pattern:
            return table["nlp_pattern"]
        if has_nlp:
            return table["nlp"]
        if has_pattern and has_role:
            return table["pattern_role"]
        if has_pattern:
            return table["pattern"]
        return self.resolution_config.default_confidence

    def resolve_text(self, text_source: TextSource, run_context: RunContext) -> Tuple[List[Entity], ExtractionSummary]:
        """Resolve the mentions of one text into entities plus a summary."""
        if not text_source.text.strip():
            return [], ExtractionSummary()

        entities = self.deduplicate(text_source.mentions, run_context)
        self.assign_roles(entities, text_source.roles, text_source.text)

        cfg = self.resolution_config
        for entity in entities:
            entity.confidence = self.score_confidence(entity)
            entity.source = text_source.source
            entity.source_url = text_source.source_url
            entity.mention_contexts = extract_mention_contexts(
                entity.name, text_source.text, cfg.mention_context_radius, cfg.max_mention_contexts
            )
            entity.mention_count = len(find_all_positions(text_source.text, entity.name)) or 1

        kept = [e for e in entities if e.confidence >= cfg.min_confidence]
        if len(kept) > cfg.max_entities_per_text:
            self.logger.warning(
                f"[{self.stage_name}] {text_source.source}: {len(kept)} entities, keeping the first {cfg.max_entities_per_text}"
            )
            kept = kept[:cfg.max_entities_per_text]
        return kept, ExtractionSummary.from_entities(kept)

    # ------------------------------------------------------------------
    # Cross-source resolution
    # ------------------------------------------------------------------

    def merge_across_sources(self, entities: List[Entity]) -> List[Entity]:
        merged: List[Entity] = []
        max_contexts = self.resolution_config.max_mention_contexts
        for entity in entities:
            existing = self._find_match(entity.normalized_name, merged)
            if existing is None:
                merged.append(replace(
                    entity,
                    roles=list(entity.roles),
                    aliases=list(entity.aliases),
                    extraction_methods=list(entity.extraction_methods),
                    mention_contexts=list(entity.mention_contexts),
                ))
                continue
            existing.mention_count += entity.mention_count
            for role in entity.roles:
                existing.add_role(role)
            existing.add_alias(entity.name)
            for alias in entity.aliases:
                existing.add_alias(alias)
            for method in entity.extraction_methods:
                existing.add_method(method)
            existing.confidence = max(existing.confidence, entity.confidence)
            for snippet in entity.mention_contexts:
                if len(existing.mention_contexts) < max_contexts and snippet not in existing.mention_contexts:
                    existing.mention_contexts.append(snippet)
        return merged

    def apply_seeds(self, entities: List[Entity], seeds: List[SeedEntity],
                    texts: List[TextSource], run_context: RunContext) -> List[Entity]:
        """Seeds merge into a matching entity or become new ones, always at seed confidence."""
        seed_confidence = self.resolution_config.seed_confidence
        for seed in seeds:
            normalized = self.normalize(seed.name)
            if not normalized:
                continue
            existing = self._find_match(normalized, entities)
            if existing is not None:
                if seed.role:
                    existing.add_role(seed.role)
                existing.add_method(ExtractionMethod.SEED)
                existing.confidence = seed_confidence
                self.logger.debug(f"[{self.stage_name}] Seed {seed.name!r} merged into {existing.id}")
                continue

            mentions = sum(len(find_all_positions(t.text, seed.name)) for t in texts)
            entities.append(Entity(
                id=run_context.next_entity_id(seed.name),
                name=seed.name,
                normalized_name=normalized,
                type=seed.type,
                roles=[seed.role] if seed.role else [],
                extraction_methods=[ExtractionMethod.SEED],
                preferred_method=ExtractionMethod.SEED,
                confidence=seed_confidence,
                mention_count=mentions or 1,
                source="seed",
            ))
        return entities

    def resolve_all(self, texts: List[TextSource], subject: str, run_context: RunContext,
                    seeds: Optional[List[SeedEntity]] = None) -> ResolutionResult:
        """Resolve every text, merge across sources, apply seeds and drop the subject itself."""
        collected: List[Entity] = []
        per_text: List[Dict[str, Any]] = []
        for text_source in texts:
            entities, summary = self.resolve_text(text_source, run_context)
            collected.extend(entities)
            per_text.append({"source": text_source.source, **summary.to_dict()})
            self.metrics.items_processed += 1

        merged = self.merge_across_sources(collected)
        merged = self.apply_seeds(merged, seeds or [], texts, run_context)

        subject_normalized = self.normalize(subject)
        entities = [e for e in merged if e.normalized_name != subject_normalized]
        if len(entities) != len(merged):
            self.logger.debug(f"[{self.stage_name}] Removed the subject {subject!r} from the entity list")

        return ResolutionResult(
            entities=entities,
            summary=ExtractionSummary.from_entities(entities),
            per_text_summaries=per_text,
        )

    def _run_implementation(self, state: AssessmentState) -> Dict[str, Any]:
        request = self._require(state, "request")
        self._update_stage_status(state, f"Resolving entities from {len(request.texts)} text source(s)")
        result = self.resolve_all(request.texts, request.subject, state.run_context, request.seeds)
        if any(not 0 <= e.confidence <= 1 for e in result.entities):
            raise EntityResolutionError("Resolved entity confidence left [0, 1]", stage_name=self.stage_name)

        state.resolution = result
        summary = result.summary
        self._update_stage_status(
            state,
            f"Resolved {summary.total_entities} entities ({summary.people} people, {summary.organizations} organizations)",
        )
        return summary.to_dict()
