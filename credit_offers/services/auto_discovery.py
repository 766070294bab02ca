"""Modality auto-discovery - classify free-text modality names into the standard taxonomy"""

import logging
import uuid
from typing import Optional, Tuple

from credit_offers.domain.exceptions import DuplicateModalityMappingError, DuplicateStandardModalityError
from credit_offers.domain.modality_catalog import (
    MODALITY_PATTERNS,
    UNKNOWN_MODALITY_CODE,
    interest_range_for,
    risk_level_for,
)
from credit_offers.domain.models import ModalityMapping, StandardModality
from credit_offers.domain.repositories import ModalityMappingStore, StandardModalityStore
from credit_offers.infrastructure.observability.logging import log_modality_discovered
from credit_offers.infrastructure.observability.metrics import discovery_conflict_counter, record_discovery
from credit_offers.utils.text_utils import display_name, normalize_modality_name, significant_words

DISCOVERY_METHOD = "keyword_matching"

logger = logging.getLogger(__name__)


class ModalityAutoDiscoveryService:
    """
    Maps an institution's modality code/name to a StandardModality.

    Classification runs once per (institution, external code): the resulting
    ModalityMapping is persisted and returned as-is on later sightings. New
    standard modalities are created with get-or-insert semantics: a unique
    conflict on save means another writer won, so the winning row is re-read
    instead of creating a duplicate.
    """

    def __init__(
        self,
        standard_modality_store: StandardModalityStore,
        mapping_store: ModalityMappingStore,
        max_retries: int = 3,
    ):
        self.standard_modality_store = standard_modality_store
        self.mapping_store = mapping_store
        self.max_retries = max(1, max_retries)

    def discover_or_create_mapping(
        self,
        institution_id: str,
        external_code: str,
        modality_name: str,
        institution_external_id: Optional[str] = None,
    ) -> ModalityMapping:
        existing = self.mapping_store.find_by_institution_and_external_code(institution_id, external_code)
        if existing is not None:
            record_discovery("cached")
            return existing

        standard_modality, created = self._resolve_standard_modality(modality_name)
        confidence = self.calculate_confidence_score(modality_name, standard_modality)

        mapping = ModalityMapping(
            id=str(uuid.uuid4()),
            institution_id=institution_id,
            external_code=external_code,
            standard_modality=standard_modality,
            modality_name=modality_name,
            institution_external_id=institution_external_id,
            original_modality_name=modality_name,
            metadata={
                "auto_discovered": True,
                "confidence_score": confidence,
                "discovery_method": DISCOVERY_METHOD,
            },
        )

        try:
            self.mapping_store.save(mapping)
        except DuplicateModalityMappingError:
            discovery_conflict_counter.labels(entity="mapping").inc()
            winner = self.mapping_store.find_by_institution_and_external_code(institution_id, external_code)
            if winner is None:
                raise
            record_discovery("cached")
            return winner

        record_discovery("created" if created else "matched")
        log_modality_discovered(institution_id, mapping.external_code, standard_modality.code, confidence, created)
        return mapping

    def find_or_create_standard_modality(self, modality_name: str) -> StandardModality:
        modality, _ = self._resolve_standard_modality(modality_name)
        return modality

    def suggest_standard_modality_code(self, modality_name: str) -> str:
        """First catalog code with a keyword inside the name, else a code built from the name"""
        normalized = normalize_modality_name(modality_name)

        for code, pattern in MODALITY_PATTERNS.items():
            for keyword in pattern["keywords"]:
                needle = normalize_modality_name(keyword)
                if needle and needle in normalized:
                    return code

        return self.generate_code_from_name(modality_name)

    def calculate_confidence_score(self, modality_name: str, standard_modality: StandardModality) -> float:
        """Share of the modality's keywords found in the name, 0.5 when it has none"""
        keywords = standard_modality.keywords or []
        if not keywords:
            return 0.5

        normalized = normalize_modality_name(modality_name)
        matching = sum(1 for keyword in keywords if normalize_modality_name(keyword) in normalized)

        return min(1.0, matching / len(keywords))

    @staticmethod
    def generate_code_from_name(modality_name: str) -> str:
        """'Antecipação de Recebíveis' -> 'ANT_REC'"""
        words = normalize_modality_name(modality_name).upper().split()
        parts = [word[:3] for word in words if len(word) > 2]
        return "_".join(parts) or UNKNOWN_MODALITY_CODE

    def _resolve_standard_modality(self, modality_name: str) -> Tuple[StandardModality, bool]:
        for modality in self.standard_modality_store.find_active():
            if modality.matches_keyword(modality_name):
                return modality, False

        code = self.suggest_standard_modality_code(modality_name)

        for attempt in range(1, self.max_retries + 1):
            existing = self.standard_modality_store.find_by_code(code)
            if existing is not None:
                return existing, False

            modality = self._build_standard_modality(code, modality_name)
            try:
                self.standard_modality_store.save(modality)
                return modality, True
            except DuplicateStandardModalityError:
                discovery_conflict_counter.labels(entity="standard_modality").inc()
                logger.info(
                    "Standard modality created concurrently, re-reading",
                    extra={"standard_code": code, "attempt": attempt},
                )

        raise DuplicateStandardModalityError(
            f"Could not create or read standard modality {code} after {self.max_retries} attempts"
        )

    def _build_standard_modality(self, code: str, modality_name: str) -> StandardModality:
        name = display_name(modality_name) or code
        return StandardModality(
            id=str(uuid.uuid4()),
            code=code,
            name=name,
            description=f"Auto-discovered modality: {modality_name}",
            risk_level=risk_level_for(code),
            typical_interest_range=interest_range_for(code),
            keywords=significant_words(modality_name),
        )
