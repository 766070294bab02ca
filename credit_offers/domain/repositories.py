"""Store interfaces consumed by the domain services"""

from typing import List, Optional, Protocol

from credit_offers.domain.models import CreditModality, Institution, ModalityMapping, StandardModality


class StandardModalityStore(Protocol):
    def find_active(self) -> List[StandardModality]:
        ...

    def find_by_code(self, code: str) -> Optional[StandardModality]:
        ...

    def save(self, modality: StandardModality) -> None:
        """Insert or update; raises DuplicateStandardModalityError on a code clash"""
        ...


class ModalityMappingStore(Protocol):
    def find_by_institution_and_external_code(self, institution_id: str, external_code: str) -> Optional[ModalityMapping]:
        ...

    def save(self, mapping: ModalityMapping) -> None:
        """Insert or update; raises DuplicateModalityMappingError on a (institution, code) clash"""
        ...


class InstitutionStore(Protocol):
    def find_by_id(self, institution_id: str) -> Optional[Institution]:
        ...


class CreditModalityStore(Protocol):
    def find_by_standard_modality(self, standard_modality: StandardModality) -> Optional[CreditModality]:
        ...
