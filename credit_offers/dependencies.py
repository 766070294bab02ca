"""Wiring of domain services over a database session"""

from typing import Optional
from sqlalchemy.orm import Session
from credit_offers.config import Settings, settings as default_settings
from credit_offers.domain.value_objects import CPF
from credit_offers.infrastructure.database.repositories import (
    CreditModalityRepository,
    InstitutionRepository,
    ModalityMappingRepository,
    StandardModalityRepository,
)
from credit_offers.services.auto_discovery import ModalityAutoDiscoveryService
from credit_offers.services.normalization import OfferNormalizationService


def parse_customer_cpf(raw: str, config: Optional[Settings] = None) -> CPF:
    """Build a CPF, honouring sandbox identifiers only when configured"""
    config = config or default_settings
    return CPF(raw, sandbox=config.allow_sandbox_cpf)


def get_auto_discovery_service(db: Session, config: Optional[Settings] = None) -> ModalityAutoDiscoveryService:
    config = config or default_settings
    return ModalityAutoDiscoveryService(
        StandardModalityRepository(db),
        ModalityMappingRepository(db),
        max_retries=config.discovery_max_retries,
    )


def get_normalization_service(db: Session, config: Optional[Settings] = None) -> OfferNormalizationService:
    return OfferNormalizationService(
        get_auto_discovery_service(db, config),
        InstitutionRepository(db),
        CreditModalityRepository(db),
    )
