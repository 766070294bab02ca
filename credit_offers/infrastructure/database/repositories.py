"""Data access layer for the modality taxonomy, mappings and institutions"""

from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from credit_offers.infrastructure.database.models import (
    CreditModalityModel,
    InstitutionModel,
    ModalityMappingModel,
    StandardModalityModel,
)
from credit_offers.domain.exceptions import DuplicateModalityMappingError, DuplicateStandardModalityError
from credit_offers.domain.models import CreditModality, Institution, ModalityMapping, StandardModality, utcnow


def _range_to_json(value):
    if value is None:
        return None
    return {"min": value[0], "max": value[1]}


def _range_from_json(value):
    if not value:
        return None
    return (value["min"], value["max"])


def _to_standard_modality(row: StandardModalityModel) -> StandardModality:
    return StandardModality(
        id=row.id,
        code=row.code,
        name=row.name,
        description=row.description,
        risk_level=row.risk_level,
        typical_interest_range=_range_from_json(row.typical_interest_range),
        keywords=list(row.keywords or []),
        is_active=row.is_active,
        created_at=row.created_at or utcnow(),
        updated_at=row.updated_at or utcnow(),
    )


class StandardModalityRepository:
    """Repository for standard modalities (code is unique)"""

    def __init__(self, db: Session):
        self.db = db

    def find_active(self) -> List[StandardModality]:
        """Active modalities, seeded catalog entries first, then by creation"""
        rows = (
            self.db.query(StandardModalityModel)
            .filter(StandardModalityModel.is_active.is_(True))
            .order_by(StandardModalityModel.priority, StandardModalityModel.created_at, StandardModalityModel.code)
            .all()
        )
        return [_to_standard_modality(row) for row in rows]

    def find_by_code(self, code: str) -> Optional[StandardModality]:
        row = (
            self.db.query(StandardModalityModel)
            .filter(StandardModalityModel.code == code.strip().upper())
            .first()
        )
        return _to_standard_modality(row) if row else None

    def save(self, modality: StandardModality) -> None:
        """Insert or update inside a savepoint so a code clash leaves the session usable"""
        try:
            with self.db.begin_nested():
                row = self.db.get(StandardModalityModel, modality.id)
                if row is None:
                    row = StandardModalityModel(id=modality.id)
                    self.db.add(row)
                row.code = modality.code
                row.name = modality.name
                row.description = modality.description
                row.risk_level = modality.risk_level
                row.typical_interest_range = _range_to_json(modality.typical_interest_range)
                row.keywords = list(modality.keywords)
                row.is_active = modality.is_active
        except IntegrityError as e:
            raise DuplicateStandardModalityError(f"Standard modality {modality.code} already exists") from e


class ModalityMappingRepository:
    """Repository for institution modality mappings, unique per (institution, external code)"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_institution_and_external_code(self, institution_id: str, external_code: str) -> Optional[ModalityMapping]:
        row = (
            self.db.query(ModalityMappingModel)
            .filter(
                ModalityMappingModel.institution_id == institution_id,
                ModalityMappingModel.external_code == external_code.strip(),
            )
            .first()
        )
        if row is None:
            return None

        return ModalityMapping(
            id=row.id,
            institution_id=row.institution_id,
            external_code=row.external_code,
            standard_modality=_to_standard_modality(row.standard_modality),
            modality_name=row.modality_name,
            institution_external_id=row.institution_external_id,
            original_modality_name=row.original_modality_name,
            is_active=row.is_active,
            last_seen_at=row.last_seen_at or utcnow(),
            metadata=dict(row.metadata_ or {}),
            created_at=row.created_at or utcnow(),
        )

    def save(self, mapping: ModalityMapping) -> None:
        try:
            with self.db.begin_nested():
                row = self.db.get(ModalityMappingModel, mapping.id)
                if row is None:
                    row = ModalityMappingModel(id=mapping.id)
                    self.db.add(row)
                row.institution_id = mapping.institution_id
                row.external_code = mapping.external_code
                row.standard_modality_id = mapping.standard_modality.id
                row.modality_name = mapping.modality_name
                row.institution_external_id = mapping.institution_external_id
                row.original_modality_name = mapping.original_modality_name
                row.is_active = mapping.is_active
                row.metadata_ = dict(mapping.metadata)
                row.last_seen_at = mapping.last_seen_at
        except IntegrityError as e:
            raise DuplicateModalityMappingError(
                f"Mapping for institution {mapping.institution_id} code {mapping.external_code} already exists"
            ) from e


class InstitutionRepository:
    """Repository for institutions"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, institution_id: str) -> Optional[Institution]:
        """Look up by primary key, then by the numeric id institutions report"""
        row = self.db.query(InstitutionModel).filter(InstitutionModel.id == institution_id).first()
        if row is None and institution_id.isdigit():
            row = (
                self.db.query(InstitutionModel)
                .filter(InstitutionModel.institution_id == int(institution_id))
                .first()
            )
        if row is None:
            return None

        return Institution(
            id=row.id,
            institution_id=row.institution_id,
            name=row.name,
            website=row.website,
            logo_url=row.logo_url,
            is_active=row.is_active,
        )

    def create_institution(self, institution: Institution) -> InstitutionModel:
        row = InstitutionModel(
            id=institution.id,
            institution_id=institution.institution_id,
            name=institution.name,
            website=institution.website,
            logo_url=institution.logo_url,
            is_active=institution.is_active,
        )
        self.db.add(row)
        self.db.flush()
        return row


class CreditModalityRepository:
    """Repository for internal credit modalities"""

    def __init__(self, db: Session):
        self.db = db

    def find_by_standard_modality(self, standard_modality: StandardModality) -> Optional[CreditModality]:
        row = (
            self.db.query(CreditModalityModel)
            .filter(
                CreditModalityModel.standard_code == standard_modality.code,
                CreditModalityModel.is_active.is_(True),
            )
            .first()
        )
        if row is None:
            return None

        return CreditModality(
            id=row.id,
            standard_code=row.standard_code,
            name=row.name,
            description=row.description,
            typical_interest_range=standard_modality.typical_interest_range,
            is_active=row.is_active,
        )

    def create_modality(self, modality: CreditModality) -> CreditModalityModel:
        row = CreditModalityModel(
            id=modality.id,
            standard_code=modality.standard_code,
            name=modality.name,
            description=modality.description,
            is_active=modality.is_active,
        )
        self.db.add(row)
        self.db.flush()
        return row
