"""SQLAlchemy ORM models for the modality taxonomy and institutions"""

import uuid
from sqlalchemy import Column, String, BigInteger, Boolean, DateTime, ForeignKey, Integer, Text, JSON, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class InstitutionModel(Base):
    """Financial institution reporting offers"""

    __tablename__ = "institutions"

    id = Column(String(36), primary_key=True, default=_uuid)
    institution_id = Column(BigInteger, nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)
    website = Column(Text, nullable=True)
    logo_url = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class StandardModalityModel(Base):
    """Canonical modality taxonomy entry"""

    __tablename__ = "standard_modalities"

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(100), nullable=False, unique=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    risk_level = Column(String(10), nullable=False, default="medium")
    typical_interest_range = Column(JSON, nullable=True)  # {"min": .., "max": ..}
    keywords = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    priority = Column(Integer, nullable=False, default=100)  # keyword matching order, lower first
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    mappings = relationship("ModalityMappingModel", back_populates="standard_modality")


class ModalityMappingModel(Base):
    """Institution-specific binding of an external modality code"""

    __tablename__ = "modality_mappings"
    __table_args__ = (
        UniqueConstraint("institution_id", "external_code", name="uq_modality_mapping_institution_code"),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    institution_id = Column(String(64), nullable=False, index=True)
    external_code = Column(String(100), nullable=False)
    standard_modality_id = Column(String(36), ForeignKey("standard_modalities.id"), nullable=False)
    modality_name = Column(Text, nullable=False)
    institution_external_id = Column(Text, nullable=True)
    original_modality_name = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    metadata_ = Column("metadata", JSON, nullable=True)
    last_seen_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    standard_modality = relationship("StandardModalityModel", back_populates="mappings", lazy="joined")


class CreditModalityModel(Base):
    """Internal credit product bound to a standard code"""

    __tablename__ = "credit_modalities"

    id = Column(String(36), primary_key=True, default=_uuid)
    standard_code = Column(String(100), nullable=False, unique=True, index=True)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
