"""Pytest fixtures for testing"""

import uuid
import pytest
from typing import Callable, Dict, Generator, Optional
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from credit_offers.domain.models import CreditModality, CreditOffer, CreditOfferStatus, Institution
from credit_offers.domain.value_objects import CPF, InstallmentCount, InterestRate, Money
from credit_offers.infrastructure.database.models import Base
from credit_offers.services.auto_discovery import ModalityAutoDiscoveryService
from credit_offers.services.normalization import OfferNormalizationService
from tests.fakes import (
    InMemoryCreditModalityStore,
    InMemoryInstitutionStore,
    InMemoryModalityMappingStore,
    InMemoryStandardModalityStore,
    catalog_credit_modalities,
    catalog_standard_modalities,
)


VALID_CPF = "11144477735"


@pytest.fixture
def customer_cpf() -> CPF:
    return CPF(VALID_CPF)


@pytest.fixture
def institution() -> Institution:
    return Institution(id="1", institution_id=1, name="Banco Exemplo S.A.")


@pytest.fixture
def standard_store() -> InMemoryStandardModalityStore:
    return InMemoryStandardModalityStore(catalog_standard_modalities())


@pytest.fixture
def empty_standard_store() -> InMemoryStandardModalityStore:
    return InMemoryStandardModalityStore()


@pytest.fixture
def mapping_store() -> InMemoryModalityMappingStore:
    return InMemoryModalityMappingStore()


@pytest.fixture
def discovery(standard_store, mapping_store) -> ModalityAutoDiscoveryService:
    return ModalityAutoDiscoveryService(standard_store, mapping_store)


@pytest.fixture
def normalization_service(discovery, institution) -> OfferNormalizationService:
    return OfferNormalizationService(
        discovery,
        InMemoryInstitutionStore([institution]),
        InMemoryCreditModalityStore(catalog_credit_modalities()),
    )


@pytest.fixture
def raw_offer() -> Dict:
    """Raw payload as an institution reports it"""
    return {
        "institution_id": 1,
        "modality_code": "CP-001",
        "modality_name": "Crédito Pessoal",
        "min_amount": 1000.00,
        "max_amount": 30000.00,
        "approved_amount": 15000.00,
        "min_installments": 6,
        "max_installments": 48,
        "approved_installments": 24,
        "monthly_interest_rate": 0.0349,
    }


@pytest.fixture
def make_offer(customer_cpf, institution) -> Callable[..., CreditOffer]:
    """Factory for completed offers with sensible defaults"""

    def _make(
        rate: float = 0.02,
        max_amount_cents: int = 1_000_000,
        approved_amount_cents: Optional[int] = None,
        installments: int = 12,
        interest_range=(0.01, 0.03),
        status: CreditOfferStatus = CreditOfferStatus.COMPLETED,
        standard_code: str = "PAYROLL_CREDIT",
    ) -> CreditOffer:
        return CreditOffer(
            id=str(uuid.uuid4()),
            request_id="req-1",
            customer_cpf=customer_cpf,
            institution=institution,
            modality=CreditModality(
                id=f"mod-{standard_code.lower()}",
                standard_code=standard_code,
                name="Crédito Consignado",
                typical_interest_range=interest_range,
            ),
            min_amount=Money(min(100_000, max_amount_cents)),
            max_amount=Money(max_amount_cents),
            approved_amount=Money(approved_amount_cents if approved_amount_cents is not None else max_amount_cents),
            monthly_interest_rate=InterestRate(rate),
            min_installments=InstallmentCount(1),
            max_installments=InstallmentCount(max(installments, 1)),
            installments=InstallmentCount(installments),
            status=status,
        )

    return _make


# Test database


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory SQLite database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT to behave
    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory) -> Generator[Session, None, None]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
