"""Domain models - pure Python dataclasses representing business entities"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from credit_offers.domain import calculator
from credit_offers.domain.exceptions import ValidationError
from credit_offers.domain.modality_catalog import (
    RISK_LEVELS,
    RateRange,
    interest_range_for,
    risk_level_for,
)
from credit_offers.domain.value_objects import CPF, InstallmentCount, InterestRate, Money
from credit_offers.utils.text_utils import normalize_modality_name


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_text(value: str, message: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(message)
    return str(value).strip()


def _validate_rate_range(value: Optional[RateRange]) -> Optional[RateRange]:
    if value is None:
        return None
    low, high = float(value[0]), float(value[1])
    if low < 0 or high < low:
        raise ValidationError(f"Invalid interest range: {value!r}")
    return (low, high)


class CreditOfferStatus(str, Enum):
    """Lifecycle of a credit offer"""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    EXPIRED = "expired"

    @property
    def label(self) -> str:
        return {
            CreditOfferStatus.PENDING: "Pendente",
            CreditOfferStatus.PROCESSING: "Processando",
            CreditOfferStatus.COMPLETED: "Concluído",
            CreditOfferStatus.FAILED: "Falhou",
            CreditOfferStatus.EXPIRED: "Expirado",
        }[self]

    def is_finished(self) -> bool:
        return self in (CreditOfferStatus.COMPLETED, CreditOfferStatus.FAILED, CreditOfferStatus.EXPIRED)

    def is_successful(self) -> bool:
        return self is CreditOfferStatus.COMPLETED

    def can_retry(self) -> bool:
        return self in (CreditOfferStatus.FAILED, CreditOfferStatus.EXPIRED)


@dataclass
class StandardModality:
    """Canonical taxonomy entry shared by every institution"""

    id: str
    code: str
    name: str
    description: Optional[str] = None
    risk_level: str = "medium"
    typical_interest_range: Optional[RateRange] = None
    keywords: List[str] = field(default_factory=list)
    is_active: bool = True
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.code = _require_text(self.code, "Standard modality code cannot be empty").upper()
        self.name = _require_text(self.name, "Standard modality name cannot be empty")
        if self.risk_level not in RISK_LEVELS:
            raise ValidationError("Risk level must be one of: low, medium, high")
        self.typical_interest_range = _validate_rate_range(self.typical_interest_range)
        self.keywords = list(self.keywords or [])

    @property
    def interest_range(self) -> RateRange:
        return self.typical_interest_range or interest_range_for(self.code)

    def matches_keyword(self, modality_name: str) -> bool:
        """True when any keyword occurs in the normalized name"""
        normalized = normalize_modality_name(modality_name)
        for keyword in self.keywords:
            needle = normalize_modality_name(keyword)
            if needle and needle in normalized:
                return True
        return False

    def copy_with(self, **changes: Any) -> "StandardModality":
        return replace(self, updated_at=utcnow(), **changes)

    def equals(self, other: "StandardModality") -> bool:
        return self.code == other.code


@dataclass
class ModalityMapping:
    """Learned binding of one institution's modality code to a standard modality"""

    id: str
    institution_id: str
    external_code: str
    standard_modality: StandardModality
    modality_name: str
    institution_external_id: Optional[str] = None
    original_modality_name: Optional[str] = None
    is_active: bool = True
    last_seen_at: datetime = field(default_factory=utcnow)
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.external_code = _require_text(self.external_code, "External code cannot be empty")
        self.modality_name = _require_text(self.modality_name, "Modality name cannot be empty")
        self.metadata = dict(self.metadata or {})

    @property
    def auto_discovered(self) -> bool:
        return bool(self.metadata.get("auto_discovered", False))

    @property
    def confidence_score(self) -> Optional[float]:
        return self.metadata.get("confidence_score")

    def matches(self, institution_id: str, external_code: str) -> bool:
        return self.institution_id == institution_id and self.external_code == external_code

    def matches_external(self, institution_external_id: str, external_code: str) -> bool:
        return self.institution_external_id == institution_external_id and self.external_code == external_code

    def is_recently_seen(self, days_threshold: int = 30) -> bool:
        last_seen = self.last_seen_at
        if last_seen.tzinfo is None:
            last_seen = last_seen.replace(tzinfo=timezone.utc)
        return last_seen >= utcnow() - timedelta(days=days_threshold)

    def equals(self, other: "ModalityMapping") -> bool:
        return self.id == other.id


@dataclass
class Institution:
    """Financial institution reporting offers"""

    id: str
    institution_id: int
    name: str
    website: Optional[str] = None
    logo_url: Optional[str] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        self.name = _require_text(self.name, "Institution name cannot be empty")

    @property
    def slug(self) -> str:
        cleaned = re.sub(r"[^a-zA-Z0-9\s-]", "", self.name)
        return re.sub(r"[\s-]", "_", cleaned).lower()


@dataclass
class CreditModality:
    """Internal credit product bound to a standard modality code"""

    id: str
    standard_code: str
    name: str
    description: Optional[str] = None
    typical_interest_range: Optional[RateRange] = None
    is_active: bool = True

    def __post_init__(self) -> None:
        self.standard_code = _require_text(self.standard_code, "Standard code cannot be empty").upper()
        self.name = _require_text(self.name, "Modality name cannot be empty")
        self.typical_interest_range = _validate_rate_range(self.typical_interest_range)

    @property
    def interest_range(self) -> RateRange:
        return self.typical_interest_range or interest_range_for(self.standard_code)

    @property
    def risk_level(self) -> str:
        return risk_level_for(self.standard_code)


@dataclass
class CreditOffer:
    """Normalized offer from one institution for one customer"""

    id: str
    request_id: str
    customer_cpf: CPF
    institution: Institution
    modality: CreditModality
    min_amount: Money
    max_amount: Money
    approved_amount: Money
    monthly_interest_rate: InterestRate
    min_installments: InstallmentCount
    max_installments: InstallmentCount
    installments: InstallmentCount
    status: CreditOfferStatus = CreditOfferStatus.PENDING
    error_message: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.request_id = _require_text(self.request_id, "Request ID cannot be empty")
        if self.min_amount.is_greater_than(self.max_amount):
            raise ValidationError("Minimum amount cannot exceed maximum amount")
        if self.min_installments.is_greater_than(self.max_installments):
            raise ValidationError("Minimum installments cannot exceed maximum installments")

    @property
    def monthly_payment(self) -> Money:
        if not self.status.is_successful():
            return Money.zero()
        return calculator.monthly_payment(self.approved_amount, self.monthly_interest_rate, self.installments)

    @property
    def total_amount(self) -> Money:
        if not self.status.is_successful():
            return Money.zero()
        return self.monthly_payment.multiply(self.installments.value)

    @property
    def total_interest(self) -> Money:
        if not self.status.is_successful():
            return Money.zero()
        return calculator.total_interest(self.approved_amount, self.monthly_interest_rate, self.installments)

    def effective_rate(self) -> float:
        return calculator.effective_rate(self.approved_amount, self.monthly_interest_rate, self.installments)

    def is_more_attractive_than(self, other: "CreditOffer") -> bool:
        return self.effective_rate() < other.effective_rate()

    def _copy_with(self, status: CreditOfferStatus, error_message: Optional[str]) -> "CreditOffer":
        return replace(self, status=status, error_message=error_message, updated_at=utcnow())

    def mark_as_completed(self) -> "CreditOffer":
        return self._copy_with(CreditOfferStatus.COMPLETED, None)

    def mark_as_processing(self) -> "CreditOffer":
        return self._copy_with(CreditOfferStatus.PROCESSING, None)

    def mark_as_failed(self, error_message: str) -> "CreditOffer":
        return self._copy_with(CreditOfferStatus.FAILED, error_message)

    def equals(self, other: "CreditOffer") -> bool:
        return self.id == other.id
