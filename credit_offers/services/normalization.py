"""Offer normalization - turn raw institution payloads into CreditOffer entities"""

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from credit_offers.domain.exceptions import DomainException, NotFoundError, ValidationError
from credit_offers.domain.models import CreditOffer, CreditOfferStatus
from credit_offers.domain.repositories import CreditModalityStore, InstitutionStore
from credit_offers.domain.value_objects import CPF, InstallmentCount, InterestRate, Money
from credit_offers.infrastructure.observability.logging import log_offer_rejected, log_offers_normalized
from credit_offers.infrastructure.observability.metrics import record_normalization
from credit_offers.services.auto_discovery import ModalityAutoDiscoveryService


class RawCreditOffer(BaseModel):
    """Offer payload as reported by an institution (amounts in reais)"""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, coerce_numbers_to_str=True)

    institution_id: int = Field(..., ge=0)
    modality_code: str = Field(..., min_length=1)
    modality_name: Optional[str] = None
    institution_external_id: Optional[str] = None
    min_amount: Decimal = Field(..., ge=0, allow_inf_nan=False)
    max_amount: Decimal = Field(..., ge=0, allow_inf_nan=False)
    approved_amount: Optional[Decimal] = Field(default=None, ge=0, allow_inf_nan=False)
    min_installments: int = Field(..., ge=1)
    max_installments: int = Field(..., ge=1)
    approved_installments: Optional[int] = Field(default=None, ge=1)
    monthly_interest_rate: float = Field(..., ge=0, allow_inf_nan=False)

    @model_validator(mode="after")
    def check_ranges(self) -> "RawCreditOffer":
        if self.min_amount > self.max_amount:
            raise ValueError("min_amount cannot be greater than max_amount")
        if self.min_installments > self.max_installments:
            raise ValueError("min_installments cannot be greater than max_installments")
        return self


@dataclass(frozen=True)
class NormalizationResult:
    """Outcome for one raw offer: either an offer or the reason it was dropped"""

    raw: Mapping[str, Any]
    offer: Optional[CreditOffer] = None
    reason: Optional[str] = None  # validation | not_found | unexpected
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.offer is not None


def parse_raw_offer(raw: Mapping[str, Any]) -> RawCreditOffer:
    """
    Validate a raw payload.

    Raises:
        ValidationError: missing field, non-numeric or negative value, or min > max
    """
    if not isinstance(raw, Mapping):
        raise ValidationError(f"Raw offer must be a mapping, got {type(raw).__name__}")
    try:
        return RawCreditOffer.model_validate(dict(raw))
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'offer'}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid raw offer: {problems}") from e


class OfferNormalizationService:
    """
    Builds completed CreditOffer entities from raw institution offers.

    Per-offer failures never abort a batch. normalize_offer_result and
    normalize_offers_detailed report why each offer was dropped;
    normalize_offer and normalize_multiple_offers keep only the successes.
    """

    def __init__(
        self,
        auto_discovery: ModalityAutoDiscoveryService,
        institution_store: InstitutionStore,
        credit_modality_store: CreditModalityStore,
    ):
        self.auto_discovery = auto_discovery
        self.institution_store = institution_store
        self.credit_modality_store = credit_modality_store

    def build_offer(self, customer_cpf: CPF, request_id: str, raw: Mapping[str, Any]) -> CreditOffer:
        """
        Normalize one raw offer, raising on the first problem.

        Raises:
            ValidationError: invalid payload or value object
            NotFoundError: institution or internal modality unknown
        """
        payload = parse_raw_offer(raw)
        institution_key = str(payload.institution_id)

        mapping = self.auto_discovery.discover_or_create_mapping(
            institution_key,
            payload.modality_code,
            payload.modality_name or payload.modality_code,
            payload.institution_external_id,
        )

        institution = self.institution_store.find_by_id(institution_key)
        if institution is None:
            raise NotFoundError(f"Institution not found: {institution_key}")

        modality = self.credit_modality_store.find_by_standard_modality(mapping.standard_modality)
        if modality is None:
            raise NotFoundError(f"Standard modality not found: {mapping.standard_modality.code}")

        approved_amount = payload.approved_amount if payload.approved_amount is not None else payload.max_amount
        approved_installments = (
            payload.approved_installments if payload.approved_installments is not None else payload.max_installments
        )

        return CreditOffer(
            id=str(uuid.uuid4()),
            request_id=request_id,
            customer_cpf=customer_cpf,
            institution=institution,
            modality=modality,
            min_amount=Money.from_value(payload.min_amount),
            max_amount=Money.from_value(payload.max_amount),
            approved_amount=Money.from_value(approved_amount),
            monthly_interest_rate=InterestRate(payload.monthly_interest_rate),
            min_installments=InstallmentCount(payload.min_installments),
            max_installments=InstallmentCount(payload.max_installments),
            installments=InstallmentCount(approved_installments),
            status=CreditOfferStatus.COMPLETED,
        )

    def normalize_offer_result(self, customer_cpf: CPF, request_id: str, raw: Mapping[str, Any]) -> NormalizationResult:
        try:
            offer = self.build_offer(customer_cpf, request_id, raw)
        except ValidationError as e:
            return self._rejected(request_id, raw, "validation", e)
        except NotFoundError as e:
            return self._rejected(request_id, raw, "not_found", e)
        except DomainException as e:
            return self._rejected(request_id, raw, "unexpected", e)
        except Exception as e:
            logging.exception("Unexpected error normalizing offer", extra={"request_id": request_id})
            return self._rejected(request_id, raw, "unexpected", e)

        record_normalization(accepted=True)
        return NormalizationResult(raw=raw, offer=offer)

    def normalize_offer(self, customer_cpf: CPF, request_id: str, raw: Mapping[str, Any]) -> Optional[CreditOffer]:
        """The normalized offer, or None when it had to be dropped"""
        return self.normalize_offer_result(customer_cpf, request_id, raw).offer

    def normalize_offers_detailed(
        self,
        customer_cpf: CPF,
        request_id: str,
        raw_offers: Iterable[Mapping[str, Any]],
    ) -> List[NormalizationResult]:
        results = [self.normalize_offer_result(customer_cpf, request_id, raw) for raw in raw_offers]
        log_offers_normalized(request_id, len(results), sum(1 for r in results if r.ok))
        return results

    def normalize_multiple_offers(
        self,
        customer_cpf: CPF,
        request_id: str,
        raw_offers: Iterable[Mapping[str, Any]],
    ) -> List[CreditOffer]:
        """Successfully normalized offers only, in input order"""
        results = self.normalize_offers_detailed(customer_cpf, request_id, raw_offers)
        return [r.offer for r in results if r.offer is not None]

    @staticmethod
    def _rejected(request_id: str, raw: Any, reason: str, error: Exception) -> NormalizationResult:
        fields: Dict[str, Any] = raw if isinstance(raw, Mapping) else {}
        log_offer_rejected(request_id, fields.get("institution_id"), fields.get("modality_code"), reason, str(error))
        record_normalization(accepted=False, reason=reason)
        return NormalizationResult(raw=raw, reason=reason, error=str(error))
