"""Simulate a requested amount and term against normalized offers"""

from dataclasses import dataclass
from typing import Iterable, List

from credit_offers.domain import calculator
from credit_offers.domain.exceptions import ValidationError
from credit_offers.domain.models import CreditOffer
from credit_offers.domain.value_objects import InstallmentCount, Money


@dataclass(frozen=True)
class OfferSimulation:
    """Repayment figures for one offer at the requested amount and term"""

    offer: CreditOffer
    requested_amount: Money
    installments: InstallmentCount
    monthly_payment: Money
    total_amount: Money
    total_interest: Money
    effective_rate: float

    @property
    def installment_description(self) -> str:
        return self.installments.period_description

    @property
    def monthly_rate_description(self) -> str:
        return self.offer.monthly_interest_rate.formatted_monthly

    @property
    def annual_rate_description(self) -> str:
        return self.offer.monthly_interest_rate.formatted_annual


def validate_request(offer: CreditOffer, requested_amount: Money, installments: InstallmentCount) -> None:
    """
    Check a request against the offer's limits.

    Raises:
        ValidationError: amount or installments outside the offer's range
    """
    if requested_amount.is_less_than(offer.min_amount):
        raise ValidationError(
            f"Requested amount ({requested_amount.formatted}) is below the minimum allowed ({offer.min_amount.formatted})"
        )
    if requested_amount.is_greater_than(offer.max_amount):
        raise ValidationError(
            f"Requested amount ({requested_amount.formatted}) is above the maximum allowed ({offer.max_amount.formatted})"
        )
    if installments.is_less_than(offer.min_installments):
        raise ValidationError(
            f"Installments ({installments.value}) below the minimum allowed ({offer.min_installments.value})"
        )
    if installments.is_greater_than(offer.max_installments):
        raise ValidationError(
            f"Installments ({installments.value}) above the maximum allowed ({offer.max_installments.value})"
        )


def simulate_offer(offer: CreditOffer, requested_amount: Money, installments: InstallmentCount) -> OfferSimulation:
    validate_request(offer, requested_amount, installments)

    result = calculator.calculate_offer(requested_amount, offer.monthly_interest_rate, installments)

    return OfferSimulation(
        offer=offer,
        requested_amount=requested_amount,
        installments=installments,
        monthly_payment=result.monthly_payment,
        total_amount=result.total_amount,
        total_interest=result.total_interest,
        effective_rate=result.effective_rate,
    )


def simulate_offers(
    offers: Iterable[CreditOffer],
    requested_amount: Money,
    installments: InstallmentCount,
) -> List[OfferSimulation]:
    """
    Simulate every offer whose limits admit the request, cheapest first.

    Raises:
        ValidationError: no offers given
    """
    offers = list(offers)
    if not offers:
        raise ValidationError("Offer list cannot be empty")

    simulations = []
    for offer in offers:
        try:
            simulations.append(simulate_offer(offer, requested_amount, installments))
        except ValidationError:
            continue

    return sorted(simulations, key=lambda s: s.effective_rate)
