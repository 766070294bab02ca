"""Amortization calculator - Price (French) system with cent-exact outputs"""

from dataclasses import dataclass
from typing import List, Sequence, TypeVar

from credit_offers.domain.exceptions import ValidationError
from credit_offers.domain.value_objects import InstallmentCount, InterestRate, Money, round_half_up


@dataclass(frozen=True)
class AmortizationEntry:
    """One row of an amortization schedule"""

    month: int
    payment: Money
    principal: Money
    interest: Money
    balance: Money


@dataclass(frozen=True)
class OfferCalculation:
    """Figures for one (principal, rate, installments) combination"""

    principal: Money
    monthly_rate: InterestRate
    installments: InstallmentCount
    monthly_payment: Money
    total_amount: Money
    total_interest: Money
    effective_rate: float


def monthly_payment(principal: Money, monthly_rate: InterestRate, installments: InstallmentCount) -> Money:
    """
    Constant installment under the Price (French) system.

    payment = P * r / (1 - (1+r)^-n)

    A single installment is a cash settlement of the whole principal, and a
    zero rate splits the principal evenly.
    """
    if installments.value == 1:
        return principal

    if monthly_rate.is_zero():
        return principal.divide(installments.value)

    rate = monthly_rate.monthly_rate
    payment_cents = principal.amount_cents * rate / monthly_rate.annuity_factor(installments.value)

    return Money(round_half_up(payment_cents))


def total_amount(principal: Money, monthly_rate: InterestRate, installments: InstallmentCount) -> Money:
    return monthly_payment(principal, monthly_rate, installments).multiply(installments.value)


def total_interest(principal: Money, monthly_rate: InterestRate, installments: InstallmentCount) -> Money:
    """total_amount - principal, floored at zero when payment rounding undershoots"""
    total = total_amount(principal, monthly_rate, installments)
    return Money(max(total.amount_cents - principal.amount_cents, 0))


def effective_rate(principal: Money, monthly_rate: InterestRate, installments: InstallmentCount) -> float:
    """Total financing cost as a fraction of principal (0 for a zero principal)"""
    if principal.is_zero():
        return 0.0

    total = total_amount(principal, monthly_rate, installments)
    return (total.amount_cents - principal.amount_cents) / principal.amount_cents


def amortization_schedule(
    principal: Money,
    monthly_rate: InterestRate,
    installments: InstallmentCount,
) -> List[AmortizationEntry]:
    """
    Month-by-month breakdown of a Price loan.

    Interest accrues on the declining balance. The last installment takes the
    whole remaining balance as principal, so principal portions always sum to
    the original principal and its payment absorbs any rounding drift.
    """
    payment = monthly_payment(principal, monthly_rate, installments)
    rate = monthly_rate.monthly_rate
    remaining = principal.amount_cents

    schedule = []
    for month in range(1, installments.value + 1):
        interest = round_half_up(remaining * rate)

        if month == installments.value:
            principal_part = remaining
            payment_cents = principal_part + interest
        else:
            # Payment may not cover the accrued interest on tiny principals
            principal_part = min(max(payment.amount_cents - interest, 0), remaining)
            payment_cents = principal_part + interest

        remaining -= principal_part

        schedule.append(
            AmortizationEntry(
                month=month,
                payment=Money(payment_cents),
                principal=Money(principal_part),
                interest=Money(interest),
                balance=Money(max(0, remaining)),
            )
        )

    return schedule


def max_affordable_amount(
    monthly_income: Money,
    debt_to_income_ratio: float,
    monthly_rate: InterestRate,
    installments: InstallmentCount,
) -> Money:
    """
    Largest principal whose installment fits in income * ratio.

    Inverse of the Price formula: P = budget * (1 - (1+r)^-n) / r

    Raises:
        ValidationError: ratio outside (0, 1]
    """
    if not 0 < debt_to_income_ratio <= 1:
        raise ValidationError("Debt-to-income ratio must be in (0, 1]")

    budget = monthly_income.multiply(debt_to_income_ratio)

    if installments.value == 1:
        return budget

    if monthly_rate.is_zero():
        return budget.multiply(installments.value)

    rate = monthly_rate.monthly_rate
    principal_cents = budget.amount_cents * monthly_rate.annuity_factor(installments.value) / rate

    return Money(round_half_up(principal_cents))


def calculate_offer(principal: Money, monthly_rate: InterestRate, installments: InstallmentCount) -> OfferCalculation:
    """Bundle payment, totals and effective rate for comparison"""
    payment = monthly_payment(principal, monthly_rate, installments)
    total = payment.multiply(installments.value)

    return OfferCalculation(
        principal=principal,
        monthly_rate=monthly_rate,
        installments=installments,
        monthly_payment=payment,
        total_amount=total,
        total_interest=Money(max(total.amount_cents - principal.amount_cents, 0)),
        effective_rate=effective_rate(principal, monthly_rate, installments),
    )


C = TypeVar("C", bound=OfferCalculation)


def compare_offers(calculations: Sequence[C]) -> List[C]:
    """Cheapest first by effective rate; equal rates keep their input order"""
    return sorted(calculations, key=lambda c: c.effective_rate)
