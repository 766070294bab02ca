"""Offer ranking engine - multi-criteria scoring of completed offers"""

from dataclasses import dataclass
from typing import Iterable, List

from credit_offers.domain.models import CreditOffer

INTEREST_WEIGHT = 0.7
AMOUNT_WEIGHT = 0.3
TOP_OFFERS_LIMIT = 3

# Market band for available amounts: R$1.000 to R$500.000 (in cents)
MARKET_MIN_AMOUNT_CENTS = 100_000
MARKET_MAX_AMOUNT_CENTS = 50_000_000


@dataclass(frozen=True)
class RankedOffer:
    """Offer with the score that placed it"""

    offer: CreditOffer
    score: float
    interest_score: float
    amount_score: float


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _completed(offers: Iterable[CreditOffer]) -> List[CreditOffer]:
    return [o for o in offers if isinstance(o, CreditOffer) and o.status.is_successful()]


def calculate_interest_score(offer: CreditOffer) -> float:
    """
    Position of the offer's rate inside its modality's typical range.

    1.0 at (or below) the range minimum, 0.0 at (or above) the maximum;
    0.5 when the range is degenerate.
    """
    min_rate, max_rate = offer.modality.interest_range
    if max_rate == min_rate:
        return 0.5

    rate = offer.monthly_interest_rate.monthly_rate
    return _clamp(1 - (rate - min_rate) / (max_rate - min_rate))


def calculate_amount_score(offer: CreditOffer) -> float:
    """Position of the offer's max amount inside the market band, larger is better"""
    if MARKET_MAX_AMOUNT_CENTS == MARKET_MIN_AMOUNT_CENTS:
        return 0.5

    amount = offer.max_amount.amount_cents
    return _clamp((amount - MARKET_MIN_AMOUNT_CENTS) / (MARKET_MAX_AMOUNT_CENTS - MARKET_MIN_AMOUNT_CENTS))


def calculate_offer_score(offer: CreditOffer) -> float:
    """
    Score from 0.0 (worst) to 1.0 (best).

    Scoring weights:
    - 70%: Interest rate relative to the modality's typical range (lower is better)
    - 30%: Maximum available amount relative to the market band (higher is better)
    """
    return INTEREST_WEIGHT * calculate_interest_score(offer) + AMOUNT_WEIGHT * calculate_amount_score(offer)


def rank_offers_with_scores(offers: Iterable[CreditOffer], limit: int = TOP_OFFERS_LIMIT) -> List[RankedOffer]:
    """Best completed offers first, with their scores; ties keep input order"""
    scored = []
    for offer in _completed(offers):
        interest_score = calculate_interest_score(offer)
        amount_score = calculate_amount_score(offer)
        scored.append(
            RankedOffer(
                offer=offer,
                score=INTEREST_WEIGHT * interest_score + AMOUNT_WEIGHT * amount_score,
                interest_score=interest_score,
                amount_score=amount_score,
            )
        )

    # sorted() is stable, so equal scores keep their relative order
    scored = sorted(scored, key=lambda r: r.score, reverse=True)
    return scored[:max(0, min(limit, TOP_OFFERS_LIMIT))]


def rank_offers(offers: Iterable[CreditOffer]) -> List[CreditOffer]:
    """Top 3 completed offers by score. Never raises; empty input gives []"""
    return [ranked.offer for ranked in rank_offers_with_scores(offers)]


def rank_by_total_cost(offers: Iterable[CreditOffer]) -> List[CreditOffer]:
    """Completed offers, cheapest total repayment first"""
    return sorted(_completed(offers), key=lambda o: o.total_amount.amount_cents)
