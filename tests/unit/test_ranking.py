"""Unit tests for offer ranking"""

import pytest
from credit_offers.domain.models import CreditOfferStatus
from credit_offers.domain.ranking import (
    calculate_amount_score,
    calculate_interest_score,
    calculate_offer_score,
    rank_by_total_cost,
    rank_offers,
    rank_offers_with_scores,
)


def test_interest_and_amount_scores_for_two_offers(make_offer):
    """Cheaper offer wins on rate, larger offer wins on amount"""
    offer_a = make_offer(rate=0.015, max_amount_cents=300000, interest_range=(0.01, 0.03))
    offer_b = make_offer(rate=0.025, max_amount_cents=10000000, interest_range=(0.01, 0.03))

    assert calculate_interest_score(offer_a) == pytest.approx(0.75)
    assert calculate_interest_score(offer_b) == pytest.approx(0.25)
    assert calculate_amount_score(offer_a) == pytest.approx(200000 / 49900000)
    assert calculate_amount_score(offer_b) == pytest.approx(9900000 / 49900000)

    assert calculate_interest_score(offer_a) > calculate_interest_score(offer_b)
    assert calculate_amount_score(offer_b) > calculate_amount_score(offer_a)

    # 70% weight on rate outweighs B's amount advantage
    assert calculate_offer_score(offer_a) == pytest.approx(0.7 * 0.75 + 0.3 * 200000 / 49900000)
    assert rank_offers([offer_b, offer_a]) == [offer_a, offer_b]


def test_interest_score_is_clamped(make_offer):
    below = make_offer(rate=0.001, interest_range=(0.01, 0.03))
    above = make_offer(rate=0.2, interest_range=(0.01, 0.03))

    assert calculate_interest_score(below) == 1.0
    assert calculate_interest_score(above) == 0.0


def test_interest_score_degenerate_range(make_offer):
    offer = make_offer(rate=0.02, interest_range=(0.02, 0.02))
    assert calculate_interest_score(offer) == 0.5


def test_interest_score_falls_back_to_catalog_range(make_offer):
    # PERSONAL_CREDIT catalog range is 2% - 15%
    offer = make_offer(rate=0.02, interest_range=None, standard_code="PERSONAL_CREDIT")
    assert calculate_interest_score(offer) == pytest.approx(1.0)


def test_amount_score_band_limits(make_offer):
    assert calculate_amount_score(make_offer(max_amount_cents=50000)) == 0.0
    assert calculate_amount_score(make_offer(max_amount_cents=100000)) == 0.0
    assert calculate_amount_score(make_offer(max_amount_cents=50000000)) == 1.0
    assert calculate_amount_score(make_offer(max_amount_cents=90000000)) == 1.0


def test_rank_offers_returns_at_most_three_with_non_increasing_scores(make_offer):
    offers = [make_offer(rate=0.01 + i * 0.002, max_amount_cents=200000 + i * 100000) for i in range(7)]

    ranked = rank_offers_with_scores(offers)

    assert len(ranked) == 3
    scores = [r.score for r in ranked]
    assert scores == sorted(scores, reverse=True)
    assert [r.offer for r in ranked] == rank_offers(offers)


def test_rank_offers_filters_non_completed(make_offer):
    completed = make_offer(rate=0.02)
    pending = make_offer(rate=0.01, status=CreditOfferStatus.PENDING)
    failed = make_offer(rate=0.01, status=CreditOfferStatus.FAILED)

    assert rank_offers([pending, completed, failed]) == [completed]


def test_rank_offers_empty_inputs():
    assert rank_offers([]) == []


def test_rank_offers_only_failed_offers(make_offer):
    assert rank_offers([make_offer(status=CreditOfferStatus.EXPIRED)]) == []


def test_rank_offers_ties_keep_input_order(make_offer):
    first = make_offer(rate=0.02, max_amount_cents=500000)
    second = make_offer(rate=0.02, max_amount_cents=500000)

    assert rank_offers([first, second]) == [first, second]
    assert rank_offers([second, first]) == [second, first]


def test_rank_by_total_cost_ascending_without_truncation(make_offer):
    pricey = make_offer(rate=0.05, max_amount_cents=1_000_000, installments=24)
    cheap = make_offer(rate=0.01, max_amount_cents=1_000_000, installments=24)
    middle = make_offer(rate=0.03, max_amount_cents=1_000_000, installments=24)
    small = make_offer(rate=0.05, max_amount_cents=200_000, installments=6)
    pending = make_offer(rate=0.001, status=CreditOfferStatus.PENDING)

    ranked = rank_by_total_cost([pricey, cheap, middle, small, pending])

    assert ranked == [small, cheap, middle, pricey]
    totals = [o.total_amount.amount_cents for o in ranked]
    assert totals == sorted(totals)


def test_rank_by_total_cost_handles_long_terms(make_offer):
    offer = make_offer(rate=0.5, installments=2000)

    assert rank_by_total_cost([offer]) == [offer]
    assert rank_offers([offer]) == [offer]
