"""Seed the canonical modality taxonomy"""

import logging
from sqlalchemy.orm import Session
from credit_offers.domain.modality_catalog import MODALITY_PATTERNS
from credit_offers.infrastructure.database.models import StandardModalityModel


def seed_standard_modalities(db: Session) -> int:
    """Insert catalog modalities that are not present yet; returns how many were added"""
    existing = {code for (code,) in db.query(StandardModalityModel.code).all()}
    added = 0

    for priority, (code, pattern) in enumerate(MODALITY_PATTERNS.items()):
        if code in existing:
            continue
        low, high = pattern["interest_range"]
        db.add(
            StandardModalityModel(
                code=code,
                name=pattern["name"],
                description=pattern["description"],
                risk_level=pattern["risk_level"],
                typical_interest_range={"min": low, "max": high},
                keywords=list(pattern["keywords"]),
                is_active=True,
                priority=priority,
            )
        )
        added += 1

    db.flush()
    logging.info("Standard modalities seeded", extra={"added": added})
    return added
