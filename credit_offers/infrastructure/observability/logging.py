"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from credit_offers.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: Optional[str] = None) -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level or settings.log_level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_offer_rejected(request_id: str, institution_id: Any, modality_code: Any, reason: str, error: str) -> None:
    """Log a raw offer dropped by normalization"""
    logging.warning(
        "Offer rejected",
        extra={
            "request_id": request_id,
            "institution_id": institution_id,
            "modality_code": modality_code,
            "step": "offer_normalization",
            "reason": reason,
            "error": error,
        },
    )


def log_offers_normalized(request_id: str, received: int, accepted: int) -> None:
    """Log batch outcome of a normalization run"""
    logging.info(
        "Offers normalized",
        extra={
            "request_id": request_id,
            "step": "offer_normalization",
            "received": received,
            "accepted": accepted,
            "rejected": received - accepted,
        },
    )


def log_modality_discovered(
    institution_id: str,
    external_code: str,
    standard_code: str,
    confidence_score: float,
    created_standard: bool,
) -> None:
    """Log a new institution mapping learned by auto-discovery"""
    logging.info(
        "Modality mapping discovered",
        extra={
            "institution_id": institution_id,
            "external_code": external_code,
            "standard_code": standard_code,
            "confidence_score": confidence_score,
            "created_standard_modality": created_standard,
            "step": "modality_discovery",
        },
    )
