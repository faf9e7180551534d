"""Structured JSON logging for payables events"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from payables_gateway.config import settings

LOG_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Adds a UTC timestamp, the level name and the service name to every record"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Route the root logger to stdout as one JSON object per line"""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level.upper())


def log_obligation_created(series_key: str, mode: str, counterparty: str, installments: int) -> None:
    """Log a persisted obligation series"""
    logging.info(
        "Obligation created",
        extra={
            "step": "obligation_created",
            "series_key": series_key,
            "mode": mode,
            "counterparty": counterparty,
            "installments": installments,
        },
    )


def log_payment(installment_id: str, action: str, payment_date: str | None) -> None:
    logging.info(
        "Payment updated",
        extra={
            "step": f"payment_{action}",
            "installment_id": installment_id,
            "payment_date": payment_date,
        },
    )


def log_match_decision(session_id: str, candidate_id: str, installment_id: str, outcome: str, score: float) -> None:
    """Log operator confirmation or rejection of a reconciliation candidate"""
    logging.info(
        "Match decision",
        extra={
            "step": f"match_{outcome}",
            "session_id": session_id,
            "candidate_id": candidate_id,
            "installment_id": installment_id,
            "score": round(score, 3),
        },
    )


def log_undo(action_id: str, kind: str, table: str, outcome: str) -> None:
    logging.info(
        "Undo journal",
        extra={
            "step": f"undo_{outcome}",
            "action_id": action_id,
            "kind": kind,
            "table": table,
        },
    )
