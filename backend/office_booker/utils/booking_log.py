from __future__ import annotations

import json
import logging
from datetime import date, datetime, timezone
from typing import Any, Literal, Optional

from .request_id import current_request_id

BookingEvent = Literal[
    "booking.created",
    "booking.rejected",
    "booking.cancelled",
    "ledger.invariant_violation",
    "ledger.reconciliation_required",
    "bookings.purged",
]

_event_logger = logging.getLogger("booking_events")
_event_logger.setLevel(logging.INFO)
if not _event_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    _event_logger.addHandler(handler)
_event_logger.propagate = False

_WARNING_EVENTS = {"ledger.invariant_violation", "ledger.reconciliation_required"}


def _plain(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if hasattr(value, "value"):
        return str(value.value)
    return value


def emit_booking_event(
    *,
    action: BookingEvent,
    booking_id: Optional[str] = None,
    office_id: Optional[str] = None,
    day: Optional[date] = None,
    user_email: Optional[str] = None,
    parking: Optional[bool] = None,
    status_from: Optional[str] = None,
    status_to: Optional[str] = None,
    reason: Optional[str] = None,
    extra: Optional[dict[str, Any]] = None,
) -> None:
    """Emit one structured JSON line for a booking lifecycle event. Raises RuntimeError if logging fails."""
    level = "warning" if action in _WARNING_EVENTS else "info"
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "level": level,
        "action": action,
        "request_id": current_request_id(),
        "booking_id": booking_id,
        "office_id": office_id,
        "date": _plain(day),
        "user_email": user_email,
        "parking": parking,
        "status_from": _plain(status_from),
        "status_to": _plain(status_to),
        "reason": reason,
    }
    if extra:
        payload.update({k: _plain(v) for k, v in extra.items()})

    compact_payload = {k: v for k, v in payload.items() if v is not None}
    try:
        message = json.dumps(compact_payload, ensure_ascii=True)
        if level == "warning":
            _event_logger.warning(message)
        else:
            _event_logger.info(message)
    except Exception as exc:  # pragma: no cover - defensive
        raise RuntimeError("failed to emit booking event") from exc
