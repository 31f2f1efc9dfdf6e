"""User-facing (Spanish) messages for API failures."""

from __future__ import annotations

import httpx

from lawcal.client import ApiError
from lawcal.domain.errors import CalendarError

GENERIC_API_MESSAGE = "No se pudo completar la operación. Intentalo de nuevo."
CONNECTION_MESSAGE = "No se pudo conectar con el servidor."
UNKNOWN_MESSAGE = "Ocurrió un error."

# (kind, detail) -> message
FRIENDLY_MESSAGES: dict[tuple[str, str], str] = {
    ("duplicate_lawyer", "lawyer already registered with that email"): (
        "Ya existe un abogado registrado con ese email."
    ),
    ("validation_error", "email is required"): "El email es obligatorio.",
    ("validation_error", "fullName is required"): "El nombre es obligatorio.",
    ("validation_error", "subject is required"): "El asunto es obligatorio.",
    ("validation_error", "startsAtLocal is required"): (
        "La fecha/hora de inicio es obligatoria."
    ),
    ("validation_error", "durationMinutes must be one of: 15, 30, 45, 60, 90, 120"): (
        "La duración debe ser de 15, 30, 45, 60, 90 o 120 minutos."
    ),
    ("scheduling_conflict", "time slot overlaps an existing appointment"): (
        "Ese horario se superpone con otro turno del calendario."
    ),
}

# Messages keyed on the reason of an InvalidTimeInput, whose detail varies
TIME_INPUT_MESSAGES: dict[str, str] = {
    "unknown_time_zone": "La zona horaria no es válida.",
    "unparseable_local_time": "La fecha/hora de inicio no es válida.",
    "nonexistent_local_time": "Esa hora no existe en la zona elegida (cambio de horario).",
    "ambiguous_local_time": "Esa hora es ambigua en la zona elegida (cambio de horario).",
    "out_of_range_local_time": "La fecha está fuera del rango admitido.",
}


def lookup(kind: str | None, detail: str | None, reason: str | None = None) -> str:
    if kind == "invalid_time_input" and reason in TIME_INPUT_MESSAGES:
        return TIME_INPUT_MESSAGES[reason]
    return FRIENDLY_MESSAGES.get((kind or "", detail or ""), GENERIC_API_MESSAGE)


def friendly_error_message(err: BaseException) -> str:
    """Map a failure to the message shown to the person using the app."""
    if isinstance(err, ApiError):
        reason = err.payload.get("reason") if isinstance(err.payload, dict) else None
        return lookup(err.kind, err.error, reason)
    if isinstance(err, CalendarError):
        return lookup(err.kind, err.detail, getattr(err, "reason", None))
    if isinstance(err, httpx.TransportError):
        return CONNECTION_MESSAGE
    return UNKNOWN_MESSAGE
