"""Service package public API definitions.

The HTTP client imports ``calbook.services.exceptions``, which executes this
module first. Importing the booking service eagerly here would pull the client
back in and create a circular import, so implementations are imported lazily
on first attribute access.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any

__all__ = [
    "BookingService",
    "TimeSlotValidator",
    "ValidationResult",
]

_SERVICE_MODULES = {
    "BookingService": "booking",
    "TimeSlotValidator": "validator",
    "ValidationResult": "validator",
}


def __getattr__(name: str) -> Any:
    if name not in _SERVICE_MODULES:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module = import_module(f".{_SERVICE_MODULES[name]}", __name__)
    attr = getattr(module, name)
    globals()[name] = attr
    return attr


if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .booking import BookingService as BookingService
    from .validator import TimeSlotValidator as TimeSlotValidator
    from .validator import ValidationResult as ValidationResult
