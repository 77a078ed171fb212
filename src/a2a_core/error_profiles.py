"""Error profile helpers controlling how much failure detail reaches ``error.data``."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorProfile(str, Enum):
    """Enumeration of supported error-detail formats."""

    BASIC = "basic"
    EXTENDED = "extended"


def parse_error_profile(raw_profile: Optional[str]) -> ErrorProfile:
    """Parse an error profile string into the enum, validating supported values."""
    if not raw_profile:
        return ErrorProfile.BASIC
    try:
        return ErrorProfile(raw_profile.strip().lower())
    except ValueError as exc:
        supported = ", ".join(profile.value for profile in ErrorProfile)
        raise ValueError(
            f"Unsupported A2A error profile '{raw_profile}'. Supported profiles: {supported}"
        ) from exc


def build_error_data(exc: BaseException, profile: ErrorProfile) -> Optional[Any]:
    """Describe an unexpected handler failure for the ``data`` member of an error.

    BASIC yields the exception message alone; EXTENDED adds the exception type.
    Neither profile ever includes a traceback.
    """
    message = str(exc) or exc.__class__.__name__

    if profile is ErrorProfile.BASIC:
        return message

    payload: Dict[str, Any] = {"type": exc.__class__.__name__, "message": message}
    return payload
