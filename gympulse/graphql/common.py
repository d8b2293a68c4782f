from typing import List

from gympulse.core.errors import ValidationError


def error_messages(exc: Exception) -> List[str]:
    """Field-level messages for a failed mutation."""
    if isinstance(exc, ValidationError):
        return exc.errors
    return [str(exc)]
