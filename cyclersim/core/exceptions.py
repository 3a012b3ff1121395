"""
Application Exceptions

Transmission failures never surface as exceptions: the client converts them
into a boolean outcome. The classes below cover the operator-facing surface
(configuration), which does raise.
"""
from typing import Any


class CyclerSimException(Exception):
    """Base exception for CyclerSim."""

    def __init__(
        self,
        message: str = "An error occurred",
        code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(CyclerSimException):
    """Invalid operator configuration."""

    def __init__(self, field: str, message: str):
        super().__init__(
            message=message,
            code="CONFIGURATION_ERROR",
            details={"field": field},
        )

