from __future__ import annotations

from typing import Optional


class GatewayError(Exception):
    """Base class for errors raised by the LLM gateway."""


class ConfigurationError(GatewayError):
    """No usable provider could be resolved, or a credential is missing."""


class BackendError(GatewayError):
    """A backend answered with a non-success response or could not be reached."""

    def __init__(self, provider: str, detail: str, *, status_code: Optional[int] = None) -> None:
        self.provider = provider
        self.detail = detail
        self.status_code = status_code
        if status_code is not None:
            message = f"{provider} error ({status_code}): {detail}"
        else:
            message = f"{provider} error: {detail}"
        super().__init__(message)


class InvalidRequestError(GatewayError, ValueError):
    """The caller supplied input the gateway refuses to send to a backend."""


class EmptyInventoryError(InvalidRequestError):
    def __init__(self, message: str = "No inventory items. Upload pantry/fridge photos first.") -> None:
        super().__init__(message)
