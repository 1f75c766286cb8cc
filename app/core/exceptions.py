"""
Domain exceptions raised by the generation and persistence services
"""
from typing import Optional

GENERIC_PLANNING_MESSAGE = (
    "We're having trouble generating recommendations right now. Please try again."
)


class PlanningFailure(Exception):
    """
    Exception raised when a generation request cannot produce a result.

    The message is for logs; callers only ever see `user_message`.
    """
    def __init__(self, message: str = "Planning failed"):
        self.message = message
        self.user_message = GENERIC_PLANNING_MESSAGE
        super().__init__(self.message)


class ParsingError(PlanningFailure):
    """
    Exception raised when reasoning-service output cannot be decoded.

    Carries the raw text so the failing payload can be inspected in logs.
    """
    def __init__(self, message: str, raw_text: str = ""):
        self.raw_text = raw_text
        super().__init__(message)


class UpstreamError(Exception):
    """
    Exception raised for a failed call to an external service.

    The status code is embedded in the message ("... 429 ...") because the
    retry executor classifies failures by their message markers.
    """
    def __init__(
        self,
        service: str,
        status_code: Optional[int] = None,
        detail: str = "",
    ):
        self.service = service
        self.status_code = status_code
        self.detail = detail
        status_text = str(status_code) if status_code is not None else "network"
        self.message = f"{service} API error: {status_text} {detail}".strip()
        super().__init__(self.message)


class UpstreamUnavailable(UpstreamError):
    """
    Exception raised for authentication or billing failures (401/402/403).

    These are never retried and surface as a service-unavailable response.
    """
    pass


class ProductPersistenceError(Exception):
    """
    Exception raised when a main product can be neither upserted nor found.
    """
    def __init__(self, external_id: str):
        self.external_id = external_id
        self.message = f"Failed to save product: {external_id}"
        super().__init__(self.message)
