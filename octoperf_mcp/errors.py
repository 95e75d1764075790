from __future__ import annotations

from typing import List, Optional


class OctoPerfError(Exception):
    """Base exception for all octoperf-mcp errors."""

    code = "INTERNAL_ERROR"


class ConfigurationError(OctoPerfError):
    """Startup configuration is missing or invalid. Fatal."""

    code = "CONFIGURATION_ERROR"


class ValidationError(OctoPerfError):
    """Caller supplied missing or malformed tool arguments."""

    code = "VALIDATION_ERROR"

    def __init__(self, problems: List[str]) -> None:
        self.problems = list(problems)
        super().__init__("Invalid arguments: " + "; ".join(self.problems))


class TransportError(OctoPerfError):
    """The request never got an answer from the OctoPerf API."""

    code = "TRANSPORT_ERROR"

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        if cause is not None:
            message = f"{message}: {str(cause) or repr(cause)}"
        super().__init__(message)


class RemoteAPIError(OctoPerfError):
    """The OctoPerf API answered with a non-success status."""

    code = "REMOTE_API_ERROR"

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"OctoPerf API error (code: {status_code}): {body}")


class SerializationError(OctoPerfError):
    """A response envelope could not be encoded."""

    code = "SERIALIZATION_ERROR"
