__all__ = ["ClientAware", "RequestError", "InvariantViolation"]


class ClientAware:
    """Marks exceptions whose message is safe to show to API clients"""

    is_client_safe = True


class RequestError(ClientAware, Exception):
    """Client caused error: malformed, missing or contradictory request
    parameters, unsupported method or unsupported server feature.

    Always recovered into an execution result with a single located error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvariantViolation(Exception):
    """Host integration defect, never turned into an execution result"""
