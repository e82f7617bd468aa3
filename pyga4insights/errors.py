from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    CREDENTIAL_LOAD = "CredentialLoad"
    TOKEN_ISSUANCE = "TokenIssuance"
    REPORT_REQUEST = "ReportRequest"


class Ga4InsightsError(Exception):
    """
    Base error for everything raised by pyga4insights.

    The message is generic; status codes, response bodies and payloads are logged where the failure happens.
    Callers that need to branch can use `kind` and, for HTTP failures, `status`.
    """
    kind: Optional[ErrorKind] = None

    def __init__(self, message: str, status: int | None = None):
        self.message = message
        self.status = status
        super().__init__(self.message)

    def __repr__(self):
        if self.status is None:
            return f"{self.__class__.__name__}({self.message!r})"
        return f"{self.__class__.__name__}({self.message!r}, status={self.status})"


class CredentialLoadError(Ga4InsightsError):
    """Error raised when the service account key cannot be read, parsed or validated"""
    kind = ErrorKind.CREDENTIAL_LOAD

    def __init__(self, message="Failed to load Google service account key file or object", status=None):
        super().__init__(message, status=status)


class TokenIssuanceError(Ga4InsightsError):
    """Error raised when a JWT assertion cannot be signed or exchanged for an access token"""
    kind = ErrorKind.TOKEN_ISSUANCE

    def __init__(self, message="Failed to generate Google Analytics access token", status=None):
        super().__init__(message, status=status)


class ReportRequestError(Ga4InsightsError):
    """Error raised when the runReport endpoint fails or returns something unreadable"""
    kind = ErrorKind.REPORT_REQUEST

    def __init__(self, message="Failed to fetch GA4 report", status=None):
        super().__init__(message, status=status)
