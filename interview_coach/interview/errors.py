"""
Error taxonomy for the interview system.
"""
from typing import Optional


class InterviewError(Exception):
    """Base class for interview errors."""


class TransportError(InterviewError):
    """The language model call failed or returned a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


# The completion gateway surfaces transport failures under this name
GatewayError = TransportError


class ParseError(InterviewError):
    """Model output is not valid structured data for the expected schema."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class CaptureError(InterviewError):
    """Speech capture service reported an error."""

    def __init__(self, code: str, benign: bool = False):
        super().__init__(f"Speech recognition error: {code}")
        self.code = code
        self.benign = benign
