"""HTTP error translation

Use cases return Error values; routes raise ClientError with them and the
app-level handler renders the JSON error envelope:

    {"success": false, "error": "<CODE>", "message": "<text>"}
"""

from typing import Optional
from fastapi import status
from libs.result import Error

STATUS_BY_CODE = {
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "INTERNAL_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "DISCOUNT_SERVICE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_for(code: str) -> int:
    """HTTP status for an error code: 404 for *_NOT_FOUND, 400 by default"""
    if code in STATUS_BY_CODE:
        return STATUS_BY_CODE[code]
    if code.endswith("_NOT_FOUND"):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


class ClientError(Exception):
    def __init__(self, error: Error, status_code: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code if status_code is not None else status_for(error.code)

    def to_body(self) -> dict:
        return {
            "success": False,
            "error": self.error.code,
            "message": self.error.message,
        }
