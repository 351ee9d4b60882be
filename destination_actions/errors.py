"""Errors raised by destination actions.

Only validation failures are defined here. Transport and HTTP status errors
come from httpx (`httpx.HTTPError`) and are passed through untouched.
"""

from __future__ import annotations


class PayloadValidationError(ValueError):
    """A payload broke a business rule the field schema cannot express.

    The message is user-facing: it should tell the caller what to fix.
    Raised before any request is made.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
