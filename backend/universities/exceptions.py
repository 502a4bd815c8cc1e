from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException


class DuplicateRegistration(Exception):
    """A university with the same domain or registrar email already exists.

    Carries the existing record's status; any status blocks a new registration.
    """

    def __init__(self, existing_status: str):
        super().__init__(f"University already registered (status={existing_status})")
        self.existing_status = existing_status


class UpstreamFailure(APIException):
    """The registry store could not be reached; not the caller's input."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Registry storage is temporarily unavailable. Please try again later."
    default_code = "upstream_failure"
