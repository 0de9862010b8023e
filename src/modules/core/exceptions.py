"""HTTP error payloads shared by every module.

Not-found and domain-validation failures answer with a list of field
errors so clients can point at the offending input::

    {"fields": [{"field": "orderId", "message": "Id given do not match"}]}
"""

from __future__ import annotations

from typing import Iterable, Tuple

from rest_framework import status
from rest_framework.response import Response


def field_errors(*fields: Tuple[str, str]) -> dict:
    return {"fields": [{"field": name, "message": message} for name, message in fields]}


def not_found(field: str, message: str = "Id given do not match") -> Response:
    return Response(field_errors((field, message)), status=status.HTTP_404_NOT_FOUND)


def bad_request(fields: Iterable[Tuple[str, str]]) -> Response:
    return Response(field_errors(*fields), status=status.HTTP_400_BAD_REQUEST)


def validation_fields(exc) -> list[Tuple[str, str]]:
    """``(field, message)`` pairs from a Pydantic ``ValidationError``."""
    return [
        (".".join(str(part) for part in error["loc"]) or "body", error["msg"])
        for error in exc.errors()
    ]
