"""Centralized exception handling for the REST API."""

import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from shared.domain.exceptions import DomainError

logger = logging.getLogger(__name__)


def domain_error_response(exc: DomainError) -> Response:
    if exc.status_code >= 500:
        logger.error(f"Domain error {exc.code}: {exc.message}", exc_info=exc)
    else:
        logger.info(f"Domain error {exc.code}: {exc.message}")
    return Response(exc.to_dict(), status=exc.status_code)


def api_exception_handler(exc, context):
    """
    DRF exception handler

    - DomainError -> {"error": code, "message": ...} with the error's status
    - ValidationError -> 400 {"error": "VALIDATION", "details": {...}}
    - everything else -> DRF's default handling
    """
    if isinstance(exc, DomainError):
        return domain_error_response(exc)

    if isinstance(exc, exceptions.ValidationError):
        return Response(
            {"error": "VALIDATION", "details": exc.detail},
            status=status.HTTP_400_BAD_REQUEST,
        )

    return exception_handler(exc, context)
