"""
Global exception handler for the SlotBook API.

Renders ``SlotBookError`` subclasses as ``{"reason": ..., "detail": ...}`` with
their mapped status code and delegates everything else to DRF.
"""

import logging
from typing import Any, Dict, Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.utils import InterfaceError, OperationalError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from .custom_exceptions import (
    ConflictError,
    InputError,
    ResourceNotFoundError,
    SlotBookError,
    StorageUnavailable,
)

logger = logging.getLogger(__name__)


def _view_name(context: Dict[str, Any]) -> Optional[str]:
    view = context.get("view")
    return view.__class__.__name__ if view is not None else None


def exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """
    Custom exception handler for DRF views.

    Args:
        exc: The exception
        context: The exception context

    Returns:
        Response: Consistent error response
    """
    if isinstance(exc, SlotBookError):
        if isinstance(exc, StorageUnavailable):
            logger.error(f"{_view_name(context)}: {exc.code} - {exc.message}")
        elif isinstance(exc, (ConflictError, InputError)):
            # Expected outcomes, no traceback
            logger.info(f"{_view_name(context)}: {exc.code} - {exc.message}")
        else:
            logger.warning(f"{_view_name(context)}: {exc.code} - {exc.message}")
        return Response(exc.as_payload(), status=exc.status_code)

    # Storage failures that escaped a service layer
    if isinstance(exc, (OperationalError, InterfaceError)):
        logger.error(f"{_view_name(context)}: storage failure - {exc}")
        return Response(
            StorageUnavailable().as_payload(),
            status=status.HTTP_503_SERVICE_UNAVAILABLE,
        )

    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, "message_dict"):
            exc = ValidationError(detail=exc.message_dict)
        else:
            exc = ValidationError(detail=exc.messages)

    response = drf_exception_handler(exc, context)

    # Field errors keep their structure under "detail"
    if response is not None and isinstance(exc, ValidationError):
        response.data = {"reason": InputError.code, "detail": response.data}
    elif isinstance(exc, Http404) and response is not None:
        response.data = {"reason": ResourceNotFoundError.code, "detail": str(exc) or "Not found"}

    return response
