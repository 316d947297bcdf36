"""
DRF plumbing shared by the API views: the JSON body parser, the exception
handler that gives every error a ``message`` key, and response helpers.
"""
import logging
import math

from rest_framework import exceptions
from rest_framework.parsers import JSONParser
from rest_framework.response import Response

logger = logging.getLogger(__name__)


class JSONObjectParser(JSONParser):
    """JSON parser that only accepts a single object as the body."""

    def parse(self, stream, media_type=None, parser_context=None):
        try:
            data = super().parse(stream, media_type, parser_context)
        except exceptions.ParseError as exc:
            raise exceptions.ParseError("Invalid JSON format in request body") from exc
        if not isinstance(data, dict):
            raise exceptions.ParseError("Request body must be a JSON object")
        return data


def error_response(message, status=400, **extra):
    return Response({"message": message, **extra}, status=status)


def form_error_response(form, status=400):
    errors = {field: [str(error) for error in field_errors] for field, field_errors in form.errors.items()}
    first = next(iter(form.errors.values()))[0] if form.errors else "Invalid request"
    return Response({"message": first, "errors": errors}, status=status)


def _first_message(detail):
    if isinstance(detail, dict):
        if "detail" in detail:
            return str(detail["detail"])
        detail = next(iter(detail.values()), "Invalid request")
    if isinstance(detail, list):
        detail = detail[0] if detail else "Invalid request"
    return str(detail)


def _throttle_label(view):
    throttles = view.get_throttles() if view is not None else []
    return next((t.label for t in throttles if getattr(t, "label", None)), "requests")


def api_exception_handler(exc, context):
    """
    DRF's handler with our error body. Session auth has no challenge
    header, so unauthenticated requests are answered 401 here; anything
    DRF does not know about is logged and answered 500.
    """
    # Imported here: rest_framework.views resolves DEFAULT_PARSER_CLASSES,
    # which points back at this module, at import time.
    from rest_framework.views import exception_handler

    response = exception_handler(exc, context)
    request = context.get("request")

    if response is None:
        logger.error(
            "Unhandled error in %s %s",
            getattr(request, "method", "?"), getattr(request, "path", "?"),
            exc_info=exc,
        )
        return error_response("Internal server error", status=500)

    if isinstance(exc, exceptions.NotAuthenticated):
        response.status_code = 401
        response.data = {"message": "Authentication required"}
    elif isinstance(exc, exceptions.Throttled):
        seconds = math.ceil(exc.wait) if exc.wait else 0
        minutes = max(1, math.ceil(seconds / 60))
        what = _throttle_label(context.get("view"))
        response.data = {
            "message": f"Too many {what}. Please try again in {minutes} minute(s).",
            "retryAfter": seconds,
        }
    else:
        response.data = {"message": _first_message(response.data)}
    return response
