"""
Trade Journal API Router Base Utilities

Shared helpers for turning store envelopes into HTTP responses.
"""

from typing import Any

from fastapi.responses import JSONResponse

from tradejournal.journal.response import ApiResponse, ok


def envelope_response(response: ApiResponse) -> JSONResponse:
    """
    Render an ApiResponse as JSON.

    Failed responses use the HTTP status of their error code.
    """
    return JSONResponse(status_code=response.http_status, content=response.to_dict())


def data_response(data: Any) -> JSONResponse:
    return envelope_response(ok(data))
