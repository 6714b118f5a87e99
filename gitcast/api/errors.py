"""Domain exceptions and Falcon error handlers for the API layer.

Usage
-----
Register error handlers on the Falcon app::

    from gitcast.api.errors import InvalidInputError, handle_invalid_input

    app.add_error_handler(InvalidInputError, handle_invalid_input)

"""

from __future__ import annotations

import typing as typ

import falcon

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from gitcast.feed.service import UserNotLinkedError

__all__ = [
    "InvalidInputError",
    "handle_invalid_input",
    "handle_user_not_linked",
]


class InvalidInputError(Exception):
    """Raised for client validation errors that should map to HTTP 400.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the input field that failed validation.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The validation exception containing reason and optional field.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {
        "title": "Invalid input",
        "description": ex.reason,
    }
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media


async def handle_user_not_linked(
    _req: Request,
    resp: Response,
    ex: UserNotLinkedError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``UserNotLinkedError`` to an HTTP 400 JSON response."""
    resp.status = falcon.HTTP_400
    resp.media = {
        "title": "GitHub account not linked",
        "description": str(ex),
        "fid": ex.fid,
    }
