"""
Middleware
----------
"""
from http import HTTPStatus

from aiohttp import web
from aiohttp.abc import Request
from aiohttp.web_middlewares import middleware

from bikerental import logger
from bikerental.serializer import JSendStatus, JSendSchema
from bikerental.service.errors import RentalError, NotFoundError, ForbiddenError, ConflictError
from bikerental.service.verify_token import verify_token, TokenVerificationError

response_schema = JSendSchema()

FAILURE_STATUSES = {
    NotFoundError: HTTPStatus.NOT_FOUND,
    ForbiddenError: HTTPStatus.FORBIDDEN,
    ConflictError: HTTPStatus.CONFLICT,
}
"""The response codes of the errors that are the caller's fault."""


@middleware
async def validate_token_middleware(request: Request, handler):
    """
    Ensures that any Authorization header given to the application is valid,
    and stores the identity it resolves to on the request as the "token".
    """

    if "Authorization" in request.headers:
        try:
            request["token"] = verify_token(request)
        except TokenVerificationError as error:
            return web.json_response(response_schema.dump({
                "status": JSendStatus.FAIL,
                "data": {
                    "message": "Supplied authorization token is invalid.",
                    "errors": error.args
                }
            }), status=HTTPStatus.UNAUTHORIZED)

    return await handler(request)


@middleware
async def rental_error_middleware(request: Request, handler):
    """
    Turns the errors raised by the rental services into JSend responses,
    keeping the kind of the error in the data.
    """
    try:
        return await handler(request)
    except RentalError as error:
        for error_type, status in FAILURE_STATUSES.items():
            if isinstance(error, error_type):
                return web.json_response(response_schema.dump({
                    "status": JSendStatus.FAIL,
                    "data": {"message": error.message, "kind": error.kind}
                }), status=status)

        logger.error("%s %s failed: %s", request.method, request.rel_url, error)
        return web.json_response(response_schema.dump({
            "status": JSendStatus.ERROR,
            "message": error.message,
            "data": {"kind": error.kind}
        }), status=HTTPStatus.INTERNAL_SERVER_ERROR)
