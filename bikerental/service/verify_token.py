"""
Verify Token
------------

Resolves the bearer token of a request into the identity of the caller.
Tokens are issued by the upstream authentication provider.
"""
from abc import ABC, abstractmethod

from aiohttp.web_request import Request


class TokenVerificationError(Exception):

    @property
    def message(self):
        return self.args[0] if self.args else "Token is invalid."


class TokenVerifier(ABC):

    @abstractmethod
    def verify_token(self, token):
        """
        Given a token, verifies it, returning the identity or a token verification error.

        :raises TokenVerificationError: When the provided token is invalid.
        """


class DummyVerifier(TokenVerifier):
    """
    Accepts any hex identity, and returns it unchanged.
    """

    def verify_token(self, token: str) -> str:
        try:
            bytes.fromhex(token)
        except (ValueError, TypeError):
            raise TokenVerificationError("Not a valid hex string.")

        if not token:
            raise TokenVerificationError("Token is empty.")

        return token


def verify_token(request: Request):
    """
    Checks a request for the existence of a valid Authorization header.

    :param request: The request to check.
    :return: The identity the token resolves to.
    :raises TokenVerificationError: When the Authorize header is invalid.
    """
    if "Authorization" not in request.headers:
        raise TokenVerificationError("You must supply your authorization token.")

    if not request.headers["Authorization"].startswith("Bearer "):
        raise TokenVerificationError("The Authorization header must be of the format \"Bearer $TOKEN\".")

    return request.app["token_verifier"].verify_token(request.headers["Authorization"][7:])
