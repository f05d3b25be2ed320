from flask import request

from ..errors import AuthenticationError


def bearer_token_from_request() -> str:
    """Return the OAuth access token from ``Authorization: Bearer <token>``."""
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Missing bearer token.")
    return token.strip()
