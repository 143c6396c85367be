"""Verification of the session tokens (JWT) issued to API callers.

Tokens are HS256 signed and carry the caller's identity:

    {"username": "octocat", "scmContext": "github:github.com", "scope": ["user"], "exp": ...}
"""

import pydantic
from jose import jwt
from jose import JWTError
from loguru import logger

from cicd_api.errors import UnauthorizedError
from cicd_api.models.credentials import Credentials
from cicd_api.settings import Settings


def decode_session_token(token: str, settings: Settings) -> Credentials:
    """
    Verify a session token and return the credentials it carries.

    Parameters
    ----------
    token : str
        Raw JWT taken from the Authorization header
    settings : Settings
        Application settings holding the signing secret, algorithm and audience

    Returns
    -------
    Credentials
        Username, scm context and scope of the caller

    Raises
    ------
    UnauthorizedError
        If the token is expired, badly signed, or missing required claims
    """
    options = {"verify_aud": settings.jwt_audience is not None}

    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            options=options,
        )
    except jwt.ExpiredSignatureError:
        logger.info("Session token expired")
        raise UnauthorizedError("Token has expired")
    except jwt.JWTClaimsError as e:
        logger.info("Session token claims rejected", error=str(e))
        raise UnauthorizedError("Invalid token claims")
    except JWTError as e:
        logger.info("Session token rejected", error=str(e))
        raise UnauthorizedError("Invalid token")

    try:
        return Credentials.model_validate(claims)
    except pydantic.ValidationError:
        logger.info("Session token is missing identity claims", claims=sorted(claims))
        raise UnauthorizedError("Invalid token")
