from typing import Optional
from fastapi import Depends, Header
from fastapi.security.utils import get_authorization_scheme_param
from booking_auth.core.errors import TokenError, Unauthorized
from booking_auth.core.security import TokenService, token_service
from booking_auth.services.auth_service import AuthService, auth_service


def get_token_service() -> TokenService:
    """Process-wide token service, built from settings at startup"""
    return token_service


def get_auth_service() -> AuthService:
    return auth_service


def resolve_caller(
    authorization: Optional[str],
    tokens: TokenService,
) -> tuple[Optional[int], Optional[Unauthorized]]:
    """
    Resolve an Authorization header to the calling user's id.

    Returns (caller_id, None) on success and (None, Unauthorized) when the
    header is missing, is not a Bearer credential, or carries a token that
    fails verification.
    """
    scheme, token = get_authorization_scheme_param(authorization)
    if not authorization or scheme.lower() != "bearer" or not token:
        return None, Unauthorized("No token, authorization denied")

    try:
        return tokens.verify(token), None
    except TokenError:
        return None, Unauthorized("Token is not valid")


async def get_caller_id(
    authorization: Optional[str] = Header(default=None),
    tokens: TokenService = Depends(get_token_service),
) -> int:
    """
    Request gate for protected routes.

    Every protected route depends on this; handlers receive only the
    resolved caller id and never see the token.
    """
    caller_id, error = resolve_caller(authorization, tokens)
    if error is not None:
        raise error
    return caller_id
