"""Auth domain dependencies.

Identity verification for FastAPI routes. Routes receive the verified
``TokenClaims`` explicitly instead of reading an ambient current user.
"""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from compoundgate.auth.exceptions import (
    InvalidTokenError,
    NotAuthenticatedError,
    SessionCookieError,
)
from compoundgate.auth.service import (
    FirebaseAuthService,
    TokenClaims,
    get_firebase_auth_service,
)
from compoundgate.core.constants import SESSION_COOKIE_NAME

security = HTTPBearer(auto_error=False)

FirebaseAuthDep = Annotated[FirebaseAuthService, Depends(get_firebase_auth_service)]


def get_optional_identity(
    request: Request,
    firebase_auth: FirebaseAuthDep,
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(security)
    ] = None,
) -> TokenClaims | None:
    """Verify Firebase authentication if any was sent.

    Supports two authentication methods (in priority order):
    1. Session cookie (preferred for web apps)
    2. Bearer ID token (for API clients, mobile apps)

    Returns:
        Verified claims, or None when no credentials were presented

    Raises:
        InvalidTokenError: If credentials were presented but are invalid
    """
    session_cookie = request.cookies.get(SESSION_COOKIE_NAME)
    if session_cookie:
        try:
            return firebase_auth.verify_session_cookie(
                session_cookie, check_revoked=True
            )
        except SessionCookieError as e:
            # A stale cookie must not shadow a valid bearer token
            if credentials is None:
                raise InvalidTokenError() from e

    if credentials is not None:
        return firebase_auth.verify_id_token(credentials.credentials)

    return None


OptionalIdentityDep = Annotated[TokenClaims | None, Depends(get_optional_identity)]


def get_verified_identity(identity: OptionalIdentityDep) -> TokenClaims:
    """Require a verified identity.

    Raises:
        NotAuthenticatedError: If no credentials were presented
        InvalidTokenError: If credentials are invalid
    """
    if identity is None:
        raise NotAuthenticatedError()
    return identity


IdentityDep = Annotated[TokenClaims, Depends(get_verified_identity)]
