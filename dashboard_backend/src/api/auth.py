from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from .errors import NotSignedIn
from .sessions import DashboardSession, SessionRegistry, get_session_registry
from .settings import get_settings

_security = HTTPBasic(auto_error=False)


# PUBLIC_INTERFACE
def get_current_user_id(
    creds: Optional[HTTPBasicCredentials] = Depends(_security),
    x_user_id: Optional[str] = Header(default=None),
) -> Optional[str]:
    """
    Identity provider for the request.

    Behavior:
    - If settings.enable_basic_auth is False (default): the user is named by the
      X-User-Id header. A missing or blank header means "no session".
    - If True: HTTP Basic credentials are checked against
      BASIC_AUTH_USERNAME/BASIC_AUTH_PASSWORD and the username is the user id.
      No credentials means "no session"; wrong credentials raise 401 with
      WWW-Authenticate: Basic.
    """
    settings = get_settings()

    if not settings.enable_basic_auth:
        if x_user_id is None or not x_user_id.strip():
            return None
        return x_user_id.strip()

    if creds is None or not creds.username:
        return None

    if settings.basic_auth_username is None or settings.basic_auth_password is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Server authentication not configured",
            headers={"WWW-Authenticate": "Basic"},
        )

    if not (creds.username == settings.basic_auth_username and creds.password == settings.basic_auth_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return creds.username


# PUBLIC_INTERFACE
def get_session(
    user_id: Optional[str] = Depends(get_current_user_id),
    registry: SessionRegistry = Depends(get_session_registry),
) -> DashboardSession:
    """The caller's dashboard session; anonymous callers get the read-only empty view."""
    return registry.for_user(user_id)


# PUBLIC_INTERFACE
def get_signed_in_session(session: DashboardSession = Depends(get_session)) -> DashboardSession:
    """Like get_session, but mutations require an identity."""
    if not session.signed_in:
        raise NotSignedIn("Not signed in")
    return session
