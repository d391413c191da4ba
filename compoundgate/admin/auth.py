"""Operator login for the SQLAdmin panel.

The panel is for platform operators (creating compounds, inspecting users,
device sessions and invites); it is separate from compound admins, who act
through the API with their Firebase identity.
"""

import hmac
import logging

from sqladmin.authentication import AuthenticationBackend
from starlette.requests import Request

from compoundgate.core.settings import get_settings

logger = logging.getLogger(__name__)

_SESSION_KEY = "operator"


class AdminAuth(AuthenticationBackend):
    """SQLAdmin auth using Starlette sessions."""

    def __init__(self) -> None:
        # Also signs the session middleware SQLAdmin installs
        super().__init__(secret_key=get_settings().session_secret_key)

    async def login(self, request: Request) -> bool:
        form = await request.form()
        username = str(form.get("username", "")).strip()
        password = str(form.get("password", ""))

        settings = get_settings()
        ok = hmac.compare_digest(
            username.encode(), settings.admin_username.encode()
        ) & hmac.compare_digest(password.encode(), settings.admin_password.encode())
        if not ok:
            logger.warning("Rejected admin panel login")
            return False

        request.session[_SESSION_KEY] = username
        return True

    async def logout(self, request: Request) -> bool:
        request.session.clear()
        return True

    async def authenticate(self, request: Request) -> bool:
        return bool(request.session.get(_SESSION_KEY))
