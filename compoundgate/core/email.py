import logging

import resend

from compoundgate.core.constants import JinjaEmailTemplatesEnv
from compoundgate.core.settings import get_settings

logger = logging.getLogger(__name__)


def _render_template(template_name: str, **context: str) -> str:
    """Render an email template.

    Args:
        template_name: Name of the template file
        **context: Template variables

    Returns:
        Rendered HTML
    """
    template = JinjaEmailTemplatesEnv.get_template(template_name)
    return template.render(**context)


def init_resend() -> None:
    """Initialize Resend with API key if available."""
    settings = get_settings()
    if not settings.resend_api_key:
        return
    resend.api_key = settings.resend_api_key


def build_invite_url(token: str) -> str:
    """Build the client URL an invited owner opens to accept the invite."""
    settings = get_settings()
    return f"{settings.client_url}/owner/invite?token={token}"


def send_owner_invite_email(
    *,
    to_email: str,
    token: str,
    compound_name: str,
    first_name: str | None = None,
) -> None:
    """Send an owner invite email via Resend.

    Args:
        to_email: Invited owner's email address
        token: Invite token embedded in the accept link
        compound_name: Display name of the inviting compound
        first_name: Optional greeting name
    """
    settings = get_settings()

    # Email domain
    from_email = f"noreply@{settings.app_domain}"
    invite_url = build_invite_url(token)

    logger.debug("Sending owner invite email for compound %s", compound_name)

    html_content = _render_template(
        "owner-invite.html",
        invite_url=invite_url,
        compound_name=compound_name,
        first_name=first_name or "",
    )

    resend.Emails.send(
        {
            "from": from_email,
            "to": to_email,
            "subject": f"{compound_name} - You're invited to CompoundGate",
            "html": html_content,
        }
    )
