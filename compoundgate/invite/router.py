"""Invite domain router.

Admins invite owners by phone; invited owners accept with a verified
identity. Bearer ID tokens (or the session cookie) identify both.
"""

import logging
import uuid

from fastapi import APIRouter, status

from compoundgate.auth.dependencies import IdentityDep
from compoundgate.core.constants import CommonResponses, Routes
from compoundgate.core.deps import SettingsDep
from compoundgate.core.email import send_owner_invite_email
from compoundgate.invite.schemas import (
    InviteAccept,
    InviteCreate,
    InviteCreated,
    InviteMessage,
    InviteRead,
)
from compoundgate.invite.service import InviteServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.INVITES.prefix,
    tags=[Routes.INVITES.tag],
    responses={**CommonResponses.BAD_REQUEST},
)


@router.post(
    "",
    response_model=InviteCreated,
    status_code=status.HTTP_201_CREATED,
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
        **CommonResponses.NOT_FOUND,
    },
)
async def create_invite(
    payload: InviteCreate,
    identity: IdentityDep,
    invites: InviteServiceDep,
    settings: SettingsDep,
):
    """Invite an owner into a compound the caller administers.

    The invite email is best-effort; the token is returned either way so the
    admin can share it another way.
    """
    invite, compound = invites.create_invite(
        identity.uid,
        payload.compound_id,
        payload.phone,
        email=payload.email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        property_unit=payload.property_unit,
        expires_at=payload.expires_at,
    )

    email_sent = False
    if invite.email and settings.resend_api_key:
        try:
            send_owner_invite_email(
                to_email=invite.email,
                token=invite.token,
                compound_name=compound.name,
                first_name=invite.first_name,
            )
            email_sent = True
        except Exception:
            logger.warning("Failed to send invite email for %s", invite.id, exc_info=True)

    return InviteCreated(id=invite.id, token=invite.token, email_sent=email_sent)


@router.get(
    "",
    response_model=InviteRead,
    responses={**CommonResponses.NOT_FOUND},
)
async def get_invite(token: str, invites: InviteServiceDep):
    """Look up an invite by its token."""
    return InviteRead.model_validate(invites.get_by_token(token))


@router.post(
    "/accept",
    response_model=InviteMessage,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def accept_invite(
    payload: InviteAccept,
    identity: IdentityDep,
    invites: InviteServiceDep,
):
    """Accept an invite and create the owner record. Single use."""
    invites.accept_invite(
        payload.token,
        payload.first_name,
        payload.last_name,
        accepted_by_uid=identity.uid,
    )
    return InviteMessage(message="Invite accepted")


@router.post(
    "/{invite_id}/revoke",
    response_model=InviteRead,
    responses={
        **CommonResponses.UNAUTHORIZED,
        **CommonResponses.FORBIDDEN,
        **CommonResponses.NOT_FOUND,
    },
)
async def revoke_invite(
    invite_id: uuid.UUID,
    identity: IdentityDep,
    invites: InviteServiceDep,
):
    """Withdraw a pending invite. Only the compound's admin may do this."""
    return InviteRead.model_validate(invites.revoke_invite(identity.uid, invite_id))
