"""User domain router.

Owner-facing profile lookup.
"""

from fastapi import APIRouter

from compoundgate.auth.dependencies import IdentityDep
from compoundgate.core.constants import CommonResponses, Routes
from compoundgate.user.schemas import CompoundRead, OwnerProfile, OwnerRead
from compoundgate.user.service import OwnerServiceDep

router = APIRouter(
    prefix=Routes.OWNERS.prefix,
    tags=[Routes.OWNERS.tag],
    responses={**CommonResponses.UNAUTHORIZED},
)


@router.get(
    "/profile",
    response_model=OwnerProfile,
    responses={**CommonResponses.NOT_FOUND},
)
async def get_profile(
    identity: IdentityDep,
    owners: OwnerServiceDep,
    phone: str | None = None,
    email: str | None = None,
):
    """Return the caller's owner record and its compound.

    ``phone``/``email`` are hints for owners whose record is not yet bound
    to their sign-in identity; such a record must still carry the token's
    verified phone or email.
    """
    owner, compound = owners.get_profile(identity, phone=phone, email=email)
    return OwnerProfile(
        owner=OwnerRead.model_validate(owner),
        compound=CompoundRead.model_validate(compound) if compound else None,
    )
