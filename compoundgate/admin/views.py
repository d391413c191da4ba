from sqladmin import ModelView

from compoundgate.compound.models import Compound
from compoundgate.device.models import DeviceSession
from compoundgate.invite.models import OwnerInvite
from compoundgate.user.models import User


class CompoundAdmin(ModelView, model=Compound):
    name = "Compound"
    name_plural = "Compounds"
    icon = "fa-solid fa-building"

    column_list = [
        Compound.name,
        Compound.address,
        Compound.admin_email,
        Compound.admin_id,
        Compound.id,
        Compound.created_at,
    ]
    column_searchable_list = [Compound.name, Compound.admin_email]
    column_sortable_list = [Compound.name, Compound.created_at]


class UserAdmin(ModelView, model=User):
    name = "User"
    name_plural = "Users"
    icon = "fa-solid fa-user"

    column_list = [
        User.first_name,
        User.last_name,
        User.phone,
        User.email,
        User.type,
        User.property_unit,
        User.is_active,
        User.has_password,
        User.is_first_time_login,
        User.payment_status,
        User.compound_id,
        User.updated_at,
    ]
    column_searchable_list = [
        User.first_name,
        User.last_name,
        User.phone,
        User.email,
        User.external_auth_id,
    ]
    column_sortable_list = [
        getattr(User, field) for field in User.model_fields if field != "password_hash"
    ]
    # Derived or secret; never edited by hand
    form_excluded_columns = [
        User.password_hash,
        User.phone_key,
        User.created_at,
        User.updated_at,
    ]
    column_details_exclude_list = [User.password_hash]


class DeviceSessionAdmin(ModelView, model=DeviceSession):
    name = "Device session"
    name_plural = "Device sessions"
    icon = "fa-solid fa-mobile-screen"
    can_create = False

    column_list = [
        DeviceSession.user_id,
        DeviceSession.device_fingerprint,
        DeviceSession.is_active,
        DeviceSession.ip_address,
        DeviceSession.last_used_at,
        DeviceSession.created_at,
    ]
    column_searchable_list = [DeviceSession.device_fingerprint]
    column_sortable_list = [DeviceSession.last_used_at, DeviceSession.is_active]


class OwnerInviteAdmin(ModelView, model=OwnerInvite):
    name = "Owner invite"
    name_plural = "Owner invites"
    icon = "fa-solid fa-envelope-open-text"

    column_list = [
        OwnerInvite.phone,
        OwnerInvite.email,
        OwnerInvite.status,
        OwnerInvite.compound_id,
        OwnerInvite.created_by,
        OwnerInvite.expires_at,
        OwnerInvite.accepted_at,
    ]
    column_searchable_list = [OwnerInvite.phone, OwnerInvite.email, OwnerInvite.token]
    column_sortable_list = [OwnerInvite.status, OwnerInvite.created_at]


ALL_VIEWS = [CompoundAdmin, UserAdmin, DeviceSessionAdmin, OwnerInviteAdmin]
