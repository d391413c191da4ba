"""
Model package.

IMPORTANT (Alembic / SQLModel):
- Alembic autogenerate relies on `SQLModel.metadata`, which is populated only
  when the table models are imported.
- `alembic/env.py` imports `compoundgate.models`, so this module must import
  all SQLModel `table=True` models to register them.
"""

# Import table models so SQLModel registers them in metadata.
from compoundgate.compound.models import Compound  # noqa: F401
from compoundgate.device.models import DeviceSession  # noqa: F401
from compoundgate.invite.models import OwnerInvite  # noqa: F401
from compoundgate.user.models import User  # noqa: F401
