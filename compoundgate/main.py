from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from sqladmin import Admin

from compoundgate.admin.auth import AdminAuth
from compoundgate.admin.views import ALL_VIEWS
from compoundgate.auth.router import router as auth_router
from compoundgate.core.cors import add_cors_middleware
from compoundgate.core.email import init_resend
from compoundgate.core.exception_handlers import register_exception_handlers
from compoundgate.core.firebase import init_firebase
from compoundgate.core.http import close_identity_toolkit_client
from compoundgate.core.logging import configure_logging
from compoundgate.core.request_logging import add_request_logging_middleware
from compoundgate.db.engine import engine
from compoundgate.health.router import router as health_router
from compoundgate.invite.router import router as invite_router
from compoundgate.models.error import ErrorResponse
from compoundgate.user.router import router as owner_router

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_firebase()
    init_resend()
    yield
    await close_identity_toolkit_client()


app = FastAPI(
    title="CompoundGate",
    version="0.1.0",
    lifespan=lifespan,
    responses={"default": {"model": ErrorResponse}},
)

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(invite_router)
api_router.include_router(owner_router)

app.include_router(api_router)

add_request_logging_middleware(app)
add_cors_middleware(app)
register_exception_handlers(app)

# Mount SQLAdmin UI at /admin (SQLAdmin enables sessions via auth backend secret)
admin = Admin(
    app=app,
    engine=engine,
    authentication_backend=AdminAuth(),
)
for view in ALL_VIEWS:
    admin.add_view(view)
