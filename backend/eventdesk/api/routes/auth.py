"""
Admin login.
"""

from fastapi import APIRouter, Depends

from eventdesk.api.deps import get_uow
from eventdesk.repositories.interfaces import UnitOfWork
from eventdesk.schemas.auth import AdminLogin, Token
from eventdesk.services.auth_service import ADMIN_ROLE, authenticate_admin

router = APIRouter(prefix="/admin", tags=["Authentication"])


@router.post("/login", response_model=Token)
async def login(login_data: AdminLogin, uow: UnitOfWork = Depends(get_uow)):
    """Authenticate and receive a JWT access token for the admin routes."""
    token = await authenticate_admin(uow, login_data.username, login_data.password)
    return Token(access_token=token, username=login_data.username, role=ADMIN_ROLE)
