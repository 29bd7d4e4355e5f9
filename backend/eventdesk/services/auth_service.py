"""
Admin authentication: login and the startup bootstrap.
"""

from typing import Optional

from eventdesk.core.exceptions import StoreConflict, Unauthorized
from eventdesk.core.logging import get_logger
from eventdesk.core.security import create_access_token, hash_password, verify_password
from eventdesk.domain import Admin
from eventdesk.repositories.interfaces import UnitOfWork

logger = get_logger(__name__)

ADMIN_ROLE = "admin"


async def authenticate_admin(uow: UnitOfWork, username: str, password: str) -> str:
    """
    Check admin credentials and return a bearer token.
    Raises Unauthorized for unknown, inactive or mismatched credentials alike.
    """
    admin = await uow.admins.get(username)

    if not admin or not verify_password(password, admin.hashed_password):
        logger.warning("login_failed", username=username)
        raise Unauthorized("Invalid credentials")

    if not admin.is_active:
        logger.warning("login_failed", username=username, reason="inactive")
        raise Unauthorized("Invalid credentials")

    token = create_access_token(data={"sub": admin.username, "role": ADMIN_ROLE})
    logger.info("admin_logged_in", username=admin.username)
    return token


async def ensure_admin(uow: UnitOfWork, username: str, password: str) -> Optional[Admin]:
    """Create the admin if it does not exist yet. Returns the new admin, or None."""
    if not username or not password:
        return None
    if await uow.admins.get(username) is not None:
        return None

    admin = Admin(username=username, hashed_password=hash_password(password))
    try:
        await uow.admins.add(admin)
        await uow.commit()
    except StoreConflict:
        # Another worker bootstrapped it first
        await uow.rollback()
        return None

    logger.info("admin_bootstrapped", username=username)
    return admin
