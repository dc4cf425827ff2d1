import enum
import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import NotAuthenticatedError, PermissionDeniedError
from app.core.security import Identity, authenticate
from app.models.user import ROLE_ADMIN, ROLE_USER

logger = logging.getLogger(__name__)


class Operation(str, enum.Enum):
    LIST = "list"
    DETAILS = "details"
    PRINT = "print"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


ALL_ROLES = frozenset({ROLE_ADMIN, ROLE_USER})
ADMIN_ONLY = frozenset({ROLE_ADMIN})

PERMISSIONS: dict[Operation, frozenset[str]] = {
    Operation.LIST: ALL_ROLES,
    Operation.DETAILS: ALL_ROLES,
    Operation.PRINT: ALL_ROLES,
    Operation.CREATE: ADMIN_ONLY,
    Operation.UPDATE: ADMIN_ONLY,
    Operation.DELETE: ADMIN_ONLY,
}


def is_allowed(operation: Operation, roles: frozenset[str]) -> bool:
    return bool(PERMISSIONS.get(operation, frozenset()) & roles)


async def get_current_identity(request: Request, db: AsyncSession = Depends(get_db)) -> Identity:
    identity = await authenticate(request, db)
    if identity is None:
        raise NotAuthenticatedError()
    request.state.identity = identity
    return identity


def require(operation: Operation):
    """Dependency that admits the caller only if their roles allow `operation`."""

    async def dependency(request: Request, identity: Identity = Depends(get_current_identity)) -> Identity:
        if not is_allowed(operation, identity.roles):
            logger.warning(
                "Denied %s %s to user id=%s (roles=%s)",
                operation.value, request.url.path, identity.user_id, sorted(identity.roles),
            )
            raise PermissionDeniedError(operation.value)
        return identity

    return dependency
