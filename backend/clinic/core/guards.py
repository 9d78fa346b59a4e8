"""
Permission guards for API routes.

Each guard is a FastAPI dependency: it resolves the caller's role from the
user store and raises an ``AccessDenied`` subclass before the route body runs,
so a rejected request never reaches a handler's reads or writes. On success
the resolved ``Role`` is returned, letting handlers take it as a parameter.
Guards may be stacked; each one resolves the role on its own and nothing is
cached between requests.
"""
import logging
from typing import Callable, Optional, Union

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from .config import settings
from .errors import (
    AccessDenied,
    InsufficientPermission,
    InsufficientRole,
    InvalidRole,
    ModuleAccessDenied,
    PermissionCheckFailed,
    ResolutionFailure,
    Unauthenticated,
)
from .permissions import Module, ModuleAction, Role
from .security import get_identity
from ..models.base import get_db
from ..services.permission_service import PermissionService
from ..services.user_repository import UserRepository

logger = logging.getLogger(__name__)


def resolve_role(request: Request, db: Session) -> Optional[str]:
    """
    Return the raw role string stored for the authenticated caller.

    None means the subject has no user record or the record has no role.
    """
    user_id = get_identity(request)
    if not user_id:
        raise Unauthenticated()

    try:
        user = UserRepository(db).get_user(user_id)
    except Exception as exc:
        fallback = settings.ROLE_RESOLUTION_FALLBACK
        if fallback is None:
            logger.error("Role lookup failed for user %s: %s", user_id, exc)
            raise ResolutionFailure() from exc
        logger.warning(
            "Role lookup failed for user %s (%s); using configured fallback role %r",
            user_id, exc, fallback,
        )
        return fallback

    if user is None:
        logger.warning("Authenticated subject %s has no user record", user_id)
        return None
    return user.role or None


def _validated(role: Optional[str], request: Request) -> Role:
    if not PermissionService.is_valid_role(role):
        logger.warning("Rejected invalid role %r on %s %s", role, request.method, request.url.path)
        raise InvalidRole()
    return Role(role)


def _display_name(role: Role) -> str:
    config = PermissionService.get_role_config(role)
    return config.name if config else role.value


def _guard(error: str, message: str, check: Callable[[Role, Request], None]):
    def dependency(request: Request, db: Session = Depends(get_db)) -> Role:
        try:
            role = _validated(resolve_role(request, db), request)
            check(role, request)
            return role
        except AccessDenied:
            raise
        except Exception as exc:
            logger.exception("%s on %s %s", error, request.method, request.url.path)
            raise PermissionCheckFailed(error, message) from exc

    return dependency


def require_permission(module: Module, action: ModuleAction):
    """Allow the request only if the caller's role grants ``action`` on ``module``."""
    def check(role: Role, request: Request) -> None:
        if not PermissionService.can_perform_action(role, module, action):
            logger.debug(
                "Denied %s:%s to role %s on %s", module.value, action.value, role.value, request.url.path
            )
            raise InsufficientPermission(role.value, _display_name(role), module.value, action.value)

    return _guard(
        "Permission check failed", "An error occurred while checking permissions", check
    )


def require_role(allowed_roles: Union[Role, str, tuple, list, set, frozenset]):
    """Allow the request only for one of the given roles."""
    if isinstance(allowed_roles, str):
        allowed_roles = (allowed_roles,)
    # Undeclared role names raise ValueError here, when the route is defined.
    roles = tuple(Role(r) for r in allowed_roles)

    def check(role: Role, request: Request) -> None:
        if role not in roles:
            logger.debug("Denied role %s on %s", role.value, request.url.path)
            raise InsufficientRole(role.value, [r.value for r in roles])

    return _guard("Role check failed", "An error occurred while checking role", check)


def require_module_access(module: Module):
    """Allow the request if the caller's role holds any grant on ``module``."""
    def check(role: Role, request: Request) -> None:
        if not PermissionService.has_module_access(role, module):
            logger.debug("Denied module %s to role %s on %s", module.value, role.value, request.url.path)
            raise ModuleAccessDenied(role.value, _display_name(role), module.value)

    return _guard(
        "Module access check failed", "An error occurred while checking module access", check
    )


def _no_check(role: Role, request: Request) -> None:
    return None


# Any authenticated caller whose stored role is declared in the table.
require_valid_role = _guard(
    "Role validation failed", "An error occurred while validating role", _no_check
)

require_super_admin = require_role(Role.SUPER_ADMIN)
require_doctor = require_role((Role.DOCTOR, Role.SUPER_ADMIN))


class PatientPermissions:
    view = require_permission(Module.PATIENTS, ModuleAction.VIEW)
    add = require_permission(Module.PATIENTS, ModuleAction.ADD)
    edit = require_permission(Module.PATIENTS, ModuleAction.EDIT)
    delete = require_permission(Module.PATIENTS, ModuleAction.DELETE)
    export = require_permission(Module.PATIENTS, ModuleAction.EXPORT)
    import_ = require_permission(Module.PATIENTS, ModuleAction.IMPORT)
    print = require_permission(Module.PATIENTS, ModuleAction.PRINT)
    upload_files = require_permission(Module.PATIENTS, ModuleAction.UPLOAD_FILES)
    module_access = require_module_access(Module.PATIENTS)


class UserPermissions:
    view = require_permission(Module.USERS, ModuleAction.VIEW)
    add = require_permission(Module.USERS, ModuleAction.ADD)
    edit = require_permission(Module.USERS, ModuleAction.EDIT)
    delete = require_permission(Module.USERS, ModuleAction.DELETE)
    export = require_permission(Module.USERS, ModuleAction.EXPORT)
    module_access = require_module_access(Module.USERS)


class AnalyticsPermissions:
    view = require_permission(Module.ANALYTICS, ModuleAction.VIEW)
    export = require_permission(Module.ANALYTICS, ModuleAction.EXPORT)
    module_access = require_module_access(Module.ANALYTICS)


class ReportsPermissions:
    view = require_permission(Module.REPORTS, ModuleAction.VIEW)
    add = require_permission(Module.REPORTS, ModuleAction.ADD)
    edit = require_permission(Module.REPORTS, ModuleAction.EDIT)
    delete = require_permission(Module.REPORTS, ModuleAction.DELETE)
    export = require_permission(Module.REPORTS, ModuleAction.EXPORT)
    print = require_permission(Module.REPORTS, ModuleAction.PRINT)
    module_access = require_module_access(Module.REPORTS)


class SettingsPermissions:
    view = require_permission(Module.SETTINGS, ModuleAction.VIEW)
    edit = require_permission(Module.SETTINGS, ModuleAction.EDIT)
    module_access = require_module_access(Module.SETTINGS)
