"""
View-layer permission gate.

Hides or replaces UI fragments according to the current user's role, using
the same PermissionService queries as the API guards. This is presentation
only; every action gated here is also enforced by a guard in ``core.guards``.
"""
from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import Any, Callable, List, Mapping, Optional, Sequence

from ..core.permissions import Module, ModuleAction, Role, SidebarMenu
from ..services.permission_service import PermissionService

LOADING_PLACEHOLDER = '<div class="flex items-center justify-center h-screen">Loading...</div>'
UNAUTHORIZED_PLACEHOLDER = '<div class="flex items-center justify-center h-screen">Unauthorized</div>'
ACCESS_DENIED_PLACEHOLDER = '<div class="flex items-center justify-center h-screen">Access Denied</div>'


class GateState(str, Enum):
    LOADING = "loading"
    GRANTED = "granted"
    DENIED = "denied"


@dataclass(frozen=True)
class PermissionContext:
    """Permission queries bound to the current user's role.

    ``user_role`` comes from the already-authenticated session; it is None
    when nobody is signed in, and every query then denies.
    """
    user_role: Optional[str] = None
    is_loading: bool = False

    @classmethod
    def from_user(cls, user: Optional[Mapping[str, Any]], is_loading: bool = False) -> "PermissionContext":
        role = user.get("role") if user else None
        return cls(user_role=role or None, is_loading=is_loading)

    def can_access_sidebar_menu(self, menu: SidebarMenu) -> bool:
        if not self.user_role:
            return False
        return PermissionService.can_access_sidebar_menu(self.user_role, menu)

    def can_perform_action(self, module: Module, action: ModuleAction) -> bool:
        if not self.user_role:
            return False
        return PermissionService.can_perform_action(self.user_role, module, action)

    def has_module_access(self, module: Module) -> bool:
        if not self.user_role:
            return False
        return PermissionService.has_module_access(self.user_role, module)

    def get_allowed_sidebar_menus(self) -> List[SidebarMenu]:
        if not self.user_role:
            return []
        return PermissionService.get_allowed_sidebar_menus(self.user_role)

    def get_allowed_actions(self, module: Module) -> List[ModuleAction]:
        if not self.user_role:
            return []
        return PermissionService.get_allowed_actions(self.user_role, module)

    def can_access_route(self, path: str) -> bool:
        # Signed-out users cannot navigate anywhere, protected or not.
        if not self.user_role:
            return False
        return PermissionService.can_access_route(self.user_role, path)


def _collect_checks(
    ctx: PermissionContext,
    roles: Optional[Sequence[Role]],
    menu: Optional[SidebarMenu],
    module: Optional[Module],
    action: Optional[ModuleAction],
) -> List[bool]:
    checks = []
    if roles is not None:
        # Undeclared entries never match.
        allowed = {r for r in PermissionService.get_all_roles() if any(r == entry for entry in roles)}
        checks.append(
            PermissionService.is_valid_role(ctx.user_role) and Role(ctx.user_role) in allowed
        )
    if menu is not None:
        checks.append(ctx.can_access_sidebar_menu(menu))
    if module is not None and action is not None:
        checks.append(ctx.can_perform_action(module, action))
    elif module is not None:
        checks.append(ctx.has_module_access(module))
    return checks


@dataclass(frozen=True)
class PermissionGate:
    """Render ``children`` only when the declared conditions hold.

    With ``require_all`` every condition must pass, otherwise any one is
    enough. A gate with no conditions at all grants access.
    """
    roles: Optional[Sequence[Role]] = None
    menu: Optional[SidebarMenu] = None
    module: Optional[Module] = None
    action: Optional[ModuleAction] = None
    require_all: bool = True

    def evaluate(self, ctx: PermissionContext) -> GateState:
        if ctx.is_loading:
            return GateState.LOADING
        if not ctx.user_role:
            return GateState.DENIED

        checks = _collect_checks(ctx, self.roles, self.menu, self.module, self.action)
        if not checks:
            return GateState.GRANTED

        passed = all(checks) if self.require_all else any(checks)
        return GateState.GRANTED if passed else GateState.DENIED

    def render(self, ctx: PermissionContext, children: Any, fallback: Any = None) -> Any:
        state = self.evaluate(ctx)
        if state is GateState.LOADING:
            return None
        return children if state is GateState.GRANTED else fallback


def with_permissions(
    component: Callable[..., Any],
    roles: Optional[Sequence[Role]] = None,
    menu: Optional[SidebarMenu] = None,
    module: Optional[Module] = None,
    action: Optional[ModuleAction] = None,
) -> Callable[..., Any]:
    """Wrap a screen render function with a blocking access check.

    The wrapped function is called as ``component(ctx, *args, **kwargs)``.
    All given conditions must pass.
    """
    @wraps(component)
    def wrapper(ctx: PermissionContext, *args, **kwargs):
        if ctx.is_loading:
            return LOADING_PLACEHOLDER
        if not ctx.user_role:
            return UNAUTHORIZED_PLACEHOLDER
        if not all(_collect_checks(ctx, roles, menu, module, action)):
            return ACCESS_DENIED_PLACEHOLDER
        return component(ctx, *args, **kwargs)

    return wrapper
