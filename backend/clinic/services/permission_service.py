"""
Read-only queries over the role permission table.

Every function is total: unknown roles, modules, actions or menus simply
yield False / empty results. Raw strings and enum members are both accepted,
so values taken straight from a database row or a request can be passed in.
"""
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, TypeVar

from ..core.permissions import (
    PROTECTED_ROUTES,
    ROLE_PERMISSIONS,
    Module,
    ModuleAction,
    Permission,
    ProtectedRoute,
    Role,
    RoleConfig,
    SidebarMenu,
)

E = TypeVar("E")
T = TypeVar("T")


def _coerce(enum_cls: Type[E], value: Any) -> Optional[E]:
    """Return the enum member for ``value``, or None when it is not declared."""
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None


def _find_permission(config: RoleConfig, module: Module) -> Optional[Permission]:
    return next((p for p in config.permissions if p.module == module), None)


class PermissionService:
    """Static query functions shared by the API guards and the UI gate."""

    @staticmethod
    def get_role_config(role) -> Optional[RoleConfig]:
        key = _coerce(Role, role)
        if key is None:
            return None
        return ROLE_PERMISSIONS.get(key)

    @staticmethod
    def is_valid_role(candidate) -> bool:
        """Exact match against the declared role keys only."""
        return _coerce(Role, candidate) in ROLE_PERMISSIONS

    @staticmethod
    def get_all_roles() -> List[Role]:
        return list(ROLE_PERMISSIONS.keys())

    @staticmethod
    def can_access_sidebar_menu(role, menu) -> bool:
        config = PermissionService.get_role_config(role)
        target = _coerce(SidebarMenu, menu)
        if config is None or target is None:
            return False
        return target in config.sidebar_menus

    @staticmethod
    def can_perform_action(role, module, action) -> bool:
        config = PermissionService.get_role_config(role)
        target_module = _coerce(Module, module)
        target_action = _coerce(ModuleAction, action)
        if config is None or target_module is None or target_action is None:
            return False
        permission = _find_permission(config, target_module)
        return permission is not None and target_action in permission.actions

    @staticmethod
    def has_module_access(role, module) -> bool:
        """Coarse check: does the role hold any grant at all on ``module``."""
        config = PermissionService.get_role_config(role)
        target = _coerce(Module, module)
        if config is None or target is None:
            return False
        permission = _find_permission(config, target)
        return permission is not None and len(permission.actions) > 0

    @staticmethod
    def get_allowed_sidebar_menus(role) -> List[SidebarMenu]:
        config = PermissionService.get_role_config(role)
        return list(config.sidebar_menus) if config else []

    @staticmethod
    def get_allowed_actions(role, module) -> List[ModuleAction]:
        config = PermissionService.get_role_config(role)
        target = _coerce(Module, module)
        if config is None or target is None:
            return []
        permission = _find_permission(config, target)
        return list(permission.actions) if permission else []

    @staticmethod
    def find_protected_route(path: str) -> Optional[ProtectedRoute]:
        return next((r for r in PROTECTED_ROUTES if r.path == path), None)

    @staticmethod
    def can_access_route(role, path: str) -> bool:
        """
        Whole-page gate. Paths without a ProtectedRoute entry are open; for a
        listed path every requirement that is set must pass, checked in the
        order roles, menu, module+action (or module alone).
        """
        route = PermissionService.find_protected_route(path)
        if route is None:
            return True

        if route.required_roles is not None:
            if _coerce(Role, role) not in route.required_roles:
                return False

        if route.required_menu is not None:
            if not PermissionService.can_access_sidebar_menu(role, route.required_menu):
                return False

        if route.required_module is not None and route.required_action is not None:
            return PermissionService.can_perform_action(
                role, route.required_module, route.required_action
            )

        if route.required_module is not None:
            return PermissionService.has_module_access(role, route.required_module)

        return True

    @staticmethod
    def filter_menu_items(
        role,
        items: Iterable[T],
        key: Callable[[T], Any] = lambda item: item["key"],
    ) -> List[T]:
        """Keep the sidebar items whose menu key the role may see."""
        allowed = set(PermissionService.get_allowed_sidebar_menus(role))
        return [item for item in items if _coerce(SidebarMenu, key(item)) in allowed]

    @staticmethod
    def filter_actions(
        role,
        module,
        items: Iterable[T],
        key: Callable[[T], Any] = lambda item: item["action"],
    ) -> List[T]:
        """Keep the toolbar items whose action is granted on ``module``."""
        allowed = set(PermissionService.get_allowed_actions(role, module))
        return [item for item in items if _coerce(ModuleAction, key(item)) in allowed]

    @staticmethod
    def get_user_permissions(role) -> Dict[str, Any]:
        """Bootstrap payload so a client can render its navigation in one call."""
        config = PermissionService.get_role_config(role)
        key = _coerce(Role, role)
        permissions = config.permissions if config else ()
        return {
            "role": key.value if key else role,
            "roleName": config.name if config else None,
            "roleDescription": config.description if config else None,
            "sidebarMenus": [m.value for m in PermissionService.get_allowed_sidebar_menus(role)],
            "permissions": [
                {"module": p.module.value, "actions": [a.value for a in p.actions]}
                for p in permissions
            ],
            "modules": [p.module.value for p in permissions],
        }


# Module-level aliases for call sites that prefer plain functions.
get_role_config = PermissionService.get_role_config
is_valid_role = PermissionService.is_valid_role
get_all_roles = PermissionService.get_all_roles
can_access_sidebar_menu = PermissionService.can_access_sidebar_menu
can_perform_action = PermissionService.can_perform_action
has_module_access = PermissionService.has_module_access
get_allowed_sidebar_menus = PermissionService.get_allowed_sidebar_menus
get_allowed_actions = PermissionService.get_allowed_actions
can_access_route = PermissionService.can_access_route
filter_menu_items = PermissionService.filter_menu_items
filter_actions = PermissionService.filter_actions
get_user_permissions = PermissionService.get_user_permissions
