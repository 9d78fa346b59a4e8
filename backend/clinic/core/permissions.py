"""
Role-based permission table for the clinic application.

This module is the single source of truth for what each role may see in the
sidebar and which actions it may perform per module. Both the API guards and
the UI permission gate read from it; nothing mutates it at runtime.
"""
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    DOCTOR = "doctor"
    TECHNICIAN = "technician"


class Module(str, Enum):
    PATIENTS = "patients"
    USERS = "users"
    ANALYTICS = "analytics"
    REPORTS = "reports"
    SETTINGS = "settings"


class ModuleAction(str, Enum):
    VIEW = "view"
    ADD = "add"
    EDIT = "edit"
    DELETE = "delete"
    EXPORT = "export"
    IMPORT = "import"
    PRINT = "print"
    UPLOAD_FILES = "upload_files"


class SidebarMenu(str, Enum):
    DASHBOARD = "dashboard"
    PATIENTS = "patients"
    ANALYTICS = "analytics"
    REPORTS = "reports"
    USER_MANAGEMENT = "user-management"
    SETTINGS = "settings"
    NOTIFICATIONS = "notifications"


@dataclass(frozen=True)
class Permission:
    module: Module
    actions: Tuple[ModuleAction, ...]


@dataclass(frozen=True)
class RoleConfig:
    name: str
    description: str
    sidebar_menus: Tuple[SidebarMenu, ...]
    permissions: Tuple[Permission, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ProtectedRoute:
    """Whole-page requirements. Every field that is set must pass."""
    path: str
    required_roles: Optional[Tuple[Role, ...]] = None
    required_menu: Optional[SidebarMenu] = None
    required_module: Optional[Module] = None
    required_action: Optional[ModuleAction] = None


_ALL_PATIENT_ACTIONS = (
    ModuleAction.VIEW,
    ModuleAction.ADD,
    ModuleAction.EDIT,
    ModuleAction.DELETE,
    ModuleAction.EXPORT,
    ModuleAction.IMPORT,
    ModuleAction.PRINT,
    ModuleAction.UPLOAD_FILES,
)

# Role -> RoleConfig. Modules not listed for a role mean no access at all.
ROLE_PERMISSIONS: Mapping[Role, RoleConfig] = MappingProxyType({
    Role.SUPER_ADMIN: RoleConfig(
        name="Super Admin",
        description="Full access to all application features",
        sidebar_menus=(
            SidebarMenu.DASHBOARD,
            SidebarMenu.PATIENTS,
            SidebarMenu.ANALYTICS,
            SidebarMenu.REPORTS,
            SidebarMenu.USER_MANAGEMENT,
            SidebarMenu.SETTINGS,
            SidebarMenu.NOTIFICATIONS,
        ),
        permissions=(
            Permission(Module.PATIENTS, _ALL_PATIENT_ACTIONS),
            Permission(Module.USERS, (
                ModuleAction.VIEW,
                ModuleAction.ADD,
                ModuleAction.EDIT,
                ModuleAction.DELETE,
                ModuleAction.EXPORT,
            )),
            Permission(Module.ANALYTICS, (ModuleAction.VIEW, ModuleAction.EXPORT)),
            Permission(Module.REPORTS, (
                ModuleAction.VIEW,
                ModuleAction.ADD,
                ModuleAction.EDIT,
                ModuleAction.DELETE,
                ModuleAction.EXPORT,
                ModuleAction.PRINT,
            )),
            Permission(Module.SETTINGS, (ModuleAction.VIEW, ModuleAction.EDIT)),
        ),
    ),
    Role.DOCTOR: RoleConfig(
        name="Doctor",
        description="Access to patient management and dashboard",
        sidebar_menus=(SidebarMenu.DASHBOARD, SidebarMenu.PATIENTS),
        permissions=(
            Permission(Module.PATIENTS, (
                ModuleAction.VIEW,
                ModuleAction.ADD,
                ModuleAction.EDIT,
                ModuleAction.DELETE,
                ModuleAction.EXPORT,
                ModuleAction.PRINT,
                ModuleAction.UPLOAD_FILES,
            )),
        ),
    ),
    Role.TECHNICIAN: RoleConfig(
        name="Technician",
        description="Limited access to patient data entry and viewing",
        sidebar_menus=(SidebarMenu.DASHBOARD, SidebarMenu.PATIENTS),
        permissions=(
            Permission(Module.PATIENTS, (
                ModuleAction.VIEW,
                ModuleAction.ADD,
                ModuleAction.EDIT,
                ModuleAction.UPLOAD_FILES,
            )),
        ),
    ),
})

# Paths not listed here are open to any role.
PROTECTED_ROUTES: Tuple[ProtectedRoute, ...] = (
    ProtectedRoute("/dashboard", required_menu=SidebarMenu.DASHBOARD),
    ProtectedRoute(
        "/patients",
        required_menu=SidebarMenu.PATIENTS,
        required_module=Module.PATIENTS,
        required_action=ModuleAction.VIEW,
    ),
    ProtectedRoute(
        "/add-patient",
        required_menu=SidebarMenu.PATIENTS,
        required_module=Module.PATIENTS,
        required_action=ModuleAction.ADD,
    ),
    ProtectedRoute(
        "/analytics",
        required_menu=SidebarMenu.ANALYTICS,
        required_module=Module.ANALYTICS,
        required_action=ModuleAction.VIEW,
    ),
    ProtectedRoute(
        "/reports",
        required_menu=SidebarMenu.REPORTS,
        required_module=Module.REPORTS,
        required_action=ModuleAction.VIEW,
    ),
    ProtectedRoute(
        "/user-management",
        required_menu=SidebarMenu.USER_MANAGEMENT,
        required_module=Module.USERS,
        required_action=ModuleAction.VIEW,
    ),
    ProtectedRoute(
        "/settings",
        required_menu=SidebarMenu.SETTINGS,
        required_module=Module.SETTINGS,
        required_action=ModuleAction.VIEW,
    ),
    ProtectedRoute("/notifications", required_menu=SidebarMenu.NOTIFICATIONS),
)
