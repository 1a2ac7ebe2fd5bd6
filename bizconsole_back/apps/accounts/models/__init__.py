from .role import Role
from .role_permission import RolePermission
from .role_permission_history import RolePermissionHistory
from .staff_role import StaffRole
from .staff_menu_permission import StaffMenuPermission

__all__ = [
    "Role",
    "RolePermission",
    "RolePermissionHistory",
    "StaffRole",
    "StaffMenuPermission",
]
