from django.db import models
from .role import Role
from apps.menus.models import Menu


class RolePermission(models.Model):
    """
    Role - Menu 권한 매핑
    """
    role = models.ForeignKey(
        Role,
        on_delete=models.CASCADE
    )
    permission = models.ForeignKey(
        Menu,
        on_delete=models.CASCADE
    )

    class Meta:
        db_table = "accounts_role_permissions"
        unique_together = ("role", "permission")
