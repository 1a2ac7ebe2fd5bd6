from django.db import models

from .staff_role import StaffRole
from apps.menus.models import Menu


class StaffMenuPermission(models.Model):
    """
    직원 개인 - Menu 권한 매핑 (역할 기본값과 별도로 비즈니스 안에서 부여)
    """
    staff_role = models.ForeignKey(
        StaffRole,
        related_name="menu_permissions",
        on_delete=models.CASCADE
    )
    menu = models.ForeignKey(
        Menu,
        on_delete=models.CASCADE
    )

    class Meta:
        db_table = "accounts_staff_menu_permissions"
        unique_together = ("staff_role", "menu")
