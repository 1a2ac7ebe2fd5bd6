from django.conf import settings
from django.db import models
from .role import Role
from .staff_role import StaffRole
from apps.menus.models import Menu

class RolePermissionHistory(models.Model):
    ACTION_CHOICES = (
        ("ADD", "권한 추가"),
        ("REMOVE", "권한 제거"),
        ("ASSIGN", "역할 변경"),
    )

    # 역할 권한 변경이면 role, 직원 개인 권한 변경이면 staff_role
    # ASSIGN: 직원 역할 변경 (role = 새 역할, menu 없음)
    role = models.ForeignKey(Role, on_delete=models.CASCADE, null=True, blank=True)
    staff_role = models.ForeignKey(StaffRole, on_delete=models.CASCADE, null=True, blank=True)
    menu = models.ForeignKey(Menu, on_delete=models.CASCADE, null=True, blank=True)

    action = models.CharField(max_length=10, choices=ACTION_CHOICES)

    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="permission_changes"
    )
    
    changed_at = models.DateTimeField(auto_now_add=True)
    reason = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["-changed_at", "-id"]
