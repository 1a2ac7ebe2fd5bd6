from django.conf import settings
from django.db import models

from .role import Role

# StaffRole(비즈니스별 직원 역할) 모델
class StaffRole(models.Model):
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="staff_roles")
    biz_id = models.BigIntegerField(db_index=True)
    role = models.ForeignKey(Role, on_delete=models.CASCADE)
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        unique_together = ("user", "biz_id")

    def __str__(self):
        return f"{self.user} @ {self.biz_id}: {self.role}"
