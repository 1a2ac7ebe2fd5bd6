from django.db import models

# Role 모델
class Role(models.Model):
    code = models.CharField(max_length=50) # ADMIN, MANAGER, CASHIER, STOCK_KEEPER ...
    name = models.CharField(max_length=50)
    description = models.TextField(blank= True)
    # 비즈니스 전용 역할이면 biz_id 지정, 시스템 공통 역할이면 None
    biz_id = models.BigIntegerField(null=True, blank=True, db_index=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add = True)
    updated_at = models.DateTimeField(auto_now=True)

    # 참고: Role-Menu 권한 매핑은 RolePermission 모델을 통해 관리됨
    # (apps/accounts/models/role_permission.py 참조)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["code", "biz_id"], name="uniq_role_code_per_biz"),
        ]

    def __str__(self) :
        return self.name
