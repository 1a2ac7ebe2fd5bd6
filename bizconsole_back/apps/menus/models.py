from django.db import models


# 메뉴 기본 정보 (권한 부여 단위, parent-child 구조)
class Menu(models.Model):
    id = models.BigAutoField(primary_key=True)  # PK는 숫자형
    code = models.CharField(max_length=50, unique=True)  # 'INVENTORY', 'POS' 등
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True, default="")
    parent = models.ForeignKey("self", related_name="children", on_delete=models.CASCADE, blank=True, null=True)
    order = models.IntegerField(default=0)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["order", "id"]

    def __str__(self):
        return self.code
