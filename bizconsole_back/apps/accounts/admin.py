from django.contrib import admin
from .models import Role, RolePermission, RolePermissionHistory, StaffRole, StaffMenuPermission

# admin 페이지 연결
@admin.register(Role)
class RoleAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "biz_id", "is_active", "updated_at")
    list_filter = ("is_active",)
    search_fields = ("code", "name")


@admin.register(StaffRole)
class StaffRoleAdmin(admin.ModelAdmin):
    list_display = ("user", "biz_id", "role", "assigned_at")
    list_filter = ("biz_id",)


# 권한 변경 이력은 조회만
@admin.register(RolePermissionHistory)
class RolePermissionHistoryAdmin(admin.ModelAdmin):
    list_display = ("role", "staff_role", "menu", "action", "changed_by", "changed_at")
    list_filter = ("action",)
    readonly_fields = ("changed_at",)


admin.site.register(RolePermission)
admin.site.register(StaffMenuPermission)
