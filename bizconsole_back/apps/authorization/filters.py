# apps/authorization/filters.py
import django_filters
from apps.accounts.models import Role, RolePermissionHistory, StaffRole

# 역할 검색 필터
class RoleFilter(django_filters.FilterSet):
    biz_id = django_filters.NumberFilter(field_name="biz_id")
    system = django_filters.BooleanFilter(field_name="biz_id", lookup_expr="isnull")
    is_active = django_filters.BooleanFilter(field_name="is_active")

    class Meta:
        model = Role
        fields = ["biz_id", "is_active"]


# 직원 역할 필터
class StaffRoleFilter(django_filters.FilterSet):
    biz_id = django_filters.NumberFilter(field_name="biz_id")
    role__code = django_filters.CharFilter(field_name="role__code", lookup_expr="exact")

    class Meta:
        model = StaffRole
        fields = ["biz_id", "role__code"]


# 권한 변경 이력 필터
class RolePermissionHistoryFilter(django_filters.FilterSet):
    action = django_filters.ChoiceFilter(choices=RolePermissionHistory.ACTION_CHOICES)

    class Meta:
        model = RolePermissionHistory
        fields = ["action"]
