import re
from rest_framework import serializers

from apps.accounts.models import Role, RolePermissionHistory, StaffRole


class RoleSerializer(serializers.ModelSerializer):
    class Meta:
        model = Role
        fields = [
            "id", 
            "code", 
            "name", 
            "description",
            "biz_id",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["created_at", "updated_at"]

    def validate_code(self, value):
        if not re.match(r'^[A-Z0-9_]+$', value):
            raise serializers.ValidationError(
                "역할 코드는 영문 대문자, 숫자, _ 만 사용할 수 있습니다."
            )
        return value


# 비즈니스 직원 역할
class StaffRoleSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source="user.username", read_only=True)
    role = RoleSerializer(read_only=True)

    class Meta:
        model = StaffRole
        fields = [
            "id",
            "user",
            "username",
            "biz_id",
            "role",
            "assigned_at",
        ]


# 메뉴 권한 저장 / toggle 요청 본문
class MenuGrantUpdateSerializer(serializers.Serializer):
    menuIds = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=True,
    )
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


# 직원 역할 변경 요청 본문 (menuIds 를 보내면 개인 메뉴 권한도 함께 교체)
class StaffRoleAssignSerializer(serializers.Serializer):
    roleId = serializers.IntegerField(min_value=1)
    menuIds = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=True,
        required=False,
    )
    reason = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")


# 역할별 메뉴 접근 변경 이력 관리
class RolePermissionHistorySerializer(serializers.ModelSerializer):
    role_name = serializers.CharField(source="role.name", read_only=True, allow_null=True)
    staff_role_id = serializers.IntegerField(read_only=True)
    # ASSIGN(역할 변경) 행은 menu 없음
    menu_id = serializers.IntegerField(read_only=True, allow_null=True)
    menu_name = serializers.CharField(source="menu.name", read_only=True, allow_null=True)
    changed_by_name = serializers.CharField(
        source="changed_by.username",
        read_only=True,
        allow_null=True,
    )

    class Meta:
        model = RolePermissionHistory
        fields = [
            "id",
            "role_name",
            "staff_role_id",
            "menu_id",
            "menu_name",
            "action",
            "changed_by_name",
            "changed_at",
            "reason",
        ]
