import re
from rest_framework import serializers

from .models import Menu
from .services import load_menu_tree

# 프론트에 내려줄 형태 (Permission Store 카탈로그 형태)
# { id, parentId, name, sortOrder, description }
class MenuSerializer(serializers.ModelSerializer):
    parentId = serializers.IntegerField(source="parent_id", read_only=True, allow_null=True)
    sortOrder = serializers.IntegerField(source="order", read_only=True)
    description = serializers.SerializerMethodField()

    class Meta:
        model = Menu
        fields = [
            "id",
            "parentId",
            "name",
            "sortOrder",
            "description",
        ]

    def get_description(self, obj):
        return obj.description or None


# 메뉴 관리(생성 / 수정) 요청 + 응답 형태
class MenuWriteSerializer(serializers.ModelSerializer):
    parentId = serializers.PrimaryKeyRelatedField(
        source="parent", queryset=Menu.objects.all(), allow_null=True, required=False,
    )
    sortOrder = serializers.IntegerField(source="order", required=False)
    isActive = serializers.BooleanField(source="is_active", required=False)

    class Meta:
        model = Menu
        fields = [
            "id",
            "code",
            "name",
            "description",
            "parentId",
            "sortOrder",
            "isActive",
        ]

    def validate_code(self, value):
        if not re.match(r'^[A-Z0-9_]+$', value):
            raise serializers.ValidationError(
                "메뉴 코드는 영문 대문자, 숫자, _ 만 사용할 수 있습니다."
            )
        return value

    # 자기 자신이나 하위 메뉴를 상위로 지정하면 순환
    def validate_parentId(self, parent):
        if parent is None or self.instance is None:
            return parent
        tree = load_menu_tree(active_only=False)
        if parent.pk == self.instance.pk or parent.pk in tree.descendants_of.get(self.instance.pk, ()):
            raise serializers.ValidationError("하위 메뉴를 상위 메뉴로 지정할 수 없습니다.")
        return parent
