# 역할 / 직원 메뉴 권한 편집 API
# 요청을 받아서 Permission Store 서비스와 편집 세션(GrantSetEditor)을 호출
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.accounts.models import Role, StaffRole
from apps.accounts.services.permission_service import (
    RoleGrantSource,
    StaffGrantSource,
    assign_staff_role,
    get_staff_menu_ids,
    open_grant_editor,
)
from apps.common.pagination import HistoryPagination
from apps.common.permission import IsAdminOrReadOnly, can_manage_biz
from utils.exceptions import PermissionDeniedException, ValidationException
from .filters import RoleFilter, RolePermissionHistoryFilter, StaffRoleFilter
from .serializers import (
    MenuGrantUpdateSerializer,
    RolePermissionHistorySerializer,
    RoleSerializer,
    StaffRoleAssignSerializer,
    StaffRoleSerializer,
)


class MenuGrantActionsMixin:
    """
    메뉴 권한 편집 공통 액션.
    하위 ViewSet 은 get_grant_source() 로 편집 대상(역할 / 직원)만 주입한다.
    """

    def get_grant_source(self):
        raise NotImplementedError

    def _save_response(self, source, added, removed):
        return Response({
            "menuIds": sorted(source.load()),
            "added": added,
            "removed": removed,
        })

    # GET: 현재 권한 + 체크 상태 트리, PUT: 최종 목록으로 통째 교체
    @action(detail=True, methods=["get", "put"], url_path="menus")
    def menus(self, request, pk=None):
        source = self.get_grant_source()

        if request.method == "GET":
            editor = open_grant_editor(source)
            return Response({
                "menuIds": editor.export_granted(),
                "tree": editor.tree.to_dicts(granted=editor.granted),
            })

        serializer = MenuGrantUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        added, removed = source.save(
            serializer.validated_data["menuIds"],
            changed_by=request.user,
            reason=serializer.validated_data["reason"],
        )
        return self._save_response(source, added, removed)

    # 편집 세션 1회: 현재 권한에서 menuIds 를 순서대로 toggle 후 저장
    @action(detail=True, methods=["post"], url_path="menus/toggle")
    def toggle_menus(self, request, pk=None):
        source = self.get_grant_source()
        serializer = MenuGrantUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        editor = open_grant_editor(source)
        editor.apply(serializer.validated_data["menuIds"])

        added, removed = source.save(
            editor.export_granted(),
            changed_by=request.user,
            reason=serializer.validated_data["reason"],
        )
        return self._save_response(source, added, removed)

    # 권한 변경 이력 (?action=ADD|REMOVE|ASSIGN, ?page=, ?size=)
    @action(detail=True, methods=["get"], url_path="menus/history")
    def menu_history(self, request, pk=None):
        source = self.get_grant_source()
        filterset = RolePermissionHistoryFilter(request.query_params, queryset=source.history())
        if not filterset.is_valid():
            errors = {field: list(messages) for field, messages in filterset.errors.items()}
            raise ValidationException(detail=errors, field="action")

        paginator = HistoryPagination()
        page = paginator.paginate_queryset(filterset.qs, request, view=self)
        serializer = RolePermissionHistorySerializer(page, many=True)
        return paginator.get_paginated_response(serializer.data)


def _check_biz_admin(user, biz_id):
    if not can_manage_biz(user, biz_id):
        raise PermissionDeniedException(
            message="해당 비즈니스의 역할을 관리할 권한이 없습니다.",
            detail={"bizId": biz_id},
        )


# 역할 관리 + 역할 메뉴 권한 관리
class RoleViewSet(MenuGrantActionsMixin, viewsets.ModelViewSet):
    queryset = Role.objects.all().order_by("id")
    serializer_class = RoleSerializer
    permission_classes = [IsAuthenticated, IsAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_class = RoleFilter
    # /api/auth/roles/?biz_id=3 → 비즈니스 역할
    # /api/auth/roles/?system=true → 시스템 공통 역할

    def get_grant_source(self):
        return RoleGrantSource(self.get_object())

    # 생성 / 수정 시 대상 biz_id 도 관리 권한 확인 (기존 biz_id 는 객체 권한에서 확인)
    def perform_create(self, serializer):
        _check_biz_admin(self.request.user, serializer.validated_data.get("biz_id"))
        serializer.save()

    def perform_update(self, serializer):
        biz_id = serializer.validated_data.get("biz_id", serializer.instance.biz_id)
        _check_biz_admin(self.request.user, biz_id)
        serializer.save()


# 직원 역할 조회 + 직원 역할 변경 + 직원 개인 메뉴 권한 관리
class StaffRoleViewSet(MenuGrantActionsMixin, viewsets.ReadOnlyModelViewSet):
    queryset = StaffRole.objects.select_related("user", "role").order_by("id")
    serializer_class = StaffRoleSerializer
    permission_classes = [IsAuthenticated, IsAdminOrReadOnly]
    filter_backends = [DjangoFilterBackend]
    filterset_class = StaffRoleFilter

    def get_grant_source(self):
        return StaffGrantSource(self.get_object())

    # 역할 변경: { roleId, menuIds?, reason? }
    @action(detail=True, methods=["put"], url_path="role")
    def assign_role(self, request, pk=None):
        staff_role = self.get_object()
        serializer = StaffRoleAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        role = Role.objects.filter(pk=serializer.validated_data["roleId"]).first()
        if role is None:
            raise ValidationException(
                message="존재하지 않는 역할입니다.",
                detail={"roleId": serializer.validated_data["roleId"]},
                field="roleId",
            )
        # 시스템 공통 역할 지정은 시스템 관리자만
        _check_biz_admin(request.user, role.biz_id)

        staff_role, added, removed = assign_staff_role(
            staff_role,
            role,
            menu_ids=serializer.validated_data.get("menuIds"),
            changed_by=request.user,
            reason=serializer.validated_data["reason"],
        )
        return Response({
            **StaffRoleSerializer(staff_role).data,
            "menuIds": sorted(get_staff_menu_ids(staff_role)),
            "added": added,
            "removed": removed,
        })
