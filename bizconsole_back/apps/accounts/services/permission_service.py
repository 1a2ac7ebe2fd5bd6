# 권한 변경 시 이벤트 발행 => 권한 저장 로직 마지막에 이 함수 호출
# Permission Store: 역할/직원별 메뉴 권한 조회 및 통째 교체

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction

from apps.menus.models import Menu
from apps.menus.services import load_menu_catalog
from apps.menus.utils import build_menu_tree
from utils.exceptions import ValidationException
from ..models import RolePermission, RolePermissionHistory, StaffMenuPermission, StaffRole
from .grant_editor import GrantSetEditor

logger = logging.getLogger(__name__)


# 이벤트 발행 로직 (Channels를 통한 WebSocket 알림)
def notify_permission_changed(user_id):
    channel_layer = get_channel_layer()
    if channel_layer is None:
        logger.debug("No channel layer configured; skipping permission_changed event")
        return

    async_to_sync(channel_layer.group_send)(
        f"user_{user_id}",
        {
            "type" : "permission_changed",
        }
    )


def _notify_on_commit(user_ids):
    user_ids = sorted(set(user_ids))
    if not user_ids:
        return

    def send():
        for user_id in user_ids:
            notify_permission_changed(user_id)

    transaction.on_commit(send)


def _validate_menu_ids(menu_ids):
    desired = set(menu_ids)
    known = set(Menu.objects.filter(id__in=desired).values_list("id", flat=True))
    unknown = desired - known
    if unknown:
        raise ValidationException(
            message="존재하지 않는 메뉴가 포함되어 있습니다.",
            detail={"unknownMenuIds": sorted(unknown)},
            field="menuIds",
        )
    return desired


def _actor(changed_by):
    if changed_by is None or not getattr(changed_by, "is_authenticated", False):
        return None
    return changed_by


def _record_history(added, removed, changed_by, reason, role=None, staff_role=None):
    rows = [
        RolePermissionHistory(role=role, staff_role=staff_role, menu_id=menu_id, action="ADD",
                              changed_by=changed_by, reason=reason)
        for menu_id in sorted(added)
    ] + [
        RolePermissionHistory(role=role, staff_role=staff_role, menu_id=menu_id, action="REMOVE",
                              changed_by=changed_by, reason=reason)
        for menu_id in sorted(removed)
    ]
    RolePermissionHistory.objects.bulk_create(rows)


# 역할 권한 조회
def get_role_menu_ids(role):
    return set(
        RolePermission.objects
        .filter(role=role)
        .values_list("permission_id", flat=True)
    )


# 역할 권한 통째 교체 (diff 가 아니라 최종 목록을 받음)
def replace_role_menus(role, menu_ids, changed_by=None, reason=""):
    desired = _validate_menu_ids(menu_ids)
    changed_by = _actor(changed_by)

    with transaction.atomic():
        current = set(
            RolePermission.objects.select_for_update()
            .filter(role=role)
            .values_list("permission_id", flat=True)
        )
        added = desired - current
        removed = current - desired

        if removed:
            RolePermission.objects.filter(role=role, permission_id__in=removed).delete()
        RolePermission.objects.bulk_create(
            [RolePermission(role=role, permission_id=menu_id) for menu_id in sorted(added)]
        )
        _record_history(added, removed, changed_by, reason, role=role)

        if added or removed:
            _notify_on_commit(StaffRole.objects.filter(role=role).values_list("user_id", flat=True))

    logger.info(f"Role {role.code} menus replaced: +{len(added)} -{len(removed)}")
    return sorted(added), sorted(removed)


# 직원 개인 권한 조회
def get_staff_menu_ids(staff_role):
    return set(
        StaffMenuPermission.objects
        .filter(staff_role=staff_role)
        .values_list("menu_id", flat=True)
    )


# 직원 개인 권한 통째 교체
def replace_staff_menus(staff_role, menu_ids, changed_by=None, reason=""):
    desired = _validate_menu_ids(menu_ids)
    changed_by = _actor(changed_by)

    with transaction.atomic():
        current = set(
            StaffMenuPermission.objects.select_for_update()
            .filter(staff_role=staff_role)
            .values_list("menu_id", flat=True)
        )
        added = desired - current
        removed = current - desired

        if removed:
            StaffMenuPermission.objects.filter(staff_role=staff_role, menu_id__in=removed).delete()
        StaffMenuPermission.objects.bulk_create(
            [StaffMenuPermission(staff_role=staff_role, menu_id=menu_id) for menu_id in sorted(added)]
        )
        _record_history(added, removed, changed_by, reason, staff_role=staff_role)

        if added or removed:
            _notify_on_commit([staff_role.user_id])

    logger.info(f"Staff role {staff_role.pk} menus replaced: +{len(added)} -{len(removed)}")
    return sorted(added), sorted(removed)


# 직원 역할 변경 (+ 선택적으로 개인 메뉴 권한 통째 교체) 를 한 트랜잭션으로 처리
def assign_staff_role(staff_role, role, menu_ids=None, changed_by=None, reason=""):
    # 시스템 공통 역할 또는 같은 비즈니스의 역할만 지정 가능
    if role.biz_id is not None and role.biz_id != staff_role.biz_id:
        raise ValidationException(
            message="다른 비즈니스의 역할은 지정할 수 없습니다.",
            detail={"roleId": role.pk, "bizId": staff_role.biz_id},
            field="roleId",
        )
    if not role.is_active:
        raise ValidationException(message="비활성화된 역할입니다.", detail={"roleId": role.pk}, field="roleId")
    if menu_ids is not None:
        _validate_menu_ids(menu_ids)
    changed_by = _actor(changed_by)

    added, removed = [], []
    with transaction.atomic():
        staff_role = StaffRole.objects.select_for_update().select_related("role").get(pk=staff_role.pk)
        previous = staff_role.role

        if previous.pk != role.pk:
            staff_role.role = role
            staff_role.save(update_fields=["role"])
            RolePermissionHistory.objects.create(
                role=role,
                staff_role=staff_role,
                action="ASSIGN",
                changed_by=changed_by,
                reason=reason or f"{previous.code} -> {role.code}",
            )
            _notify_on_commit([staff_role.user_id])
            logger.info(f"Staff role {staff_role.pk} reassigned: {previous.code} -> {role.code}")

        if menu_ids is not None:
            added, removed = replace_staff_menus(staff_role, menu_ids, changed_by=changed_by, reason=reason)

    return staff_role, added, removed


class GrantSource:
    """편집 세션이 권한 집합을 읽고 저장하는 대상 (역할 / 직원)"""

    label = ""

    def load(self):
        raise NotImplementedError

    def save(self, menu_ids, changed_by=None, reason=""):
        raise NotImplementedError

    def history(self):
        raise NotImplementedError


class RoleGrantSource(GrantSource):
    def __init__(self, role):
        self.role = role
        self.label = f"role:{role.code}" if role.biz_id is None else f"role:{role.code}@{role.biz_id}"

    def load(self):
        return get_role_menu_ids(self.role)

    def save(self, menu_ids, changed_by=None, reason=""):
        return replace_role_menus(self.role, menu_ids, changed_by=changed_by, reason=reason)

    def history(self):
        # 직원 역할 변경(ASSIGN) 행은 직원 이력에만 표시
        return (
            RolePermissionHistory.objects
            .filter(role=self.role, staff_role__isnull=True)
            .select_related("role", "menu", "changed_by")
        )


class StaffGrantSource(GrantSource):
    def __init__(self, staff_role):
        self.staff_role = staff_role
        self.label = f"staff:{staff_role.pk}@{staff_role.biz_id}"

    def load(self):
        return get_staff_menu_ids(self.staff_role)

    def save(self, menu_ids, changed_by=None, reason=""):
        return replace_staff_menus(self.staff_role, menu_ids, changed_by=changed_by, reason=reason)

    def history(self):
        return (
            RolePermissionHistory.objects
            .filter(staff_role=self.staff_role)
            .select_related("staff_role", "role", "menu", "changed_by")
        )


# 편집 세션 시작: 카탈로그로 트리를 만들고 현재 권한으로 초기화
def open_grant_editor(source, catalog=None):
    if catalog is None:
        catalog = load_menu_catalog()
    editor = GrantSetEditor(build_menu_tree(catalog))
    editor.initialize(source.load())
    logger.debug(f"Opened grant editor for {source.label}")
    return editor
