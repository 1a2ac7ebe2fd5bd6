from rest_framework.permissions import BasePermission, SAFE_METHODS

# 권한 편집이 가능한 역할 코드
ADMIN_ROLE_CODE = "ADMIN"
SYSTEM_MANAGER_CODE = "SYSTEMMANAGER"
ADMIN_ROLE_CODES = (ADMIN_ROLE_CODE, SYSTEM_MANAGER_CODE)


def _is_logged_in(user):
    return bool(user and user.is_authenticated)


# 시스템 관리자: superuser 또는 SYSTEMMANAGER 역할 보유자 (모든 비즈니스 관리 가능)
def is_system_manager(user):
    if not _is_logged_in(user):
        return False
    if user.is_superuser:
        return True
    return user.staff_roles.filter(role__code=SYSTEM_MANAGER_CODE).exists()


# 어느 비즈니스든 관리자 역할을 하나라도 가진 사용자
def is_console_admin(user):
    if not _is_logged_in(user):
        return False
    if user.is_superuser:
        return True
    return user.staff_roles.filter(role__code__in=ADMIN_ROLE_CODES).exists()


def can_manage_biz(user, biz_id):
    """
    biz_id 비즈니스의 역할 / 직원 권한을 변경할 수 있는지.
    biz_id 가 None 이면 시스템 공통 역할 → 시스템 관리자만 가능.
    """
    if is_system_manager(user):
        return True
    if biz_id is None or not _is_logged_in(user):
        return False
    return user.staff_roles.filter(biz_id=biz_id, role__code__in=ADMIN_ROLE_CODES).exists()


class IsAdminOrReadOnly(BasePermission):
    """조회는 로그인 사용자 모두, 변경은 대상 비즈니스의 관리자만"""
    def has_permission(self, request, view):
        if not _is_logged_in(request.user):
            return False
        if request.method in SAFE_METHODS:
            return True
        return is_console_admin(request.user)

    # obj: Role 또는 StaffRole (둘 다 biz_id 보유)
    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        return can_manage_biz(request.user, obj.biz_id)


class IsSystemManagerOrReadOnly(BasePermission):
    """메뉴 카탈로그: 조회는 로그인 사용자 모두, 변경은 시스템 관리자만"""
    def has_permission(self, request, view):
        if not _is_logged_in(request.user):
            return False
        if request.method in SAFE_METHODS:
            return True
        return is_system_manager(request.user)
