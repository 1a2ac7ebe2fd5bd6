from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import RoleViewSet, StaffRoleViewSet

router = DefaultRouter()
router.register(r'roles', RoleViewSet)
router.register(r"staff", StaffRoleViewSet, basename="staff")

urlpatterns = [
    path("", include(router.urls)), # 역할 관리, 메뉴 권한 관리
]
