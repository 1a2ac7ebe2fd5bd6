from django.urls import path, include
from rest_framework.routers import SimpleRouter

from .views import MenuCatalogView, MenuTreeView, MenuViewSet

router = SimpleRouter()
router.register(r"manage", MenuViewSet, basename="menu-manage")

# 함수형 뷰라면 .as_view() 미작성 
urlpatterns = [
    path("", MenuCatalogView, name="menu-catalog"),  # 메뉴 카탈로그 조회
    path("tree/", MenuTreeView, name="menu-tree"),  # 메뉴 트리 조회
    path("", include(router.urls)),  # 메뉴 관리 (생성 / 수정 / 삭제)
]
