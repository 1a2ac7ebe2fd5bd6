import logging

from rest_framework import viewsets
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from apps.common.permission import IsSystemManagerOrReadOnly
from .models import Menu
from .serializers import MenuSerializer, MenuWriteSerializer
from .services import load_menu_tree

logger = logging.getLogger(__name__)


# 메뉴 카탈로그 API (평탄한 목록)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def MenuCatalogView(request):
    menus = Menu.objects.filter(is_active=True).order_by("order", "id")
    return Response({
        "menus": MenuSerializer(menus, many=True).data
    })


# 메뉴 트리 API
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def MenuTreeView(request):
    # 트리로 변환
    menu_tree = load_menu_tree()

    return Response({
        "menus": menu_tree.to_dicts()
    })


# 메뉴 관리 API (비활성 메뉴 포함, 변경은 시스템 관리자만)
class MenuViewSet(viewsets.ModelViewSet):
    queryset = Menu.objects.all().order_by("order", "id")
    serializer_class = MenuWriteSerializer
    permission_classes = [IsAuthenticated, IsSystemManagerOrReadOnly]

    def perform_create(self, serializer):
        menu = serializer.save()
        logger.info(f"Menu {menu.code} created by {self.request.user}")

    def perform_update(self, serializer):
        menu = serializer.save()
        logger.info(f"Menu {menu.code} updated by {self.request.user}")

    # 하위 메뉴와 부여된 권한도 함께 삭제됨 (CASCADE)
    def perform_destroy(self, instance):
        logger.info(f"Menu {instance.code} deleted by {self.request.user}")
        instance.delete()
