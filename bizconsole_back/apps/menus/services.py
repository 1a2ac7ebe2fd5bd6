from .catalog import MenuNode
from .models import Menu
from .utils import build_menu_tree


# Permission Store 에서 메뉴 카탈로그를 평탄한 MenuNode 목록으로 조회
def load_menu_catalog(active_only=True):
    menus = Menu.objects.all()
    if active_only:
        menus = menus.filter(is_active=True)
    return [MenuNode.from_model(menu) for menu in menus.order_by("order", "id")]


# 카탈로그 스냅샷으로 편집용 트리 생성
def load_menu_tree(active_only=True):
    return build_menu_tree(load_menu_catalog(active_only=active_only))
