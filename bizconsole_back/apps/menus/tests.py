from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APITestCase
from django.contrib.auth import get_user_model

from utils.exceptions import DuplicateMenuException
from .catalog import MenuNode
from .models import Menu
from .services import load_menu_catalog
from .utils import CHECKED, PARTIAL, UNCHECKED, build_menu_tree


def node(menu_id, parent_id=None, sort_order=0, name=None):
    return MenuNode(id=menu_id, name=name or f"menu-{menu_id}", parent_id=parent_id, sort_order=sort_order)


class MenuNodeTest(SimpleTestCase):
    """MenuNode 변환 테스트"""

    def test_from_dict_wire_shape(self):
        menu = MenuNode.from_dict({"id": 2, "parentId": 1, "name": "Items", "sortOrder": 3, "description": None})

        self.assertEqual(menu, MenuNode(id=2, name="Items", parent_id=1, sort_order=3))

    def test_from_dict_missing_optional_fields(self):
        menu = MenuNode.from_dict({"id": 1, "name": "Inventory"})

        self.assertIsNone(menu.parent_id)
        self.assertEqual(menu.sort_order, 0)
        self.assertIsNone(menu.description)

    def test_to_dict(self):
        menu = MenuNode(id=3, name="Stock", parent_id=1, sort_order=1, description="재고")

        self.assertEqual(menu.to_dict(), {
            "id": 3, "parentId": 1, "name": "Stock", "sortOrder": 1, "description": "재고",
        })


class BuildMenuTreeTest(SimpleTestCase):
    """평탄한 카탈로그 → 트리 변환 테스트"""

    def test_empty_catalog(self):
        tree = build_menu_tree([])

        self.assertEqual(len(tree), 0)
        self.assertEqual(tree.roots, ())
        self.assertEqual(tree.to_dicts(), [])

    def test_every_menu_appears_once(self):
        catalog = [node(1), node(2, 1), node(3, 1), node(4, 2), node(5, 99), node(6, 6)]
        tree = build_menu_tree(catalog)

        walked = [tree_node.id for _, tree_node in tree.walk()]
        self.assertEqual(sorted(walked), [1, 2, 3, 4, 5, 6])
        self.assertEqual(len(walked), len(set(walked)))

    def test_siblings_sorted_by_sort_order_then_id(self):
        catalog = [
            node(1),
            node(5, 1, sort_order=2),
            node(4, 1, sort_order=1),
            node(3, 1, sort_order=1),
            node(2, 1, sort_order=0),
        ]
        tree = build_menu_tree(catalog)

        self.assertEqual(tree.children_of[1], (2, 3, 4, 5))

    def test_ordering_stable_across_builds(self):
        catalog = [node(i, None if i < 3 else i % 3, sort_order=i % 2) for i in range(10)]
        first = build_menu_tree(catalog)
        second = build_menu_tree(list(reversed(catalog)))

        self.assertEqual(first.roots, second.roots)
        self.assertEqual(first.children_of, second.children_of)

    def test_roots_sorted(self):
        tree = build_menu_tree([node(3, sort_order=0), node(1, sort_order=5), node(2, sort_order=0)])

        self.assertEqual(tree.roots, (2, 3, 1))

    def test_dangling_parent_becomes_root(self):
        tree = build_menu_tree([node(1), node(2, 42)])

        self.assertEqual(tree.roots, (1, 2))
        self.assertIsNone(tree.parent_of[2])

    def test_two_node_cycle_both_roots(self):
        tree = build_menu_tree([node("A", "B"), node("B", "A")])

        self.assertEqual(set(tree.roots), {"A", "B"})
        self.assertEqual(len(tree), 2)

    def test_self_parent_is_root(self):
        tree = build_menu_tree([node(1, 1)])

        self.assertEqual(tree.roots, (1,))
        self.assertEqual(tree.descendants_of[1], ())

    def test_node_hanging_off_cycle_keeps_parent(self):
        tree = build_menu_tree([node(1, 2), node(2, 3), node(3, 1), node(4, 1)])

        self.assertEqual(set(tree.roots), {1, 2, 3})
        self.assertEqual(tree.parent_of[4], 1)
        self.assertEqual(tree.children_of[1], (4,))

    def test_duplicate_id_fails_fast(self):
        with self.assertRaises(DuplicateMenuException):
            build_menu_tree([node(1), node(1, name="again")])

    def test_ancestor_and_descendant_indexes(self):
        tree = build_menu_tree([node(1), node(2, 1), node(3, 2), node(4, 1, sort_order=1)])

        self.assertEqual(tree.ancestors_of[3], (2, 1))
        self.assertEqual(tree.ancestors_of[1], ())
        self.assertEqual(tree.descendants_of[1], (2, 3, 4))
        self.assertEqual(tree.descendants_of[3], ())

    def test_tree_node_view(self):
        tree = build_menu_tree([node(1), node(2, 1), node(3, 2)])
        leaf = tree.get(3)

        self.assertEqual(leaf.parent.id, 2)
        self.assertEqual(leaf.parent.parent.id, 1)
        self.assertIsNone(leaf.parent.parent.parent)
        self.assertEqual(leaf.depth, 2)
        self.assertEqual([child.id for child in tree.get(1).children], [2])
        self.assertEqual([root.id for root in tree.forest], [1])
        self.assertIsNone(tree.get(99))

    def test_to_dicts_with_state(self):
        tree = build_menu_tree([node(1), node(2, 1), node(3, 1, sort_order=1)])

        data = tree.to_dicts(granted={1, 2})

        self.assertEqual(data[0]["id"], 1)
        self.assertEqual(data[0]["state"], PARTIAL)
        self.assertEqual([child["id"] for child in data[0]["children"]], [2, 3])
        self.assertEqual(data[0]["children"][0]["state"], CHECKED)
        self.assertEqual(data[0]["children"][1]["state"], UNCHECKED)
        self.assertEqual(data[0]["children"][1]["children"], [])

    def test_contains_unhashable(self):
        tree = build_menu_tree([node(1)])

        self.assertIn(1, tree)
        self.assertNotIn([1], tree)


class LoadMenuCatalogTest(TestCase):
    """DB 카탈로그 조회 테스트"""

    def setUp(self):
        self.inventory = Menu.objects.create(code="INVENTORY", name="Inventory", order=0)
        self.items = Menu.objects.create(code="ITEMS", name="Items", parent=self.inventory, order=0)
        self.stock = Menu.objects.create(code="STOCK", name="Stock", parent=self.inventory, order=1,
                                         description="재고 현황")
        self.legacy = Menu.objects.create(code="LEGACY", name="Legacy", is_active=False)

    def test_active_only(self):
        catalog = load_menu_catalog()

        self.assertEqual([menu.id for menu in catalog], [self.inventory.id, self.items.id, self.stock.id])
        self.assertEqual(catalog[1].parent_id, self.inventory.id)
        self.assertEqual(catalog[2].description, "재고 현황")
        self.assertIsNone(catalog[0].description)

    def test_include_inactive(self):
        catalog = load_menu_catalog(active_only=False)

        self.assertIn(self.legacy.id, [menu.id for menu in catalog])


class MenuAPITest(APITestCase):
    """메뉴 API 테스트"""

    def setUp(self):
        self.user = get_user_model().objects.create_user(username="staff1", password="testpass123")
        self.root = Menu.objects.create(code="POS", name="POS", order=0)
        self.child = Menu.objects.create(code="POS_SALES", name="Sales", parent=self.root)

    def test_catalog_unauthenticated(self):
        response = self.client.get("/api/menus/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_catalog(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get("/api/menus/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["menus"][1], {
            "id": self.child.id,
            "parentId": self.root.id,
            "name": "Sales",
            "sortOrder": 0,
            "description": None,
        })

    def test_tree(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get("/api/menus/tree/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["menus"]), 1)
        self.assertEqual(response.data["menus"][0]["children"][0]["id"], self.child.id)


class MenuManageAPITest(APITestCase):
    """메뉴 관리 API 테스트"""

    def setUp(self):
        User = get_user_model()
        self.staff = User.objects.create_user(username="staff1", password="testpass123")
        self.root_user = User.objects.create_superuser(username="root", password="testpass123")
        self.inventory = Menu.objects.create(code="INVENTORY", name="Inventory", order=0)
        self.stock = Menu.objects.create(code="STOCK", name="Stock", parent=self.inventory)
        self.legacy = Menu.objects.create(code="LEGACY", name="Legacy", is_active=False)

    def test_list_includes_inactive(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.get("/api/menus/manage/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("LEGACY", [menu["code"] for menu in response.data])

    def test_create_requires_system_manager(self):
        self.client.force_authenticate(user=self.staff)
        response = self.client.post("/api/menus/manage/", {"code": "POS", "name": "POS"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Menu.objects.filter(code="POS").exists())

    def test_create(self):
        self.client.force_authenticate(user=self.root_user)
        response = self.client.post(
            "/api/menus/manage/",
            {"code": "ITEMS", "name": "Items", "parentId": self.inventory.id, "sortOrder": 2},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        menu = Menu.objects.get(code="ITEMS")
        self.assertEqual(menu.parent, self.inventory)
        self.assertEqual(menu.order, 2)
        self.assertTrue(menu.is_active)

    def test_create_invalid_code(self):
        self.client.force_authenticate(user=self.root_user)
        response = self.client.post("/api/menus/manage/", {"code": "pos menu", "name": "POS"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["field"], "code")

    def test_reparent_under_descendant_rejected(self):
        self.client.force_authenticate(user=self.root_user)
        response = self.client.patch(
            f"/api/menus/manage/{self.inventory.id}/", {"parentId": self.stock.id}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["field"], "parentId")
        self.inventory.refresh_from_db()
        self.assertIsNone(self.inventory.parent)

    def test_deactivate(self):
        self.client.force_authenticate(user=self.root_user)
        response = self.client.patch(f"/api/menus/manage/{self.stock.id}/", {"isActive": False}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertNotIn(self.stock.id, [menu.id for menu in load_menu_catalog()])

    def test_delete_cascades_children(self):
        self.client.force_authenticate(user=self.root_user)
        response = self.client.delete(f"/api/menus/manage/{self.inventory.id}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Menu.objects.filter(pk__in=[self.inventory.pk, self.stock.pk]).exists())
