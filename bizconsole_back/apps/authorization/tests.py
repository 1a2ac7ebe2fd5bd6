from django.contrib.auth import get_user_model
from rest_framework import status
from rest_framework.test import APITestCase, APIClient

from apps.accounts.models import Role, RolePermission, RolePermissionHistory, StaffMenuPermission, StaffRole
from apps.menus.models import Menu
from apps.menus.utils import CHECKED, PARTIAL, UNCHECKED


class MenuGrantAPITestBase(APITestCase):

    def setUp(self):
        """테스트 데이터 설정"""
        User = get_user_model()

        # Role 생성
        self.admin_role = Role.objects.create(code="ADMIN", name="관리자", biz_id=3)
        self.cashier_role = Role.objects.create(code="CASHIER", name="캐셔", biz_id=3)

        # User 생성
        self.admin = User.objects.create_user(username="admin1", password="testpass123")
        self.cashier = User.objects.create_user(username="cashier1", password="testpass123")
        StaffRole.objects.create(user=self.admin, biz_id=3, role=self.admin_role)
        self.cashier_staff = StaffRole.objects.create(user=self.cashier, biz_id=3, role=self.cashier_role)

        # 메뉴: Inventory ─ Items, Stock / POS
        self.inventory = Menu.objects.create(code="INVENTORY", name="Inventory", order=0)
        self.items = Menu.objects.create(code="ITEMS", name="Items", parent=self.inventory, order=0)
        self.stock = Menu.objects.create(code="STOCK", name="Stock", parent=self.inventory, order=1)
        self.pos = Menu.objects.create(code="POS", name="POS", order=1)

        self.client = APIClient()

    def role_url(self, suffix=""):
        return f"/api/auth/roles/{self.cashier_role.id}/menus/{suffix}"

    def staff_url(self, suffix=""):
        return f"/api/auth/staff/{self.cashier_staff.id}/menus/{suffix}"


class RoleMenuGrantAPITest(MenuGrantAPITestBase):
    """역할 메뉴 권한 API 테스트"""

    def test_unauthenticated(self):
        response = self.client.get(self.role_url())
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_get_grants_with_tree_state(self):
        RolePermission.objects.create(role=self.cashier_role, permission=self.inventory)
        RolePermission.objects.create(role=self.cashier_role, permission=self.items)

        self.client.force_authenticate(user=self.cashier)
        response = self.client.get(self.role_url())

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["menuIds"], [self.inventory.id, self.items.id])
        inventory = response.data["tree"][0]
        self.assertEqual(inventory["state"], PARTIAL)
        self.assertEqual(inventory["children"][0]["state"], CHECKED)
        self.assertEqual(inventory["children"][1]["state"], UNCHECKED)
        self.assertEqual(response.data["tree"][1]["id"], self.pos.id)

    def test_put_replaces_wholesale(self):
        RolePermission.objects.create(role=self.cashier_role, permission=self.pos)

        self.client.force_authenticate(user=self.admin)
        response = self.client.put(
            self.role_url(),
            {"menuIds": [self.inventory.id, self.stock.id], "reason": "재고 담당"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["menuIds"], [self.inventory.id, self.stock.id])
        self.assertEqual(response.data["added"], [self.inventory.id, self.stock.id])
        self.assertEqual(response.data["removed"], [self.pos.id])
        self.assertEqual(RolePermissionHistory.objects.filter(role=self.cashier_role).count(), 3)

    def test_put_requires_admin(self):
        self.client.force_authenticate(user=self.cashier)
        response = self.client.put(self.role_url(), {"menuIds": [self.pos.id]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(RolePermission.objects.exists())

    def test_put_unknown_menu(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(self.role_url(), {"menuIds": [self.pos.id, 9999]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["field"], "menuIds")
        self.assertEqual(response.data["error"]["detail"], {"unknownMenuIds": [9999]})

    def test_put_invalid_body(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(self.role_url(), {"menuIds": "all"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "ERR_101")
        self.assertEqual(response.data["error"]["field"], "menuIds")

    def test_toggle_leaf_grants_ancestors(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.role_url("toggle/"), {"menuIds": [self.items.id]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["menuIds"], [self.inventory.id, self.items.id])

    def test_toggle_deselect_root_removes_subtree(self):
        for menu in (self.inventory, self.items, self.stock, self.pos):
            RolePermission.objects.create(role=self.cashier_role, permission=menu)

        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.role_url("toggle/"), {"menuIds": [self.inventory.id]}, format="json")

        self.assertEqual(response.data["menuIds"], [self.pos.id])
        self.assertEqual(response.data["removed"], [self.inventory.id, self.items.id, self.stock.id])

    def test_toggle_same_menu_twice_is_noop(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            self.role_url("toggle/"), {"menuIds": [self.stock.id, self.stock.id]}, format="json"
        )

        self.assertEqual(response.data["menuIds"], [])
        self.assertFalse(RolePermissionHistory.objects.exists())

    def test_toggle_ignores_unknown_menu(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.role_url("toggle/"), {"menuIds": [9999, self.pos.id]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["menuIds"], [self.pos.id])

    def test_history(self):
        self.client.force_authenticate(user=self.admin)
        self.client.put(self.role_url(), {"menuIds": [self.pos.id]}, format="json")
        self.client.put(self.role_url(), {"menuIds": [self.stock.id]}, format="json")

        response = self.client.get(self.role_url("history/"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 3)
        self.assertEqual(response.data["results"][0]["changed_by_name"], "admin1")
        self.assertEqual(response.data["results"][0]["role_name"], "캐셔")

        removed = self.client.get(self.role_url("history/"), {"action": "REMOVE"})
        self.assertEqual(removed.data["count"], 1)
        self.assertEqual(removed.data["results"][0]["menu_id"], self.pos.id)

    def test_history_invalid_action(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(self.role_url("history/"), {"action": "WIPE"})

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class RoleListAPITest(MenuGrantAPITestBase):
    """역할 목록 API 테스트"""

    def test_filter_by_biz(self):
        Role.objects.create(code="ADMIN", name="시스템 관리자")

        self.client.force_authenticate(user=self.cashier)
        response = self.client.get("/api/auth/roles/", {"biz_id": 3})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({role["code"] for role in response.data}, {"ADMIN", "CASHIER"})

        system = self.client.get("/api/auth/roles/", {"system": "true"})
        self.assertEqual([role["name"] for role in system.data], ["시스템 관리자"])

    def test_create_role_validates_code(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post("/api/auth/roles/", {"code": "stock keeper", "name": "재고"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["field"], "code")


class StaffMenuGrantAPITest(MenuGrantAPITestBase):
    """직원 개인 메뉴 권한 API 테스트"""

    def test_list_staff_by_biz(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get("/api/auth/staff/", {"biz_id": 3, "role__code": "CASHIER"})

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([staff["username"] for staff in response.data], ["cashier1"])

    def test_put_and_get(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(self.staff_url(), {"menuIds": [self.pos.id]}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(StaffMenuPermission.objects.filter(staff_role=self.cashier_staff, menu=self.pos).exists())
        self.assertFalse(RolePermission.objects.exists())

        response = self.client.get(self.staff_url())
        self.assertEqual(response.data["menuIds"], [self.pos.id])

    def test_toggle(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(self.staff_url("toggle/"), {"menuIds": [self.stock.id]}, format="json")

        self.assertEqual(response.data["menuIds"], [self.inventory.id, self.stock.id])

        history = self.client.get(self.staff_url("history/"))
        self.assertEqual(history.data["count"], 2)
        self.assertIsNone(history.data["results"][0]["role_name"])
        self.assertEqual(history.data["results"][0]["staff_role_id"], self.cashier_staff.id)

    def test_unknown_staff(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get("/api/auth/staff/9999/menus/")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class TenantScopeAPITest(MenuGrantAPITestBase):
    """비즈니스 단위 관리 권한 테스트"""

    def setUp(self):
        super().setUp()
        self.other_role = Role.objects.create(code="CASHIER", name="다른 매장 캐셔", biz_id=5)
        self.system_role = Role.objects.create(code="VIEWER", name="조회 전용")
        other_user = get_user_model().objects.create_user(username="cashier5", password="testpass123")
        self.other_staff = StaffRole.objects.create(user=other_user, biz_id=5, role=self.other_role)

    def test_put_other_biz_role_forbidden(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(
            f"/api/auth/roles/{self.other_role.id}/menus/", {"menuIds": [self.pos.id]}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(RolePermission.objects.filter(role=self.other_role).exists())

    def test_toggle_system_role_forbidden(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            f"/api/auth/roles/{self.system_role.id}/menus/toggle/", {"menuIds": [self.pos.id]}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(RolePermission.objects.exists())

    def test_delete_other_biz_role_forbidden(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(f"/api/auth/roles/{self.other_role.id}/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Role.objects.filter(pk=self.other_role.pk).exists())

    def test_delete_own_biz_role(self):
        temp = Role.objects.create(code="TEMP", name="임시", biz_id=3)

        self.client.force_authenticate(user=self.admin)
        response = self.client.delete(f"/api/auth/roles/{temp.id}/")

        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Role.objects.filter(pk=temp.pk).exists())

    def test_create_role_in_other_biz_forbidden(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post("/api/auth/roles/", {"code": "STOCKER", "name": "재고", "biz_id": 5}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"]["code"], "ERR_002")
        self.assertFalse(Role.objects.filter(code="STOCKER").exists())

    def test_create_role_in_own_biz(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post("/api/auth/roles/", {"code": "STOCKER", "name": "재고", "biz_id": 3}, format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_move_role_to_other_biz_forbidden(self):
        temp = Role.objects.create(code="TEMP", name="임시", biz_id=3)

        self.client.force_authenticate(user=self.admin)
        response = self.client.patch(f"/api/auth/roles/{temp.id}/", {"biz_id": 5}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        temp.refresh_from_db()
        self.assertEqual(temp.biz_id, 3)

    def test_put_other_biz_staff_forbidden(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(
            f"/api/auth/staff/{self.other_staff.id}/menus/", {"menuIds": [self.pos.id]}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(StaffMenuPermission.objects.exists())

    def test_other_biz_role_still_readable(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.get(f"/api/auth/roles/{self.other_role.id}/menus/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_system_manager_manages_any_biz(self):
        manager_role = Role.objects.create(code="SYSTEMMANAGER", name="시스템 관리자")
        manager = get_user_model().objects.create_user(username="sysman", password="testpass123")
        StaffRole.objects.create(user=manager, biz_id=1, role=manager_role)

        self.client.force_authenticate(user=manager)
        for role in (self.other_role, self.system_role):
            with self.subTest(role=role.name):
                response = self.client.put(
                    f"/api/auth/roles/{role.id}/menus/", {"menuIds": [self.pos.id]}, format="json"
                )
                self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_superuser_manages_system_role(self):
        root = get_user_model().objects.create_superuser(username="root", password="testpass123")

        self.client.force_authenticate(user=root)
        response = self.client.put(
            f"/api/auth/roles/{self.system_role.id}/menus/", {"menuIds": [self.pos.id]}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["menuIds"], [self.pos.id])


class StaffRoleAssignAPITest(MenuGrantAPITestBase):
    """직원 역할 변경 API 테스트"""

    def setUp(self):
        super().setUp()
        self.manager_role = Role.objects.create(code="MANAGER", name="매니저", biz_id=3)
        StaffMenuPermission.objects.create(staff_role=self.cashier_staff, menu=self.stock)

    def assign_url(self, staff=None):
        return f"/api/auth/staff/{(staff or self.cashier_staff).id}/role/"

    def test_assign_role_with_menus(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(
            self.assign_url(),
            {"roleId": self.manager_role.id, "menuIds": [self.pos.id], "reason": "승진"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["role"]["code"], "MANAGER")
        self.assertEqual(response.data["menuIds"], [self.pos.id])
        self.assertEqual(response.data["added"], [self.pos.id])
        self.assertEqual(response.data["removed"], [self.stock.id])

        self.cashier_staff.refresh_from_db()
        self.assertEqual(self.cashier_staff.role, self.manager_role)
        assign = RolePermissionHistory.objects.get(staff_role=self.cashier_staff, action="ASSIGN")
        self.assertEqual(assign.role, self.manager_role)
        self.assertEqual(assign.changed_by, self.admin)

    def test_assign_role_keeps_menus_when_omitted(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(self.assign_url(), {"roleId": self.manager_role.id}, format="json")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["menuIds"], [self.stock.id])
        self.assertEqual((response.data["added"], response.data["removed"]), ([], []))

    def test_assign_history_visible_on_staff_only(self):
        self.client.force_authenticate(user=self.admin)
        self.client.put(self.assign_url(), {"roleId": self.manager_role.id}, format="json")

        staff_history = self.client.get(self.staff_url("history/"), {"action": "ASSIGN"})
        self.assertEqual(staff_history.data["count"], 1)
        self.assertIsNone(staff_history.data["results"][0]["menu_id"])
        self.assertEqual(staff_history.data["results"][0]["role_name"], "매니저")

        role_history = self.client.get(f"/api/auth/roles/{self.manager_role.id}/menus/history/")
        self.assertEqual(role_history.data["count"], 0)

    def test_unknown_role(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(self.assign_url(), {"roleId": 9999}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["field"], "roleId")

    def test_unknown_menu_keeps_role(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.put(
            self.assign_url(), {"roleId": self.manager_role.id, "menuIds": [9999]}, format="json"
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.cashier_staff.refresh_from_db()
        self.assertEqual(self.cashier_staff.role, self.cashier_role)
        self.assertFalse(RolePermissionHistory.objects.exists())

    def test_requires_admin(self):
        self.client.force_authenticate(user=self.cashier)
        response = self.client.put(self.assign_url(), {"roleId": self.manager_role.id}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_other_biz_role_forbidden(self):
        other_role = Role.objects.create(code="MANAGER", name="다른 매장 매니저", biz_id=5)

        self.client.force_authenticate(user=self.admin)
        response = self.client.put(self.assign_url(), {"roleId": other_role.id}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.cashier_staff.refresh_from_db()
        self.assertEqual(self.cashier_staff.role, self.cashier_role)

    def test_system_role_needs_system_manager(self):
        system_role = Role.objects.create(code="SYSTEMMANAGER", name="시스템 관리자")

        self.client.force_authenticate(user=self.admin)
        response = self.client.put(self.assign_url(), {"roleId": system_role.id}, format="json")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.cashier_staff.refresh_from_db()
        self.assertEqual(self.cashier_staff.role, self.cashier_role)
