from io import StringIO

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import SimpleTestCase, TestCase

from apps.menus.catalog import MenuNode
from apps.menus.models import Menu
from apps.menus.utils import CHECKED, PARTIAL, UNCHECKED, build_menu_tree
from utils.exceptions import ValidationException
from .models import Role, RolePermission, RolePermissionHistory, StaffMenuPermission, StaffRole
from .services.grant_editor import GrantSetEditor
from .services.permission_service import (
    RoleGrantSource,
    StaffGrantSource,
    assign_staff_role,
    get_role_menu_ids,
    get_staff_menu_ids,
    open_grant_editor,
    replace_role_menus,
    replace_staff_menus,
)

# Inventory(1) ─ Items(2), Stock(3)
INVENTORY_CATALOG = [
    {"id": 1, "parentId": None, "name": "Inventory", "sortOrder": 0},
    {"id": 2, "parentId": 1, "name": "Items", "sortOrder": 0},
    {"id": 3, "parentId": 1, "name": "Stock", "sortOrder": 1},
]


def inventory_tree():
    return build_menu_tree([MenuNode.from_dict(item) for item in INVENTORY_CATALOG])


def chain_tree():
    # root(10) → A(20) → B(30), 형제 C(40)
    return build_menu_tree([
        MenuNode(id=10, name="root"),
        MenuNode(id=20, name="A", parent_id=10),
        MenuNode(id=30, name="B", parent_id=20),
        MenuNode(id=40, name="C", parent_id=10, sort_order=1),
    ])


class GrantSetEditorTest(SimpleTestCase):
    """GrantSetEditor cascade toggle 테스트"""

    def test_select_leaf_cascades_up(self):
        editor = GrantSetEditor(chain_tree())

        self.assertEqual(editor.toggle(30), {10, 20, 30})

    def test_select_parent_cascades_down(self):
        editor = GrantSetEditor(chain_tree())

        self.assertEqual(editor.toggle(20), {10, 20, 30})

    def test_deselect_cascades_down_only(self):
        editor = GrantSetEditor(chain_tree(), granted={10, 20, 30})

        self.assertEqual(editor.toggle(20), {10})

    def test_deselect_leaf_keeps_ancestors(self):
        editor = GrantSetEditor(chain_tree(), granted={10, 20, 30, 40})

        self.assertEqual(editor.toggle(30), {10, 20, 40})

    def test_unknown_id_is_noop(self):
        editor = GrantSetEditor(chain_tree(), granted={10, 40})

        self.assertEqual(editor.toggle(999), {10, 40})
        self.assertEqual(editor.toggle(None), {10, 40})

    def test_toggle_twice_restores_membership(self):
        starts = [set(), {10}, {20}, {30}, {10, 40}, {10, 20, 30}, {20, 40}, {10, 20, 30, 40}]
        for start in starts:
            for menu_id in (10, 20, 30, 40):
                with self.subTest(start=start, menu_id=menu_id):
                    editor = GrantSetEditor(chain_tree(), granted=start)
                    editor.toggle(menu_id)
                    self.assertEqual(editor.toggle(menu_id), start)

    def test_third_toggle_cascades_again(self):
        editor = GrantSetEditor(chain_tree())
        editor.toggle(30)
        editor.toggle(30)

        self.assertEqual(editor.toggle(30), {10, 20, 30})

    def test_toggle_other_menu_clears_revert(self):
        editor = GrantSetEditor(chain_tree())
        editor.toggle(30)  # {10, 20, 30}
        editor.toggle(40)  # + 40
        editor.toggle(30)  # 30 해제, 상위 유지

        self.assertEqual(editor.granted, {10, 20, 40})

    def test_unknown_toggle_breaks_revert(self):
        editor = GrantSetEditor(chain_tree(), granted={10, 40})
        editor.toggle(30)   # {10, 20, 30, 40}
        editor.toggle(999)  # 없는 메뉴
        editor.toggle(30)   # 되돌리기 아님: 30 만 해제

        self.assertEqual(editor.granted, {10, 20, 40})

    def test_initialize_replaces_and_resets(self):
        editor = GrantSetEditor(chain_tree())
        editor.toggle(30)
        editor.initialize([40])

        self.assertEqual(editor.granted, {40})
        self.assertEqual(editor.toggle(30), {10, 20, 30, 40})

    def test_state_of(self):
        editor = GrantSetEditor(chain_tree(), granted={10, 20})

        self.assertEqual(editor.state_of(10), PARTIAL)
        self.assertEqual(editor.state_of(20), PARTIAL)
        self.assertEqual(editor.state_of(30), UNCHECKED)
        self.assertIsNone(editor.state_of(999))

        editor.initialize({10, 20, 30, 40})
        self.assertEqual(editor.state_of(10), CHECKED)

    def test_apply(self):
        editor = GrantSetEditor(chain_tree())

        self.assertEqual(editor.apply([40, 30, 999]), {10, 20, 30, 40})

    def test_inventory_select_leaf(self):
        editor = GrantSetEditor(inventory_tree())
        editor.initialize([])
        editor.toggle(2)

        self.assertEqual(set(editor.export_granted()), {1, 2})

    def test_inventory_deselect_root(self):
        editor = GrantSetEditor(inventory_tree())
        editor.initialize([1, 2, 3])
        editor.toggle(1)

        self.assertEqual(editor.export_granted(), [])

    def test_inventory_deselect_leaf_with_granted_sibling(self):
        editor = GrantSetEditor(inventory_tree())
        editor.initialize([1, 2, 3])
        editor.toggle(2)

        self.assertEqual(set(editor.export_granted()), {1, 3})

    def test_export_is_plain_list(self):
        editor = GrantSetEditor(inventory_tree(), granted={3, 1})

        self.assertIsInstance(editor.export_granted(), list)
        self.assertEqual(sorted(editor.export_granted()), [1, 3])


class PermissionStoreTestMixin:

    def setUp(self):
        User = get_user_model()
        self.admin = User.objects.create_user(username="admin1", password="testpass123")
        self.cashier = User.objects.create_user(username="cashier1", password="testpass123")

        self.inventory = Menu.objects.create(code="INVENTORY", name="Inventory", order=0)
        self.items = Menu.objects.create(code="ITEMS", name="Items", parent=self.inventory, order=0)
        self.stock = Menu.objects.create(code="STOCK", name="Stock", parent=self.inventory, order=1)
        self.pos = Menu.objects.create(code="POS", name="POS", order=1)

        self.role = Role.objects.create(code="CASHIER", name="캐셔", biz_id=3)
        self.staff_role = StaffRole.objects.create(user=self.cashier, biz_id=3, role=self.role)


class RolePermissionStoreTest(PermissionStoreTestMixin, TestCase):
    """역할 권한 저장 테스트"""

    def test_replace_wholesale(self):
        RolePermission.objects.create(role=self.role, permission=self.pos)

        added, removed = replace_role_menus(self.role, [self.inventory.id, self.items.id], changed_by=self.admin)

        self.assertEqual(added, [self.inventory.id, self.items.id])
        self.assertEqual(removed, [self.pos.id])
        self.assertEqual(get_role_menu_ids(self.role), {self.inventory.id, self.items.id})

    def test_history_recorded(self):
        RolePermission.objects.create(role=self.role, permission=self.pos)

        replace_role_menus(self.role, [self.stock.id], changed_by=self.admin, reason="재고 담당")

        history = RolePermissionHistory.objects.filter(role=self.role)
        self.assertEqual(
            sorted((row.menu_id, row.action) for row in history),
            sorted([(self.stock.id, "ADD"), (self.pos.id, "REMOVE")]),
        )
        self.assertTrue(all(row.changed_by == self.admin and row.reason == "재고 담당" for row in history))

    def test_unchanged_set_writes_nothing(self):
        RolePermission.objects.create(role=self.role, permission=self.pos)

        added, removed = replace_role_menus(self.role, [self.pos.id])

        self.assertEqual((added, removed), ([], []))
        self.assertFalse(RolePermissionHistory.objects.exists())

    def test_unknown_menu_rejected(self):
        with self.assertRaises(ValidationException) as ctx:
            replace_role_menus(self.role, [self.pos.id, 9999])

        self.assertEqual(ctx.exception.field, "menuIds")
        self.assertEqual(ctx.exception.detail_info, {"unknownMenuIds": [9999]})
        self.assertFalse(RolePermission.objects.exists())

    def test_anonymous_actor_not_recorded(self):
        from django.contrib.auth.models import AnonymousUser

        replace_role_menus(self.role, [self.pos.id], changed_by=AnonymousUser())

        self.assertIsNone(RolePermissionHistory.objects.get().changed_by)

    def test_notify_affected_staff_on_commit(self):
        layer = get_channel_layer()
        channel_name = async_to_sync(layer.new_channel)()
        async_to_sync(layer.group_add)(f"user_{self.cashier.id}", channel_name)

        with self.captureOnCommitCallbacks(execute=True):
            replace_role_menus(self.role, [self.pos.id])

        message = async_to_sync(layer.receive)(channel_name)
        self.assertEqual(message["type"], "permission_changed")

    def test_role_grant_source(self):
        source = RoleGrantSource(self.role)
        source.save([self.pos.id])

        self.assertEqual(source.label, "role:CASHIER@3")
        self.assertEqual(source.load(), {self.pos.id})
        self.assertEqual(source.history().count(), 1)


class StaffPermissionStoreTest(PermissionStoreTestMixin, TestCase):
    """직원 개인 권한 저장 테스트"""

    def test_replace_staff_menus(self):
        added, removed = replace_staff_menus(self.staff_role, [self.pos.id], changed_by=self.admin)

        self.assertEqual((added, removed), ([self.pos.id], []))
        self.assertTrue(StaffMenuPermission.objects.filter(staff_role=self.staff_role, menu=self.pos).exists())
        self.assertEqual(RolePermissionHistory.objects.get().staff_role, self.staff_role)

    def test_staff_grant_source_independent_of_role(self):
        RolePermission.objects.create(role=self.role, permission=self.inventory)
        source = StaffGrantSource(self.staff_role)

        self.assertEqual(source.load(), set())
        source.save([self.stock.id])
        self.assertEqual(source.load(), {self.stock.id})
        self.assertEqual(get_role_menu_ids(self.role), {self.inventory.id})


class AssignStaffRoleTest(PermissionStoreTestMixin, TestCase):
    """직원 역할 변경 테스트"""

    def setUp(self):
        super().setUp()
        self.manager = Role.objects.create(code="MANAGER", name="매니저", biz_id=3)

    def test_assign_role_and_menus_together(self):
        StaffMenuPermission.objects.create(staff_role=self.staff_role, menu=self.pos)

        staff_role, added, removed = assign_staff_role(
            self.staff_role, self.manager, menu_ids=[self.stock.id], changed_by=self.admin,
        )

        self.assertEqual(staff_role.role, self.manager)
        self.assertEqual((added, removed), ([self.stock.id], [self.pos.id]))
        self.assertEqual(get_staff_menu_ids(staff_role), {self.stock.id})
        assign = RolePermissionHistory.objects.get(action="ASSIGN")
        self.assertIsNone(assign.menu)
        self.assertEqual(assign.reason, "CASHIER -> MANAGER")

    def test_same_role_writes_no_history(self):
        assign_staff_role(self.staff_role, self.role)

        self.assertFalse(RolePermissionHistory.objects.exists())

    def test_system_role_allowed(self):
        viewer = Role.objects.create(code="VIEWER", name="조회 전용")

        staff_role, _, _ = assign_staff_role(self.staff_role, viewer)

        self.assertEqual(staff_role.role, viewer)

    def test_other_biz_role_rejected(self):
        other = Role.objects.create(code="MANAGER", name="다른 매장 매니저", biz_id=5)

        with self.assertRaises(ValidationException) as ctx:
            assign_staff_role(self.staff_role, other)

        self.assertEqual(ctx.exception.field, "roleId")
        self.staff_role.refresh_from_db()
        self.assertEqual(self.staff_role.role, self.role)

    def test_inactive_role_rejected(self):
        self.manager.is_active = False
        self.manager.save()

        with self.assertRaises(ValidationException):
            assign_staff_role(self.staff_role, self.manager)

    def test_unknown_menu_rolls_back(self):
        with self.assertRaises(ValidationException):
            assign_staff_role(self.staff_role, self.manager, menu_ids=[9999])

        self.staff_role.refresh_from_db()
        self.assertEqual(self.staff_role.role, self.role)

    def test_notify_staff_on_commit(self):
        layer = get_channel_layer()
        channel_name = async_to_sync(layer.new_channel)()
        async_to_sync(layer.group_add)(f"user_{self.cashier.id}", channel_name)

        with self.captureOnCommitCallbacks(execute=True):
            assign_staff_role(self.staff_role, self.manager)

        message = async_to_sync(layer.receive)(channel_name)
        self.assertEqual(message["type"], "permission_changed")


class OpenGrantEditorTest(PermissionStoreTestMixin, TestCase):
    """편집 세션 시작 테스트"""

    def test_editor_seeded_from_store(self):
        RolePermission.objects.create(role=self.role, permission=self.pos)

        editor = open_grant_editor(RoleGrantSource(self.role))
        editor.toggle(self.items.id)

        self.assertEqual(set(editor.export_granted()), {self.pos.id, self.inventory.id, self.items.id})

    def test_editor_with_injected_catalog(self):
        catalog = [MenuNode(id=self.pos.id, name="POS")]

        editor = open_grant_editor(StaffGrantSource(self.staff_role), catalog=catalog)

        self.assertEqual(len(editor.tree), 1)
        self.assertEqual(editor.granted, frozenset())

    def test_session_round_trip(self):
        source = RoleGrantSource(self.role)
        editor = open_grant_editor(source)
        editor.toggle(self.stock.id)
        source.save(editor.export_granted())

        self.assertEqual(source.load(), {self.inventory.id, self.stock.id})


class EditMenuGrantsCommandTest(PermissionStoreTestMixin, TestCase):
    """edit_menu_grants 관리 명령 테스트"""

    def test_toggle_and_save_role(self):
        out = StringIO()
        call_command("edit_menu_grants", role="CASHIER", biz=3, toggle=[self.items.id], stdout=out)

        self.assertEqual(get_role_menu_ids(self.role), {self.inventory.id, self.items.id})
        self.assertIn("[-] %d Inventory" % self.inventory.id, out.getvalue())
        self.assertIn("Saved: +2 -0", out.getvalue())

    def test_dry_run_does_not_save(self):
        out = StringIO()
        call_command("edit_menu_grants", staff=self.staff_role.id, toggle=[self.pos.id], dry_run=True, stdout=out)

        self.assertFalse(StaffMenuPermission.objects.exists())
        self.assertIn("[x] %d POS" % self.pos.id, out.getvalue())

    def test_unknown_menu_skipped(self):
        out = StringIO()
        call_command("edit_menu_grants", role="CASHIER", biz=3, toggle=[9999], stdout=out)

        self.assertIn("menu 9999 not in catalog", out.getvalue())
        self.assertEqual(get_role_menu_ids(self.role), set())

    def test_unknown_role(self):
        with self.assertRaises(CommandError):
            call_command("edit_menu_grants", role="NOPE", stdout=StringIO())

    def test_assign_role_with_toggle(self):
        manager = Role.objects.create(code="MANAGER", name="매니저", biz_id=3)
        out = StringIO()
        call_command(
            "edit_menu_grants", staff=self.staff_role.id, assign_role="MANAGER", toggle=[self.pos.id], stdout=out,
        )

        self.staff_role.refresh_from_db()
        self.assertEqual(self.staff_role.role, manager)
        self.assertTrue(StaffMenuPermission.objects.filter(staff_role=self.staff_role, menu=self.pos).exists())
        self.assertIn("role: CASHIER -> MANAGER", out.getvalue())
        self.assertIn("Assigned role MANAGER", out.getvalue())

    def test_assign_role_dry_run(self):
        Role.objects.create(code="MANAGER", name="매니저", biz_id=3)
        call_command("edit_menu_grants", staff=self.staff_role.id, assign_role="MANAGER", dry_run=True, stdout=StringIO())

        self.staff_role.refresh_from_db()
        self.assertEqual(self.staff_role.role, self.role)

    def test_assign_role_requires_staff(self):
        with self.assertRaises(CommandError):
            call_command("edit_menu_grants", role="CASHIER", biz=3, assign_role="MANAGER", stdout=StringIO())
