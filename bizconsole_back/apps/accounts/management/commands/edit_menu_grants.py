"""
역할 / 직원 메뉴 권한 편집 스크립트

사용법:
    python manage.py edit_menu_grants --role MANAGER --biz 3 --toggle 12 --toggle 15
    python manage.py edit_menu_grants --staff 7 --toggle 4 --dry-run
    python manage.py edit_menu_grants --staff 7 --assign-role MANAGER --toggle 4
"""
from django.core.management.base import BaseCommand, CommandError

from apps.accounts.models import Role, StaffRole
from apps.accounts.services.permission_service import (
    RoleGrantSource,
    StaffGrantSource,
    assign_staff_role,
    open_grant_editor,
)
from apps.menus.utils import CHECKED, PARTIAL

STATE_MARKS = {
    CHECKED: "[x]",
    PARTIAL: "[-]",
}


class Command(BaseCommand):
    help = '역할 또는 직원의 메뉴 권한을 toggle 후 저장'

    def add_arguments(self, parser):
        target = parser.add_mutually_exclusive_group(required=True)
        target.add_argument("--role", help="역할 코드")
        target.add_argument("--staff", type=int, help="StaffRole PK")
        parser.add_argument("--biz", type=int, default=None, help="비즈니스 역할이면 biz_id")
        parser.add_argument("--assign-role", default=None, help="--staff 와 함께: 직원 역할을 이 역할 코드로 변경")
        parser.add_argument("--toggle", type=int, action="append", default=[], help="toggle 할 메뉴 id (여러 번 지정 가능)")
        parser.add_argument("--reason", default="", help="변경 사유")
        parser.add_argument("--dry-run", action="store_true", help="저장하지 않고 결과만 출력")

    def get_source(self, options):
        if options["staff"] is not None:
            staff_role = StaffRole.objects.filter(pk=options["staff"]).first()
            if not staff_role:
                raise CommandError(f"StaffRole {options['staff']} not found")
            return StaffGrantSource(staff_role)

        if options["assign_role"]:
            raise CommandError("--assign-role can only be used with --staff")
        role = Role.objects.filter(code=options["role"], biz_id=options["biz"]).first()
        if not role:
            raise CommandError(f"Role {options['role']} (biz={options['biz']}) not found")
        return RoleGrantSource(role)

    # 직원의 비즈니스 역할 우선, 없으면 시스템 공통 역할
    def get_assign_role(self, code, staff_role):
        role = Role.objects.filter(code=code, biz_id=staff_role.biz_id).first()
        if role is None:
            role = Role.objects.filter(code=code, biz_id__isnull=True).first()
        if not role:
            raise CommandError(f"Role {code} not found for biz {staff_role.biz_id}")
        return role

    def handle(self, *args, **options):
        source = self.get_source(options)
        new_role = None
        if options["assign_role"]:
            new_role = self.get_assign_role(options["assign_role"], source.staff_role)

        editor = open_grant_editor(source)

        for menu_id in options["toggle"]:
            if menu_id not in editor.tree:
                self.stdout.write(self.style.WARNING(f"  Warning: menu {menu_id} not in catalog, skipping..."))
                continue
            editor.toggle(menu_id)

        self.stdout.write(f"[{source.label}]")
        if new_role:
            self.stdout.write(f"  role: {source.staff_role.role.code} -> {new_role.code}")
        for depth, node in editor.tree.walk():
            mark = STATE_MARKS.get(editor.state_of(node.id), "[ ]")
            self.stdout.write(f"{'  ' * depth}{mark} {node.id} {node.menu.name}")

        if options["dry_run"]:
            self.stdout.write("\n[Note] --dry-run: 저장하지 않았습니다.")
            return

        if new_role:
            # 역할 변경 + 개인 메뉴 권한 저장을 한 트랜잭션으로
            _, added, removed = assign_staff_role(
                source.staff_role, new_role, menu_ids=editor.export_granted(), reason=options["reason"],
            )
            self.stdout.write(self.style.SUCCESS(f"Assigned role {new_role.code}"))
        else:
            added, removed = source.save(editor.export_granted(), reason=options["reason"])
        self.stdout.write(self.style.SUCCESS(f"Saved: +{len(added)} -{len(removed)}"))
