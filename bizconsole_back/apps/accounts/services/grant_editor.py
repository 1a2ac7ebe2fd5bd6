import logging

logger = logging.getLogger(__name__)


class GrantSetEditor:
    """
    한 역할(또는 한 직원)의 메뉴 권한 편집 세션.

    부여된 메뉴 id 집합을 소유하고, toggle 로만 변경한다.
      - 선택 해제: 자기 자신 + 전체 하위 메뉴 제거 (상위 메뉴는 유지)
      - 선택: 자기 자신 + 전체 하위 메뉴 + 루트까지의 상위 메뉴 추가

    같은 메뉴를 연속으로 두 번 toggle 하면 직전 toggle 이 바꾼 만큼만
    되돌려서 원래 집합과 정확히 같아진다.
    """

    def __init__(self, tree, granted=None):
        self.tree = tree
        self._granted = set()
        self._last_toggle = None
        self.initialize(granted or ())

    def initialize(self, granted_ids):
        """현재 부여 집합을 통째로 교체 (세션 시작 시 1회)"""
        self._granted = set(granted_ids)
        self._last_toggle = None

    @property
    def granted(self):
        return frozenset(self._granted)

    def is_granted(self, menu_id):
        return menu_id in self._granted

    def state_of(self, menu_id):
        if menu_id not in self.tree:
            return None
        return self.tree.state_of(menu_id, self._granted)

    def toggle(self, menu_id):
        # 화면에 남아있던 예전 메뉴 id 는 무시 (연속 toggle 도 끊김)
        if menu_id not in self.tree:
            logger.debug(f"Ignoring toggle of unknown menu {menu_id!r}")
            self._last_toggle = None
            return self.granted

        last = self._last_toggle
        if last is not None and last[0] == menu_id:
            # 직전 toggle 되돌리기
            _, added, removed = last
            self._granted -= added
            self._granted |= removed
            self._last_toggle = None
            return self.granted

        subtree = {menu_id, *self.tree.descendants_of[menu_id]}
        if menu_id in self._granted:
            removed = subtree & self._granted
            added = set()
            self._granted -= removed
        else:
            wanted = subtree | set(self.tree.ancestors_of[menu_id])
            added = wanted - self._granted
            removed = set()
            self._granted |= added

        self._last_toggle = (menu_id, frozenset(added), frozenset(removed))
        return self.granted

    def apply(self, menu_ids):
        """여러 메뉴를 순서대로 toggle"""
        for menu_id in menu_ids:
            self.toggle(menu_id)
        return self.granted

    def export_granted(self):
        """Permission Store 에 저장할 전체 부여 목록 (순서 보장 없음)"""
        try:
            return sorted(self._granted)
        except TypeError:
            return list(self._granted)
