import logging

from utils.exceptions import DuplicateMenuException

logger = logging.getLogger(__name__)

# 트리 체크박스 상태 (부분 선택 포함)
CHECKED = "checked"
PARTIAL = "partial"
UNCHECKED = "unchecked"


class TreeNode:
    """
    MenuTree 안의 한 노드를 가리키는 가벼운 뷰.
    parent 는 소유 관계가 아니라 MenuTree 의 parent_of 조회 결과.
    """

    __slots__ = ("tree", "id")

    def __init__(self, tree, menu_id):
        self.tree = tree
        self.id = menu_id

    @property
    def menu(self):
        return self.tree.nodes[self.id]

    @property
    def parent(self):
        parent_id = self.tree.parent_of[self.id]
        return None if parent_id is None else TreeNode(self.tree, parent_id)

    @property
    def children(self):
        return [TreeNode(self.tree, child_id) for child_id in self.tree.children_of[self.id]]

    @property
    def depth(self):
        return len(self.tree.ancestors_of[self.id])

    def __eq__(self, other):
        return isinstance(other, TreeNode) and other.tree is self.tree and other.id == self.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self):
        return f"<TreeNode {self.id!r} {self.menu.name!r}>"


class MenuTree:
    """
    평탄한 조회 테이블로 구성된 메뉴 포레스트 (세션 동안 읽기 전용)

    - nodes: id -> MenuNode
    - parent_of: id -> 보정된 부모 id (루트는 None)
    - children_of: id -> 정렬된 자식 id tuple
    - roots: 정렬된 루트 id tuple
    - descendants_of: id -> 전체 하위 id tuple (전위 순회 순서)
    - ancestors_of: id -> 상위 id tuple (가까운 부모부터 루트까지)
    """

    def __init__(self, nodes, parent_of, children_of, roots, descendants_of, ancestors_of):
        self.nodes = nodes
        self.parent_of = parent_of
        self.children_of = children_of
        self.roots = roots
        self.descendants_of = descendants_of
        self.ancestors_of = ancestors_of

    def __contains__(self, menu_id):
        try:
            return menu_id in self.nodes
        except TypeError:
            # unhashable 값은 트리에 있을 수 없음
            return False

    def __len__(self):
        return len(self.nodes)

    def get(self, menu_id):
        if menu_id not in self:
            return None
        return TreeNode(self, menu_id)

    @property
    def forest(self):
        return [TreeNode(self, root_id) for root_id in self.roots]

    def walk(self):
        """전위 순회로 (depth, TreeNode) 를 차례로 반환"""
        for root_id in self.roots:
            yield 0, TreeNode(self, root_id)
            for descendant_id in self.descendants_of[root_id]:
                yield len(self.ancestors_of[descendant_id]), TreeNode(self, descendant_id)

    def state_of(self, menu_id, granted):
        """자기 자신 + 하위 메뉴 중 몇 개가 부여됐는지로 체크 상태 계산"""
        subtree = (menu_id,) + self.descendants_of[menu_id]
        count = sum(1 for node_id in subtree if node_id in granted)
        if count == 0:
            return UNCHECKED
        if count == len(subtree):
            return CHECKED
        return PARTIAL

    def to_dicts(self, granted=None):
        """프론트에 내려줄 중첩 dict 형태"""

        def to_dict(node_id):
            data = self.nodes[node_id].to_dict()
            if granted is not None:
                data["state"] = self.state_of(node_id, granted)
            data["children"] = [to_dict(child_id) for child_id in self.children_of[node_id]]
            return data

        return [to_dict(root_id) for root_id in self.roots]


def _find_cycle_members(declared_parent):
    # 부모 체인을 카탈로그 크기만큼만 따라가며 자기 자신으로 돌아오는 노드 탐지
    bound = len(declared_parent)
    on_cycle = set()
    for node_id in declared_parent:
        current = declared_parent[node_id]
        steps = 0
        while current is not None and steps < bound:
            if current == node_id:
                on_cycle.add(node_id)
                break
            current = declared_parent[current]
            steps += 1
    return on_cycle


def build_menu_tree(catalog):
    """
    평탄한 MenuNode 목록을 MenuTree 로 변환.

    부모를 찾을 수 없거나 순환 참조에 걸린 메뉴는 루트로 올려서
    어떤 입력이든 편집 화면에 그릴 수 있는 트리를 만든다.
    중복 id 만은 Permission Store 쪽 오류이므로 예외를 발생시킨다.
    """
    nodes = {}
    for menu in catalog:
        if menu.id in nodes:
            raise DuplicateMenuException(
                detail={"menuId": menu.id},
                message=f"메뉴 카탈로그에 중복된 메뉴 ID가 있습니다: {menu.id}",
            )
        nodes[menu.id] = menu

    # 1. 선언된 부모 해석 (존재하지 않는 부모는 루트 취급)
    declared_parent = {}
    for menu_id, menu in nodes.items():
        parent_id = menu.parent_id
        if parent_id is not None and parent_id not in nodes:
            logger.warning(f"Menu {menu_id!r} references missing parent {parent_id!r}; treating as root")
            parent_id = None
        declared_parent[menu_id] = parent_id

    # 2. 순환 참조 끊기
    cycle_members = _find_cycle_members(declared_parent)
    if cycle_members:
        logger.warning(f"Menu parent cycle detected; demoting to root: {sorted(map(repr, cycle_members))}")

    parent_of = {
        menu_id: (None if menu_id in cycle_members else parent_id)
        for menu_id, parent_id in declared_parent.items()
    }

    # 3. 부모-자식 연결 + (sort_order, id) 정렬
    grouped = {menu_id: [] for menu_id in nodes}
    roots = []
    for menu_id, parent_id in parent_of.items():
        if parent_id is None:
            roots.append(menu_id)
        else:
            grouped[parent_id].append(menu_id)

    def sort_ids(ids):
        return tuple(sorted(ids, key=lambda node_id: nodes[node_id].sort_key))

    children_of = {menu_id: sort_ids(ids) for menu_id, ids in grouped.items()}
    roots = sort_ids(roots)

    # 4. 상위/하위 인덱스 미리 계산 (toggle 시 트리 재탐색 방지)
    ancestors_of = {}
    preorder = []
    stack = list(reversed(roots))
    while stack:
        node_id = stack.pop()
        preorder.append(node_id)
        parent_id = parent_of[node_id]
        ancestors_of[node_id] = () if parent_id is None else (parent_id,) + ancestors_of[parent_id]
        stack.extend(reversed(children_of[node_id]))

    descendants_of = {}
    for node_id in reversed(preorder):
        collected = []
        for child_id in children_of[node_id]:
            collected.append(child_id)
            collected.extend(descendants_of[child_id])
        descendants_of[node_id] = tuple(collected)

    logger.debug(f"Built menu tree: {len(nodes)} menus, {len(roots)} roots")

    return MenuTree(
        nodes=nodes,
        parent_of=parent_of,
        children_of=children_of,
        roots=roots,
        descendants_of=descendants_of,
        ancestors_of=ancestors_of,
    )
