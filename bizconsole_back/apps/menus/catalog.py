from dataclasses import dataclass
from typing import Hashable, Optional


# 권한 편집 세션에서 사용하는 메뉴 레코드 (세션 동안 불변)
@dataclass(frozen=True)
class MenuNode:
    id: Hashable
    name: str
    parent_id: Optional[Hashable] = None
    sort_order: int = 0
    description: Optional[str] = None

    @property
    def sort_key(self):
        # 같은 sort_order 끼리는 id 로 순서 고정
        return (self.sort_order, self.id)

    @classmethod
    def from_dict(cls, payload):
        """
        Permission Store 응답 형태의 dict 를 MenuNode 로 변환

        {"id": 2, "parentId": 1, "name": "Items", "sortOrder": 0, "description": null}
        """
        return cls(
            id=payload["id"],
            name=payload.get("name") or "",
            parent_id=payload.get("parentId"),
            sort_order=payload.get("sortOrder") or 0,
            description=payload.get("description"),
        )

    @classmethod
    def from_model(cls, menu):
        return cls(
            id=menu.id,
            name=menu.name,
            parent_id=menu.parent_id,
            sort_order=menu.order,
            description=menu.description or None,
        )

    def to_dict(self):
        return {
            "id": self.id,
            "parentId": self.parent_id,
            "name": self.name,
            "sortOrder": self.sort_order,
            "description": self.description,
        }
