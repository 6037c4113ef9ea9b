"""Wardrobe item data model and helpers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Optional

DEFAULT_IMAGE_URL = "/images/default-goods-image.png"
DEFAULT_PRICE = "0.00"


def _normalise_tags(values: Any) -> FrozenSet[str]:
    """Coerce loose tag payloads into a set of trimmed strings."""

    if values is None:
        return frozenset()
    if isinstance(values, str):
        values = [values]
    tags: Iterable[Any] = values if isinstance(values, (list, tuple, set, frozenset)) else [values]
    return frozenset(str(tag).strip() for tag in tags if str(tag).strip())


@dataclass
class WardrobeItem:
    """Read-only projection of an item document owned by the backend."""

    item_id: str
    name: str
    category: str
    tags: FrozenSet[str] = field(default_factory=frozenset)
    image_url: str = DEFAULT_IMAGE_URL
    price: str = DEFAULT_PRICE
    create_time: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.item_id:
            raise ValueError("WardrobeItem requires an item_id")
        self.tags = _normalise_tags(self.tags)
        self.image_url = self.image_url or DEFAULT_IMAGE_URL
        self.price = str(self.price) if self.price not in (None, "") else DEFAULT_PRICE


def from_document(document: Dict[str, Any], default_image_url: str = DEFAULT_IMAGE_URL) -> WardrobeItem:
    """Build a :class:`WardrobeItem` from a raw item document.

    Documents carry their identifier under ``_id``. Missing images fall back to
    the placeholder and missing prices to ``"0.00"``.
    """

    item_id = document.get("_id") or document.get("id")
    if not item_id:
        raise ValueError("Item document is missing its _id")

    create_time = document.get("createTime")
    return WardrobeItem(
        item_id=str(item_id),
        name=str(document.get("name") or ""),
        category=str(document.get("category") or ""),
        tags=document.get("tags"),
        image_url=document.get("imageUrl") or default_image_url,
        price=document.get("price") or DEFAULT_PRICE,
        create_time=str(create_time) if create_time is not None else None,
    )


__all__ = ["DEFAULT_IMAGE_URL", "DEFAULT_PRICE", "WardrobeItem", "from_document"]
