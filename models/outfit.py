"""Outfit compositions and the entries that reference wardrobe items."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class OutfitEntry:
    """One slot of an outfit, pointing at a wardrobe item."""

    item_id: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> Dict[str, Any]:
        return {**self.metadata, "itemId": self.item_id}


@dataclass
class Outfit:
    outfit_id: str
    items: List[OutfitEntry] = field(default_factory=list)
    update_time: Optional[str] = None

    def references(self, item_id: str) -> bool:
        return any(entry.item_id == item_id for entry in self.items)

    def without_item(self, item_id: str) -> List[OutfitEntry]:
        """Return the entries in order, minus every slot holding ``item_id``."""

        return [entry for entry in self.items if entry.item_id != item_id]


def from_document(document: Dict[str, Any]) -> Outfit:
    """Build an :class:`Outfit` from a raw outfit document."""

    outfit_id = document.get("_id") or document.get("id")
    if not outfit_id:
        raise ValueError("Outfit document is missing its _id")

    entries: List[OutfitEntry] = []
    for raw in document.get("items") or []:
        if not isinstance(raw, dict) or raw.get("itemId") in (None, ""):
            raise ValueError(f"Outfit {outfit_id} has an entry without itemId")
        metadata = {key: value for key, value in raw.items() if key != "itemId"}
        entries.append(OutfitEntry(item_id=str(raw["itemId"]), metadata=metadata))

    update_time = document.get("updateTime")
    return Outfit(
        outfit_id=str(outfit_id),
        items=entries,
        update_time=str(update_time) if update_time is not None else None,
    )


__all__ = ["Outfit", "OutfitEntry", "from_document"]
