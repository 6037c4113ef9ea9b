"""Wardrobe catalog reads and the related-outfit lookup."""
from __future__ import annotations

import logging
from typing import Any, Dict, List

from models import outfit as outfit_model
from models import wardrobe_item as item_model
from models.outfit import Outfit
from models.wardrobe_item import DEFAULT_IMAGE_URL, WardrobeItem
from tools.gateway import RemoteCallGateway

LOGGER = logging.getLogger(__name__)


class WardrobeCatalog:
    """Reads item and outfit collections through the authenticated gateway."""

    def __init__(
        self,
        gateway: RemoteCallGateway,
        item_collection: str = "items",
        outfit_collection: str = "outfits",
        default_image_url: str = DEFAULT_IMAGE_URL,
    ) -> None:
        self.gateway = gateway
        self.item_collection = item_collection
        self.outfit_collection = outfit_collection
        self.default_image_url = default_image_url

    def load_items(self) -> List[WardrobeItem]:
        """Return items newest first; malformed documents are skipped."""

        documents = self.gateway.query(self.item_collection, order_by=("createTime", "desc"))
        items: List[WardrobeItem] = []
        for document in documents:
            try:
                items.append(item_model.from_document(document, default_image_url=self.default_image_url))
            except ValueError as exc:
                LOGGER.warning("Skipping malformed item document", extra={"reason": str(exc)})
        LOGGER.info("Loaded wardrobe items", extra={"count": len(items)})
        return items

    def load_outfits(self) -> List[Outfit]:
        documents = self.gateway.query(self.outfit_collection)
        return [self._parse_outfit(document) for document in documents]

    @staticmethod
    def _parse_outfit(document: Dict[str, Any]) -> Outfit:
        # Malformed outfits raise instead of being skipped like items.
        return outfit_model.from_document(document)


class RelatedOutfitFinder:
    """Interface for finding outfits that reference a given item."""

    def find_related(self, item_id: str) -> List[Outfit]:
        raise NotImplementedError


class ScanRelatedOutfitFinder(RelatedOutfitFinder):
    """Loads every outfit and filters locally.

    The document store offers no index for "outfits containing item X", so
    this scans the whole collection. Swap in an indexed finder for large
    wardrobes.
    """

    def __init__(self, catalog: WardrobeCatalog) -> None:
        self.catalog = catalog

    def find_related(self, item_id: str) -> List[Outfit]:
        return [outfit for outfit in self.catalog.load_outfits() if outfit.references(item_id)]


__all__ = ["RelatedOutfitFinder", "ScanRelatedOutfitFinder", "WardrobeCatalog"]
