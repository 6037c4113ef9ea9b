"""Model package exports."""

from models.credential import Credential, UserProfile
from models.outfit import Outfit, OutfitEntry
from models.wardrobe_item import WardrobeItem

__all__ = ["Credential", "Outfit", "OutfitEntry", "UserProfile", "WardrobeItem"]
