"""
Display and Royalty Collaborator

Display metadata, creator royalties and transfer policies attached to
collections, plus helpers that normalize mint metadata and attributes.
"""

from .display import (
    Display,
    DisplayProvider,
    RoyaltyRule,
    StoreDisplayProvider,
    TransferPolicy,
    render_display,
)
from .exceptions import AttributeFormatError, DisplayError, RoyaltyError
from .metadata import build_asset_metadata, normalize_attributes

__all__ = [
    "Display",
    "DisplayProvider",
    "RoyaltyRule",
    "StoreDisplayProvider",
    "TransferPolicy",
    "render_display",
    "DisplayError",
    "RoyaltyError",
    "AttributeFormatError",
    "build_asset_metadata",
    "normalize_attributes",
]
