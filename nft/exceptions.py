"""
Display and royalty collaborator exceptions.
"""


class DisplayError(Exception):
    """Base exception for display/royalty collaborator errors."""
    pass


class RoyaltyError(DisplayError):
    """Royalty shares or basis points are invalid."""
    pass


class AttributeFormatError(DisplayError):
    """Attribute input cannot be normalized into key/value pairs."""
    pass
