"""
Errors for Deck Editor
=======================

Domain exceptions raised above the layout core. Geometry code never raises;
these cover deck bookkeeping, the insertion flow and remote generation.
"""


class DeckEditorError(Exception):
    """Base class for deck editor errors."""


class DuplicateElementError(DeckEditorError):
    """An element with the same id already exists on the slide."""

    def __init__(self, element_id: str):
        super().__init__(f"Element id already present on slide: {element_id}")
        self.element_id = element_id


class LastSlideError(DeckEditorError):
    """The last remaining slide of a deck cannot be deleted."""


class InsertionStateError(DeckEditorError):
    """An insertion step was requested from the wrong affordance state."""


class GenerationError(DeckEditorError):
    """A remote generation call failed or returned an unusable payload."""

    def __init__(self, message: str, kind: str = None):
        super().__init__(message)
        self.kind = kind


class NoSelectionError(DeckEditorError):
    """The operation needs a selected element of a particular kind."""
