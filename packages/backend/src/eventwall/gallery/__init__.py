"""Viewer-side gallery state.

Learn: This package has no server or transport dependencies. A viewer
(browser display, CLI, test) feeds decoded broadcast events into
reconcile() and gets back the next GalleryState.
"""

from eventwall.gallery.controller import CommentOverlay, GalleryController
from eventwall.gallery.state import (
    GalleryState,
    clamp_index,
    next_item,
    previous_item,
    reconcile,
)

__all__ = [
    "CommentOverlay",
    "GalleryController",
    "GalleryState",
    "clamp_index",
    "next_item",
    "previous_item",
    "reconcile",
]
