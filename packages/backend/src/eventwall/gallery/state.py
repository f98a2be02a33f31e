"""Gallery state and the reconcile() transition function.

Learn: A viewer keeps its own copy of the media sequence (newest first)
and the index of the item on screen. Every broadcast event is folded in
with reconcile(state, event, viewer_name) -> state. The function is pure:
same inputs, same output, no I/O, so the index arithmetic can be tested
without a websocket.

States:
  uninitialized ──initSnapshot──▶ ready ──any event──▶ ready

Index policy on newMedia:
  - own upload (uploader == viewer_name) → jump to 0, the new item
  - empty sequence                       → 0
  - someone else's upload                → index + 1, same item stays on screen

Items are the decoded wire dicts (camelCase keys), exactly as received.
"""

from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from eventwall.events.types import (
    CLOUD_SYNC_COMPLETE,
    INIT_SNAPSHOT,
    NEW_MEDIA,
    NEW_MESSAGE,
)

MESSAGE_LOG_LIMIT = 100


@dataclass(frozen=True)
class GalleryState:
    items: tuple[dict, ...] = ()
    current_index: Optional[int] = None
    messages: tuple[dict, ...] = ()
    initialized: bool = False

    @property
    def current_item(self) -> Optional[dict]:
        index = clamp_index(self.current_index, len(self.items))
        if index is None:
            return None
        return self.items[index]


def clamp_index(index: Optional[int], length: int) -> Optional[int]:
    """Pull an index back into [0, length); None when there is nothing to show."""
    if length == 0:
        return None
    if index is None or index < 0:
        return 0
    return min(index, length - 1)


def reconcile(
    state: GalleryState,
    event: Mapping[str, Any],
    viewer_name: Optional[str] = None,
) -> GalleryState:
    """Apply one broadcast event to a viewer's state.

    Unknown event types, and anything other than initSnapshot before the
    first snapshot, leave the state untouched. newComment never changes
    durable state; overlays are handled by GalleryController.
    """
    event_type = event.get("type")
    data = event.get("data")

    if event_type == INIT_SNAPSHOT:
        items = tuple(data or ())
        return replace(
            state,
            items=items,
            current_index=0 if items else None,
            initialized=True,
        )

    if not state.initialized:
        return state

    if event_type == NEW_MEDIA:
        return _insert_media(state, data, viewer_name)
    if event_type == NEW_MESSAGE:
        messages = ((data,) + state.messages)[:MESSAGE_LOG_LIMIT]
        return replace(state, messages=messages)
    if event_type == CLOUD_SYNC_COMPLETE:
        return _apply_cloud_sync(state, data)
    return state


def _insert_media(
    state: GalleryState, item: dict, viewer_name: Optional[str]
) -> GalleryState:
    # A viewer that registered mid-upload can get the item in its snapshot
    # and again as newMedia.
    if any(existing.get("id") == item.get("id") for existing in state.items):
        return state

    was_empty = not state.items
    items = (item,) + state.items

    if was_empty or (viewer_name is not None and item.get("uploader") == viewer_name):
        index = 0
    elif state.current_index is not None:
        index = state.current_index + 1
    else:
        index = None
    return replace(state, items=items, current_index=clamp_index(index, len(items)))


def _apply_cloud_sync(state: GalleryState, data: dict) -> GalleryState:
    media_id = data.get("id")
    cloud_url = data.get("cloudUrl")
    items = tuple(
        {**item, "cloudUrl": cloud_url} if item.get("id") == media_id else item
        for item in state.items
    )
    return replace(state, items=items)


# ─── Navigation ──────────────────────────────────────────


def next_item(state: GalleryState) -> GalleryState:
    """Move forward one item, wrapping from the last back to the first."""
    if not state.items:
        return state
    index = clamp_index(state.current_index, len(state.items))
    return replace(state, current_index=(index + 1) % len(state.items))


def previous_item(state: GalleryState) -> GalleryState:
    """Move back one item, wrapping from the first to the last."""
    if not state.items:
        return state
    index = clamp_index(state.current_index, len(state.items))
    return replace(state, current_index=(index - 1) % len(state.items))
