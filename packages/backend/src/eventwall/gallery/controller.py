"""GalleryController — one viewer's live gallery.

Wraps the pure reconcile() with the bits a display needs: decoding raw
websocket text, the viewer's identity, and short-lived comment overlays.
"""

import json
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Union

import structlog

from eventwall.events.types import NEW_COMMENT
from eventwall.gallery.state import GalleryState, next_item, previous_item, reconcile

logger = structlog.get_logger()

COMMENT_DISPLAY_SECONDS = 8.0


@dataclass(frozen=True)
class CommentOverlay:
    user_name: str
    text: str
    color: str
    position: float
    expires_at: float


class GalleryController:
    """Holds a GalleryState and advances it as events arrive.

    Usage:
        gallery = GalleryController(viewer_name="Alice")
        gallery.apply(raw_text_from_websocket)
        gallery.next()
    """

    def __init__(
        self,
        viewer_name: Optional[str] = None,
        *,
        comment_seconds: float = COMMENT_DISPLAY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.viewer_name = viewer_name
        self.comment_seconds = comment_seconds
        self._clock = clock
        self.state = GalleryState()
        self._comments: list[CommentOverlay] = []

    @property
    def current_item(self) -> Optional[dict]:
        return self.state.current_item

    @property
    def current_index(self) -> Optional[int]:
        return self.state.current_index

    def apply(self, event: Union[str, bytes, Mapping[str, Any]]) -> GalleryState:
        """Fold one event (decoded dict or raw JSON text) into the state."""
        if isinstance(event, (str, bytes)):
            try:
                event = json.loads(event)
            except ValueError:
                # JSONDecodeError and UnicodeDecodeError both land here.
                logger.warning("gallery.bad_event", payload=repr(event)[:200])
                return self.state

        if not isinstance(event, Mapping):
            logger.warning("gallery.bad_event", payload=repr(event)[:200])
            return self.state

        if event.get("type") == NEW_COMMENT:
            data = event.get("data")
            self._show_comment(data if isinstance(data, Mapping) else {})
        else:
            self.state = reconcile(self.state, event, self.viewer_name)
        return self.state

    def next(self) -> GalleryState:
        self.state = next_item(self.state)
        return self.state

    def previous(self) -> GalleryState:
        self.state = previous_item(self.state)
        return self.state

    # ─── Comment overlays ────────────────────────────────

    def _show_comment(self, data: Mapping[str, Any]) -> None:
        self._comments.append(
            CommentOverlay(
                user_name=data.get("userName", ""),
                text=data.get("commentText", ""),
                color=data.get("color") or "#FFFFFF",
                position=float(data.get("position", 50)),
                expires_at=self._clock() + self.comment_seconds,
            )
        )

    def active_comments(self, now: Optional[float] = None) -> list[CommentOverlay]:
        """Overlays still on screen at `now` (default: the clock).

        Expired ones are discarded for good.
        """
        if now is None:
            now = self._clock()
        self._comments = [c for c in self._comments if c.expires_at > now]
        return list(self._comments)
