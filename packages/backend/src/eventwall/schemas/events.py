"""Broadcast event envelope — {"type": ..., "data": ...}.

Learn: Every message on the viewer websocket uses this envelope. The
helpers below are the only way events get built, so each event type
always carries the payload schema listed next to it:

  initSnapshot       list[MediaRead]   (newest first)
  newMedia           MediaRead
  newMessage         MessageRead
  newComment         CommentRead
  cloudSyncComplete  CloudSyncRead
"""

from typing import Any, Literal, Sequence

from pydantic import BaseModel

from eventwall.events.types import (
    CLOUD_SYNC_COMPLETE,
    INIT_SNAPSHOT,
    NEW_COMMENT,
    NEW_MEDIA,
    NEW_MESSAGE,
)
from eventwall.schemas.media import CloudSyncRead, MediaRead
from eventwall.schemas.message import CommentRead, MessageRead

EventType = Literal[
    "initSnapshot", "newMedia", "newMessage", "newComment", "cloudSyncComplete"
]


class BroadcastEvent(BaseModel):
    type: EventType
    data: Any

    def to_wire(self) -> str:
        """Serialize to the JSON text sent over the websocket."""
        return self.model_dump_json(by_alias=True)


def init_snapshot(items: Sequence[Any]) -> BroadcastEvent:
    return BroadcastEvent(
        type=INIT_SNAPSHOT,
        data=[MediaRead.model_validate(item) for item in items],
    )


def new_media(media: Any) -> BroadcastEvent:
    return BroadcastEvent(type=NEW_MEDIA, data=MediaRead.model_validate(media))


def new_message(message: Any) -> BroadcastEvent:
    return BroadcastEvent(type=NEW_MESSAGE, data=MessageRead.model_validate(message))


def new_comment(comment: Any) -> BroadcastEvent:
    return BroadcastEvent(type=NEW_COMMENT, data=CommentRead.model_validate(comment))


def cloud_sync_complete(media_id: int, cloud_url: str) -> BroadcastEvent:
    return BroadcastEvent(
        type=CLOUD_SYNC_COMPLETE,
        data=CloudSyncRead(id=media_id, cloud_url=cloud_url),
    )
