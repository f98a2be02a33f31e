"""Broadcast event type constants.

Learn: Centralizing event types as constants prevents typos and makes it
easy to discover every message a viewer can receive. These strings are
the "type" field of the websocket wire format, so they stay camelCase.
"""

# ─── Sent once per connection ───────────────────────────

INIT_SNAPSHOT = "initSnapshot"

# ─── Ingestion (one per successful write) ───────────────

NEW_MEDIA = "newMedia"
NEW_MESSAGE = "newMessage"
NEW_COMMENT = "newComment"

# ─── Follow-up after cloud backup ───────────────────────

CLOUD_SYNC_COMPLETE = "cloudSyncComplete"

ALL_EVENT_TYPES = (
    INIT_SNAPSHOT,
    NEW_MEDIA,
    NEW_MESSAGE,
    NEW_COMMENT,
    CLOUD_SYNC_COMPLETE,
)
