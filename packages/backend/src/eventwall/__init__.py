"""Event Wall — live interaction wall for events.

Guests upload photos and videos, post messages, and send floating
comments (danmaku). Everything is persisted, then broadcast in real time
to every connected gallery viewer.
"""

__version__ = "0.1.0"
