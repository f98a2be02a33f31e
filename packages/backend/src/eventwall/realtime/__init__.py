"""Real-time delivery — broadcast hub + viewer websocket.

Learn: Events flow one way:
1. Ingestion writes to the store, then calls hub.broadcast(event)
2. The hub drops the serialized event into every ready viewer's outbox
3. Each viewer's writer task sends its outbox over the websocket, in order

The hub lives in process memory. A viewer that misses an event catches up
on reconnect via a fresh initSnapshot.
"""
