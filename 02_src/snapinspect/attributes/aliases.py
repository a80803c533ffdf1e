"""Ordered alias lists for every logical attribute field.

Producers renamed attribute keys over time; each tuple lists the keys that have
carried the same value, most canonical first. Call sites read attributes only
through these tuples and the accessors in ``resolver``.
"""

# Generic presentation
LABEL = ("label", "name")
SOURCE = ("source", "ctx.location")
STATUS = ("status",)
STATE = ("state",)

# RPC
METHOD = ("method", "request.method", "response.method")
REQUEST_METHOD = ("method", "request.method")
CORRELATION = (
    "correlation",
    "correlation_key",
    "request.correlation_key",
    "response.correlation_key",
)
ELAPSED_NS = ("elapsed_ns", "request.elapsed_ns")

# Timestamps (unit varies by producer version, always normalized on read)
CREATED_AT = ("created_at", "created_at_ns", "ctx.created_at")
QUEUED_AT = ("queued_at", "queued_at_ns", "request.queued_at_ns")
STARTED_AT = ("started_at", "started_at_ns", "request.started_at_ns")
COMPLETED_AT = ("completed_at", "completed_at_ns", "response.completed_at_ns")

# Connections
CONNECTION_TOKEN = ("connection.id", "rpc.connection", "connection")
PENDING_REF_TOKEN = ("rpc.connection", "connection.id", "connection")
CONNECTION_SRC = ("connection.src",)
CONNECTION_DST = ("connection.dst",)
CONNECTION_LINK = ("connection.link",)
CONNECTION_STATE = ("connection.state", "state")
PENDING_REQUESTS = (
    "connection.pending_requests_outgoing",
    "pending_requests_outgoing",
    "connection.pending_requests",
    "pending_requests",
    "pending",
    "connection.pending",
)
PENDING_RESPONSES = ("connection.pending_responses", "pending_responses")
LAST_RECV_AT = (
    "connection.last_frame_recv_at_ns",
    "last_frame_recv_at_ns",
    "connection.last_received_at_ns",
    "last_received_at_ns",
    "connection.last_recv_at_ns",
    "last_recv_at_ns",
)
LAST_SENT_AT = (
    "connection.last_frame_sent_at_ns",
    "last_frame_sent_at_ns",
    "connection.last_sent_at_ns",
    "last_sent_at_ns",
    "connection.last_transmit_at_ns",
    "last_transmit_at_ns",
)

# Locks
HOLDER = ("holder", "lock.holder")
WAITERS = ("waiters", "waiter_count", "lock.waiters")
HELD_NS = ("held_ns", "lock.held_ns")
READERS = ("readers", "reader_count")
READER_WAITERS = ("reader_waiters",)
WRITER_WAITERS = ("writer_waiters",)

# Channels
CHANNEL_KIND = ("channel_kind", "channel.kind", "channel_type", "channel.type")
BUFFERED = ("buffered", "channel.buffered", "queue_len")
CAPACITY = ("capacity", "channel.capacity")
RECEIVER_ALIVE = ("receiver_alive", "channel.receiver_alive")

# Semaphores
PERMITS_AVAILABLE = ("available_permits", "permits_available")
PERMITS_TOTAL = ("permits_total", "max_permits")

# Futures
POLL_COUNT = ("poll_count", "polls")
LAST_POLLED_NS = ("last_polled_ns",)

# Ghosts
GHOST_REASON = ("reason",)
GHOST_MISSING_SIDE = ("missing_side",)
