"""Controllable audio tracks, track queues, shard handles and voice gateway JSON helpers."""

__version__ = "0.1.0"
__all__ = ["sine", "modes", "commands", "handle", "track", "queue", "ws", "shards"]