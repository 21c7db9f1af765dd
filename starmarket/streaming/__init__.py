"""
Event streaming to presentation clients.
"""

from .event_stream import BoundedEventStream, StreamStats

__all__ = ["BoundedEventStream", "StreamStats"]
