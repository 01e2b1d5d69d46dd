from .client import EventClient, build_headers, serialize_events

__all__ = ["EventClient", "build_headers", "serialize_events"]
