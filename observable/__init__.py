"""
Observable
============
In-process event bus with result-collecting dispatch modes.

Listeners may be synchronous, deferred, or return awaitables; the
dispatcher folds their outcomes into one value (or one asyncio.Future)
per Return Mode.
"""

from observable.bus import CATCH_ALL, EventSource, Observable, ProxyType, PublicApi
from observable.config import EventOptions, ListenerOptions
from observable.events import (
    DuplicateEventSourceError,
    EventChannel,
    InvalidListenerError,
    ListenerHandle,
    ListenerRecord,
    NoRunningLoopError,
    ObservableError,
    ReturnMode,
    UnknownProxyTypeError,
)

__version__ = "1.0.0"

__all__ = [
    "Observable",
    "CATCH_ALL",
    "EventSource",
    "ProxyType",
    "PublicApi",
    "EventOptions",
    "ListenerOptions",
    "EventChannel",
    "ListenerHandle",
    "ListenerRecord",
    "ReturnMode",
    "ObservableError",
    "InvalidListenerError",
    "UnknownProxyTypeError",
    "DuplicateEventSourceError",
    "NoRunningLoopError",
]
