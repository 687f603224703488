"""
Observable Events - Public API
================================
Per-event listener registry, argument transforms, and the dispatch
state machine that folds listener outcomes per Return Mode.
"""

from observable.events.channel import EventChannel, QueuedTrigger
from observable.events.dispatcher import dispatch
from observable.events.errors import (
    DuplicateEventSourceError,
    InvalidListenerError,
    NoRunningLoopError,
    ObservableError,
    UnknownProxyTypeError,
)
from observable.events.listeners import ListenerHandle, ListenerRecord
from observable.events.modes import CHAINED_MODES, ReturnMode
from observable.events.outcomes import Deferred, Immediate
from observable.events.registry import ListenerRegistry

__all__ = [
    "dispatch",
    "EventChannel",
    "QueuedTrigger",
    "ListenerRegistry",
    "ListenerRecord",
    "ListenerHandle",
    "ReturnMode",
    "CHAINED_MODES",
    "Immediate",
    "Deferred",
    "ObservableError",
    "InvalidListenerError",
    "UnknownProxyTypeError",
    "DuplicateEventSourceError",
    "NoRunningLoopError",
]
