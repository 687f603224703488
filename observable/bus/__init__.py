"""
Observable Bus - Public API
=============================
The Observable facade plus its collaborators: event-source bridging and
the subscription-only public API projection.
"""

from observable.bus.api import PublicApi
from observable.bus.observable import CATCH_ALL, Observable
from observable.bus.sources import EventSource, ProxyType, SourceBridge

__all__ = [
    "Observable",
    "CATCH_ALL",
    "PublicApi",
    "EventSource",
    "ProxyType",
    "SourceBridge",
]
