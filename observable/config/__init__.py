"""
Observable Config - Public API
================================
Explicit option structs for channels and listeners.
"""

from observable.config.options import (
    ArgumentTransform,
    EventOptions,
    ListenerOptions,
    build_options,
)

__all__ = [
    "ArgumentTransform",
    "EventOptions",
    "ListenerOptions",
    "build_options",
]
