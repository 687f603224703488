"""
Observable Events - Errors
============================
Error types for the dispatch core and the bus facade.

Listener exceptions are never wrapped in these types: a synchronous
listener that raises propagates its own exception to the trigger caller.
"""


class ObservableError(Exception):
    """Base error for Observable operations."""
    pass


class InvalidListenerError(ObservableError, TypeError):
    """Listener passed to on()/once() is not callable."""

    def __init__(self, name, callback):
        self.name = name
        self.callback = callback
        super().__init__(
            f"Listener for event '{name}' must be callable, "
            f"got {type(callback).__name__}."
        )


class UnknownProxyTypeError(ObservableError, ValueError):
    """Requested proxy/relay method is not a trigger-family method."""

    def __init__(self, proxy_type):
        self.proxy_type = proxy_type
        super().__init__(
            f"'{proxy_type}' is not a trigger method of Observable."
        )


class DuplicateEventSourceError(ObservableError):
    """An event source with the same name is already registered."""

    def __init__(self, source_name: str):
        self.source_name = source_name
        super().__init__(
            f"Event source '{source_name}' is already registered."
        )


class NoRunningLoopError(ObservableError, RuntimeError):
    """Deferred work was requested outside a running asyncio loop."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(
            f"{action} requires a running asyncio event loop."
        )
