"""Exception types raised by the IR and its services."""


class LucidError(Exception):
    """Base class for all Lucid errors."""


class InvalidTransitionError(LucidError, ValueError):
    """A block or tool status change that the state machine does not allow."""

    def __init__(self, kind: str, current: str, target: str):
        self.kind = kind
        self.current = current
        self.target = target
        super().__init__(f"Invalid {kind} transition: {current} -> {target}")


class BlockNotMutableError(LucidError, ValueError):
    """Raised when mutating a block that is not the streaming tail of its conversation."""


class SessionNotFoundError(LucidError, KeyError):
    """Raised when a session id does not resolve to a live session."""
