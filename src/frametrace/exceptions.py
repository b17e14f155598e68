"""Exception hierarchy for frametrace."""


class FrameTraceError(Exception):
    """Base exception for all frametrace errors."""

    pass


class InputValidationError(FrameTraceError):
    """Input rejected before any processing started."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class DecodeError(FrameTraceError):
    """Bitmap data could not be decoded."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Could not decode image: {reason}")


class TraceError(FrameTraceError):
    """The tracing engine reported a failure."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Tracing failed: {reason}")


class EmptyResultError(FrameTraceError):
    """Decomposition produced no path records."""

    def __init__(self, reason: str = "No path found in SVG") -> None:
        self.reason = reason
        super().__init__(reason)


class PerItemError(FrameTraceError):
    """Isolated failure of one batch or per-character item.

    Recorded in the item's result slot; never raised out of a batch.
    """

    def __init__(self, name: str, message: str) -> None:
        self.name = name
        self.message = message
        super().__init__(f"{name}: {message}")
