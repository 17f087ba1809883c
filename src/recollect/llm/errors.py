"""Chat backend errors."""


class TransportError(Exception):
    """The chat backend was unreachable or returned a malformed response.

    Never handled by the decision loop; it aborts the whole evaluation.
    """

    def __init__(self, message: str, *, backend: str | None = None) -> None:
        super().__init__(message)
        self.backend = backend
