class ApiError(Exception):
    """Any failed backend call: transport error, non-2xx status or unreadable body.

    ``status`` is the HTTP status when the server answered, ``None`` otherwise.
    """

    def __init__(self, message: str, *, status: int | None = None):
        super().__init__(message)
        self.status = status

    def __str__(self) -> str:
        base = super().__str__()
        if self.status is None:
            return base
        return f"{base} (status={self.status})"
