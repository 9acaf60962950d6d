class InvalidInputError(ValueError):
    """Payload failed shape/length/type checks; nothing was written."""

    def __init__(self, what: str):
        super().__init__(f"Invalid {what}")


class NotFoundError(LookupError):
    """Single-record lookup missed. Batch paths report misses inline instead."""

    def __init__(self, request_id: str):
        self.request_id = request_id
        super().__init__(f"Request {request_id} not found")
