"""Domain exceptions raised by services and mapped to HTTP responses in `main`."""


class NotFoundError(Exception):
    """No live row matched the requested identifier."""

    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found")


class ConflictError(Exception):
    """The change would violate a uniqueness rule among live rows."""
