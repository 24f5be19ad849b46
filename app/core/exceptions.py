"""Domain errors raised by models and services; translated to HTTP in app.main."""


class ValidationError(Exception):
    """Raised when input violates the rule set. errors maps field -> messages."""

    def __init__(self, errors: dict[str, list[str]], message: str = "The given data was invalid.") -> None:
        self.message = message
        self.errors = errors
        super().__init__(message)


class Unauthorized(Exception):
    """Raised when the acting user lacks every required role."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PreconditionError(Exception):
    """Raised when a computed field is read while its source attribute is unset."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(Exception):
    """Raised when a user or role lookup by id finds nothing."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AvatarError(Exception):
    """Raised when an avatar data URI cannot be decoded or stored."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)
