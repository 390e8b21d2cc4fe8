"""
Domain errors raised by the services and rendered by the handlers in app.main.
"""


class BlogError(Exception):
    status_code = 500

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.message = message
        self.errors = errors


class ValidationError(BlogError):
    status_code = 400


class InvalidActionError(ValidationError):
    def __init__(self, allowed: tuple[str, ...]):
        quoted = " or ".join(f'"{a}"' for a in allowed)
        super().__init__(f"Invalid action. Use {quoted}")
        self.allowed = allowed


class UnauthorizedError(BlogError):
    status_code = 401


class TokenExpiredError(UnauthorizedError):
    def __init__(self):
        super().__init__("Token expired")


class InvalidTokenError(UnauthorizedError):
    def __init__(self):
        super().__init__("Invalid token")


class ForbiddenError(BlogError):
    status_code = 403


class NotFoundError(BlogError):
    status_code = 404


class ConflictError(BlogError):
    status_code = 409
