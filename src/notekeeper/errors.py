"""Error taxonomy shared by services and the HTTP boundary.

Learn: Services raise these instead of HTTPException so they stay usable
outside FastAPI (CLI, tests). Each error carries the HTTP status it maps
to; the handlers registered in main.create_app() render every one of them
as {"message": "..."}.
"""


class NotekeeperError(Exception):
    """Base class for all expected, client-visible failures."""

    status_code = 500
    default_message = "Server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(NotekeeperError):
    status_code = 400
    default_message = "Invalid input"


class Unauthenticated(NotekeeperError):
    status_code = 401
    default_message = "Unauthorized"


class Forbidden(NotekeeperError):
    status_code = 403
    default_message = "Forbidden"


class NotFound(NotekeeperError):
    status_code = 404
    default_message = "Not found"


class Conflict(NotekeeperError):
    status_code = 409
    default_message = "Conflict"


class Internal(NotekeeperError):
    """Store or signing failure. The message shown to clients stays generic."""

    status_code = 500
    default_message = "Server error"
