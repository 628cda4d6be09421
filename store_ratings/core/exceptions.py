# store_ratings/core/exceptions.py
"""
Domain errors raised by services and rendered by the handlers in main.py.
Each carries the HTTP status it maps to and a message safe to show clients.
"""


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidArgument(AppError):
    status_code = 400
    default_message = "Invalid request"


class Unauthenticated(AppError):
    status_code = 401
    default_message = "Authentication required"


class Forbidden(AppError):
    status_code = 403
    default_message = "Insufficient permissions"


class NotFound(AppError):
    status_code = 404
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    default_message = "Conflict"


class Internal(AppError):
    status_code = 500
