"""Typed errors shared by the auth core and the task service.

Learn: Services raise these; they never build HTTP responses themselves.
api/errors.py maps each one to a JSON body with a stable error_code and
the status_code carried on the class. One convention across the
authentication gate, ownership checks and task operations.
"""

from typing import Optional


class TaskmasterError(Exception):
    """Base class for errors that have a stable, client-facing shape."""

    error_code = "INTERNAL_SERVER_ERROR"
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskmasterError):
    """Input is blank, too long, malformed, or otherwise unacceptable."""

    error_code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidCredentialsError(TaskmasterError):
    """Login failed. Same error for unknown email and wrong password."""

    error_code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Invalid email or password"


class AuthenticationRequiredError(TaskmasterError):
    """A protected operation was reached without a resolved identity."""

    error_code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required"


class TaskNotFoundError(TaskmasterError):
    """Task does not exist OR belongs to someone else.

    Learn: Both cases produce this error on purpose. Answering 403 for
    another user's task would confirm that the id exists.
    """

    error_code = "TASK_NOT_FOUND"
    status_code = 404

    def __init__(self, task_id: int):
        super().__init__(f"Task with ID {task_id} not found")
        self.task_id = task_id


class EmailAlreadyExistsError(TaskmasterError):
    """Registration collided with an existing identity."""

    error_code = "EMAIL_ALREADY_EXISTS"
    status_code = 409

    def __init__(self, email: str):
        super().__init__(f"Email already exists: {email}")
        self.email = email


class InvalidCredentialError(TaskmasterError):
    """A bearer token failed verification (bad signature, malformed, expired).

    Never rendered to clients: the authentication middleware swallows it
    and lets the request continue unauthenticated.
    """

    error_code = "INVALID_TOKEN"
    status_code = 401
    default_message = "Invalid token"
