"""Domain error taxonomy."""


class AgoraError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class AuthError(AgoraError):
    """No verified identity is present."""
    status_code = 401


class AuthorizationError(AgoraError):
    """Identity present but role, ownership or tenant membership is insufficient."""
    status_code = 403


class NotFoundError(AgoraError):
    status_code = 404

    def __init__(self, resource: str, resource_id=None):
        if resource_id is not None:
            message = f'{resource} with id "{resource_id}" not found'
        else:
            message = f"{resource} not found"
        super().__init__(message)
        self.resource = resource


class ValidationError(AgoraError):
    status_code = 400


class ConflictError(AgoraError):
    status_code = 409
