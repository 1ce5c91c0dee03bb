"""Exceptions raised by the service layer and translated to HTTP status codes by the routes."""


class ServiceError(Exception):
    """Base class for domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RecordNotFoundError(ServiceError):
    status_code = 404


class InvalidReferenceError(ServiceError):
    """A linked risk, issue, decision or jurisdiction does not exist or belongs elsewhere."""

    status_code = 400


class InvalidTransitionError(ServiceError):
    status_code = 409


class InvalidRequestError(ServiceError):
    status_code = 400


class PermissionDeniedError(ServiceError):
    status_code = 403
