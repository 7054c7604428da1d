"""
Service-level exceptions raised by the data access layer
"""


class ServiceError(Exception):
    """Base class for errors raised by services"""
    status_code = 500


class NotFoundError(ServiceError):
    """Entity absent for an id- or username-keyed operation"""
    status_code = 404


class MultipleRowsError(ServiceError):
    """A query expected to match at most one row matched several"""
    status_code = 500


class ConflictError(ServiceError):
    """Unique constraint violated, e.g. duplicate username"""
    status_code = 409


class StoreFailure(ServiceError):
    """Any other failure reported by the database"""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code
