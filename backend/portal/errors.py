"""
Domain exceptions raised by the access broker and its store.

Routes translate these into HTTP responses; see portal.main for the
StoreFailure handler.
"""


class PortalError(Exception):
    """Base class for all portal domain errors."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRequest(PortalError):
    """The request is well-formed JSON but its content cannot be acted on."""

    status_code = 400


class StudentNotFound(PortalError):
    """A student code or id does not resolve to any student."""

    status_code = 404


class AccessRequestNotFound(PortalError):
    """An admin decision targets a student who never attempted login."""

    status_code = 404


class DeviceConflict(PortalError):
    """The student code is already bound to another device."""

    status_code = 409


class StoreFailure(PortalError):
    """The persistence layer failed mid-operation."""

    status_code = 500
