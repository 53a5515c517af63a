class ServiceError(Exception):
    """Raised when a remote service call fails."""


class ServiceNetworkError(ServiceError):
    """Raised when the service cannot be reached or the call times out."""


class ServiceResponseError(ServiceError):
    """Raised when the service answers with an error or an unusable payload."""
