# exceptions.py

"""Custom exceptions for the OpenStack metrics collector."""

class OpenStackError(Exception):
    """Base exception for OpenStack-related errors."""
    pass

class ConfigurationError(OpenStackError):
    """Exception for configuration-related errors."""
    pass

class AuthenticationError(OpenStackError):
    """Exception raised when the identity service rejects the credentials."""
    pass

class ResourceError(OpenStackError):
    """Exception for resource-related errors."""
    pass

class FetchError(ResourceError):
    """
    A resource collection could not be fetched.

    stage is "client" when the service proxy could not be obtained,
    "list" when listing failed and "extract" when a returned record
    could not be decoded.
    """

    def __init__(self, kind: str, stage: str, cause: Exception):
        self.kind = kind
        self.stage = stage
        self.cause = cause
        super().__init__(f"unable to {stage} {kind}: {cause}")

class SinkError(OpenStackError):
    """Exception for metric sinks that fail to deliver."""
    pass
