"""
Exceptions raised inside the exec module.

None of these escape a dispatch entry point: the dispatcher converts them to
a module result code. Instantiation is the exception, where a
ConfigurationError stops the instance from coming up.
"""


class RadiusExecError(Exception):
    """Base exec module exception."""

    pass


class ConfigurationError(RadiusExecError):
    """Invalid module instance configuration."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ExecutionError(RadiusExecError):
    """The external program could not be prepared or started."""

    pass


class ProtocolError(RadiusExecError, ValueError):
    """Malformed data from a program or in a request attribute.

    Subclasses ValueError so low-level parsers can be used with callers that
    expect ValueError.
    """

    pass


class ValidationError(RadiusExecError):
    """Required authentication material is missing from the request."""

    pass
