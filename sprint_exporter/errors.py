"""Error types raised while exporting a sprint"""

MISSING_INPUT = "MissingInput"
UPSTREAM_ERROR = "UpstreamError"
UNKNOWN = "Unknown"


class ExportError(Exception):
    """Base class for classified export failures"""

    kind = UNKNOWN

    def __init__(self, message: str, call: str = None):
        """
        Args:
            message: Human-readable description of the failure
            call: Name of the operation that failed, if known
        """
        super().__init__(message)
        self.message = message
        self.call = call

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "kind": self.kind,
            "call": self.call
        }


class MissingInputError(ExportError):
    """A required input (sprint id, credentials) was not supplied"""

    kind = MISSING_INPUT


class ConfigurationError(ExportError):
    """JIRA URL or credentials are not configured on the server"""

    kind = UNKNOWN


class UpstreamError(ExportError):
    """JIRA responded with an error status or an unusable body"""

    kind = UPSTREAM_ERROR
