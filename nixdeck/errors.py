"""
Error handling for the NixDeck engine and its IPC endpoints.

Every engine failure is a NixDeckError carrying an internal ErrorCode, a
human-readable message (which includes the raw OS or tool text) and an
optional recovery suggestion.
"""

from enum import Enum
from typing import Optional, Dict, Any, List


class ErrorCode(Enum):
    """
    Error codes for NixDeck.

    JSON-RPC standard codes:
    - -32700: Parse error
    - -32600: Invalid request
    - -32601: Method not found
    - -32602: Invalid params
    - -32603: Internal error
    - -32000: Server error (every domain failure on the wire)

    Internal codes (1000-1999), never sent to clients:
    - 1000-1099: Lookup errors
    - 1100-1199: File system errors
    - 1200-1299: External tool errors
    - 1300-1399: Metadata errors
    - 1400-1499: Startup errors
    """

    # JSON-RPC standard errors
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    SERVER_ERROR = -32000

    # Lookup errors (1000-1099)
    NOT_FOUND = 1000
    ALREADY_EXISTS = 1001
    UNKNOWN_COMPONENT = 1002
    INVALID_NAME = 1003

    # File system errors (1100-1199)
    IO_FAILURE = 1100

    # External tool errors (1200-1299)
    SUBPROCESS_FAILED = 1200
    TOOL_TIMEOUT = 1201
    TOOL_NOT_FOUND = 1202

    # Metadata errors (1300-1399)
    METADATA_PARSE_FAILED = 1300

    # Startup errors (1400-1499)
    STARTUP_FAILED = 1400


class NixDeckError(Exception):
    """Base exception for NixDeck errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize NixDeck error.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            suggestion: Suggested recovery action
            context: Additional context for debugging
        """
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert error to dictionary for a JSON-RPC response.

        Domain failures share one wire code; only protocol errors keep
        their own JSON-RPC code.

        Returns:
            Error dictionary with code, message and suggestion
        """
        wire_code = self.code.value if self.code.value < 0 else ErrorCode.SERVER_ERROR.value
        result = {
            "code": wire_code,
            "message": self.message
        }

        if self.suggestion:
            result["suggestion"] = self.suggestion

        return result


class NotFoundError(NixDeckError):
    """Named snapshot, container, theme, loadout or file is absent."""

    def __init__(self, kind: str, name: str, suggestion: Optional[str] = None):
        super().__init__(
            code=ErrorCode.NOT_FOUND,
            message=f"{kind} '{name}' not found",
            suggestion=suggestion,
            context={"kind": kind, "name": name}
        )


class AlreadyExistsError(NixDeckError):
    """Duplicate create."""

    def __init__(self, kind: str, name: str):
        super().__init__(
            code=ErrorCode.ALREADY_EXISTS,
            message=f"{kind} '{name}' already exists",
            suggestion=f"Delete the existing {kind.lower()} or choose another name",
            context={"kind": kind, "name": name}
        )


class UnknownComponentError(NixDeckError):
    """Component name missing from the registry."""

    def __init__(self, component: str, known: Optional[List[str]] = None):
        super().__init__(
            code=ErrorCode.UNKNOWN_COMPONENT,
            message=f"Unknown component: {component}",
            suggestion=f"Use one of: {', '.join(known)}" if known else None,
            context={"component": component}
        )


class InvalidNameError(NixDeckError):
    """Name that cannot be used as a single directory or file key."""

    def __init__(self, name: str, reason: str):
        super().__init__(
            code=ErrorCode.INVALID_NAME,
            message=f"Invalid name '{name}': {reason}",
            suggestion="Use a plain name without path separators or a leading dot",
            context={"name": name, "reason": reason}
        )


class IOFailureError(NixDeckError):
    """Copy, read, write or rename failure from the file system."""

    def __init__(self, operation: str, reason: str, path: Optional[str] = None):
        context = {"operation": operation, "reason": reason}
        if path:
            context["path"] = path

        super().__init__(
            code=ErrorCode.IO_FAILURE,
            message=f"Failed to {operation}: {reason}",
            context=context
        )


class ParseFailureError(NixDeckError):
    """Malformed or missing metadata."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            code=ErrorCode.METADATA_PARSE_FAILED,
            message=f"Failed to parse metadata {path}: {reason}",
            suggestion="Treat this capture as incomplete and delete it",
            context={"path": path, "reason": reason}
        )


class SubprocessFailureError(NixDeckError):
    """External tool exited non-zero or could not be started."""

    def __init__(self, command: str, returncode: Optional[int], stderr: str):
        # stderr is surfaced verbatim
        message = stderr if stderr else f"{command} exited with status {returncode}"
        super().__init__(
            code=ErrorCode.SUBPROCESS_FAILED if returncode is not None else ErrorCode.TOOL_NOT_FOUND,
            message=message,
            context={"command": command, "returncode": returncode}
        )
        self.returncode = returncode
        self.stderr = stderr


class ToolTimeoutError(NixDeckError):
    """External tool did not finish within the configured timeout."""

    def __init__(self, command: str, timeout: float):
        super().__init__(
            code=ErrorCode.TOOL_TIMEOUT,
            message=f"{command} timed out after {timeout:g}s",
            suggestion="Raise NIXDECK_TOOL_TIMEOUT or check the tool is not waiting for input",
            context={"command": command, "timeout": timeout}
        )


class StartupError(NixDeckError):
    """Settings could not be resolved at startup."""

    def __init__(self, reason: str):
        super().__init__(
            code=ErrorCode.STARTUP_FAILED,
            message=f"Startup failed: {reason}",
            suggestion="Set NIXDECK_ROOT and NIXDECK_CONFIG_HOME explicitly"
        )


def error_response(error: Exception, request_id: Optional[Any] = None) -> Dict[str, Any]:
    """
    Create JSON-RPC error response from exception.

    Args:
        error: Exception to convert
        request_id: JSON-RPC request ID

    Returns:
        JSON-RPC error response dictionary
    """
    if isinstance(error, NixDeckError):
        error_dict = error.to_dict()
    else:
        # Generic error
        error_dict = {
            "code": ErrorCode.INTERNAL_ERROR.value,
            "message": str(error),
            "suggestion": "Check daemon logs for details"
        }

    return {
        "jsonrpc": "2.0",
        "error": error_dict,
        "id": request_id
    }


def validate_params(params: Dict[str, Any], required: list, optional: Optional[list] = None) -> None:
    """
    Validate request parameters.

    Args:
        params: Request parameters dictionary
        required: List of required parameter names
        optional: List of optional parameter names

    Raises:
        NixDeckError: If required parameters are missing or unknown parameters provided
    """
    if not isinstance(params, dict):
        raise NixDeckError(
            code=ErrorCode.INVALID_PARAMS,
            message="Parameters must be a JSON object",
            suggestion="Send params as an object of named arguments"
        )

    # Check required parameters
    missing = [key for key in required if key not in params]
    if missing:
        raise NixDeckError(
            code=ErrorCode.INVALID_PARAMS,
            message=f"Missing required parameters: {', '.join(missing)}",
            suggestion=f"Provide required parameters: {', '.join(missing)}",
            context={"missing": missing, "required": required}
        )

    wrong_type = [key for key in required if not isinstance(params[key], str)]
    if wrong_type:
        raise NixDeckError(
            code=ErrorCode.INVALID_PARAMS,
            message=f"Parameters must be strings: {', '.join(wrong_type)}",
            context={"wrong_type": wrong_type}
        )

    # Check for unknown parameters
    if optional is not None:
        allowed = set(required + optional)
        unknown = [key for key in params.keys() if key not in allowed]
        if unknown:
            raise NixDeckError(
                code=ErrorCode.INVALID_PARAMS,
                message=f"Unknown parameters: {', '.join(unknown)}",
                suggestion="Remove unknown parameters or check the method signature",
                context={"unknown": unknown, "allowed": sorted(allowed)}
            )
