"""
HR console exceptions

Exception hierarchy for the console: transport and validation errors,
plus the console's own coordination, access and configuration errors.
Shape and business failures are reported as outcome kinds, not raised.
"""

import re
from datetime import datetime
from typing import Dict, Any, Optional, List


class ConsoleException(Exception):
    """Base console exception"""

    def __init__(self, message: str, error_code: str = "CONSOLE_ERROR",
                 component: str = "unknown", details: Optional[Dict[str, Any]] = None):
        """
        Args:
            message: error message
            error_code: machine readable code
            component: component that raised
            details: extra context
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.component = component
        self.details = details or {}
        self.timestamp = datetime.now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error_code': self.error_code,
            'message': self.message,
            'component': self.component,
            'details': self.details,
            'timestamp': self.timestamp.isoformat()
        }


class TransportException(ConsoleException):
    """Network failure or non-2xx response from the backend"""

    def __init__(self, message: str, error_code: str = "TRANSPORT_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code, "HttpClient", details)


class ConnectionException(TransportException):
    """Backend unreachable"""

    def __init__(self, target: str, message: str,
                 details: Optional[Dict[str, Any]] = None):
        self.target = target
        error_details = details or {}
        error_details.update({'target': target})
        super().__init__(
            f"Failed to connect to {target}: {message}",
            "CONNECTION_ERROR",
            error_details
        )


class RequestTimeoutException(TransportException):
    """Backend did not answer in time"""

    def __init__(self, method: str, endpoint: str, timeout: float,
                 details: Optional[Dict[str, Any]] = None):
        self.method = method
        self.endpoint = endpoint
        self.timeout = timeout
        error_details = details or {}
        error_details.update({
            'method': method,
            'endpoint': endpoint,
            'timeout': timeout
        })
        super().__init__(
            f"{method} {endpoint} timed out after {timeout} seconds",
            "TIMEOUT_ERROR",
            error_details
        )


class HTTPStatusException(TransportException):
    """Backend answered with a non-2xx status"""

    def __init__(self, method: str, endpoint: str, status: int,
                 payload: Any = None, message: Optional[str] = None):
        self.method = method
        self.endpoint = endpoint
        self.status = status
        self.payload = payload
        self.server_message = message
        super().__init__(
            message or f"Request failed: HTTP {status}",
            "HTTP_STATUS_ERROR",
            {
                'method': method,
                'endpoint': endpoint,
                'status': status
            }
        )


class ValidationException(ConsoleException):
    """Payload rejected before submission"""

    def __init__(self, resource: str, field_errors: Dict[str, str],
                 details: Optional[Dict[str, Any]] = None):
        self.resource = resource
        self.field_errors = field_errors
        error_details = details or {}
        error_details.update({
            'resource': resource,
            'field_errors': field_errors
        })
        fields = ', '.join(sorted(field_errors))
        super().__init__(
            f"Invalid {resource} payload: {fields}",
            "VALIDATION_ERROR",
            "PayloadValidator",
            error_details
        )


class MutationInFlightException(ConsoleException):
    """Same action already running for the same target"""

    def __init__(self, action: str, target: Optional[str],
                 details: Optional[Dict[str, Any]] = None):
        self.action = action
        self.target = target
        error_details = details or {}
        error_details.update({'action': action, 'target': target})
        super().__init__(
            f"{action} already in progress for {target or 'new entity'}",
            "MUTATION_IN_FLIGHT",
            "MutationCoordinator",
            error_details
        )


class ConfirmationRequiredException(ConsoleException):
    """Destructive action confirmed without an open dialog"""

    def __init__(self, action: str, target: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        self.action = action
        self.target = target
        error_details = details or {}
        error_details.update({'action': action, 'target': target})
        super().__init__(
            f"{action} requires an open confirmation",
            "CONFIRMATION_REQUIRED",
            "MutationCoordinator",
            error_details
        )


class PermissionDeniedException(ConsoleException):
    """Role may not perform the action"""

    def __init__(self, role: str, resource: str, action: str,
                 details: Optional[Dict[str, Any]] = None):
        self.role = role
        self.resource = resource
        self.action = action
        error_details = details or {}
        error_details.update({
            'role': role,
            'resource': resource,
            'action': action
        })
        super().__init__(
            f"{role} cannot {action} {resource}",
            "PERMISSION_DENIED",
            "RouteGuard",
            error_details
        )


class UnsupportedOperationException(ConsoleException):
    """Resource does not expose the requested operation"""

    def __init__(self, resource: str, operation: str,
                 details: Optional[Dict[str, Any]] = None):
        self.resource = resource
        self.operation = operation
        error_details = details or {}
        error_details.update({'resource': resource, 'operation': operation})
        super().__init__(
            f"{resource} does not support {operation}",
            "UNSUPPORTED_OPERATION",
            "ResourceClient",
            error_details
        )


class ConfigurationException(ConsoleException):
    """Invalid configuration"""

    def __init__(self, config_key: str, message: str,
                 details: Optional[Dict[str, Any]] = None):
        self.config_key = config_key
        error_details = details or {}
        error_details.update({'config_key': config_key})
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            "CONFIGURATION_ERROR",
            "ConfigManager",
            error_details
        )


def handle_exception(exception: Exception, component: str = "unknown",
                     context: Optional[Dict[str, Any]] = None,
                     mask_sensitive: bool = True) -> ConsoleException:
    """Normalise any exception into a ConsoleException.

    Args:
        exception: original exception
        component: component that raised
        context: extra context for the details
        mask_sensitive: mask passwords and tokens in message and details

    Returns:
        ConsoleException: the original when already a console exception
    """
    if isinstance(exception, ConsoleException):
        return exception

    details = context or {}

    if mask_sensitive:
        message = _mask_sensitive_info(str(exception))
        details = _mask_sensitive_details(details)
    else:
        message = str(exception)

    details.update({
        'original_exception_type': type(exception).__name__,
        'original_exception_message': message
    })

    return ConsoleException(
        message=message,
        error_code="WRAPPED_EXCEPTION",
        component=component,
        details=details
    )


def _mask_sensitive_info(message: str) -> str:
    patterns = [
        (r'password["\s]*[:=]["\s]*[^"\s]+', 'password=***'),
        (r'token["\s]*[:=]["\s]*[^"\s]+', 'token=***'),
        (r'secret["\s]*[:=]["\s]*[^"\s]+', 'secret=***'),
        (r'Bearer\s+[A-Za-z0-9._\-]+', 'Bearer ***'),
    ]

    masked_message = message
    for pattern, replacement in patterns:
        masked_message = re.sub(pattern, replacement, masked_message, flags=re.IGNORECASE)

    return masked_message


def _mask_sensitive_details(details: Dict[str, Any]) -> Dict[str, Any]:
    sensitive_keys = {'password', 'token', 'secret', 'auth', 'credential', 'cookie'}

    masked_details = {}
    for key, value in details.items():
        if any(sensitive_key in key.lower() for sensitive_key in sensitive_keys):
            masked_details[key] = '***'
        else:
            masked_details[key] = value

    return masked_details


def create_error_response(exception: ConsoleException) -> Dict[str, Any]:
    """Standard ``{success: false}`` body for a console exception."""
    return {
        'success': False,
        'error': exception.message,
        'error_code': exception.error_code,
        'details': exception.details,
        'timestamp': datetime.now().isoformat()
    }


def user_message(exception: Exception, fallback: str) -> str:
    """Message to show the user: the server's own text when it sent one.

    HTTP errors carrying a backend message are shown verbatim, and the
    console's own rejections keep their text; everything else gets the
    generic fallback.
    """
    if isinstance(exception, HTTPStatusException) and exception.server_message:
        return exception.server_message
    if isinstance(exception, (ValidationException, PermissionDeniedException,
                              MutationInFlightException)):
        return exception.message
    return fallback


def field_errors_of(exception: Exception) -> List[Dict[str, str]]:
    if isinstance(exception, ValidationException):
        return [{'field': f, 'message': m} for f, m in exception.field_errors.items()]
    return []


ERROR_STATUS = {
    'VALIDATION_ERROR': 422,
    'PERMISSION_DENIED': 403,
    'MUTATION_IN_FLIGHT': 409,
    'CONFIRMATION_REQUIRED': 409,
    'UNSUPPORTED_OPERATION': 405,
    'CONNECTION_ERROR': 503,
    'TIMEOUT_ERROR': 504,
}


def http_status_for(exception: ConsoleException) -> int:
    """HTTP status for a console exception surfaced to a dashboard client."""
    if isinstance(exception, HTTPStatusException):
        # backend client errors pass through, server errors become bad gateway
        return exception.status if 400 <= exception.status < 500 else 502
    return ERROR_STATUS.get(exception.error_code, 500)
