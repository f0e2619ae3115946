"""
Exception hierarchy for the Copilot gateway.

Every gateway error carries the HTTP status it maps to when it escapes a
request handler; device flow errors only surface during interactive login.
"""
from typing import Optional


class GatewayError(Exception):
    """Base class for all gateway failures"""

    status_code = 500
    error_type = "server_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class LoginRequired(GatewayError):
    """No usable access credential is stored"""

    status_code = 401
    error_type = "authentication_error"

    def __init__(self, message: str = "No valid authentication. Please run with --login to authenticate."):
        super().__init__(message)


class UpstreamProtocolError(GatewayError):
    """Upstream answered with a non-success status or an unparseable body"""

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.upstream_status = status_code
        self.body = body


class RefreshFailed(UpstreamProtocolError):
    """Exchanging the access credential for a service token failed"""


class NetworkError(GatewayError):
    """Transport failure while talking to an upstream endpoint"""


class BadClientRequest(GatewayError):
    """Inbound request body does not parse into the expected dialect shape"""

    status_code = 400
    error_type = "invalid_request_error"


class DeviceFlowError(GatewayError):
    """Terminal failure during the interactive device login"""


class ExpiredDeviceCode(DeviceFlowError):
    def __init__(self, message: str = "The device code has expired. Please restart the login."):
        super().__init__(message)


class AccessDenied(DeviceFlowError):
    def __init__(self, message: str = "The authorization request was denied."):
        super().__init__(message)


class PollError(DeviceFlowError):
    """Unexpected error code returned while polling for the access token"""

    def __init__(self, code: str, description: Optional[str] = None):
        message = f"Device flow polling failed: {code}"
        if description:
            message = f"{message} - {description}"
        super().__init__(message)
        self.code = code
        self.description = description
