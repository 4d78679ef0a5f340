"""
Client-side transport errors.

Both wrap failures talking to the server; business failures reported by the
gateway come back as GatewayResponse(success=False) instead.
"""

from core.exceptions import ExternalServiceError


class GatewayError(ExternalServiceError):
    """The persistence gateway could not be reached or answered garbage."""

    default_error_code: str = "GATEWAY_ERROR"


class ChannelError(ExternalServiceError):
    """The realtime channel is not connected or dropped a frame."""

    default_error_code: str = "CHANNEL_ERROR"
