"""Gateway failures. Both are retryable: no local state has changed yet."""

from shared.errors import StorefrontError


class GatewayUnavailable(StorefrontError):
    code = "gateway_unavailable"
    status_code = 502
    retryable = True


class GatewayTimeout(StorefrontError):
    code = "gateway_timeout"
    status_code = 504
    retryable = True
