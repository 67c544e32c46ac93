"""Base class for failures that are reported to storefront clients.

Subclasses set a stable ``code``, an HTTP ``status_code`` and whether the
client may simply retry. The API layer renders them with ``to_dict()``.
"""


class StorefrontError(Exception):
    code = "storefront_error"
    status_code = 400
    retryable = False

    def __init__(self, message: str, **details) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        return {
            "error": self.code,
            "message": self.message,
            "retryable": self.retryable,
            **self.details,
        }
