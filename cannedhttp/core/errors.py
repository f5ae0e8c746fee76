"""Exceptions raised by cannedhttp."""


class MockServerError(RuntimeError):
    """Base class for mock server errors."""


class ServerStateError(MockServerError):
    """Raised when a lifecycle operation is called in the wrong state."""


class MultipartFileError(MockServerError):
    """Raised when a POST body has no usable multipart file field.

    The message is sent back verbatim as the body of the 500 response.
    """

    def __init__(self, message: str, field_name: str = "file"):
        super().__init__(message)
        self.message = message
        self.field_name = field_name
