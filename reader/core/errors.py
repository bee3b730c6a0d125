"""
Error taxonomy for the reader pipeline.

Every error carries the HTTP status it maps to and the message a client is
allowed to see. The exception text itself (``str(exc)``) is the detailed,
server-side description and is only ever logged.
"""


class ReaderError(Exception):
    status_code = 500
    public_message = "internal error"


class InvalidURLError(ReaderError):
    status_code = 400
    public_message = "Invalid URL provided"


class InvalidFormatError(ReaderError):
    status_code = 400
    public_message = "invalid format"


class FetchError(ReaderError):
    """The target could not be fetched (network, policy or timeout)."""
    status_code = 422
    public_message = "Failed to process URL"


class ForbiddenAddressError(FetchError):
    def __init__(self, message: str = "refusing to connect to private network address"):
        super().__init__(message)


class TooManyRedirectsError(FetchError):
    def __init__(self, max_redirects: int):
        super().__init__(f"stopped after {max_redirects} redirects")
        self.max_redirects = max_redirects


class UnsupportedRedirectError(FetchError):
    pass


class ExtractionError(ReaderError):
    status_code = 422
    public_message = "Failed to process URL"


class RenderError(ReaderError):
    status_code = 500
    public_message = "failed to render article content"
