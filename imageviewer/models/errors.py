class DecodeError(ValueError):
    """Raised when a byte stream or file is not a decodable PNG image."""


class OutOfRangeError(IndexError):
    """Raised on pixel access outside the buffer dimensions."""


class InvalidZoomError(ValueError):
    """Raised when a zoom factor is not a positive, finite number."""
