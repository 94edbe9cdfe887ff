class AtlasError(Exception):
    """Base class for every error raised by the atlas core."""


class CountryNotFound(AtlasError):
    """The requested code is absent from the store (HTTP 404)."""

    def __init__(self, code: str):
        super().__init__(f"Country '{code}' not found")
        self.code = code


class TransportFailure(AtlasError):
    """
    Network or HTTP-layer failure while talking to the backend.
    Never retried automatically; the user retries by selecting again.
    """

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code


class PayloadError(AtlasError):
    """A sync payload was malformed or broke a store rule (HTTP 400)."""


class DuplicateCountryCodeError(AtlasError):
    """Two authored country modules declare the same code."""

    def __init__(self, code: str, first: str, second: str):
        super().__init__(f"Country code '{code}' is declared by both {first} and {second}")
        self.code = code
        self.first = first
        self.second = second


class CountryFileError(AtlasError):
    """A country-file write was rejected (bad path/extension) or failed."""
