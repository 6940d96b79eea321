"""Error taxonomy for short link allocation and resolution."""

from typing import Iterable, List


class ShortLinkError(Exception):
    """Base class for all service-level errors."""


class InvalidDestinationError(ShortLinkError):
    """Destination URL is missing or malformed."""


class InvalidAliasError(ShortLinkError):
    """Custom alias violates the length or character-set rules."""


class AliasTakenError(ShortLinkError):
    """Custom alias is already mapped to a destination."""

    def __init__(self, code: str):
        super().__init__(f"Short code '{code}' already exists")
        self.code = code


class ExhaustedRetriesError(ShortLinkError):
    """No unique generated code was found within the attempt budget."""

    def __init__(self, attempts: int):
        super().__init__(f"Unable to generate a unique short code after {attempts} attempts")
        self.attempts = attempts


class NotFoundError(ShortLinkError):
    """No mapping exists for the requested short code."""

    def __init__(self, code: str):
        super().__init__(f"Short code '{code}' not found")
        self.code = code


class PermissionDeniedError(ShortLinkError):
    """Caller does not own the link(s) it tried to modify."""

    def __init__(self, message: str, codes: Iterable[str] = ()):
        super().__init__(message)
        self.codes: List[str] = list(codes)
