"""Core business logic for shortlinks."""

from .shortcode import ShortCodeGenerator
from .allocator import UniqueCodeAllocator
from .clicks import ClickRecorder
from .identity import ANONYMOUS, Anonymous, Owned, CallerIdentity
from .service import ShortLinkService

__all__ = [
    "ShortCodeGenerator",
    "UniqueCodeAllocator",
    "ClickRecorder",
    "ANONYMOUS",
    "Anonymous",
    "Owned",
    "CallerIdentity",
    "ShortLinkService",
]
