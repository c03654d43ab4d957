"""
Logo references accepted by the page decoration renderer
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LogoBytes:
    """Raw image bytes (uploaded file, data URI payload)"""
    data: bytes

    def __repr__(self):
        return f'<LogoBytes {len(self.data)} bytes>'


@dataclass(frozen=True)
class LogoUrl:
    """A local image file path. Remote URLs are rejected when resolved."""
    location: str
