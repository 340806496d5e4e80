"""Data models for version strings pulled out of command output."""

from dataclasses import dataclass
from typing import Optional

from constants import Constants


@dataclass(frozen=True)
class ParsedVersion:
    """A version extracted from free text, or the unknown sentinel."""
    raw: Optional[str]

    @classmethod
    def unknown(cls) -> "ParsedVersion":
        return cls(None)

    @property
    def known(self) -> bool:
        return self.raw is not None

    @property
    def value(self) -> str:
        """The version string, or ``"unknown"`` when nothing was found."""
        return self.raw if self.raw is not None else Constants.UNKNOWN_VERSION
