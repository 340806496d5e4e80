"""Version extraction from command output and release feeds.

All pattern matching over raw text lives here so callers only ever see a
``ParsedVersion`` (or a plain version string) and never the raw output.
"""

import re
from typing import Any, Iterable, Optional

from .models import ParsedVersion

# "typescript@5.3.0" in `npm list -g <name> --depth=0` output
_PACKAGE_VERSION_RE = re.compile(r"@(\d+\.\d+\.\d+)")
# the whole of `node --version` output, e.g. "v20.11.0"
_RUNTIME_VERSION_RE = re.compile(r"^v[\d.]+$")


def extract_version(text: Optional[str]) -> ParsedVersion:
    """Return the first ``@X.Y.Z`` version found in ``text``."""
    if not text:
        return ParsedVersion.unknown()
    match = _PACKAGE_VERSION_RE.search(text)
    return ParsedVersion(match.group(1)) if match else ParsedVersion.unknown()


def extract_runtime_version(text: Optional[str]) -> ParsedVersion:
    """Return the runtime version when ``text`` is exactly a ``vX.Y.Z`` line."""
    if not text:
        return ParsedVersion.unknown()
    candidate = text.strip()
    if _RUNTIME_VERSION_RE.match(candidate):
        return ParsedVersion(candidate)
    return ParsedVersion.unknown()


def pick_latest_lts(entries: Iterable[Any]) -> Optional[str]:
    """Return the version of the first entry whose ``lts`` is not ``False``.

    The feed is trusted to be ordered newest first; no version comparison
    happens here. Entries that are not mappings, or that lack a version, are
    ignored.
    """
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if entry.get("lts") is False:
            continue
        version = entry.get("version")
        if version:
            return str(version)
    return None
