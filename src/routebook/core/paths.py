"""Path normalization helper.

``normalize_path(prefix, segment)`` joins both parts with a single ``/``,
collapses any run of slashes, trims leading/trailing slashes and re-prefixes
the result with exactly one ``/``. The root path is ``"/"``.
"""

from __future__ import annotations

import re

__all__ = ["normalize_path"]

_SLASH_RUN = re.compile(r"/+")


def normalize_path(prefix: str, segment: str = "") -> str:
    """Return the canonical absolute path for ``prefix`` + ``segment``."""
    joined = _SLASH_RUN.sub("/", f"{prefix}/{segment}")
    return "/" + joined.strip("/")
