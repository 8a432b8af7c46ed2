from __future__ import annotations

from importlib import metadata


def tool_version() -> str:
    """
    Version of the installed distribution.
    Kept free of other package imports (avoids cycles).
    """
    try:
        return metadata.version("hafr")
    except metadata.PackageNotFoundError:
        return "0.0.0"

__all__ = ["tool_version"]
