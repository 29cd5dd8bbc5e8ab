"""Interpreter compatibility shims."""

from __future__ import annotations

import sys

# tomllib joined the standard library in 3.11; tomli is the same parser
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[import-not-found]

TOMLDecodeError = tomllib.TOMLDecodeError

__all__ = ["TOMLDecodeError", "tomllib"]
