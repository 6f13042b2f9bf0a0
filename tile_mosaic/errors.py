"""Exception hierarchy shared by the engine, the I/O helpers and the CLI."""

from __future__ import annotations


class MosaicError(Exception):
    """Base class for every failure raised by :mod:`tile_mosaic`."""


class InputError(MosaicError, ValueError):
    """The supplied images cannot produce a mosaic (no tiles, empty source)."""


class ConfigurationError(MosaicError, ValueError):
    """A configuration value is out of range or malformed."""


class DecodeError(MosaicError, OSError):
    """An image file could not be read or decoded."""
