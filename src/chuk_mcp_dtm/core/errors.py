"""
Typed errors raised by the tile resolution and sampling core.

Tool functions catch these and turn them into ErrorResponse payloads.
"""


class DTMError(Exception):
    """Base class for all DTM core errors."""


class TileIndexError(DTMError):
    """A tile descriptor list could not be read or parsed."""


class TileNotFoundError(DTMError, LookupError):
    """No tile covers the requested coordinate."""


class NoDataError(DTMError):
    """The pixel holds the missing-elevation sentinel or the raster's nodata value."""


class RasterGeometryError(DTMError):
    """The raster is rotated, skewed, or has a degenerate pixel size."""


class PixelRangeError(DTMError):
    """The coordinate falls outside the raster extent."""


class RasterReadError(DTMError):
    """The raster file is missing, unreadable, or has an unsupported data type."""


class ValidationError(DTMError, ValueError):
    """Malformed request parameters."""


class CoordinateError(ValidationError):
    """Coordinates outside the supported zones or not transformable."""


class HistogramValidationError(ValidationError):
    """Bad bin count, inverted range, or unparsable override."""


class ProfileValidationError(ValidationError):
    """Bad profile endpoints or sampling limits."""
