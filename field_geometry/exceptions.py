"""
Custom exceptions for the field_geometry package.

This module defines the error taxonomy shared by the contour extractor, the
label placer, the line tessellator and the structured-grid thinner. Errors
raised inside a worker process are carried back to the caller as plain
payload dictionaries and rebuilt with :func:`error_from_payload`, so the
caller sees the same exception class it would have seen in-process.
"""

from typing import Any, Dict, Optional


class FieldGeometryError(Exception):
    """Base exception class for all field_geometry errors.

    Attributes:
        parameter: Name of the offending parameter, if any
        value: Offending value (kept only when it is a plain scalar/string)
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        value: Any = None
    ):
        super().__init__(message)
        self.message = message
        self.parameter = parameter
        self.value = value

    def __reduce__(self):
        return (self.__class__, (self.message, self.parameter, self.value))

    def to_payload(self) -> Dict[str, Any]:
        """Serialize the error for transport across a worker boundary."""
        value = self.value
        if not isinstance(value, (str, int, float, bool, type(None))):
            value = repr(value)
        return {
            "kind": type(self).__name__,
            "message": self.message,
            "parameter": self.parameter,
            "value": value,
        }


class InvalidConfiguration(FieldGeometryError):
    """
    Raised for bad levels, intervals, margins or other caller options.

    This is a caller error: retrying with the same options reproduces it.
    """
    pass


class EmptyGrid(FieldGeometryError):
    """
    Raised when a grid is too small to contour (ni or nj < 2) or holds no
    finite values to derive contour levels from.
    """
    pass


class EmptyLevelSet(FieldGeometryError):
    """Raised when label placement is given no contours at all."""
    pass


class InvalidGeometry(FieldGeometryError):
    """
    Raised for malformed line input to the tessellator.

    Typical causes are lines with fewer than two points or texture
    coordinate arrays whose length does not match the point array.
    """
    pass


_ERROR_KINDS = {
    cls.__name__: cls
    for cls in (
        FieldGeometryError,
        InvalidConfiguration,
        EmptyGrid,
        EmptyLevelSet,
        InvalidGeometry,
    )
}


def error_from_payload(payload: Dict[str, Any]) -> FieldGeometryError:
    """
    Rebuild an exception from a payload produced by ``to_payload``.

    Unknown kinds fall back to :class:`FieldGeometryError` with the kind
    name prefixed to the message.

    Example:
        >>> err = error_from_payload(InvalidConfiguration("bad", "interval", 0).to_payload())
        >>> isinstance(err, InvalidConfiguration)
        True
    """
    kind = payload.get("kind", "FieldGeometryError")
    message = payload.get("message", "")
    cls = _ERROR_KINDS.get(kind)
    if cls is None:
        cls = FieldGeometryError
        message = f"{kind}: {message}"
    return cls(message, payload.get("parameter"), payload.get("value"))
