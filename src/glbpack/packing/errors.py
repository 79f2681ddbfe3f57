"""Error definitions for glbpack.

Every failure of a conversion is a :class:`GlbError`; all of them are
terminal for the run and none leaves an output file behind.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Optional

E_INPUT_EXTENSION = "E_INPUT_EXTENSION"
E_DATA_URI = "E_DATA_URI"
E_BUFFER_TYPE = "E_BUFFER_TYPE"
E_BUFFER_REF = "E_BUFFER_REF"
E_IO = "E_IO"
E_JSON = "E_JSON"
E_FORMAT = "E_FORMAT"
E_INTERNAL = "E_INTERNAL"


@dataclass
class GlbError(Exception):
    message: str
    context: Optional[Dict[str, Any]] = None

    code: ClassVar[str] = E_INTERNAL

    def __str__(self) -> str:
        return self.message

    def describe(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }


class InputExtensionError(GlbError):
    code = E_INPUT_EXTENSION


class UnsupportedDataUri(GlbError):
    code = E_DATA_URI


class UnsupportedBufferType(GlbError):
    code = E_BUFFER_TYPE


class DanglingBufferReference(GlbError):
    code = E_BUFFER_REF


class IoError(GlbError):
    code = E_IO


class JsonError(GlbError):
    code = E_JSON


class ContainerFormatError(GlbError):
    """Raised while reading back a container that is not a valid .glb."""

    code = E_FORMAT


__all__ = [
    "GlbError",
    "InputExtensionError",
    "UnsupportedDataUri",
    "UnsupportedBufferType",
    "DanglingBufferReference",
    "IoError",
    "JsonError",
    "ContainerFormatError",
    "E_INPUT_EXTENSION",
    "E_DATA_URI",
    "E_BUFFER_TYPE",
    "E_BUFFER_REF",
    "E_IO",
    "E_JSON",
    "E_FORMAT",
    "E_INTERNAL",
]
