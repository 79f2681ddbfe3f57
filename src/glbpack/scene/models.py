"""In-memory glTF scene document.

The document stays the parsed JSON mapping; :class:`SceneDocument` only adds
accessors for the sections the packer rewrites. Keys the packer never looks
at are carried through untouched and in their original order.
"""

from __future__ import annotations
from dataclasses import dataclass
import json
import re
from typing import Any, Dict, List

from ..packing.errors import JsonError

__all__ = ["SceneDocument", "Descriptor", "Section"]

Descriptor = Dict[str, Any]
Section = Dict[str, Descriptor]

# json.loads accepts unpaired surrogate escapes; UTF-8 cannot encode them.
_LONE_SURROGATE = re.compile("[\ud800-\udfff]")


@dataclass(slots=True)
class SceneDocument:
    data: Dict[str, Any]

    def _section(self, key: str, *, required: bool) -> Section:
        value = self.data.get(key)
        if value is None:
            if required:
                raise JsonError(f"scene has no '{key}' object", {"key": key})
            return {}
        if not isinstance(value, dict):
            raise JsonError(
                f"scene '{key}' must be an object keyed by id",
                {"key": key, "type": type(value).__name__},
            )
        for item_id, item in value.items():
            if not isinstance(item, dict):
                raise JsonError(
                    f"{key} entry '{item_id}' must be an object",
                    {"key": key, "id": item_id},
                )
        return value

    @property
    def buffers(self) -> Section:
        return self._section("buffers", required=True)

    @buffers.setter
    def buffers(self, value: Section) -> None:
        self.data["buffers"] = value

    @property
    def buffer_views(self) -> Section:
        return self._section("bufferViews", required=True)

    @property
    def shaders(self) -> Section:
        return self._section("shaders", required=False)

    @property
    def images(self) -> Section:
        return self._section("images", required=False)

    @property
    def extensions_used(self) -> List[Any]:
        used = self.data.get("extensionsUsed")
        if not isinstance(used, list):
            used = []
            self.data["extensionsUsed"] = used
        return used

    def mark_extension_used(self, name: str) -> None:
        used = self.extensions_used
        if name not in used:
            used.append(name)

    def to_json_bytes(self) -> bytes:
        try:
            text = json.dumps(
                self.data, separators=(",", ":"), ensure_ascii=False
            )
        except (TypeError, ValueError) as exc:
            raise JsonError(f"cannot serialize scene: {exc}") from exc
        return _LONE_SURROGATE.sub("\ufffd", text).encode("utf-8")
