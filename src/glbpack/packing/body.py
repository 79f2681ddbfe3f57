"""Binary body accumulation.

The body is the region following the scene chunk. Resources are appended in
the order the rewriter visits them and packed back to back; each append
returns the offset the resource will occupy relative to the body start.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List

__all__ = ["BodyBlock", "BodyAccumulator"]


@dataclass(slots=True, frozen=True)
class BodyBlock:
    offset: int
    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        return self.offset + len(self.data)


@dataclass(slots=True)
class BodyAccumulator:
    blocks: List[BodyBlock] = field(default_factory=list)
    length: int = 0

    def append(self, data: bytes) -> BodyBlock:
        block = BodyBlock(self.length, bytes(data))
        self.blocks.append(block)
        self.length += block.length
        return block

    def __len__(self) -> int:
        return len(self.blocks)

    def write_into(self, out: bytearray, base: int) -> None:
        """Copy every block into ``out`` at ``base + block.offset``."""
        if base + self.length > len(out):
            raise ValueError(
                f"Body does not fit: base={base} length={self.length} "
                f"buffer={len(out)}"
            )
        for block in self.blocks:
            start = base + block.offset
            out[start : start + block.length] = block.data

    def to_bytes(self) -> bytes:
        return b"".join(block.data for block in self.blocks)
