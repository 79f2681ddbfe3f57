"""Resource fetching: turn a scene URI into raw bytes.

Two URI forms are understood:

- ``data:<content-type>;base64,<payload>`` inline resources, decoded in place;
- anything else, treated as a path relative to the scene directory.

:func:`fetch_ordered` runs fetches on a thread pool but appends results to the
body strictly in job order, so body offsets never depend on which read
finishes first.
"""

from __future__ import annotations

import base64
import binascii
import re
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..logging import get_logger
from ..utils.io import safe_read_file
from ..utils.paths import resource_path
from .body import BodyAccumulator, BodyBlock
from .constants import MAX_RESOURCE_SIZE
from .errors import UnsupportedDataUri

__all__ = [
    "FetchJob",
    "fetch",
    "decode_data_uri",
    "encode_data_uri",
    "fetch_ordered",
]

_DATA_SCHEME = "data:"
_BASE64_PREFIX = re.compile(r"^data:.*?;base64,")


@dataclass(slots=True, frozen=True)
class FetchJob:
    """One resource to fetch; ``label`` names it in progress and errors."""

    label: str
    uri: str


def decode_data_uri(uri: str) -> bytes:
    match = _BASE64_PREFIX.match(uri)
    if match is None:
        raise UnsupportedDataUri(
            "unsupported data URI (only base64 payloads are accepted)",
            {"uri": uri[:64]},
        )
    content_type = uri.split(";", 1)[0][len(_DATA_SCHEME) :]
    payload = "".join(uri[match.end() :].split())
    payload += "=" * (-len(payload) % 4)
    try:
        data = base64.b64decode(payload)
    except (binascii.Error, ValueError) as exc:
        raise UnsupportedDataUri(
            f"invalid base64 payload in data URI: {exc}",
            {"content_type": content_type},
        ) from exc
    if content_type == "text/plain":
        try:
            data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise UnsupportedDataUri(
                "text/plain data URI payload is not valid UTF-8",
                {"content_type": content_type},
            ) from exc
    return data


def encode_data_uri(data: bytes, content_type: str = "text/plain") -> str:
    return f"data:{content_type};base64," + base64.b64encode(data).decode(
        "ascii"
    )


def fetch(
    uri: str, base_dir: Path, *, max_size: int = MAX_RESOURCE_SIZE
) -> bytes:
    if uri.startswith(_DATA_SCHEME):
        return decode_data_uri(uri)
    return safe_read_file(resource_path(base_dir, uri), max_size)


def fetch_ordered(
    jobs: Sequence[FetchJob],
    base_dir: Path,
    body: BodyAccumulator,
    *,
    workers: int = 1,
    max_size: int = MAX_RESOURCE_SIZE,
    on_append: Optional[Callable[[FetchJob, BodyBlock], None]] = None,
) -> List[BodyBlock]:
    """Fetch every job and append the results to ``body`` in job order.

    With ``workers`` > 1 reads overlap, but the body is only touched from the
    calling thread, one job at a time, in the order given. The first failure
    cancels the fetches that have not started yet and propagates.
    """
    logger = get_logger()
    blocks: List[BodyBlock] = []

    def _append(job: FetchJob, data: bytes) -> None:
        block = body.append(data)
        blocks.append(block)
        logger.debug(
            "appended %s at offset=%d length=%d",
            job.label,
            block.offset,
            block.length,
        )
        if on_append is not None:
            on_append(job, block)

    if workers <= 1 or len(jobs) <= 1:
        for job in jobs:
            _append(job, fetch(job.uri, base_dir, max_size=max_size))
        return blocks

    with ThreadPoolExecutor(max_workers=workers) as executor:
        pending: List[Future[bytes]] = [
            executor.submit(fetch, job.uri, base_dir, max_size=max_size)
            for job in jobs
        ]
        try:
            for job, future in zip(jobs, pending):
                _append(job, future.result())
        except BaseException:
            for future in pending:
                future.cancel()
            raise
    return blocks
