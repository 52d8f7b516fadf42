"""Unit normalization: raw block counts → human-scale sizes.

All magnitudes are truncated (floor division), never rounded.
"""

from __future__ import annotations

from .base import RawStats, Sample, SizeValue

SIZE_MB = 1024 * 1024
SIZE_GB = 1024 * 1024 * 1024


def convert_size(block_size: int, blocks: int) -> SizeValue:
    """Convert *blocks* of *block_size* bytes to MB, or GB above 1 GiB.

    The unit switch is a single strict comparison: exactly 1 GiB is
    reported as ``1024 MB``.
    """
    size = block_size * blocks
    if size > SIZE_GB:
        return SizeValue(size // SIZE_GB, "GB")
    return SizeValue(size // SIZE_MB, "MB")


def utilization(blocks: int, blocks_available: int) -> int:
    """Integer percentage of used blocks, 0 for a zero-capacity target."""
    if blocks == 0:
        return 0
    return ((blocks - blocks_available) * 100) // blocks


def _validate(raw: RawStats) -> None:
    if raw.block_size <= 0:
        raise ValueError(f"block size must be positive, got {raw.block_size}")
    if raw.blocks < 0 or raw.blocks_available < 0:
        raise ValueError(
            f"block counts must be non-negative, got {raw.blocks}/{raw.blocks_available}"
        )
    if raw.blocks_available > raw.blocks:
        raise ValueError(
            f"available blocks ({raw.blocks_available}) exceed total ({raw.blocks})"
        )


def build_sample(path: str, raw: RawStats) -> Sample:
    """Build a :class:`Sample` for *path* from its raw counters."""
    _validate(raw)
    used_blocks = raw.blocks - raw.blocks_available
    return Sample(
        path=path,
        size=convert_size(raw.block_size, raw.blocks),
        free=convert_size(raw.block_size, raw.blocks_available),
        used=convert_size(raw.block_size, used_blocks),
        perc=utilization(raw.blocks, raw.blocks_available),
    )
