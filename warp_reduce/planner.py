# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Pass planning for the multi-pass reduction.

Each pass launches one block per ``factor`` elements of the current array
and leaves one element per block. A partial last chunk still needs a whole
block, so the output count rounds up and the kernel pads that block with
the neutral element.
"""

from __future__ import annotations

from typing import List, NamedTuple

from warp_reduce.errors import UnsupportedConfigurationError


class Pass(NamedTuple):
    index: int
    size: int  # valid elements in the front buffer
    grid_size: int  # blocks launched, also the output count


def next_size(factor: int, current_size: int) -> int:
    """Number of elements left after one pass with ``factor``."""
    return (current_size + factor - 1) // factor


def reduction_factor(block_size: int, items_per_thread: int) -> int:
    """Elements consumed per output element.

    Raises:
        UnsupportedConfigurationError: if the factor would not shrink the array.
    """
    factor = block_size * items_per_thread
    if factor <= 1:
        raise UnsupportedConfigurationError(
            "reduction factor",
            factor,
            message=f"reduction factor {block_size} x {items_per_thread} = {factor} never shrinks the input",
        )
    return factor


def plan_passes(size: int, factor: int) -> List[Pass]:
    """All passes needed to reduce ``size`` elements down to one.

    An input of a single element needs no pass.
    """
    if size < 1:
        raise ValueError(f"cannot reduce {size} elements")
    if factor <= 1:
        raise UnsupportedConfigurationError("reduction factor", factor)

    passes = []
    current = size
    while current > 1:
        grid_size = next_size(factor, current)
        passes.append(Pass(len(passes), current, grid_size))
        current = grid_size
    return passes
