# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Dispatch of runtime launch parameters onto specialized kernels.

The block size, warp width and items-per-thread of a kernel size its shared
memory, fix its shuffle distances and bound its per-thread item loop, so
each supported combination is its own compiled kernel. ``static_switch``
maps one runtime integer onto the menu constant it equals; there is no
generic fallback.
"""

from __future__ import annotations

from typing import Callable, NamedTuple, Sequence, TypeVar

from warp_reduce.config import BLOCK_SIZES, ITEMS_PER_THREAD, WARP_SIZES
from warp_reduce.errors import UnsupportedConfigurationError

R = TypeVar("R")


class KernelVariant(NamedTuple):
    block_size: int
    warp_size: int
    items_per_thread: int

    @property
    def warp_count(self) -> int:
        return self.block_size // self.warp_size

    @property
    def factor(self) -> int:
        return self.block_size * self.items_per_thread


def static_switch(
    menu: Sequence[int],
    value: int,
    callback: Callable[[int], R],
    name: str = "value",
) -> R:
    """Call ``callback`` with the entry of ``menu`` equal to ``value``.

    Args:
        menu: The constants a kernel can be specialized for.
        value: Runtime value to resolve.
        callback: Invoked with the matching constant.
        name: Parameter name used in the error message.

    Raises:
        UnsupportedConfigurationError: if ``value`` is not in ``menu``.
    """
    for constant in menu:
        if constant == value:
            return callback(constant)
    raise UnsupportedConfigurationError(name, value, menu)


def select_variant(block_size: int, warp_size: int, items_per_thread: int) -> KernelVariant:
    """Resolve a launch configuration to one kernel variant."""
    variant = static_switch(
        BLOCK_SIZES,
        block_size,
        lambda block: static_switch(
            WARP_SIZES,
            warp_size,
            lambda warp: static_switch(
                ITEMS_PER_THREAD,
                items_per_thread,
                lambda items: KernelVariant(block, warp, items),
                "items_per_thread",
            ),
            "warp_size",
        ),
        "block_size",
    )
    # a block narrower than a warp has no per-warp partial to exchange
    if variant.warp_count == 0:
        raise UnsupportedConfigurationError(
            "block_size",
            block_size,
            message=f"block_size={block_size} is smaller than the warp size {warp_size}",
        )
    return variant
