# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Front/back scratch buffers reused by every pass of every call."""

from __future__ import annotations

import contextlib
import logging
from typing import Iterable, Iterator, Optional, Tuple, Union

import torch

from warp_reduce.errors import AllocationError, CapacityError, ReductionError, device_check
from warp_reduce.planner import next_size, reduction_factor

logger = logging.getLogger(__name__)


class BufferPair(object):
    """Two device buffers with swappable front/back roles.

    Sized once for the largest input and the smallest reduction factor that
    will be used; never reallocated. The buffers themselves never move, only
    the role assignment does, and ``reset`` restores it.

    Args:
        input_sizes: Every input length the owner intends to reduce.
        block_sizes: Every block size the owner intends to launch with.
        items_per_thread: Every items-per-thread value intended, ``None``
            sizes the back buffer as if it were always 1.
        dtype: Element type.
        device: Where the buffers live.
    """

    def __init__(
        self,
        input_sizes: Iterable[int],
        block_sizes: Iterable[int],
        items_per_thread: Optional[Iterable[int]] = None,
        dtype: torch.dtype = torch.float32,
        device: Union[str, torch.device] = "cuda",
    ):
        input_sizes = list(input_sizes)
        block_sizes = list(block_sizes)
        items_per_thread = list(items_per_thread) if items_per_thread is not None else [1]
        assert input_sizes, "at least one input size is required"
        assert block_sizes, "at least one block size is required"
        assert items_per_thread, "at least one items_per_thread value is required"

        self.largest_size = max(input_sizes)
        if self.largest_size < 1:
            raise ValueError(f"largest input size must be positive, got {self.largest_size}")
        self.smallest_factor = reduction_factor(min(block_sizes), min(items_per_thread))

        front_capacity = self.largest_size
        back_capacity = next_size(self.smallest_factor, self.largest_size)
        with device_check("buffer allocation", AllocationError):
            self._buffers: Optional[Tuple[torch.Tensor, torch.Tensor]] = (
                torch.empty(front_capacity, dtype=dtype, device=device),
                torch.empty(back_capacity, dtype=dtype, device=device),
            )
        self._front = 0
        logger.debug(
            "allocated buffers front=%d back=%d dtype=%s device=%s",
            front_capacity,
            back_capacity,
            dtype,
            device,
        )

    @property
    def buffers(self) -> Tuple[torch.Tensor, torch.Tensor]:
        """The two allocations in their original front/back order."""
        if self._buffers is None:
            raise ReductionError("buffers have been released")
        return self._buffers

    @property
    def capacity(self) -> Tuple[int, int]:
        front, back = self.buffers
        return front.numel(), back.numel()

    def front(self) -> torch.Tensor:
        return self.buffers[self._front]

    def back(self) -> torch.Tensor:
        return self.buffers[1 - self._front]

    def swap(self) -> None:
        self._front = 1 - self._front

    def reset(self) -> None:
        self._front = 0

    @contextlib.contextmanager
    def session(self) -> Iterator["BufferPair"]:
        """Scope one reduction call; roles are reset on exit, even on error."""
        try:
            yield self
        finally:
            self.reset()

    def check_capacity(self, size: int, factor: int) -> None:
        """Reject an input that the buffers were not sized for.

        Raises:
            CapacityError: if ``size`` elements or their first pass output
                do not fit.
        """
        front_capacity, back_capacity = self.capacity
        if size > front_capacity:
            raise CapacityError(f"input of {size} elements exceeds the configured maximum {front_capacity}")
        if next_size(factor, size) > back_capacity:
            raise CapacityError(
                f"reduction factor {factor} leaves {next_size(factor, size)} elements after the first pass, "
                f"back buffer holds {back_capacity}"
            )

    def release(self) -> None:
        self._buffers = None
        self._front = 0
