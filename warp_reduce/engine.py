# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Multi-pass reduction of a host array on the GPU.

usage:
    with Reducer(lambda a, b: a + b, 0.0, input_sizes=[10000], block_sizes=[256]) as reducer:
        value, elapsed_ms, passes = reducer(torch.randn(10000), block_size=256, items_per_thread=4)
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, NamedTuple, Optional, Union

import numpy as np
import torch
from numba import cuda

from warp_reduce.buffers import BufferPair
from warp_reduce.device import default_device, numpy_type, warp_size
from warp_reduce.dispatch import KernelVariant, select_variant
from warp_reduce.errors import device_check
from warp_reduce.kernel import build_kernel
from warp_reduce.planner import plan_passes
from warp_reduce.timer import Timer

logger = logging.getLogger(__name__)


class ReductionResult(NamedTuple):
    value: Union[int, float]
    elapsed_ms: float  # device time of the launch sequence, copies excluded
    passes: int


class Reducer(object):
    """Reduce arrays with ``op`` using a fixed pair of device buffers.

    Args:
        op: Associative, commutative combine function, compiled for the device.
        zero: Neutral element of ``op``, used to pad partial blocks.
            ``op(x, zero) == x`` is a precondition, a wrong value gives
            wrong results silently.
        input_sizes: Every input length that will be reduced.
        block_sizes: Every block size that will be used.
        items_per_thread: Every items-per-thread value that will be used;
            ``None`` sizes the buffers for any value.
        dtype: Element type.
        device: CUDA device, the current one by default.

    Not thread safe: serialize calls on one instance.
    """

    def __init__(
        self,
        op: Callable,
        zero: Union[int, float],
        input_sizes: Iterable[int],
        block_sizes: Iterable[int],
        items_per_thread: Optional[Iterable[int]] = None,
        dtype: torch.dtype = torch.float32,
        device: Optional[Union[str, torch.device]] = None,
    ):
        self.op = op
        self.dtype = dtype
        self.zero = numpy_type(dtype)(zero)
        self.device = torch.device(device) if device is not None else default_device()
        if self.device.type != "cuda":
            raise ValueError(f"reduction runs on a CUDA device, got {self.device}")
        if self.device.index is None:
            self.device = torch.device("cuda", torch.cuda.current_device())
        self.warp_size = warp_size(self.device)
        self.buffers = BufferPair(input_sizes, block_sizes, items_per_thread, dtype=dtype, device=self.device)
        self._kernels: Dict[KernelVariant, Callable] = {}

    def __enter__(self) -> "Reducer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self.buffers.release()
        self._kernels.clear()

    def kernel(self, variant: KernelVariant) -> Callable:
        """Compiled kernel for ``variant``, built on first use."""
        if variant not in self._kernels:
            self._kernels[variant] = build_kernel(self.op, self.dtype, variant)
        return self._kernels[variant]

    def __call__(
        self,
        data: Union[torch.Tensor, np.ndarray, Iterable],
        block_size: int,
        items_per_thread: int,
    ) -> ReductionResult:
        """Reduce ``data`` to one element.

        Args:
            data: Host (or device) elements, flattened before reduction.
            block_size: Threads per block, one of ``config.BLOCK_SIZES``.
            items_per_thread: Items folded by each thread before the warp
                reduction, one of ``config.ITEMS_PER_THREAD``.

        Returns:
            The reduced value, the device time in milliseconds and the
            number of passes launched.
        """
        variant = select_variant(block_size, self.warp_size, items_per_thread)
        data = torch.as_tensor(data, dtype=self.dtype).reshape(-1)
        size = data.numel()
        if size == 0:
            raise ValueError("cannot reduce an empty input")
        self.buffers.check_capacity(size, variant.factor)
        passes = plan_passes(size, variant.factor)

        with torch.cuda.device(self.device), cuda.gpus[self.device.index]:
            kernel = self.kernel(variant)
            stream = torch.cuda.current_stream(self.device)
            launch_stream = cuda.external_stream(stream.cuda_stream)

            with self.buffers.session() as buffers:
                with device_check("host to device copy"):
                    buffers.front()[:size].copy_(data)

                timer = Timer(stream=stream)
                timer.start()
                for step in passes:
                    logger.debug("pass %d: %d -> %d elements, %s", step.index, step.size, step.grid_size, variant)
                    with device_check("kernel launch"):
                        kernel[step.grid_size, variant.block_size, launch_stream](
                            cuda.as_cuda_array(buffers.front()),
                            cuda.as_cuda_array(buffers.back()),
                            self.zero,
                            step.size,
                        )
                    if step.index + 1 < len(passes):
                        buffers.swap()
                elapsed_ms = timer.stop()

                # the last pass leaves its result in back, no pass leaves it in front
                result = buffers.back() if passes else buffers.front()
                with device_check("device to host copy"):
                    value = result[0].item()

        return ReductionResult(value, elapsed_ms, len(passes))
