# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Block reduction kernel, specialized per launch configuration.

One block of ``block_size`` threads consumes ``block_size * items_per_thread``
consecutive elements of the front buffer and writes a single element to
``back[blockIdx.x]``:

1. every thread folds its ``items_per_thread`` contiguous items, positions
   past ``front_size`` read as ``zero``;
2. each warp combines its lanes with register shuffles;
3. lane 0 of every warp parks the warp result in shared memory and the
   partials are combined again with shuffles until one is left.

``op`` must be associative and commutative, and ``op(x, zero) == x`` must
hold for every ``x``. Padding relies on it and it cannot be checked here.

The kernel is written with numba rather than as an inline CUDA extension
because ``op`` is a Python callable chosen at runtime: numba compiles it to
a device function and inlines it into each specialized kernel, where a
``load_inline`` build would fix the operator when the extension is built.
"""

from __future__ import annotations

import logging
from typing import Callable

import numba
import torch
from numba import cuda
from numba.cuda.dispatcher import CUDADispatcher

from warp_reduce.device import numba_type
from warp_reduce.dispatch import KernelVariant
from warp_reduce.errors import device_check

logger = logging.getLogger(__name__)

FULL_MASK = 0xFFFFFFFF


def device_function(op: Callable) -> CUDADispatcher:
    """Compile ``op`` for the device unless it already is a device function."""
    if isinstance(op, CUDADispatcher):
        return op
    return cuda.jit(device=True)(op)


def build_kernel(op: Callable, dtype: torch.dtype, variant: KernelVariant) -> CUDADispatcher:
    """Compile the reduction kernel for one (operator, dtype, variant).

    The variant's integers are closure constants of the kernel, so numba
    sees them as compile time values.
    """
    combine = device_function(op)
    element = numba_type(dtype)
    block_size, warp_size, items_per_thread = variant
    warp_count = variant.warp_count
    chunk = variant.factor

    def reduce_block(front, back, zero, front_size):
        shared = cuda.shared.array(warp_count, element)

        tid = cuda.threadIdx.x
        bid = cuda.blockIdx.x
        gid = bid * chunk + tid * items_per_thread
        wid = tid // warp_size
        lid = tid % warp_size

        if gid + items_per_thread <= front_size:
            res = front[gid]
            for i in range(1, items_per_thread):
                res = combine(res, front[gid + i])
        else:
            res = front[gid] if gid < front_size else zero
            for i in range(1, items_per_thread):
                item = zero
                if gid + i < front_size:
                    item = front[gid + i]
                res = combine(res, item)

        # warp_count partials, then ceil(active / warp_size) until one is left
        active = warp_count
        while active > 0:
            if wid < active:
                delta = warp_size // 2
                while delta > 0:
                    res = combine(res, cuda.shfl_down_sync(FULL_MASK, res, delta))
                    delta //= 2
                if lid == 0:
                    shared[wid] = res
            cuda.syncthreads()

            res = shared[tid] if tid < active else zero
            active = (active + warp_size - 1) // warp_size if active != 1 else 0

        if tid == 0:
            back[bid] = res

    signature = numba.void(element[::1], element[::1], element, numba.int64)
    logger.debug("compiling reduction kernel %s for %s", variant, dtype)
    with device_check("kernel compilation"):
        kernel = cuda.jit(signature)(reduce_block)
    return kernel
