# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Device property queries and element type mapping."""

from __future__ import annotations

import logging

import numba
import numpy as np
import torch
from numba import cuda

from warp_reduce.config import SUPPORTED_DTYPES
from warp_reduce.errors import UnsupportedConfigurationError, device_check

logger = logging.getLogger(__name__)


def numpy_type(dtype: torch.dtype) -> type:
    """Numpy scalar type for a supported torch dtype."""
    try:
        return SUPPORTED_DTYPES[dtype]
    except KeyError:
        raise UnsupportedConfigurationError("dtype", dtype, tuple(SUPPORTED_DTYPES)) from None


def numba_type(dtype: torch.dtype) -> numba.types.Type:
    """Numba element type used for kernel signatures and shared memory."""
    return numba.from_dtype(np.dtype(numpy_type(dtype)))


def default_device() -> torch.device:
    return torch.device("cuda", torch.cuda.current_device())


def warp_size(device: torch.device) -> int:
    """Native warp width of ``device``.

    Args:
        device: A CUDA torch device.

    Returns:
        Number of lanes that execute in lockstep.
    """
    index = device.index if device.index is not None else 0
    with device_check("device property query"):
        with cuda.gpus[index]:
            width = cuda.get_current_device().WARP_SIZE
    logger.debug("device %s warp size %d", device, width)
    return width
