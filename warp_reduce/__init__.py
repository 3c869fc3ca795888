# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

from warp_reduce.buffers import BufferPair
from warp_reduce.dispatch import KernelVariant, select_variant, static_switch
from warp_reduce.engine import Reducer, ReductionResult
from warp_reduce.errors import (
    AllocationError,
    CapacityError,
    DeviceError,
    ReductionError,
    UnsupportedConfigurationError,
    device_check,
)
from warp_reduce.planner import Pass, next_size, plan_passes, reduction_factor

__all__ = [
    "AllocationError",
    "BufferPair",
    "CapacityError",
    "DeviceError",
    "KernelVariant",
    "Pass",
    "Reducer",
    "ReductionError",
    "ReductionResult",
    "UnsupportedConfigurationError",
    "device_check",
    "next_size",
    "plan_passes",
    "reduction_factor",
    "select_variant",
    "static_switch",
]
