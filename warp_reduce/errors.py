# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Exceptions raised by the reduction engine and the device error check."""

from __future__ import annotations

import contextlib
from typing import Iterator, Optional, Sequence, Type

import torch
from numba.cuda.cudadrv.driver import CudaAPIError
from numba.cuda.cudadrv.error import CudaSupportError

DEVICE_EXCEPTIONS = (CudaAPIError, CudaSupportError, torch.cuda.OutOfMemoryError)

# torch raises other CUDA runtime failures as plain RuntimeError
CUDA_ERROR_MARKERS = ("CUDA error", "CUDA driver error", "CUDA out of memory", "cudaError")


class ReductionError(Exception):
    """Base exception for all reduction engine errors."""

    pass


class UnsupportedConfigurationError(ReductionError, ValueError):
    """
    Raised when a launch parameter has no specialized kernel.

    Reported before any device work happens for the call.
    """

    def __init__(
        self,
        parameter: str,
        value: object,
        menu: Optional[Sequence[object]] = None,
        message: Optional[str] = None,
    ):
        self.parameter = parameter
        self.value = value
        self.menu = tuple(menu) if menu is not None else None

        if message is None:
            message = f"unsupported {parameter}={value!r}"
            if self.menu is not None:
                message += f", expected one of {list(self.menu)}"

        super().__init__(message)


class CapacityError(ReductionError, ValueError):
    """Raised when an input does not fit the buffers sized at construction."""

    pass


class DeviceError(ReductionError):
    """
    Raised when a device API call fails.

    ``operation`` names the step that failed (copy, launch, event...), the
    original numba or torch exception is chained as ``__cause__``.
    """

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        message = f"device error during {operation}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class AllocationError(DeviceError):
    """Raised when the scratch buffers cannot be allocated."""

    pass


def is_cuda_runtime_error(err: RuntimeError) -> bool:
    """Whether a torch RuntimeError reports a CUDA runtime failure."""
    message = str(err)
    return any(marker in message for marker in CUDA_ERROR_MARKERS)


@contextlib.contextmanager
def device_check(operation: str, error: Type[DeviceError] = DeviceError) -> Iterator[None]:
    """Translate device failures raised inside the block into ``error``.

    Args:
        operation: Name of the device operation, attached to the error.
        error: ``DeviceError`` subclass to raise.
    """
    try:
        yield
    except ReductionError:
        raise
    except DEVICE_EXCEPTIONS as err:
        raise error(operation, str(err)) from err
    except RuntimeError as err:
        if not is_cuda_runtime_error(err):
            raise
        raise error(operation, str(err)) from err
