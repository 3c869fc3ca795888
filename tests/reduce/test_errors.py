# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Unit test for device error translation."""

import pytest
from numba.cuda.cudadrv.driver import CudaAPIError

from warp_reduce.errors import (
    AllocationError,
    CapacityError,
    DeviceError,
    UnsupportedConfigurationError,
    device_check,
)


def test_runtime_error_is_tagged() -> None:
    with pytest.raises(DeviceError) as excinfo:
        with device_check("device to host copy"):
            raise RuntimeError("CUDA error: an illegal memory access was encountered")
    assert excinfo.value.operation == "device to host copy"
    assert "illegal memory access" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_driver_error_is_tagged() -> None:
    with pytest.raises(AllocationError) as excinfo:
        with device_check("buffer allocation", AllocationError):
            raise CudaAPIError(2, "CUDA_ERROR_OUT_OF_MEMORY")
    assert excinfo.value.operation == "buffer allocation"
    assert isinstance(excinfo.value, DeviceError)


def test_usage_errors_pass_through() -> None:
    with pytest.raises(CapacityError):
        with device_check("kernel launch"):
            raise CapacityError("too large")
    with pytest.raises(KeyError):
        with device_check("kernel launch"):
            raise KeyError("not a device error")


@pytest.mark.parametrize(
    "err",
    [
        NotImplementedError("no kernel for this dtype"),
        RecursionError("maximum recursion depth exceeded"),
        RuntimeError("shape '[4]' is invalid for input of size 5"),
    ],
)
def test_host_runtime_errors_pass_through(err: RuntimeError) -> None:
    with pytest.raises(type(err)) as excinfo:
        with device_check("host to device copy"):
            raise err
    assert excinfo.value is err


def test_unsupported_configuration_message() -> None:
    err = UnsupportedConfigurationError("block_size", 100, (32, 64))
    assert str(err) == "unsupported block_size=100, expected one of [32, 64]"
