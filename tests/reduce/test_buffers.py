# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Unit test for the front/back buffer pair, on host tensors."""

import pytest
import torch

from warp_reduce.buffers import BufferPair
from warp_reduce.errors import AllocationError, CapacityError, ReductionError


@pytest.fixture
def buffer_pair() -> BufferPair:
    return BufferPair([1000, 10000, 4097], [256, 64, 1024], dtype=torch.float32, device="cpu")


def test_sized_for_worst_case(buffer_pair: BufferPair) -> None:
    assert buffer_pair.largest_size == 10000
    assert buffer_pair.smallest_factor == 64
    assert buffer_pair.capacity == (10000, 157)
    assert buffer_pair.front().dtype == torch.float32


def test_items_per_thread_shrinks_back_buffer() -> None:
    pair = BufferPair([10000], [64, 256], items_per_thread=[4, 2], device="cpu")
    assert pair.smallest_factor == 128
    assert pair.capacity == (10000, 79)


def test_swap_and_reset(buffer_pair: BufferPair) -> None:
    front, back = buffer_pair.front(), buffer_pair.back()
    buffer_pair.swap()
    assert buffer_pair.front() is back
    assert buffer_pair.back() is front
    buffer_pair.swap()
    buffer_pair.swap()
    buffer_pair.reset()
    assert buffer_pair.front() is front
    assert buffer_pair.back() is back


def test_session_resets_on_error(buffer_pair: BufferPair) -> None:
    front = buffer_pair.front()
    with pytest.raises(RuntimeError):
        with buffer_pair.session() as buffers:
            buffers.swap()
            raise RuntimeError("launch failed")
    assert buffer_pair.front() is front


def test_check_capacity(buffer_pair: BufferPair) -> None:
    buffer_pair.check_capacity(10000, 64)
    with pytest.raises(CapacityError):
        buffer_pair.check_capacity(10001, 64)
    # a factor below the configured minimum overflows the back buffer
    with pytest.raises(CapacityError):
        buffer_pair.check_capacity(10000, 32)


def test_release(buffer_pair: BufferPair) -> None:
    buffer_pair.release()
    with pytest.raises(ReductionError):
        buffer_pair.front()


def test_factor_of_one_rejected() -> None:
    with pytest.raises(ValueError):
        BufferPair([100], [1], items_per_thread=[1], device="cpu")


def test_allocation_failure_is_tagged(monkeypatch: pytest.MonkeyPatch) -> None:
    def out_of_memory(*args, **kwargs):
        raise torch.cuda.OutOfMemoryError("CUDA out of memory. Tried to allocate 40.00 GiB")

    monkeypatch.setattr(torch, "empty", out_of_memory)
    with pytest.raises(AllocationError) as excinfo:
        BufferPair([10 << 30], [32])
    assert excinfo.value.operation == "buffer allocation"
    assert isinstance(excinfo.value.__cause__, torch.cuda.OutOfMemoryError)
