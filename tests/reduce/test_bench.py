# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Unit test for the benchmark result check."""

import pytest
import torch

from warp_reduce.bench import DTYPES, check_result, parse_args
from warp_reduce.config import SUPPORTED_DTYPES


def test_dtype_choices_follow_supported_dtypes() -> None:
    assert DTYPES == {
        "float32": torch.float32,
        "float64": torch.float64,
        "int32": torch.int32,
        "int64": torch.int64,
    }
    assert set(DTYPES.values()) == set(SUPPORTED_DTYPES)
    assert parse_args(["--dtype", "int64"]).dtype == "int64"


def test_float_result_within_tolerance() -> None:
    check_result(1000.0001, 1000.0, torch.float32)
    with pytest.raises(AssertionError):
        check_result(1001.0, 1000.0, torch.float32)


def test_int_result_is_exact() -> None:
    check_result(36, 36, torch.int32)
    with pytest.raises(AssertionError):
        check_result(35, 36, torch.int64)
