# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Compare the reduction engine with torch.sum.

usage: python -m warp_reduce.bench --sizes 10000 1000000 --block-sizes 256 1024
torch sum take 0.012288 ms while size = 10000
reduce_sum take 0.015360 ms while size = 10000, block_size = 256, items_per_thread = 4, passes = 2
"""

from __future__ import annotations

import argparse
import logging
from typing import List, Optional, Sequence

import torch

from warp_reduce.config import BENCH_ITEMS_PER_THREAD, BENCH_LOOP, BENCH_SIZES, BLOCK_SIZES, SUPPORTED_DTYPES
from warp_reduce.engine import Reducer
from warp_reduce.timer import Timer

DTYPES = {str(dtype).split(".")[1]: dtype for dtype in SUPPORTED_DTYPES}


def add(a, b):
    return a + b


def mock_tensors(tensor_size: int, dtype: torch.dtype) -> torch.Tensor:
    """Host input for one benchmark size."""
    if dtype.is_floating_point:
        return torch.randn(tensor_size, dtype=dtype)
    return torch.randint(-100, 100, (tensor_size,), dtype=dtype)


def check_result(value, expected, dtype: torch.dtype) -> None:
    """Raise AssertionError when the engine disagrees with torch.sum.

    Integer sums must match exactly, float sums up to reduction-order rounding.
    """
    if dtype.is_floating_point:
        torch.testing.assert_close(torch.tensor(value), torch.tensor(expected), rtol=1e-4, atol=1e-3)
    elif value != expected:
        raise AssertionError(f"reduce_sum got {value}, torch.sum got {expected}")


def torch_sum_msec(input_: torch.Tensor, loop: int = BENCH_LOOP) -> float:
    input_ = input_.cuda()
    torch.sum(input_)
    timer = Timer()
    timer.start()
    for _ in range(loop):
        _ = torch.sum(input_)
    return timer.stop() / loop


def run(
    sizes: Sequence[int],
    block_sizes: Sequence[int],
    items_per_thread: Sequence[int],
    dtype: torch.dtype,
    loop: int = BENCH_LOOP,
) -> List[dict]:
    records = []
    with Reducer(add, 0, sizes, block_sizes, items_per_thread, dtype=dtype) as reducer:
        for size in sizes:
            input_ = mock_tensors(size, dtype)
            expected = torch.sum(input_.cuda()).item()
            print(f"torch sum take {torch_sum_msec(input_, loop):.6f} ms while size = {size}")
            for block_size in block_sizes:
                for items in items_per_thread:
                    # first call compiles the variant
                    value, _, passes = reducer(input_, block_size, items)
                    check_result(value, expected, dtype)
                    elapsed = sum(reducer(input_, block_size, items).elapsed_ms for _ in range(loop)) / loop
                    print(
                        f"reduce_sum take {elapsed:.6f} ms while size = {size}, block_size = {block_size}, "
                        f"items_per_thread = {items}, passes = {passes}, got {value}, expected {expected}"
                    )
                    records.append(
                        {
                            "size": size,
                            "block_size": block_size,
                            "items_per_thread": items,
                            "passes": passes,
                            "elapsed_ms": elapsed,
                            "value": value,
                            "expected": expected,
                        }
                    )
    return records


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--sizes", type=int, nargs="+", default=list(BENCH_SIZES))
    parser.add_argument("--block-sizes", type=int, nargs="+", default=list(BLOCK_SIZES))
    parser.add_argument("--items-per-thread", type=int, nargs="+", default=list(BENCH_ITEMS_PER_THREAD))
    parser.add_argument("--dtype", choices=sorted(DTYPES), default="float32")
    parser.add_argument("--loop", type=int, default=BENCH_LOOP)
    parser.add_argument("--seed", type=int, default=13)
    parser.add_argument("--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    torch.manual_seed(args.seed)
    run(args.sizes, args.block_sizes, args.items_per_thread, DTYPES[args.dtype], args.loop)


if __name__ == "__main__":
    main()
