# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Random related classes and the host reference reduction."""

from __future__ import annotations

import functools
import os
import random
from typing import Callable, List, Sequence

import numpy as np
import torch

from warp_reduce.planner import plan_passes


def use_deterministic_algorithms(seed: int = 0) -> None:
    """Use deterministic algorithms.

    Args:
        seed: Fixed seed for random operations.
    """
    random.seed(seed)
    np.random.seed(seed)
    os.environ["PYTHONHASHSEED"] = str(seed)
    torch.manual_seed(seed)
    if torch.cuda.is_available():
        torch.cuda.manual_seed(seed)
        torch.cuda.manual_seed_all(seed)

    # See https://pytorch.org/docs/stable/notes/randomness.html
    torch.use_deterministic_algorithms(True, warn_only=True)


def sequential_fold(values: Sequence, op: Callable):
    """Left-to-right fold, the reference result of any reduction."""
    return functools.reduce(op, values)


def emulate_passes(values: Sequence, op: Callable, zero, factor: int) -> List[List]:
    """Run the pass plan on the host, one fold per block-sized chunk.

    Returns the array left after every pass; the last one holds one element.
    """
    current = list(values)
    history = []
    for step in plan_passes(len(current), factor):
        padded = current + [zero] * (step.grid_size * factor - step.size)
        current = [
            sequential_fold(padded[block * factor : (block + 1) * factor], op)
            for block in range(step.grid_size)
        ]
        history.append(current)
    return history
