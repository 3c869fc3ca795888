# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Launch menus and element types with a specialized kernel.

Every kernel is compiled for one entry of each menu. A value outside these
tuples has no kernel and is rejected before launch.
"""

import numpy as np
import torch

# =====================================================================
#  Kernel specialization menus
# =====================================================================
BLOCK_SIZES = (32, 64, 128, 256, 512, 1024)
WARP_SIZES = (32, 64)
ITEMS_PER_THREAD = (1, 2, 3, 4, 8, 16)

# =====================================================================
#  Element types
# =====================================================================
SUPPORTED_DTYPES = {
    torch.float32: np.float32,
    torch.float64: np.float64,
    torch.int32: np.int32,
    torch.int64: np.int64,
}

# =====================================================================
#  Benchmark defaults
# =====================================================================
BENCH_SIZES = (1000, 10000, 100000, 1000000)
BENCH_ITEMS_PER_THREAD = (1, 2, 4, 8)
BENCH_LOOP = 100
