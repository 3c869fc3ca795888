# Copyright (c) 2024 Aliyun Inc. All Rights Reserved.

r"""Building using setuptools."""

import setuptools

library_name = "warp_reduce"

install_requires = [
    "numba",
    "numpy",
    "torch",
]

extras_require = {
    "test": ["pytest"],
}

setuptools.setup(
    name=library_name,
    version="0.1.0",
    description="Multi-pass warp-shuffle reduction on CUDA devices",
    packages=setuptools.find_packages(include=[library_name, f"{library_name}.*"]),
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [f"warp-reduce-bench={library_name}.bench:main"],
    },
)
