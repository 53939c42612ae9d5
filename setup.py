# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

import os
import re

from setuptools import find_packages, setup


def read_version():
    init_path = os.path.join(os.path.dirname(__file__), "tessera", "__init__.py")
    with open(init_path, encoding="utf-8") as f:
        match = re.search(r'^__version__ = "([^"]+)"', f.read(), re.MULTILINE)
    if match is None:
        raise RuntimeError("Unable to find __version__ in tessera/__init__.py")
    return match.group(1)


setup(
    name="tessera-runtime",
    version=read_version(),
    description="Dataflow inference runtime for PNNX models",
    license="Apache-2.0",
    python_requires=">=3.9",
    packages=find_packages(include=["tessera", "tessera.*"]),
    install_requires=[
        "numpy>=1.22",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "hypothesis>=6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "tessera=tessera.cli:main",
        ],
    },
)
