#!/usr/bin/env python3
"""
GPUSwitch - Hand a secondary GPU between the host driver and vfio-pci
"""

from setuptools import setup, find_namespace_packages
from pathlib import Path

# Read README
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding='utf-8')

setup(
    name="gpuswitch",
    version="0.1.0",
    description="Hand a secondary NVIDIA GPU between the host driver and vfio-pci",
    long_description=long_description,
    long_description_content_type="text/markdown",
    license="GPL-3.0",
    packages=find_namespace_packages(where="src", include=["backend", "models", "utils"]),
    py_modules=["config", "main"],
    package_dir={"": "src"},
    install_requires=[
        "psutil>=5.9.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "gpuswitch=main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: System Administrators",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: System :: Hardware :: Hardware Drivers",
        "Topic :: System :: Virtualization",
    ],
    keywords="gpu-passthrough vfio nvidia kvm",
)
