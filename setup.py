#!/usr/bin/env python3
# =============================================================================
#  noblanks — setup.py
#
#  pyproject.toml only declares the build backend and tool settings; the
#  package metadata lives here.  The version is read from
#  noblanks/__init__.py so there is a single source of truth.
#
#      pip install -e ".[dev]"
#      python -m build
#      python -m pytest
# =============================================================================

from __future__ import annotations

import re
from pathlib import Path

from setuptools import setup, find_packages

_HERE = Path(__file__).resolve().parent


def _read_version() -> str:
    """Extract the version string from noblanks/__init__.py."""
    init = _HERE / "noblanks" / "__init__.py"
    text = init.read_text(encoding="utf-8")
    match = re.search(r'^__version__\s*=\s*"([^"]+)"', text, re.MULTILINE)
    if match:
        return match.group(1)
    return "0.0.0"


def _read_long_description() -> str:
    """Read README.md for the long description."""
    readme = _HERE / "README.md"
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


setup(
    name="cppcheck-noblanks",
    version=_read_version(),
    description=(
        "Cppcheck addon reporting blank lines between statements "
        "inside C/C++ function and lambda bodies."
    ),
    long_description=_read_long_description(),
    long_description_content_type="text/markdown",
    license="MIT",
    author="noblanks contributors",
    python_requires=">=3.10",
    packages=find_packages(
        include=["noblanks", "noblanks.*"],
        exclude=["tests", "tests.*"],
    ),
    # cppcheckdata ships with cppcheck itself and is imported lazily.
    install_requires=[],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "ruff>=0.4",
            "mypy>=1.10",
        ],
    },
    entry_points={
        "console_scripts": [
            "noblanks=noblanks.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Software Development :: Quality Assurance",
    ],
    keywords=[
        "cppcheck",
        "static-analysis",
        "lint",
        "style",
    ],
    zip_safe=False,
)
