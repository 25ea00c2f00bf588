"""
atomicsim - Atomic Commit Protocol Simulator

An educational, in-memory simulator of Two-Phase Commit (2PC) and
Three-Phase Commit (3PC) that records every simulated message exchange as an
ordered protocol trace.
"""

import os
import re
from setuptools import setup, find_packages

# Read the README for the long description
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Get package version
with open(os.path.join("atomicsim", "__init__.py"), "r", encoding="utf-8") as f:
    version_match = re.search(r'^__version__ = ["\']([^\"\']+)[\"\']', f.read(), re.MULTILINE)
    if version_match:
        VERSION = version_match.group(1)
    else:
        raise RuntimeError("Unable to find version string in atomicsim/__init__.py")

# Core dependencies
install_requires = [
    "attrs>=22.2.0",
    "pydantic>=2.0.0,<3.0.0",
    "typing-extensions>=4.0.0",
    "orjson>=3.6.0",
]

# Optional dependencies
extras_require = {
    # Development and testing
    "dev": [
        "pytest>=7.0.0",
        "pytest-cov>=4.0.0",
        "black>=22.0.0",
        "isort>=5.0.0",
        "mypy>=0.990",
    ],
}
extras_require["test"] = ["pytest>=7.0.0", "pytest-cov>=4.0.0"]

setup(
    name="atomicsim",
    version=VERSION,
    author="atomicsim Team",
    description="An in-memory simulator of Two-Phase and Three-Phase Commit",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "atomicsim": ["py.typed"],
    },
    python_requires=">=3.8",
    install_requires=install_requires,
    extras_require=extras_require,
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Education",
        "Topic :: System :: Distributed Computing",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "Typing :: Typed",
    ],
    keywords=[
        "two-phase-commit",
        "three-phase-commit",
        "distributed-systems",
        "atomic-commit",
        "simulation",
        "education",
    ],
    zip_safe=False,
)
