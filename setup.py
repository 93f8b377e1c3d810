"""
Setup script for netemctl.

This allows the package to be installed in development mode:
    pip install -e .

Or run directly:
    netemctl show --interface eth0 --out-delay 100
"""

from setuptools import setup, find_packages

setup(
    name="netemctl",
    version="0.1.0",
    description="IFB based two-way netem emulation control",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.10",
    install_requires=[
        "pyyaml>=6.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-mock",
            "black",
            "flake8",
            "mypy",
        ],
    },
    entry_points={
        "console_scripts": [
            "netemctl=netemctl.cli:main",
        ],
    },
)
