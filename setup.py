"""Setup script for the permissions_checker Python package."""

from setuptools import setup, find_packages

setup(
    name="permissions-checker",
    version="1.0.0",
    description="Admin-gated write access toggling for controlled folders",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": ["pytest", "black", "mypy"],
    },
    entry_points={
        "console_scripts": [
            "permissions-checker=permissions_checker.cli:main",
        ],
    },
)
