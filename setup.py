"""
Setup configuration for NixDeck.

Desktop configuration snapshot, restore and container engine.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read requirements
requirements_file = Path(__file__).parent / "requirements.txt"
requirements = requirements_file.read_text().strip().split("\n") if requirements_file.exists() else [
    "pydantic>=2.0",
    "rich>=13.0",
]

# Read long description from README if it exists
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text() if readme_file.exists() else ""

setup(
    name="nixdeck",
    version="1.0.0",
    description="Snapshot, restore and isolate desktop environment configuration",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="NixOS Configuration Team",
    author_email="",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={"nixdeck": ["data/*.css"]},
    install_requires=requirements,
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "nixdeck=nixdeck.cli:main",
            "nixdeck-daemon=nixdeck.daemon:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
        ],
    },
)
