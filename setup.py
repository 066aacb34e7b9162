#!/usr/bin/env python3
"""Setup script for mindtree."""

from setuptools import setup, find_packages


setup(
    name="mindtree",
    version="1.0.0",
    description="Structural core of a mind-map editor: tree edits, branch colours, summaries and undo",
    author="mindtree Project",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.11",
    install_requires=[],
    extras_require={
        "test": ["pytest>=7"],
    },
    classifiers=[
        "Development Status :: 5 - Production/Stable",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business",
        "Topic :: Software Development :: Libraries",
    ],
)
