#!/usr/bin/env python3

from setuptools import setup, find_packages

setup(
    name="ustar-extract",
    version="1.0.0",
    description="Blocking and asyncio extraction of USTAR archives",
    author="ustar-extract contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    extras_require={
        'test': [
            'pytest>=7',
            'pytest-asyncio>=0.21',
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: System :: Archiving",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
