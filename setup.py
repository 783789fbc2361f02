#!/usr/bin/env python3
from setuptools import setup, find_packages

setup(
    name="openfoamparser",
    version="0.1.0",
    description="Reader for OpenFOAM ASCII cases: dictionaries, polyMesh topology, fields and time directories",
    author="OpenFFD CFD Framework",
    package_dir={"": "src"},
    packages=find_packages("src"),
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20.0",
    ],
    extras_require={
        "yaml": ["PyYAML>=5.4"],
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "openfoamparser=openfoamparser.cli.app:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering",
    ],
)
