#!/usr/bin/env python3
"""
Setup script for tessmesh (triangle meshes from voxel volumes)
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

requirements = [
    "numpy>=1.20.0",
    "trimesh>=3.15.0",
    "networkx>=2.6",
    "matplotlib>=3.5.0",
    "plotly>=5.0.0",
]

setup(
    name="tessmesh",
    version="0.1.0",
    description="Triangle mesh construction from voxel volumes: marching cubes, vertex merging, validity checks and smoothing",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["tessmesh", "tessmesh.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering",
        "Topic :: Multimedia :: Graphics :: 3D Modeling",
        "Programming Language :: Python :: 3",
    ],
    python_requires=">=3.8",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
            "black",
            "flake8",
            "mypy",
        ],
    },
)
