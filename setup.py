#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# @Time    : 2025/12/5 15:36
# @Author  : hejun
"""
项目安装文件
"""
from setuptools import setup, find_namespace_packages
import pathlib

here = pathlib.Path(__file__).parent.resolve()

# 读取README
long_description = (here / "README.md").read_text(encoding="utf-8")

setup(
    name="address-interpolation",
    version="1.0.0",
    description="街道门牌区间插值引擎",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Address Interpolation Team",
    author_email="example@example.com",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: GIS",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
    keywords="address, interpolation, geocoding, street network, parity",
    packages=find_namespace_packages(where=".", include=["core", "utils", "config"]),
    python_requires=">=3.8, <4",
    install_requires=[
        "numpy>=1.23.0",
        "scipy>=1.10.0",
        "shapely>=2.0.0",
        "python-Levenshtein>=0.21.0",
        "pyproj>=3.4.0",
    ],
    extras_require={
        "dev": ["pytest>=7.0", "black>=22.0", "flake8>=5.0"],
    },
    project_urls={
        "Bug Reports": "https://github.com/example/address-interpolation/issues",
        "Source": "https://github.com/example/address-interpolation",
    },
)
