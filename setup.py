#!/usr/bin/python3
# Setup file for arangit
# Copyright (C) 2026 The Arangit Authors
# SPDX-License-Identifier: Apache-2.0 OR GPL-2.0-or-later

from setuptools import setup

setup(
    name="arangit",
    version="0.1.0",
    description="Git repositories stored in ArangoDB, served through Dulwich",
    license="Apache-2.0 OR GPL-2.0-or-later",
    packages=["arangit"],
    package_data={"": ["py.typed"]},
    python_requires=">=3.10",
    install_requires=["dulwich>=0.25.0", "python-arango>=8.0"],
    entry_points={"console_scripts": ["arangit=arangit.cli:main"]},
)
