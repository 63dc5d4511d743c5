#!/usr/bin/env python3
"""
Setup script for vercut

This file exists for backwards compatibility with tools that still use setup.py.
The actual package configuration is in pyproject.toml
"""

from setuptools import setup

# The actual configuration is in pyproject.toml
# This file is kept for backwards compatibility with older tools
if __name__ == "__main__":
    setup()
