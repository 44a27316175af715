#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Compatibility shim for tools that still invoke ``setup.py`` directly.

All project metadata, dependencies and package discovery for the SSOE Toolbox
live in ``pyproject.toml``.
"""

import setuptools

if __name__ == "__main__":
    setuptools.setup()
