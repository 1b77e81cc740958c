#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Utility modules for raster outline extraction.

This package contains utility modules for progress reporting, timing and
debug visualization.
"""
