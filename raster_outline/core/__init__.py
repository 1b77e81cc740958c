#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Core functionality for raster outline extraction.

This module contains the core components for raster source handling,
configuration management, error types and logging setup.
"""
