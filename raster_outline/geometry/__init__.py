#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Polygon geometry for traced outlines.
"""
