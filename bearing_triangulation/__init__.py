#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Bearing triangulation package.

Estimates 3D points from unit bearing vectors observed by cameras at known
poses and validates every estimate before reporting it as a success.
"""

__version__ = "0.1.0"
