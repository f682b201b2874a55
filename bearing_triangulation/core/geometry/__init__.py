"""
Geometry primitives and triangulation solvers.
"""
