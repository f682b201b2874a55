"""
Core geometry and triangulation functionality.
"""
