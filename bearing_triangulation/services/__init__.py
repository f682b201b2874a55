"""
Service layer: batch triangulation of many tracks.
"""

from bearing_triangulation.services.triangulation_service import Track, TriangulationService

__all__ = ['Track', 'TriangulationService']
