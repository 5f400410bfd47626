"""
Hidden-surface removal for polytopes in 4D projective space
"""

from .facet import Facet
from .mesh import Mesh
from .texture import Texture
from .triangle import Triangle, Vertex
from .mesh_exporter import export_triangles, triangles_to_trimesh

__all__ = [
    # Scene
    'Mesh',
    'Facet',
    'Texture',
    # Output
    'Triangle',
    'Vertex',
    # Export
    'export_triangles',
    'triangles_to_trimesh',
]
