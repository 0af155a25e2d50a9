"""
API Layer

HTTP command surface over the tracker engine.
"""

from .server import app, create_app
from .mapper import map_projection_to_dict

__all__ = ['app', 'create_app', 'map_projection_to_dict']
