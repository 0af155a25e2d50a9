"""
Tracker View Package

Read-only projection of tracker state for renderers.

BOUNDARY ENFORCEMENT:
================================
1. All DTOs are frozen (immutable)
2. All DTOs are versioned
3. Renderers receive ONLY these types, never TrackerState
4. Ambiguity is reported, never resolved
"""

from .dtos import (
    DTOVersion,
    CURRENT_DTO_VERSION,
    ProjectionView,
    AlertDTO,
    BannerDTO,
    TimelineCellDTO,
)
from .mapper import ProjectionMapper

__all__ = [
    'DTOVersion',
    'CURRENT_DTO_VERSION',
    'ProjectionView',
    'AlertDTO',
    'BannerDTO',
    'TimelineCellDTO',
    'ProjectionMapper',
]
