"""API module - Routes and dependencies"""
from .deps import get_actor_dep, get_correlation_id_dep

__all__ = ["get_actor_dep", "get_correlation_id_dep"]
