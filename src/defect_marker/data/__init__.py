"""Zugriff auf Modellelemente."""

from .model_provider import InMemoryModelProvider, ModelSelection, SpatialObjectProvider

__all__ = ["InMemoryModelProvider", "ModelSelection", "SpatialObjectProvider"]
