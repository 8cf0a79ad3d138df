"""Data generators for benchmark entities."""

from storebench.generators.entities import EntityFactory
from storebench.generators.fields import FieldGenerator

__all__ = ["EntityFactory", "FieldGenerator"]
