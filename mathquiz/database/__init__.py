"""
Database Module

This module provides database configuration and the model base for the quiz service.
"""

from mathquiz.database.base import Base, ModelBase, metadata

__all__ = ['Base', 'ModelBase', 'metadata']
