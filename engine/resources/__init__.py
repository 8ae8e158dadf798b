"""
Resource loading - static, schema-validated game data.
"""

from engine.resources.database import Database

__all__ = ["Database"]
