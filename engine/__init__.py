"""
Rules Engine

Generic building blocks shared by the game rules packages:
validated state components, a typed event bus and a schema-validated
static data loader.

Quick Start:
    from engine.core import Component, EventBus
    from engine.resources import Database

    db = Database("data", categories={"skills": "skill.schema.json"})
    db.load_all()
"""

__version__ = "0.1.0"

from engine.core import (
    Component,
    register_component,
    EventBus,
    Event,
)
from engine.resources import Database

__all__ = [
    "__version__",
    "Component",
    "register_component",
    "EventBus",
    "Event",
    "Database",
]
