"""
Core engine module.

Exports:
- Component, register_component: State component base and registration
- EventBus, Event: Event system
"""

from engine.core.component import (
    Component,
    register_component,
    get_component_type,
    get_all_component_types,
    load_component,
)
from engine.core.events import EventBus, Event, EventHandler

__all__ = [
    # Components
    "Component",
    "register_component",
    "get_component_type",
    "get_all_component_types",
    "load_component",
    # Events
    "EventBus",
    "Event",
    "EventHandler",
]
