"""
Component base class for state containers.

Components hold game state and nothing else. The rules that change
that state live in services, which are the only mutation points.
Keeping the two apart makes:
- Snapshots and save data trivial
- Validation automatic
- Testing easier

Usage:
    class SkillProgress(Component):
        level: int = 0
        xp: int = 0

    @register_component
    class PlayerProgression(Component):
        level: int = 4
        known_skills: dict[str, SkillProgress] = {}
"""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict


class Component(BaseModel):
    """
    Base class for all state components.

    Pydantic gives every component:
    - Validation on construction and on assignment
    - JSON-compatible dumps for save data
    - Typed defaults

    IMPORTANT: Do NOT put game rules here.
    Read-only helpers (properties, lookups) are fine.
    """

    model_config = ConfigDict(
        validate_assignment=True,
        extra='forbid',
    )

    # Serialized type name, defaults to the class name
    _type_name: ClassVar[str] = ""

    @classmethod
    def get_type_name(cls) -> str:
        """Get the component type name for serialization."""
        return cls._type_name or cls.__name__

    def clone(self) -> Component:
        """Create a deep copy of this component."""
        return self.model_copy(deep=True)

    def to_save_data(self) -> dict[str, Any]:
        """Dump to plain JSON-compatible data, tagged with the type name."""
        data = self.model_dump(mode='json')
        data['__type__'] = self.get_type_name()
        return data


# Registry of component types for save data
_component_registry: dict[str, type[Component]] = {}


def register_component(cls: type[Component]) -> type[Component]:
    """
    Decorator to register a component type.

    Usage:
        @register_component
        class PlayerProgression(Component):
            level: int = 4
    """
    _component_registry[cls.get_type_name()] = cls
    return cls


def get_component_type(type_name: str) -> type[Component] | None:
    """Get component class by type name."""
    return _component_registry.get(type_name)


def get_all_component_types() -> dict[str, type[Component]]:
    """Get all registered component types."""
    return _component_registry.copy()


def load_component(data: dict[str, Any]) -> Component | None:
    """
    Rebuild a component from `Component.to_save_data()` output.

    Returns:
        The component, or None if the type tag is unknown
    """
    payload = dict(data)
    cls = get_component_type(payload.pop('__type__', ''))
    if cls is None:
        return None
    return cls.model_validate(payload)
