import pytest
from pydantic import ValidationError
from engine.core.component import (
    Component,
    register_component,
    get_component_type,
    get_all_component_types,
    load_component,
)

@register_component
class Position(Component):
    x: float = 0.0
    y: float = 0.0

class Inventory(Component):
    items: dict[str, int] = {}

def test_component_validation():
    with pytest.raises(ValidationError):
        # Pass a dict instead of float for x
        Position(x={"invalid": "type"})

def test_validate_on_assignment():
    p = Position()
    with pytest.raises(ValidationError):
        p.x = "not a number"

def test_extra_fields_forbidden():
    with pytest.raises(ValidationError):
        Position(z=1.0)

def test_clone_is_deep():
    inv = Inventory(items={"mercury": 2})
    copy = inv.clone()
    copy.items["mercury"] = 5

    assert inv.items["mercury"] == 2

def test_registry():
    assert get_component_type("Position") is Position
    assert "Position" in get_all_component_types()
    assert get_component_type("Inventory") is None

def test_save_data_round_trip():
    data = Position(x=1.5, y=-2).to_save_data()

    assert data["__type__"] == "Position"
    restored = load_component(data)
    assert isinstance(restored, Position)
    assert restored.x == 1.5
    assert restored.y == -2

def test_load_unknown_type_returns_none():
    assert load_component({"__type__": "Nope", "x": 1}) is None
    assert load_component({"x": 1}) is None
