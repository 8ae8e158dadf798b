import os
import sys
import random
import pytest

# Ensure engine and apothecary can be imported
sys.path.append(os.getcwd())


class ScriptedRandom(random.Random):
    """Random whose randint returns queued values, for exact dice tests."""

    def __init__(self):
        super().__init__(0)
        self.rolls = []

    def queue(self, *rolls):
        self.rolls.extend(rolls)

    def randint(self, a, b):
        return self.rolls.pop(0)


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from engine.core.events import EventBus
    return EventBus()


@pytest.fixture
def catalog():
    """The shipped profession tables."""
    from apothecary.progression.professions import default_catalog
    return default_catalog()


@pytest.fixture
def skill_catalog():
    from apothecary.progression.skills import default_skill_catalog
    return default_skill_catalog()


@pytest.fixture
def resolver(catalog):
    from apothecary.progression.modifiers import ModifierResolver
    return ModifierResolver(catalog)


@pytest.fixture
def ledger(event_bus):
    from apothecary.progression.quests import QuestLedger
    return QuestLedger(event_bus)


@pytest.fixture
def scripted_rng():
    return ScriptedRandom()


@pytest.fixture
def service(event_bus, scripted_rng):
    """ProgressionService on the shipped data with scripted dice."""
    from apothecary.progression.service import ProgressionService
    return ProgressionService(event_bus=event_bus, rng=scripted_rng)


@pytest.fixture
def recorder(event_bus):
    """Collects published events by type: recorder.watch(EventType) -> list."""

    class Recorder:
        def __init__(self):
            self.events = []

        def watch(self, *event_types):
            for event_type in event_types:
                event_bus.subscribe(event_type, self.events.append, weak=False)
            return self.events

        def of(self, event_type):
            return [e for e in self.events if e.type == event_type]

    return Recorder()
