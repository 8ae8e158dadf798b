"""
Quest ledger - tracking quests from proposal to resolution.

A quest enters the ledger active and leaves it exactly once, completed
or failed. Ids are unique across all three sets, so a resolved quest can
never come back. The ledger also records template cooldowns; when to
offer a new quest is the quest proposer's decision, not the ledger's.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field, fields
from enum import Enum, auto
from typing import Any, Mapping, Optional

from engine.core.events import EventBus

# Active quests within this many turns of their limit are urgent
URGENT_TURNS = 2

EXPIRED_REASON = "expired"


def _is_turn(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class QuestStatus(Enum):
    """Quest lifecycle state."""
    ACTIVE = "active"
    COMPLETED = "completed"    # terminal
    FAILED = "failed"          # terminal

    @property
    def is_terminal(self) -> bool:
        return self is not QuestStatus.ACTIVE


class QuestEvent(Enum):
    """Ledger transitions published on the event bus."""
    PROPOSED = auto()
    UPDATED = auto()
    STEP_ADVANCED = auto()
    COMPLETED = auto()
    FAILED = auto()
    COOLDOWN_SET = auto()


@dataclass
class QuestStep:
    """
    One step of a quest.

    The step is done when the player performs `action`, on `target` if
    one is given. `params` narrows the match further; keys starting with
    `min`/`max` are bounds on the action's matching parameter.
    """
    description: str = ""
    action: str = ""
    target: Optional[str] = None
    params: dict[str, Any] = field(default_factory=dict)
    completed: bool = False


@dataclass
class QuestGiver:
    npc_id: str = ""
    name: str = ""
    npc_type: str = ""


@dataclass
class QuestRewards:
    """Rewards handed out by the game when the quest completes."""
    wealth: int = 0
    reputation: int = 0
    xp: int = 0
    items: list[dict[str, Any]] = field(default_factory=list)
    knowledge: list[str] = field(default_factory=list)


@dataclass
class Quest:
    """A quest instance."""
    id: str
    template_id: str = ""
    quest_type: str = ""
    status: QuestStatus = QuestStatus.ACTIVE
    giver: QuestGiver = field(default_factory=QuestGiver)
    description: str = ""

    # Progress
    steps: list[QuestStep] = field(default_factory=list)
    current_step: int = 0
    turns_active: int = 0

    # Timing
    start_turn: int = 0
    completed_turn: Optional[int] = None
    turn_limit: Optional[int] = None    # None: no limit

    rewards: QuestRewards = field(default_factory=QuestRewards)
    failure_reason: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def get_current_step(self) -> Optional[QuestStep]:
        """The step the player is working on, None once all are done."""
        if 0 <= self.current_step < len(self.steps):
            return self.steps[self.current_step]
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'template_id': self.template_id,
            'quest_type': self.quest_type,
            'status': self.status.value,
            'giver': vars(self.giver).copy(),
            'description': self.description,
            'steps': [
                {
                    'description': s.description,
                    'action': s.action,
                    'target': s.target,
                    'params': dict(s.params),
                    'completed': s.completed,
                }
                for s in self.steps
            ],
            'current_step': self.current_step,
            'turns_active': self.turns_active,
            'start_turn': self.start_turn,
            'completed_turn': self.completed_turn,
            'turn_limit': self.turn_limit,
            'rewards': {
                'wealth': self.rewards.wealth,
                'reputation': self.rewards.reputation,
                'xp': self.rewards.xp,
                'items': [dict(i) for i in self.rewards.items],
                'knowledge': list(self.rewards.knowledge),
            },
            'failure_reason': self.failure_reason,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Quest:
        """
        Build a quest from `to_dict` output.

        Raises:
            KeyError, TypeError, ValueError, AttributeError: on malformed data
        """
        rewards = data.get('rewards') or {}
        return cls(
            id=data['id'],
            template_id=data.get('template_id', ''),
            quest_type=data.get('quest_type', ''),
            status=QuestStatus(data.get('status', QuestStatus.ACTIVE.value)),
            giver=QuestGiver(**(data.get('giver') or {})),
            description=data.get('description', ''),
            steps=[QuestStep(**s) for s in data.get('steps', [])],
            current_step=data.get('current_step', 0),
            turns_active=data.get('turns_active', 0),
            start_turn=data.get('start_turn', 0),
            completed_turn=data.get('completed_turn'),
            turn_limit=data.get('turn_limit'),
            rewards=QuestRewards(**rewards),
            failure_reason=data.get('failure_reason'),
        )


# Quest helpers

def is_expired(quest: Quest, current_turn: int) -> bool:
    """True once more turns than the limit have passed since the start."""
    if not _is_turn(current_turn) or not quest.turn_limit:
        return False
    return current_turn - quest.start_turn > quest.turn_limit


def is_urgent(quest: Quest, current_turn: int) -> bool:
    """True when the quest has URGENT_TURNS or fewer turns left."""
    if not _is_turn(current_turn) or not quest.turn_limit:
        return False
    remaining = quest.turn_limit - (current_turn - quest.start_turn)
    return remaining <= URGENT_TURNS


def progress_percentage(quest: Quest) -> int:
    """Share of steps done, 0-100."""
    if not quest.steps:
        return 100 if quest.status is QuestStatus.COMPLETED else 0
    done = min(max(quest.current_step, 0), len(quest.steps))
    return (done * 100) // len(quest.steps)


def matches_completion_criteria(action: str, params: Mapping[str, Any] | None, step: QuestStep) -> bool:
    """
    Check whether a player action completes a step.

    Example:
        step = QuestStep(action='buy', params={'minQuantity': 5})
        matches_completion_criteria('buy', {'quantity': 10}, step)  # True
    """
    if not isinstance(params, Mapping):
        params = {}
    if action != step.action:
        return False

    if step.target and params.get('target') != step.target:
        return False

    for key, expected in step.params.items():
        if key.startswith(('min', 'max')):
            actual = params.get(key[3:].lower())
            if not (_is_number(actual) and _is_number(expected)):
                return False
            if key.startswith('min') and actual < expected:
                return False
            if key.startswith('max') and actual > expected:
                return False
        elif params.get(key) != expected:
            return False

    return True


def validate_quest(quest: Any) -> list[str]:
    """
    Validate a quest for entry into the ledger.

    Returns:
        List of errors (empty if valid)
    """
    if not isinstance(quest, Quest):
        return [f"not a Quest: {type(quest).__name__}"]

    errors = []
    if not isinstance(quest.id, str) or not quest.id:
        errors.append("quest id must be a non-empty string")
    if not isinstance(quest.status, QuestStatus):
        errors.append(f"invalid status: {quest.status!r}")
    if not isinstance(quest.current_step, int) or not 0 <= quest.current_step <= len(quest.steps):
        errors.append(f"current step {quest.current_step!r} out of range for {len(quest.steps)} steps")
    if quest.turn_limit is not None and (not isinstance(quest.turn_limit, int) or quest.turn_limit <= 0):
        errors.append(f"turn limit must be a positive integer, got {quest.turn_limit!r}")
    if not isinstance(quest.turns_active, int) or quest.turns_active < 0:
        errors.append(f"turns active must be >= 0, got {quest.turns_active!r}")
    return errors


_QUEST_FIELDS = {f.name for f in fields(Quest)}
_PROTECTED_FIELDS = {'id', 'status'}


def _is_quest_id(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


class QuestLedger:
    """
    Holds every quest of a session in active, completed and failed sets.

    Rejected operations log a warning and return False. Check membership
    afterwards when it matters whether an operation took effect.
    """

    def __init__(self, event_bus: EventBus | None = None):
        self.logger = logging.getLogger(__name__)
        self.event_bus = event_bus

        self._active: dict[str, Quest] = {}
        self._completed: dict[str, Quest] = {}
        self._failed: dict[str, Quest] = {}

        # template id -> turn a quest of that template last resolved
        self._cooldowns: dict[str, int] = {}

    # Transitions

    def propose(self, quest: Quest) -> bool:
        """Add a new quest as active. The ledger keeps its own copy."""
        errors = validate_quest(quest)
        if errors:
            self.logger.warning(f"Rejected quest: {'; '.join(errors)}")
            return False

        if self.contains(quest.id):
            self.logger.warning(
                f"Rejected duplicate quest '{quest.id}' (already {self.status_of(quest.id).value})"
            )
            return False

        entry = copy.deepcopy(quest)
        entry.status = QuestStatus.ACTIVE
        self._active[entry.id] = entry

        self.logger.info(f"Quest proposed: {entry.id}")
        self._publish(QuestEvent.PROPOSED, quest=entry)
        return True

    def update(self, quest_id: str, patch: Mapping[str, Any]) -> bool:
        """
        Change fields of an active quest.

        `id` and `status` cannot be patched; `complete` and `fail` are the
        only status changes. Unknown fields are ignored. A patch that would
        leave the quest invalid is rejected whole.
        """
        if not _is_quest_id(quest_id):
            self.logger.warning(f"Invalid quest id: {quest_id!r}")
            return False
        quest = self._active.get(quest_id)
        if quest is None:
            self.logger.warning(f"Cannot update quest '{quest_id}': not active")
            return False

        if not isinstance(patch, Mapping):
            self.logger.warning(f"Rejected update of quest '{quest_id}': patch is not a mapping")
            return False

        changes: dict[str, Any] = {}
        for name, value in patch.items():
            if name in _PROTECTED_FIELDS:
                self.logger.warning(f"Quest '{quest_id}': field '{name}' cannot be updated")
            elif name not in _QUEST_FIELDS:
                self.logger.warning(f"Quest '{quest_id}': unknown field '{name}' ignored")
            else:
                changes[name] = value

        candidate = copy.copy(quest)
        for name, value in changes.items():
            setattr(candidate, name, value)
        errors = validate_quest(candidate)
        if errors:
            self.logger.warning(f"Rejected update of quest '{quest_id}': {'; '.join(errors)}")
            return False

        for name, value in changes.items():
            setattr(quest, name, value)

        self._publish(QuestEvent.UPDATED, quest=quest, fields=sorted(changes))
        return True

    def advance_step(self, quest_id: str) -> bool:
        """Mark the current step done and move to the next one."""
        if not _is_quest_id(quest_id):
            self.logger.warning(f"Invalid quest id: {quest_id!r}")
            return False
        quest = self._active.get(quest_id)
        if quest is None:
            self.logger.warning(f"Cannot advance quest '{quest_id}': not active")
            return False

        step = quest.get_current_step()
        if step is None:
            self.logger.warning(f"Quest '{quest_id}' has no remaining steps")
            return False

        step.completed = True
        quest.current_step += 1
        self._publish(QuestEvent.STEP_ADVANCED, quest=quest, step=quest.current_step)
        return True

    def complete(self, quest_id: str, turn: Optional[int] = None) -> bool:
        """Move an active quest to completed."""
        if not _is_quest_id(quest_id):
            self.logger.warning(f"Invalid quest id: {quest_id!r}")
            return False
        quest = self._active.pop(quest_id, None)
        if quest is None:
            self.logger.warning(f"Cannot complete quest '{quest_id}': not active")
            return False

        quest.status = QuestStatus.COMPLETED
        quest.completed_turn = turn
        self._completed[quest_id] = quest

        self.logger.info(f"Quest completed: {quest_id}")
        self._publish(QuestEvent.COMPLETED, quest=quest)
        return True

    def fail(self, quest_id: str, reason: Optional[str] = None, turn: Optional[int] = None) -> bool:
        """Move an active quest to failed."""
        if not _is_quest_id(quest_id):
            self.logger.warning(f"Invalid quest id: {quest_id!r}")
            return False
        quest = self._active.pop(quest_id, None)
        if quest is None:
            self.logger.warning(f"Cannot fail quest '{quest_id}': not active")
            return False

        quest.status = QuestStatus.FAILED
        quest.completed_turn = turn
        quest.failure_reason = reason
        self._failed[quest_id] = quest

        self.logger.info(f"Quest failed: {quest_id}" + (f" ({reason})" if reason else ""))
        self._publish(QuestEvent.FAILED, quest=quest, reason=reason)
        return True

    def set_cooldown(self, template_id: str, turn: int) -> bool:
        """Record the turn a template last resolved. Last write wins."""
        if not isinstance(template_id, str) or not template_id:
            self.logger.warning(f"Invalid cooldown template id: {template_id!r}")
            return False
        if isinstance(turn, bool) or not isinstance(turn, int):
            self.logger.warning(f"Invalid cooldown turn for '{template_id}': {turn!r}")
            return False

        self._cooldowns[template_id] = turn
        self._publish(QuestEvent.COOLDOWN_SET, template_id=template_id, turn=turn)
        return True

    def tick(self) -> None:
        """Count one more turn on every active quest."""
        for quest in self._active.values():
            quest.turns_active += 1

    def fail_expired(self, current_turn: int) -> list[str]:
        """
        Fail every active quest past its turn limit.

        Returns:
            Ids of the quests that failed
        """
        if not _is_turn(current_turn):
            self.logger.warning(f"Invalid turn for expiry check: {current_turn!r}")
            return []
        expired = [qid for qid, q in self._active.items() if is_expired(q, current_turn)]
        for quest_id in expired:
            self.fail(quest_id, reason=EXPIRED_REASON, turn=current_turn)
        return expired

    # Queries

    def get(self, quest_id: str) -> Optional[Quest]:
        """Get a quest from any set."""
        if not _is_quest_id(quest_id):
            return None
        return (
            self._active.get(quest_id)
            or self._completed.get(quest_id)
            or self._failed.get(quest_id)
        )

    def active(self) -> list[Quest]:
        return list(self._active.values())

    def completed(self) -> list[str]:
        """Completed quest ids, in resolution order."""
        return list(self._completed)

    def failed(self) -> list[str]:
        """Failed quest ids, in resolution order."""
        return list(self._failed)

    def contains(self, quest_id: str) -> bool:
        if not _is_quest_id(quest_id):
            return False
        return quest_id in self._active or quest_id in self._completed or quest_id in self._failed

    def status_of(self, quest_id: str) -> Optional[QuestStatus]:
        quest = self.get(quest_id)
        return quest.status if quest else None

    def cooldown_for(self, template_id: str) -> Optional[int]:
        if not isinstance(template_id, str):
            return None
        return self._cooldowns.get(template_id)

    def cooldowns(self) -> dict[str, int]:
        return dict(self._cooldowns)

    def turns_since_resolved(self, template_id: str, current_turn: int) -> Optional[int]:
        """Turns since a template last resolved, None if it never did."""
        last = self.cooldown_for(template_id)
        if last is None or not _is_turn(current_turn):
            return None
        return current_turn - last

    # Save data

    def get_save_data(self) -> dict:
        """Get save data for the ledger."""
        return {
            'active': [q.to_dict() for q in self._active.values()],
            'completed': [q.to_dict() for q in self._completed.values()],
            'failed': [q.to_dict() for q in self._failed.values()],
            'cooldowns': dict(self._cooldowns),
        }

    def load_save_data(self, data: Mapping[str, Any]) -> None:
        """Replace the ledger contents with saved state. Bad entries are skipped."""
        self._active.clear()
        self._completed.clear()
        self._failed.clear()
        self._cooldowns.clear()

        if not isinstance(data, Mapping):
            self.logger.warning(f"Ignoring malformed quest save data: {data!r}")
            return

        targets = (
            ('active', QuestStatus.ACTIVE, self._active),
            ('completed', QuestStatus.COMPLETED, self._completed),
            ('failed', QuestStatus.FAILED, self._failed),
        )
        for key, status, target in targets:
            entries = data.get(key)
            if entries is None:
                continue
            if not isinstance(entries, (list, tuple)):
                self.logger.warning(f"Skipping saved '{key}' quests: not a list")
                continue
            for entry in entries:
                try:
                    quest = Quest.from_dict(entry)
                except (KeyError, TypeError, ValueError, AttributeError) as e:
                    self.logger.warning(f"Skipping malformed saved quest in '{key}': {e}")
                    continue
                errors = validate_quest(quest)
                if errors or self.contains(quest.id):
                    self.logger.warning(f"Skipping saved quest '{quest.id}': {'; '.join(errors) or 'duplicate id'}")
                    continue
                quest.status = status
                target[quest.id] = quest

        cooldowns = data.get('cooldowns') or {}
        if not isinstance(cooldowns, Mapping):
            self.logger.warning("Skipping saved cooldowns: not a mapping")
            cooldowns = {}
        for template_id, turn in cooldowns.items():
            if _is_turn(turn):
                self._cooldowns[template_id] = turn
            else:
                self.logger.warning(f"Skipping saved cooldown '{template_id}': {turn!r}")

    def _publish(self, event_type: QuestEvent, **data: Any) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, **data)
