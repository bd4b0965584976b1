"""Behaviour-tree tasks that drive enemy pawns through the agent interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Hashable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from .settings import log

if TYPE_CHECKING:
    from .game import GameMode

Position = tuple[float, float, float]
Navigator = Callable[[Position, float], Optional[Position]]


class NodeResult(Enum):
    """Outcome of running a behaviour-tree node."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    ABORTED = "aborted"
    IN_PROGRESS = "in progress"


class AIAgent(ABC):
    """What a pawn must offer so that behaviour-tree tasks can command it."""

    @abstractmethod
    def attack(self) -> None:
        """Start attacking."""

    @abstractmethod
    def reload(self) -> None:
        """Reload the weapon."""

    @abstractmethod
    def get_flank(self) -> None:
        """Roll for, or move to, a flanking position."""

    @abstractmethod
    def reset_flank(self) -> None:
        """Forget any flanking decision."""

    @abstractmethod
    def walk(self) -> None:
        """Switch to walking speed."""

    @abstractmethod
    def run(self) -> None:
        """Switch to running speed."""

    @abstractmethod
    def heal_target(self) -> None:
        """Heal the current target."""


class Blackboard:
    """Named values shared between the tasks of one behaviour tree."""

    def __init__(self) -> None:
        self._values: dict[Hashable, Any] = {}

    def __getitem__(self, key: Hashable) -> Any:
        return self._values[key]

    def __setitem__(self, key: Hashable, value: Any) -> None:
        self._values[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)


@dataclass
class TaskOwner:
    """The controller side of a behaviour tree: its pawn, blackboard and world."""

    pawn: Any = None
    blackboard: Blackboard = field(default_factory=Blackboard)
    navigation: Optional[Navigator] = None
    game_mode: Optional["GameMode"] = None
    observers: list[tuple["Task", str]] = field(default_factory=list)

    def register_message_observer(self, task: "Task", message: str) -> None:
        """Have ``task`` wait for ``message`` before it finishes."""
        self.observers.append((task, message))


class Task:
    """A behaviour-tree task that commands the owner's pawn as an agent."""

    def _agent(self, owner: TaskOwner) -> Optional[AIAgent]:
        pawn = owner.pawn
        if isinstance(pawn, AIAgent):
            return pawn
        return None

    def _command(
        self, owner: TaskOwner, order: Callable[[AIAgent], None]
    ) -> NodeResult:
        agent = self._agent(owner)
        if agent is None:
            return NodeResult.FAILED
        order(agent)
        return NodeResult.SUCCEEDED

    def execute(self, owner: TaskOwner) -> NodeResult:
        """Succeed when the owner has a pawn that acts as an agent."""
        return self._command(owner, lambda agent: None)


@dataclass
class Attack(Task):
    """Start an attack and wait for the ``end`` message."""

    end: str = ""
    bullets: int = 0

    def execute(self, owner: TaskOwner) -> NodeResult:
        agent = self._agent(owner)
        if agent is None:
            return NodeResult.FAILED
        agent.attack()
        owner.register_message_observer(self, self.end)
        return NodeResult.IN_PROGRESS


@dataclass
class Reload(Task):
    """Reload and listen for the ``ending_message``."""

    ending_message: str = ""

    def execute(self, owner: TaskOwner) -> NodeResult:
        agent = self._agent(owner)
        if agent is None:
            return NodeResult.FAILED
        agent.reload()
        owner.register_message_observer(self, self.ending_message)
        return NodeResult.SUCCEEDED


class GetFlankCheck(Task):
    """Ask the agent to look for a flank."""

    def execute(self, owner: TaskOwner) -> NodeResult:
        return self._command(owner, lambda agent: agent.get_flank())


class ResetFlankChance(Task):
    """Ask the agent to drop its flanking decision."""

    def execute(self, owner: TaskOwner) -> NodeResult:
        return self._command(owner, lambda agent: agent.reset_flank())


class Run(Task):
    """Make the agent run."""

    def execute(self, owner: TaskOwner) -> NodeResult:
        return self._command(owner, lambda agent: agent.run())


class Walk(Task):
    """Make the agent walk."""

    def execute(self, owner: TaskOwner) -> NodeResult:
        return self._command(owner, lambda agent: agent.walk())


class HealMeDoc(Task):
    """Make the agent heal its target."""

    def execute(self, owner: TaskOwner) -> NodeResult:
        return self._command(owner, lambda agent: agent.heal_target())


@dataclass
class FindLocation(Task):
    """Store a random navigable point near the pawn under ``location_name``."""

    radius: float = 0.0
    location_name: str = ""

    def execute(self, owner: TaskOwner) -> NodeResult:
        pawn = owner.pawn
        if pawn is None:
            return NodeResult.FAILED
        point = None
        if owner.navigation is not None:
            point = owner.navigation(pawn.location, self.radius)
        if point is None:
            log.error(
                "No location was found in the world or no navigation mesh detected"
            )
            return NodeResult.FAILED
        owner.blackboard[self.location_name] = point
        return NodeResult.SUCCEEDED


class FocusOnPlayer(Task):
    """Succeed when the pawn has an animation instance to focus with."""

    def execute(self, owner: TaskOwner) -> NodeResult:
        pawn = owner.pawn
        if pawn is None:
            return NodeResult.FAILED
        if getattr(pawn, "animation", None) is not None:
            return NodeResult.SUCCEEDED
        log.error("There is no animation to grab")
        return NodeResult.FAILED


@dataclass
class NotifyEnemies(Task):
    """Tell the game mode that the player under ``player_key`` was spotted."""

    player_key: str = ""

    def execute(self, owner: TaskOwner) -> NodeResult:
        game_mode = owner.game_mode
        blackboard = owner.blackboard
        player = blackboard[self.player_key] if self.player_key in blackboard else None
        if game_mode is None or player is None:
            return NodeResult.FAILED
        game_mode.on_player_spotted.broadcast(player)
        return NodeResult.SUCCEEDED


class Strafing(Task):
    """Strafing task; it succeeds straight away."""

    def execute(self, owner: TaskOwner) -> NodeResult:
        return NodeResult.SUCCEEDED


class TestFire:
    """Service node that takes no action when it becomes relevant."""

    __test__ = False

    def on_become_relevant(self, owner: TaskOwner) -> None:
        """Leave the owner untouched."""
        return None