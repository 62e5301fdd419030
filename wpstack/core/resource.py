"""
Resources: pieces of host state that wpstack converges.

Each resource answers three questions:
    check()          what the host looks like now
    desired_state()  what it should look like
    apply(plan)      how to get from one to the other

plan() compares the first two, so apply() only ever sees real work.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List

from wpstack.transport.base import NullTransport

if TYPE_CHECKING:
    from wpstack.transport import Transport


class Action(Enum):
    NONE = "none"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class Change:
    """One property going from its current to its desired value."""
    field: str
    from_value: Any
    to_value: Any

    def __str__(self):
        return f"{self.field}: {self.from_value} → {self.to_value}"


@dataclass
class Plan:
    """What apply() has to do for one resource, and why."""
    action: Action
    changes: List[Change] = field(default_factory=list)
    reason: str = ""

    def has_changes(self) -> bool:
        return self.action != Action.NONE and bool(self.changes)

    def __str__(self):
        if not self.has_changes():
            return "No changes"
        lines = [f"Action: {self.action.value} ({self.reason})"]
        lines.extend(f"  {change}" for change in self.changes)
        return "\n".join(lines)


def diff(actual: Dict[str, Any], desired: Dict[str, Any]) -> List[Change]:
    """Properties (other than "exists") whose actual value differs from the desired one."""
    return [
        Change(key, actual.get(key), value)
        for key, value in desired.items()
        if key != "exists" and actual.get(key) != value
    ]


@dataclass
class Platform:
    """The host's OS as reported by uname and /etc/os-release."""
    system: str
    distro: str
    version: str
    arch: str

    @classmethod
    def detect(cls, transport: "Transport") -> "Platform":
        system = transport.run_command(["uname", "-s"])[0].strip()
        arch = transport.run_command(["uname", "-m"])[0].strip()

        release: Dict[str, str] = {}
        if system == "Linux" and transport.file_exists("/etc/os-release"):
            for line in transport.read_file("/etc/os-release").decode().splitlines():
                key, sep, value = line.partition("=")
                if sep:
                    release[key] = value.strip().strip('"')

        return cls(
            system=system,
            distro=release.get("ID", "unknown"),
            version=release.get("VERSION_ID", ""),
            arch=arch,
        )


class Resource(ABC):
    """
    Base class for all resources.

    A resource talks to the host only through self._transport, which the
    executor sets when the resource is added to it.
    """

    def __init__(self, name: str, **options):
        self.name = name
        self.options = options
        self._desired_state: Dict[str, Any] = {}
        self._actual_state: Dict[str, Any] = {}
        self._transport: "Transport" = NullTransport()

    @property
    def id(self) -> str:
        """Unique key, e.g. "pkg:nginx" or "file:/etc/nginx/sites-available/blog"."""
        return f"{self.resource_type()}:{self.name}"

    @abstractmethod
    def resource_type(self) -> str:
        pass

    @abstractmethod
    def check(self, platform: Platform) -> Dict[str, Any]:
        """
        Inspect the host.

        Returns:
            Current properties, with "exists" telling whether the
            resource is there at all
        """

    @abstractmethod
    def desired_state(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    def apply(self, plan: Plan, platform: Platform) -> None:
        """
        Carry out a plan that has changes.

        Raises:
            WpstackError subclasses when the host refuses
        """

    def plan(self, platform: Platform) -> Plan:
        self._actual_state = self.check(platform)
        self._desired_state = self.desired_state()

        exists = self._actual_state.get("exists", False)
        wanted = self._desired_state.get("exists", True)

        if not exists and wanted:
            # Everything desired is new; a bare "exists" flip still counts
            changes = diff({}, self._desired_state) or [Change("exists", False, True)]
            return Plan(Action.CREATE, changes, "Resource does not exist")
        if exists and not wanted:
            return Plan(Action.DELETE, [Change("exists", True, False)], "Resource should not exist")
        if not exists:
            return Plan(Action.NONE, reason="Resource correctly absent")

        changes = diff(self._actual_state, self._desired_state)
        if changes:
            return Plan(Action.UPDATE, changes, "Properties differ from desired state")
        return Plan(Action.NONE, reason="No changes needed")

    def __repr__(self):
        return f"{self.__class__.__name__}(name={self.name!r})"

    def __str__(self):
        return self.id
