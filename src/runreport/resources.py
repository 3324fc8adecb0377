"""Read-only views of the resources and node a convergence run acts on."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol


@dataclass(frozen=True)
class ResourceIdentity:
    """Immutable identity of a declared resource."""

    resource_type: str
    name: str
    identity: str
    cookbook_name: str | None = None
    cookbook_version: str | None = None

    def __str__(self) -> str:
        return f"{self.resource_type}[{self.name}]"


class ConvergedResource(Protocol):
    """Minimal surface the reporter needs from an engine resource."""

    resource_type: str
    name: str
    identity: str
    cookbook_name: str | None
    cookbook_version: str | None
    elapsed_time: float

    def state(self) -> Mapping[str, Any]:
        ...

    def resource_identity(self) -> ResourceIdentity:
        ...


@dataclass
class DeclaredResource:
    """Plain resource record implementing :class:`ConvergedResource`.

    Engines with their own resource classes wrap them in this adapter;
    ``elapsed_time`` is updated by the engine once the action has run.
    """

    resource_type: str
    name: str
    identity: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)
    cookbook_name: str | None = None
    cookbook_version: str | None = None
    elapsed_time: float = 0.0

    def __post_init__(self) -> None:
        if self.identity is None:
            self.identity = self.name

    def state(self) -> Mapping[str, Any]:
        return dict(self.attributes)

    def resource_identity(self) -> ResourceIdentity:
        return ResourceIdentity(
            resource_type=self.resource_type,
            name=self.name,
            identity=str(self.identity),
            cookbook_name=self.cookbook_name,
            cookbook_version=self.cookbook_version,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "DeclaredResource":
        """Build a resource from its recorded form (``type``/``name``/...)."""
        return cls(
            resource_type=str(data["type"]),
            name=str(data["name"]),
            identity=data.get("id"),
            attributes=dict(data.get("state") or {}),
            cookbook_name=data.get("cookbook_name"),
            cookbook_version=data.get("cookbook_version"),
            elapsed_time=float(data.get("elapsed_time", 0.0)),
        )


@dataclass
class Node:
    """The target system a run converges."""

    name: str
    run_list: list[str] = field(default_factory=list)

    def run_list_json(self) -> str:
        return json.dumps(self.run_list, separators=(",", ":"))
