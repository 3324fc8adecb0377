"""
Wire schema for the run history service.

Field names and types are a contract with the service: ``duration`` and
``total_res_count`` are strings, ``before`` and ``exception`` are left out
entirely when absent.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class BeginRunRequest(BaseModel):
    action: Literal["begin"] = "begin"


class BeginRunResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    uri: str


class ResourceEntry(BaseModel):
    """One changed (or failed) resource."""

    type: str
    name: str
    id: str
    after: dict[str, Any]
    before: dict[str, Any] | None = None
    duration: str
    delta: str = ""
    result: str
    cookbook_name: str | None = None
    cookbook_version: str | None = None


class RunException(BaseModel):
    """Run-level failure details."""

    class_: str = Field(alias="class")
    message: str
    backtrace: list[str] = Field(default_factory=list)
    description: str

    model_config = ConfigDict(populate_by_name=True)


class RunReport(BaseModel):
    resources: list[ResourceEntry] = Field(default_factory=list)
    status: Literal["success", "failed"] = "success"
    run_list: str
    total_res_count: str
    exception: RunException | None = None
    data: dict[str, Any] = Field(default_factory=dict)
    action: Literal["end"] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Render the JSON body, omitting absent optional fields."""
        payload = self.model_dump(by_alias=True, exclude={"resources", "exception", "action"})
        payload["resources"] = [
            entry.model_dump(exclude={"before"} if entry.before is None else None)
            for entry in self.resources
        ]
        if self.exception is not None:
            payload["exception"] = self.exception.model_dump(by_alias=True)
        if self.action is not None:
            payload["action"] = self.action
        return payload
