"""JSON-lines protocol messages for front-end communication."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Request:
    """Incoming request from the front end."""
    id: int
    method: str
    params: dict = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> Request:
        return cls(
            id=data.get("id", 0),
            method=data["method"],
            params=data.get("params") or {},
        )

    @classmethod
    def from_line(cls, line: str) -> Request:
        """Parse one protocol line; raises ValueError on malformed input."""
        data = json.loads(line)
        if not isinstance(data, dict) or "method" not in data:
            raise ValueError("Request must be an object with a method")
        return cls.from_dict(data)

    def to_dict(self) -> dict:
        return {"id": self.id, "method": self.method, "params": self.params}


@dataclass
class Response:
    """Outgoing response to the front end."""
    id: int
    result: Optional[dict] = None
    error: Optional[str] = None

    @classmethod
    def failure(cls, request_id: int, exc: Exception) -> Response:
        return cls(id=request_id, error=f"{type(exc).__name__}: {exc}")

    def to_json_line(self) -> str:
        d = {"id": self.id}
        if self.error is not None:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return json.dumps(d) + "\n"


@dataclass
class Notification:
    """Server-initiated message (no id, no response expected)."""
    method: str
    params: dict = field(default_factory=dict)

    def to_json_line(self) -> str:
        return json.dumps({"method": self.method, "params": self.params}) + "\n"
