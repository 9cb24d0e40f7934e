"""
Error taxonomy for scene tool calls.

Every error carries a machine-readable ``code`` and optional ``details`` so
the dispatcher can turn it into a response envelope the calling agent can
always decode.
"""

from __future__ import annotations

from typing import Any, Optional


class SceneError(Exception):
    """Base class for failures reported back to the agent."""

    code = "SceneError"

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        err: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            err["details"] = self.details
        return err


class NotFound(SceneError):
    """A referenced element id is absent from the scene."""

    code = "NotFound"


class UnsupportedOperation(SceneError):
    """The operation does not apply to the target element's kind."""

    code = "UnsupportedType"


class DuplicateId(SceneError):
    """An element id is already taken."""

    code = "DuplicateId"


class UnknownOperation(SceneError):
    """No tool is registered under the requested name."""

    code = "UnknownOperation"


class TransportUnavailable(SceneError):
    """The host channel is not connected; persistence must be deferred."""

    code = "TransportUnavailable"
