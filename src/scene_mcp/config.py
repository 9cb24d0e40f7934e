"""
Server configuration from environment variables, overridable by CLI flags.

Environment:
  SCENE_MCP_STATE_FILE     JSON file holding host state (default: in memory)
  SCENE_MCP_SAVE_DELAY_MS  debounce window for snapshot writes (default 300)
  SCENE_MCP_TRANSPORT      stdio | sse | streamable-http (default stdio)
  SCENE_MCP_HOST           bind address for HTTP transports (default 127.0.0.1)
  SCENE_MCP_PORT           port for HTTP transports (default 8000)
  SCENE_MCP_LOG_LEVEL      logging level name (default WARNING)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from scene_mcp.validation import ValidationError, validate_enum, validate_int

TRANSPORTS = ["stdio", "sse", "streamable-http"]
LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@dataclass(frozen=True)
class ServerConfig:
    state_file: Optional[Path] = None
    save_delay_ms: int = 300
    transport: str = "stdio"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "WARNING"

    @property
    def save_delay(self) -> float:
        """Debounce window in seconds."""
        return self.save_delay_ms / 1000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'ServerConfig':
        """Read configuration from *environ* (default ``os.environ``).

        Raises:
            ValidationError: a variable holds an unusable value.
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        if env.get("SCENE_MCP_STATE_FILE"):
            values["state_file"] = Path(env["SCENE_MCP_STATE_FILE"]).expanduser()
        if env.get("SCENE_MCP_SAVE_DELAY_MS"):
            values["save_delay_ms"] = _parse_int(env["SCENE_MCP_SAVE_DELAY_MS"], "SCENE_MCP_SAVE_DELAY_MS")
        if env.get("SCENE_MCP_TRANSPORT"):
            values["transport"] = env["SCENE_MCP_TRANSPORT"]
        if env.get("SCENE_MCP_HOST"):
            values["host"] = env["SCENE_MCP_HOST"]
        if env.get("SCENE_MCP_PORT"):
            values["port"] = _parse_int(env["SCENE_MCP_PORT"], "SCENE_MCP_PORT")
        if env.get("SCENE_MCP_LOG_LEVEL"):
            values["log_level"] = env["SCENE_MCP_LOG_LEVEL"].upper()
        return cls(**values).validated()

    def with_overrides(self, **overrides: Any) -> 'ServerConfig':
        """Return a copy with every non-None override applied."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "state_file" in changes:
            changes["state_file"] = Path(changes["state_file"]).expanduser()
        if "log_level" in changes:
            changes["log_level"] = str(changes["log_level"]).upper()
        return replace(self, **changes).validated()

    def validated(self) -> 'ServerConfig':
        validate_enum(self.transport, "transport", TRANSPORTS)
        validate_enum(self.log_level, "log_level", LOG_LEVELS)
        validate_int(self.save_delay_ms, "save_delay_ms", min_val=0)
        validate_int(self.port, "port", min_val=1, max_val=65535)
        return self


def _parse_int(raw: str, name: str) -> int:
    try:
        return int(raw.strip())
    except ValueError:
        raise ValidationError(f"'{name}' must be an integer, got '{raw}'.", path=name)
