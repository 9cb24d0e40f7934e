"""
Scene MCP Server — let an agent query and edit a vector scene via Model Context Protocol.

Exposes 9 tools over one authoritative in-memory scene:

  get_elements      — summarize every element
  set_scene         — replace the whole scene
  add_elements      — append new elements (duplicate ids are rejected)
  update_elements   — shallow-merge property patches by id
  remove_elements   — delete elements by id
  search_elements   — filter by type, text and bounding box
  connect_elements  — create arrows bound to two shapes' outlines
  set_label         — attach a label to a shape or connector
  layout_grid       — arrange elements in a row-major grid

Every tool returns a JSON envelope: ``{"success": true, ...}`` or
``{"success": false, "error": {"code", "message", "details"}}``.
Changes are saved to the host state with a short debounce.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from mcp.server.fastmcp import FastMCP

from scene_mcp.config import LOG_LEVELS, TRANSPORTS, ServerConfig
from scene_mcp.dispatcher import ToolDispatcher
from scene_mcp.errors import TransportUnavailable
from scene_mcp.models import (
    ARROWHEAD_NONE,
    ELEMENT_TYPES,
    Arrowhead,
    FillStyle,
    StrokeStyle,
    TextAlign,
    VerticalAlign,
)
from scene_mcp.persistence import (
    HostStateStore,
    JsonFileStateStore,
    MemoryStateStore,
    SnapshotSaver,
)
from scene_mcp.scene import SceneStore

# ---------------------------------------------------------------------------
# Logging: keep routine FastMCP INFO messages off stderr.
# ---------------------------------------------------------------------------
logging.getLogger("mcp.server").setLevel(logging.WARNING)
logger = logging.getLogger("scene-mcp")

INSTRUCTIONS = (
    "MCP server for editing a vector scene (shapes, arrows, text, frames).\n\n"
    "- Every element needs a stable, caller-chosen 'id'; ids are never regenerated.\n"
    "- Coordinates: origin top-left, x grows right, y grows down, angles in radians clockwise.\n"
    "- Call get_elements first to see what is already on the canvas.\n"
    "- add_elements only creates; change existing elements with update_elements.\n"
    "- Prefer connect_elements over hand-placed arrows: it anchors arrows on shape outlines.\n"
    "- Every tool returns JSON with a 'success' flag; on failure read error.code and\n"
    "  error.details.issues for field-level problems.\n\n"
    "Read scene://guide/agent for recipes and scene://schema/elements for element fields."
)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class SceneSession:
    """One scene store with its dispatcher and debounced persistence."""

    def __init__(self, config: Optional[ServerConfig] = None, state: Optional[HostStateStore] = None) -> None:
        self.config = config or ServerConfig()
        if state is None:
            if self.config.state_file is not None:
                state = JsonFileStateStore(self.config.state_file)
            else:
                state = MemoryStateStore()
        self.state = state
        self.store = SceneStore()
        self.saver = SnapshotSaver(self.state, self.store.snapshot, self.config.save_delay)
        self.dispatcher = ToolDispatcher(self.store, on_change=self.saver.schedule)
        self.loaded = False

    async def start(self) -> None:
        """Load the persisted scene once per session."""
        if self.loaded:
            return
        try:
            document = await self.state.load()
        except TransportUnavailable as exc:
            logger.warning("Host state unavailable, starting with an empty scene: %s", exc.message)
            document = None
        count = self.store.load_snapshot(document)
        self.loaded = True
        logger.info("Scene loaded with %d element(s)", count)

    async def stop(self) -> None:
        """Flush any pending snapshot."""
        if not await self.saver.flush():
            logger.warning("Scene snapshot still pending at shutdown")

    def call(self, name: str, args: dict[str, Any]) -> str:
        """Dispatch a tool call and encode its envelope as JSON text."""
        envelope = self.dispatcher.dispatch(name, {k: v for k, v in args.items() if v is not None})
        return json.dumps(envelope, indent=2)


# ---------------------------------------------------------------------------
# MCP Server
# ---------------------------------------------------------------------------

def create_server(
    config: Optional[ServerConfig] = None,
    session: Optional[SceneSession] = None,
) -> FastMCP:
    """Build a FastMCP app whose tools all operate on *session*'s scene."""
    config = config or ServerConfig()
    session = session or SceneSession(config)

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[SceneSession]:
        await session.start()
        try:
            yield session
        finally:
            await session.stop()

    mcp = FastMCP(
        "scene-mcp",
        instructions=INSTRUCTIONS,
        lifespan=lifespan,
        host=config.host,
        port=config.port,
    )

    # ===================================================================
    # RESOURCES
    # ===================================================================

    @mcp.resource("scene://snapshot")
    def scene_snapshot() -> str:
        """The current scene document, as it is persisted."""
        return json.dumps(session.store.snapshot(), indent=2)

    @mcp.resource("scene://schema/elements")
    def element_schema() -> str:
        """Element kinds, their fields and the accepted enumeration values."""
        return json.dumps(ELEMENT_SCHEMA, indent=2)

    @mcp.resource("scene://guide/agent")
    def agent_guide() -> str:
        """Workflow guide for agents editing the scene."""
        return AGENT_GUIDE

    # ===================================================================
    # TOOLS
    # ===================================================================

    @mcp.tool()
    def get_elements() -> str:
        """List every element in z-order (id, type, geometry, text, colors).

        The result can be passed back to set_scene unchanged.
        """
        return session.call("get_elements", {})

    @mcp.tool()
    def set_scene(elements: list[dict[str, Any]] | None = None) -> str:
        """Replace the whole scene. Omit elements (or pass []) to clear it.

        Args:
            elements: Full element list; ids must be unique. References to ids
                      that are not in the list are dropped and reported in droppedRefs.
        """
        return session.call("set_scene", {"elements": elements})

    @mcp.tool()
    def add_elements(elements: list[dict[str, Any]]) -> str:
        """Append new elements to the scene.

        Ids already in the scene are not replaced: they are listed in
        'duplicates'. Labelled rectangles/ellipses/diamonds grow to fit their label.

        Args:
            elements: Elements, each with 'id', 'type' and (except frames) 'x', 'y'.
        """
        return session.call("add_elements", {"elements": elements})

    @mcp.tool()
    def update_elements(updates: list[dict[str, Any]]) -> str:
        """Shallow-merge property patches onto existing elements.

        Args:
            updates: [{"id": "...", "props": {"x": 10, "strokeColor": "#1e1e1e", ...}}].
                     Allowed props: x, y, width, height, angle, text, strokeColor,
                     backgroundColor, strokeStyle, fillStyle, strokeWidth, opacity,
                     roughness, fontSize, fontFamily, textAlign, verticalAlign,
                     startArrowhead, endArrowhead.
        """
        return session.call("update_elements", {"updates": updates})

    @mcp.tool()
    def remove_elements(ids: list[Any]) -> str:
        """Remove elements by id. Removing a frame keeps its children.

        Args:
            ids: Element ids to remove.
        """
        return session.call("remove_elements", {"ids": ids})

    @mcp.tool()
    def search_elements(
        type: str | None = None,
        textIncludes: str | None = None,
        within: dict[str, Any] | None = None,
    ) -> str:
        """Find elements matching every given filter.

        Args:
            type: Element kind, e.g. "rectangle".
            textIncludes: Case-insensitive substring of the element text or label.
            within: Box {x, y, width, height}; elements whose bounds touch it match.
        """
        return session.call(
            "search_elements",
            {"type": type, "textIncludes": textIncludes, "within": within},
        )

    @mcp.tool()
    def connect_elements(connections: list[dict[str, Any]]) -> str:
        """Create arrows anchored on the outlines of two existing elements.

        Args:
            connections: [{"fromId", "toId", "id"?, "label"?: {"text": ...},
                          "style"?: {"strokeColor", "endArrowhead", ...}}].
                          The arrow id defaults to "fromId->toId".
        """
        return session.call("connect_elements", {"connections": connections})

    @mcp.tool()
    def set_label(id: str, label: dict[str, Any]) -> str:
        """Attach or replace the label of a rectangle, ellipse, diamond, line or arrow.

        Args:
            id: Target element id.
            label: {"text": "...", "fontSize"?, "textAlign"?, "verticalAlign"?, ...}.
        """
        return session.call("set_label", {"id": id, "label": label})

    @mcp.tool()
    def layout_grid(
        ids: list[Any],
        origin: dict[str, Any],
        cols: int,
        gapX: float | None = None,
        gapY: float | None = None,
    ) -> str:
        """Arrange elements row by row in a grid.

        Args:
            ids: Elements in placement order.
            origin: Top-left {x, y} of the first cell.
            cols: Number of columns (>= 1).
            gapX: Horizontal distance between columns (default 200).
            gapY: Vertical distance between rows (default 120).
        """
        return session.call(
            "layout_grid",
            {"ids": ids, "origin": origin, "cols": cols, "gapX": gapX, "gapY": gapY},
        )

    return mcp


# ===================================================================
# Static resource content
# ===================================================================

ELEMENT_SCHEMA: dict[str, Any] = {
    "types": ELEMENT_TYPES,
    "common": ["id", "type", "x", "y", "width", "height", "angle",
               "strokeColor", "backgroundColor", "strokeStyle", "fillStyle",
               "strokeWidth", "opacity", "roughness"],
    "kinds": {
        "rectangle": ["label"],
        "ellipse": ["label"],
        "diamond": ["label"],
        "line": ["label", "start", "end"],
        "arrow": ["label", "start", "end", "startArrowhead", "endArrowhead"],
        "text": ["text (required)", "fontSize", "fontFamily", "textAlign", "verticalAlign", "containerId"],
        "image": ["fileId (required)"],
        "frame": ["children (required)", "name"],
        "magicframe": ["children (required)", "name"],
    },
    "label": ["text (required)", "fontSize", "fontFamily", "textAlign", "verticalAlign",
              "x", "y", "strokeColor"],
    "enums": {
        "strokeStyle": [s.value for s in StrokeStyle],
        "fillStyle": [s.value for s in FillStyle],
        "textAlign": [a.value for a in TextAlign],
        "verticalAlign": [a.value for a in VerticalAlign],
        "arrowhead": [a.value for a in Arrowhead] + [ARROWHEAD_NONE],
    },
    "ranges": {"opacity": [0, 100], "roughness": [0, 4], "strokeWidth": [0, None]},
}

AGENT_GUIDE = """# Scene MCP — Agent Guide

## Conventions
- Origin is top-left; x grows right, y grows down; angles are radians, clockwise.
- Ids are yours: pick short stable ids ("api", "db", "api->db") and reuse them.
- Lines and arrows store the end point as width/height relative to x/y.

## Build a diagram
1. get_elements — see what exists.
2. add_elements — shapes with labels:
   {"id": "api", "type": "rectangle", "x": 0, "y": 0, "label": {"text": "API"}}
   Labelled shapes grow to fit their text (at least 120x48).
3. connect_elements — [{"fromId": "api", "toId": "db"}]; arrows start and end
   on the shape outlines and stay bound to both ids.
4. layout_grid — {"ids": [...], "origin": {"x": 0, "y": 0}, "cols": 3}.

## Edit
- update_elements for geometry and style; set_label for labels.
- remove_elements drops references to removed ids from other elements.
- set_scene replaces everything; set_scene with [] clears the canvas.

## Errors
- ValidationError: error.details.issues lists {path, code, message}; nothing changed.
- NotFound / UnsupportedType / DuplicateId: read error.message.
- Batch tools report partial failures in notFound / duplicates / failed
  while applying the valid items.
"""


# ===================================================================
# Entry point
# ===================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scene-mcp", description="Run the scene MCP server")
    parser.add_argument("--state-file", help="JSON file holding the persisted scene.")
    parser.add_argument("--save-delay-ms", type=int, help="Debounce window for snapshot writes.")
    parser.add_argument("--transport", choices=TRANSPORTS, help="MCP transport (default stdio).")
    parser.add_argument("--host", help="Host/IP for HTTP transports.")
    parser.add_argument("--port", type=int, help="Port for HTTP transports.")
    parser.add_argument("--log-level", choices=LOG_LEVELS, type=str.upper, help="Logging level.")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """Run the MCP server."""
    args = build_parser().parse_args(argv)
    config = ServerConfig.from_env().with_overrides(
        state_file=args.state_file,
        save_delay_ms=args.save_delay_ms,
        transport=args.transport,
        host=args.host,
        port=args.port,
        log_level=args.log_level,
    )
    # stdout carries the stdio transport
    logging.basicConfig(
        stream=sys.stderr,
        level=config.log_level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    mcp = create_server(config)
    mcp.run(transport=config.transport)


if __name__ == "__main__":
    main()
