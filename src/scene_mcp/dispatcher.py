"""
Tool dispatcher: the single mutation path into a scene.

Every call, whether it comes from a remote agent or a local UI intent, goes
through :meth:`ToolDispatcher.dispatch`:

1. look up the operation by name (unknown name → ``UnknownOperation``),
2. validate the raw arguments (→ ``ValidationError`` with issues; the
   store is never reached),
3. run the handler against the scene store,
4. wrap the outcome in an envelope.

Envelopes are plain dicts, ``{"success": True, ...}`` on success and
``{"success": False, "error": {"code", "message", "details"?}}`` on
failure, so callers never have to handle exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from scene_mcp.connectors import connect
from scene_mcp.errors import DuplicateId, NotFound, SceneError, UnknownOperation
from scene_mcp.layout import grid_positions
from scene_mcp.scene import SceneStore
from scene_mcp.validation import IssueCollector, validate_args, validate_patch_for

logger = logging.getLogger("scene-mcp.dispatcher")

Envelope = dict[str, Any]


@dataclass
class Operation:
    """A registered tool: typed-args handler plus whether it mutates the scene."""
    name: str
    handler: Callable[[dict[str, Any]], dict[str, Any]]
    mutates: bool


def ok(**payload: Any) -> Envelope:
    return {"success": True, **payload}


def fail(error: SceneError) -> Envelope:
    return {"success": False, "error": error.to_dict()}


class ToolDispatcher:
    """Validates tool calls and runs them against one scene store.

    ``on_change`` is called after every successful mutating operation; the
    persistence layer hooks its debounced saver in here.
    """

    def __init__(
        self,
        store: Optional[SceneStore] = None,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        self.store = store if store is not None else SceneStore()
        self.on_change = on_change
        self._operations: dict[str, Operation] = {}
        self._register("get_elements", self._get_elements, mutates=False)
        self._register("set_scene", self._set_scene, mutates=True)
        self._register("add_elements", self._add_elements, mutates=True)
        self._register("update_elements", self._update_elements, mutates=True)
        self._register("remove_elements", self._remove_elements, mutates=True)
        self._register("search_elements", self._search_elements, mutates=False)
        self._register("connect_elements", self._connect_elements, mutates=True)
        self._register("set_label", self._set_label, mutates=True)
        self._register("layout_grid", self._layout_grid, mutates=True)

    def _register(self, name: str, handler: Callable[[dict[str, Any]], dict[str, Any]], *, mutates: bool) -> None:
        self._operations[name] = Operation(name, handler, mutates)

    @property
    def operations(self) -> list[str]:
        return list(self._operations)

    def dispatch(self, name: str, args: Optional[dict[str, Any]] = None) -> Envelope:
        """Run operation *name* with raw *args* and return its envelope."""
        op = self._operations.get(name)
        if op is None:
            return fail(UnknownOperation(
                f"Unknown operation '{name}'. Valid operations: {', '.join(self._operations)}.",
                {"operation": name},
            ))
        try:
            typed = validate_args(name, args)
            payload = op.handler(typed)
        except SceneError as exc:
            logger.debug("%s rejected: %s", name, exc.message)
            return fail(exc)
        except Exception as exc:
            logger.exception("Unexpected error in %s", name)
            return {
                "success": False,
                "error": {"code": "InternalError", "message": f"{type(exc).__name__}: {exc}"},
            }
        if op.mutates:
            self._notify()
        return ok(**payload)

    def _notify(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change()
        except Exception:
            logger.exception("Change listener failed")

    # ----- handlers -----

    def _get_elements(self, args: dict[str, Any]) -> dict[str, Any]:
        return {"elements": [e.summary() for e in self.store.get_all()]}

    def _set_scene(self, args: dict[str, Any]) -> dict[str, Any]:
        dropped = self.store.replace(args["elements"])
        return {"droppedRefs": [d.to_dict() for d in dropped]}

    def _add_elements(self, args: dict[str, Any]) -> dict[str, Any]:
        result = self.store.add(args["elements"])
        if result.duplicates and not result.created:
            raise DuplicateId(
                "Every element id is already in the scene; use update_elements to change them.",
                {"duplicates": result.duplicates},
            )
        return {
            "created": result.created,
            "duplicates": result.duplicates,
            "droppedRefs": [d.to_dict() for d in result.dropped_refs],
        }

    def _update_elements(self, args: dict[str, Any]) -> dict[str, Any]:
        patches = args["updates"]
        issues = IssueCollector()
        for i, patch in enumerate(patches):
            el = self.store.get(patch.id)
            if el is not None:
                validate_patch_for(el, patch.props, f"updates[{i}].props", issues)
        issues.raise_if_any("Some updates do not fit the elements they target.")
        result = self.store.update(patches)
        if not result.updated:
            raise NotFound("None of the ids were found.", {"notFound": result.not_found})
        return {"updated": len(result.updated), "notFound": result.not_found}

    def _remove_elements(self, args: dict[str, Any]) -> dict[str, Any]:
        result = self.store.remove(args["ids"])
        payload: dict[str, Any] = {"removed": result.removed, "notFound": result.not_found}
        if result.dropped_refs:
            payload["droppedRefs"] = [d.to_dict() for d in result.dropped_refs]
        return payload

    def _search_elements(self, args: dict[str, Any]) -> dict[str, Any]:
        return {"elements": [e.summary() for e in self.store.find(args["query"])]}

    def _connect_elements(self, args: dict[str, Any]) -> dict[str, Any]:
        result = connect(self.store, args["connections"])
        return {
            "created": result.created,
            "failed": [f.to_dict() for f in result.failed],
        }

    def _set_label(self, args: dict[str, Any]) -> dict[str, Any]:
        self.store.set_label(args["id"], args["label"])
        return {}

    def _layout_grid(self, args: dict[str, Any]) -> dict[str, Any]:
        grid = args["grid"]
        found = [eid for eid in grid.ids if eid in self.store]
        not_found = [eid for eid in grid.ids if eid not in self.store]
        if not found:
            raise NotFound("None of the ids were found.", {"ids": grid.ids})
        positions = grid_positions(found, grid.origin, grid.cols, grid.gap_x, grid.gap_y)
        self.store.move(positions)
        return {"laidOut": list(positions), "notFound": not_found}
