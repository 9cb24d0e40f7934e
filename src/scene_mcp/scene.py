"""
Authoritative in-memory scene store.

A scene is an ordered list of elements; list order is z-order (later is
drawn on top) and ids are unique.  Every mutation keeps references
(connector bindings, text containers and frame membership) pointing at
existing elements: dangling references are dropped and reported, never
followed.

The store is only reached with validated input.  "Not found" and
"duplicate" are reported outcomes, not exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from scene_mcp.errors import NotFound, UnsupportedOperation
from scene_mcp.layout import autosize_container, fit_frame_to_children
from scene_mcp.models import Element, ElementPatch, Label, Point, SceneQuery
from scene_mcp.validation import IssueCollector, validate_element_dict

logger = logging.getLogger("scene-mcp.store")


# ---------------------------------------------------------------------------
# Outcomes
# ---------------------------------------------------------------------------

@dataclass
class DroppedRef:
    """A reference removed because its target id is not in the scene."""
    element_id: str
    field: str
    ref: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.element_id, "field": self.field, "ref": self.ref}


@dataclass
class AddResult:
    created: list[str] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)
    dropped_refs: list[DroppedRef] = field(default_factory=list)


@dataclass
class UpdateResult:
    updated: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)


@dataclass
class RemoveResult:
    removed: list[str] = field(default_factory=list)
    not_found: list[str] = field(default_factory=list)
    dropped_refs: list[DroppedRef] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class SceneStore:
    """Ordered, id-unique element collection owned by one server session."""

    def __init__(self, elements: Optional[Iterable[Element]] = None) -> None:
        self._elements: list[Element] = []
        self._index: dict[str, Element] = {}
        if elements is not None:
            self.replace(list(elements))

    def __len__(self) -> int:
        return len(self._elements)

    def __contains__(self, element_id: object) -> bool:
        return element_id in self._index

    # ----- reads -----

    def get_all(self) -> list[Element]:
        """Return the elements in z-order (a new list; elements are live)."""
        return list(self._elements)

    def get(self, element_id: str) -> Optional[Element]:
        return self._index.get(element_id)

    def ids(self) -> list[str]:
        return [e.id for e in self._elements]

    def find(self, query: SceneQuery) -> list[Element]:
        """Return elements matching every criterion set on *query*."""
        return [e for e in self._elements if query.matches(e)]

    # ----- writes -----

    def replace(self, elements: list[Element]) -> list[DroppedRef]:
        """Swap in a whole new collection.

        Raises:
            ValidationError: an element has no id or two elements share one.
        """
        issues = IssueCollector()
        seen: set[str] = set()
        for i, el in enumerate(elements):
            if not el.id:
                issues.add(f"elements[{i}].id", "required", f"Element at index {i} has no id.")
            elif el.id in seen:
                issues.add(f"elements[{i}].id", "duplicate_id",
                           f"Duplicate element id '{el.id}' at index {i}.")
            seen.add(el.id)
        issues.raise_if_any("Scene elements must have unique, non-empty ids.")

        self._elements = list(elements)
        self._reindex()
        dropped = self._prune_references()
        self._fit_frames(self._elements)
        logger.debug("Scene replaced: %d element(s)", len(self._elements))
        return dropped

    def add(self, elements: list[Element]) -> AddResult:
        """Append new elements; ids already taken are reported as duplicates.

        Labelled shapes are grown to fit their label and frames without
        explicit bounds are fitted to their children.
        """
        result = AddResult()
        added: list[Element] = []
        for el in elements:
            if el.id in self._index:
                result.duplicates.append(el.id)
                continue
            autosize_container(el)
            self._elements.append(el)
            self._index[el.id] = el
            added.append(el)
            result.created.append(el.id)
        result.dropped_refs = self._prune_references()
        self._fit_frames(added)
        if result.duplicates:
            logger.info("Rejected duplicate id(s): %s", ", ".join(result.duplicates))
        return result

    def update(self, patches: list[ElementPatch]) -> UpdateResult:
        """Shallow-merge each patch onto the element it names."""
        result = UpdateResult()
        for patch in patches:
            el = self._index.get(patch.id)
            if el is None:
                result.not_found.append(patch.id)
                continue
            el.apply_patch(patch.props)
            result.updated.append(patch.id)
        return result

    def remove(self, ids: list[str]) -> RemoveResult:
        """Remove elements by id.

        Removing a frame leaves its children in place; references to removed
        elements are pruned from the survivors.
        """
        result = RemoveResult()
        targets: set[str] = set()
        for eid in ids:
            if eid in self._index:
                if eid not in targets:
                    result.removed.append(eid)
                targets.add(eid)
            else:
                result.not_found.append(eid)
        if targets:
            self._elements = [e for e in self._elements if e.id not in targets]
            self._reindex()
            result.dropped_refs = self._prune_references()
        return result

    def append(self, element: Element) -> None:
        """Append one element whose id is known to be free."""
        self._elements.append(element)
        self._index[element.id] = element

    def set_label(self, element_id: str, label: Label) -> Element:
        """Attach or replace the bound label of an element.

        Raises:
            NotFound: no element has *element_id*.
            UnsupportedOperation: the element kind cannot carry a label.
        """
        el = self._index.get(element_id)
        if el is None:
            raise NotFound(f"Element '{element_id}' not found.", {"id": element_id})
        if not el.supports_label:
            raise UnsupportedOperation(
                f"Element '{element_id}' of type '{el.type}' cannot carry a label.",
                {"id": element_id, "type": el.type},
            )
        el.label = label
        return el

    def move(self, positions: dict[str, Point]) -> list[str]:
        """Move elements so their top-left corner sits at the given points."""
        moved: list[str] = []
        for el in self._elements:
            pos = positions.get(el.id)
            if pos is None:
                continue
            el.x = pos.x
            el.y = pos.y
            moved.append(el.id)
        return moved

    # ----- snapshots -----

    def snapshot(self) -> dict[str, Any]:
        """Serializable document of the whole scene."""
        return {"elements": [e.to_dict() for e in self._elements]}

    def load_snapshot(self, document: Optional[dict[str, Any]]) -> int:
        """Load a persisted document, skipping stored elements that are invalid.

        Returns the number of elements loaded.
        """
        raw = (document or {}).get("elements") or []
        if not isinstance(raw, list):
            logger.warning("Stored scene has no element list; starting empty.")
            raw = []
        elements: list[Element] = []
        seen: set[str] = set()
        for i, item in enumerate(raw):
            issues = IssueCollector()
            cleaned = validate_element_dict(item, f"elements[{i}]", issues)
            if cleaned is None:
                logger.warning(
                    "Skipping invalid stored element %d: %s",
                    i, "; ".join(issue.message for issue in issues.issues),
                )
                continue
            if cleaned["id"] in seen:
                logger.warning("Skipping stored element with duplicate id '%s'", cleaned["id"])
                continue
            seen.add(cleaned["id"])
            elements.append(Element.from_dict(cleaned))
        dropped = self.replace(elements)
        for ref in dropped:
            logger.warning("Dropped dangling %s reference %s -> %s", ref.field, ref.element_id, ref.ref)
        return len(elements)

    # ----- internals -----

    def _reindex(self) -> None:
        self._index = {e.id: e for e in self._elements}

    def _prune_references(self) -> list[DroppedRef]:
        dropped: list[DroppedRef] = []
        for el in self._elements:
            for field_name, ref in el.references():
                if ref in self._index:
                    continue
                dropped.append(DroppedRef(el.id, field_name, ref))
                if field_name == "start":
                    el.start = None
                elif field_name == "end":
                    el.end = None
                elif field_name == "containerId":
                    el.container_id = None
            if el.children is not None:
                el.children = [c for c in el.children if c in self._index]
        return dropped

    def _fit_frames(self, elements: list[Element]) -> None:
        for el in elements:
            if not el.is_frame:
                continue
            children = [self._index[c] for c in el.children or [] if c in self._index]
            fit_frame_to_children(el, children)

