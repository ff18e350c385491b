"""
Work Item Processor module.

This module flattens work item field names and reassembles work items into
the parent/children tree described by the link query.
"""

import logging
from typing import List, Dict, Any, Optional

FIELD_SEPARATOR = "."
FIELD_SEPARATOR_REPLACEMENT = "_"


class WorkItemTreeError(Exception):
    """Raised when relations cannot be mapped onto a two-level tree."""


class WorkItemProcessor:
    """
    Processes work items retrieved from Azure DevOps into the exported tree.

    Only two levels are supported: roots and their immediate children. A
    child relation must come after the relation that made its parent a root.
    """

    def __init__(self):
        """Initialize the WorkItemProcessor."""
        self.logger = logging.getLogger(__name__)

    def process_work_item(self, work_item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Copy a work item, rewriting the first separator of each top-level field name.

        "System.Title" becomes "System_Title"; nested values are left untouched.
        """
        processed_item = work_item.copy()
        processed_item["fields"] = {
            key.replace(FIELD_SEPARATOR, FIELD_SEPARATOR_REPLACEMENT, 1): value
            for key, value in work_item.get("fields", {}).items()
        }
        return processed_item

    @staticmethod
    def _find_by_id(items: List[Dict[str, Any]], work_item_id: int) -> Optional[Dict[str, Any]]:
        for item in items:
            if item.get("id") == work_item_id:
                return item
        return None

    def build_tree(self, relations: List[Dict[str, Any]], work_items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """
        Build the work item tree.

        Args:
            relations: Link query relations, in query order
            work_items: Work items fetched for the relation targets

        Returns:
            List of root work items, each with an optional "items" list of children

        Raises:
            WorkItemTreeError: if a target was not fetched or a parent is not a root yet
        """
        tree = []
        for relation in relations:
            target_id = relation["target"]["id"]
            work_item = self._find_by_id(work_items, target_id)
            if work_item is None:
                raise WorkItemTreeError(f"Work item {target_id} was not returned by the batch request")

            source = relation.get("source")
            if not source:
                tree.append(self.process_work_item(work_item))
                continue

            parent = self._find_by_id(tree, source["id"])
            if parent is None:
                raise WorkItemTreeError(
                    f"Parent work item {source['id']} of {target_id} is not a root of the tree "
                    "(out-of-order relation or hierarchy deeper than two levels)"
                )
            parent.setdefault("items", []).append(self.process_work_item(work_item))

        self.logger.info(f"Built work item tree with {len(tree)} roots")
        return tree
