"""
Work Items module for the DevOps activity export.

This module contains components for querying work item links, resolving
the linked work items and exporting them as a parent/children tree.
"""

from devops_export.work_items.work_item_extractor import WorkItemExtractor
from devops_export.work_items.work_item_processor import WorkItemProcessor, WorkItemTreeError
from devops_export.work_items.work_item_exporter import WorkItemExporter

__all__ = [
    'WorkItemExtractor',
    'WorkItemProcessor',
    'WorkItemTreeError',
    'WorkItemExporter',
]
