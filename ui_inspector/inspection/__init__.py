"""Responsive UI inspection.

This package renders a web app at several viewport sizes, captures an
immutable snapshot of each render and runs heuristic checks for overflow,
small text, small touch targets, truncation, overlap and oversized modals.
"""

from .capture import SnapshotCapture
from .detector import DetectorPolicy, IssueDetector, detect
from .models import (
    DEFAULT_VIEWPORTS,
    EXTENDED_VIEWPORTS,
    BoundingBox,
    ComputedStyle,
    ContractViolation,
    ElementSnapshot,
    Issue,
    IssueCategory,
    Overflow,
    PageSnapshot,
    TextOverflow,
    Viewport,
    get_viewport,
)
from .report import Report, flatten_groups
from .runner import InspectionError, InspectionRunner
from .scenarios import Scenario, ScenarioAction, load_scenarios

__all__ = [
    # Models
    "BoundingBox",
    "ComputedStyle",
    "ContractViolation",
    "DEFAULT_VIEWPORTS",
    "EXTENDED_VIEWPORTS",
    "ElementSnapshot",
    "Issue",
    "IssueCategory",
    "Overflow",
    "PageSnapshot",
    "TextOverflow",
    "Viewport",
    "get_viewport",
    # Detector
    "DetectorPolicy",
    "IssueDetector",
    "detect",
    # Report
    "Report",
    "flatten_groups",
    # Capture and driver
    "SnapshotCapture",
    "InspectionError",
    "InspectionRunner",
    # Scenarios
    "Scenario",
    "ScenarioAction",
    "load_scenarios",
]
