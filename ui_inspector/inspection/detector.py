"""Heuristic UI issue detector.

Classifies the geometry and computed styles of one ``PageSnapshot`` into a
list of ``Issue`` records. The detector is a pure function of its input:
it performs no I/O, keeps no state between calls and returns a fresh tuple
every time, so it can be called from any number of threads or tasks.

Checks run in a fixed order (horizontal scroll, element overflow, small
text, small touch targets, text truncation, overlapping elements, modal
sizing) and each walks the snapshot's elements in capture order, which
keeps the output stable for identical input.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import structlog

from .models import (
    ContractViolation,
    ElementSnapshot,
    Issue,
    IssueCategory,
    Overflow,
    PageSnapshot,
    TextOverflow,
)

if TYPE_CHECKING:
    from ..config import Settings

logger = structlog.get_logger()

INTERACTIVE_TAGS = frozenset({"button", "a"})
INTERACTIVE_ROLES = frozenset({"button", "link", "checkbox", "radio"})
TOGGLE_INPUT_TYPES = frozenset({"checkbox", "radio"})
DIALOG_ROLES = frozenset({"dialog", "alertdialog"})
DIALOG_CLASSES = frozenset({"modal", "dialog"})


@dataclass(frozen=True)
class DetectorPolicy:
    """Thresholds applied by the detector.

    Attributes:
        overflow_min_width_px: Overflowing elements at or below this width
            are ignored (tiny decorative nodes)
        min_font_size_px: Text rendered smaller than this is flagged
        min_touch_target_px: Interactive elements with a side shorter than
            this are flagged on mobile viewports
        mobile_max_width_px: Viewports this wide or narrower are mobile
    """

    overflow_min_width_px: float = 50.0
    min_font_size_px: float = 12.0
    min_touch_target_px: float = 44.0
    mobile_max_width_px: int = 375

    @classmethod
    def from_settings(cls, settings: "Settings") -> "DetectorPolicy":
        return cls(
            overflow_min_width_px=settings.overflow_min_width_px,
            min_font_size_px=settings.min_font_size_px,
            min_touch_target_px=settings.min_touch_target_px,
            mobile_max_width_px=settings.mobile_max_width_px,
        )


class IssueDetector:
    """Runs every heuristic check against a page snapshot.

    Usage:
        detector = IssueDetector()
        issues = detector.detect(snapshot, scenario="Initial Load")

    Each ``check_*`` method can also be called on its own and returns the
    issues for that single check.
    """

    def __init__(self, policy: Optional[DetectorPolicy] = None):
        self.policy = policy or DetectorPolicy()
        self.log = logger.bind(component="issue_detector")

    def detect(
        self,
        snapshot: PageSnapshot,
        scenario: Optional[str] = None,
    ) -> tuple[Issue, ...]:
        """Classify a snapshot into issues.

        Args:
            snapshot: The page snapshot to analyze
            scenario: Optional scenario name attached to every issue

        Returns:
            Issues in check order, then element order

        Raises:
            ContractViolation: If ``snapshot`` is not a PageSnapshot
        """
        if not isinstance(snapshot, PageSnapshot):
            raise ContractViolation(
                f"detect() requires a PageSnapshot, got {type(snapshot).__name__}"
            )

        issues: list[Issue] = []
        issues.extend(self.check_horizontal_scroll(snapshot, scenario))
        issues.extend(self.check_element_overflow(snapshot, scenario))
        issues.extend(self.check_small_text(snapshot, scenario))
        issues.extend(self.check_touch_targets(snapshot, scenario))
        issues.extend(self.check_text_truncation(snapshot, scenario))
        issues.extend(self.check_overlapping_elements(snapshot, scenario))
        issues.extend(self.check_modal_sizing(snapshot, scenario))

        self.log.debug(
            "Snapshot analyzed",
            viewport=snapshot.viewport.name,
            scenario=scenario,
            elements=len(snapshot.elements),
            issues=len(issues),
        )
        return tuple(issues)

    def check_horizontal_scroll(
        self,
        snapshot: PageSnapshot,
        scenario: Optional[str] = None,
    ) -> list[Issue]:
        """Flag a document wider than the window."""
        content_width = snapshot.document_scroll_width
        window_width = snapshot.window_inner_width
        if content_width <= window_width:
            return []
        return [
            Issue(
                category=IssueCategory.HORIZONTAL_SCROLL,
                description=(
                    f"Content width {_px(content_width)}px exceeds viewport {_px(window_width)}px"
                ),
                viewport=snapshot.viewport.name,
                scenario=scenario,
                element_ref="body",
                details={
                    "document_scroll_width": content_width,
                    "window_inner_width": window_width,
                },
            )
        ]

    def check_element_overflow(
        self,
        snapshot: PageSnapshot,
        scenario: Optional[str] = None,
    ) -> list[Issue]:
        """Flag elements that extend past the right edge of the window."""
        issues = []
        window_width = snapshot.window_inner_width

        for element in snapshot.elements:
            box = element.bounding_box
            if box.right > window_width and box.width > self.policy.overflow_min_width_px:
                issues.append(
                    Issue(
                        category=IssueCategory.ELEMENT_OVERFLOW,
                        description=(
                            f"{element.element_ref} extends to {_px(box.right)}px "
                            f"(viewport: {_px(window_width)}px, element width: {_px(box.width)}px)"
                        ),
                        viewport=snapshot.viewport.name,
                        scenario=scenario,
                        element_ref=element.element_ref,
                        details={
                            "right": box.right,
                            "width": box.width,
                            "window_inner_width": window_width,
                        },
                    )
                )

        return issues

    def check_small_text(
        self,
        snapshot: PageSnapshot,
        scenario: Optional[str] = None,
    ) -> list[Issue]:
        """Flag rendered elements whose font size is below the minimum."""
        issues = []

        for element in snapshot.elements:
            font_size = element.computed_style.font_size_px
            if element.bounding_box.has_area and font_size < self.policy.min_font_size_px:
                content = element.text_preview[:30] or "No text"
                issues.append(
                    Issue(
                        category=IssueCategory.SMALL_TEXT,
                        description=f'{element.element_ref} has {_px(font_size)}px font size: "{content}"',
                        viewport=snapshot.viewport.name,
                        scenario=scenario,
                        element_ref=element.element_ref,
                        details={"font_size_px": font_size},
                    )
                )

        return issues

    def check_touch_targets(
        self,
        snapshot: PageSnapshot,
        scenario: Optional[str] = None,
    ) -> list[Issue]:
        """Flag interactive elements too small to tap (mobile viewports only)."""
        if not snapshot.viewport.is_mobile(self.policy.mobile_max_width_px):
            return []

        issues = []
        min_size = self.policy.min_touch_target_px

        for element in snapshot.elements:
            if not _is_interactive(element):
                continue
            box = element.bounding_box
            if not box.has_area:
                continue
            if box.width < min_size or box.height < min_size:
                issues.append(
                    Issue(
                        category=IssueCategory.SMALL_TOUCH_TARGET,
                        description=(
                            f'{element.element_ref}: {_px(box.width)}x{_px(box.height)}px - "{element.label()}"'
                        ),
                        viewport=snapshot.viewport.name,
                        scenario=scenario,
                        element_ref=element.element_ref,
                        details={
                            "width": box.width,
                            "height": box.height,
                            "min_size": min_size,
                        },
                    )
                )

        return issues

    def check_text_truncation(
        self,
        snapshot: PageSnapshot,
        scenario: Optional[str] = None,
    ) -> list[Issue]:
        """Flag clipped content in containers that hide their overflow."""
        issues = []

        for element in snapshot.elements:
            overflows = (
                element.scroll_width > element.client_width
                or element.scroll_height > element.client_height
            )
            if not overflows:
                continue
            style = element.computed_style
            if style.overflow is not Overflow.HIDDEN and style.text_overflow is not TextOverflow.ELLIPSIS:
                continue
            preview = element.text_preview[:50] + "..."
            issues.append(
                Issue(
                    category=IssueCategory.TEXT_TRUNCATION,
                    description=(
                        f'{element.element_ref}: "{preview}" '
                        f"(content: {_px(element.scroll_width)}x{_px(element.scroll_height)}px, "
                        f"container: {_px(element.client_width)}x{_px(element.client_height)}px)"
                    ),
                    viewport=snapshot.viewport.name,
                    scenario=scenario,
                    element_ref=element.element_ref,
                    details={
                        "scroll_width": element.scroll_width,
                        "scroll_height": element.scroll_height,
                        "client_width": element.client_width,
                        "client_height": element.client_height,
                    },
                )
            )

        return issues

    def check_overlapping_elements(
        self,
        snapshot: PageSnapshot,
        scenario: Optional[str] = None,
    ) -> list[Issue]:
        """Flag intersecting element pairs that are not nested in each other.

        Quadratic in the number of elements, bounded by one screen's DOM.
        """
        issues = []
        candidates = [el for el in snapshot.elements if el.bounding_box.has_area]
        ancestry = _AncestryIndex(snapshot.elements)

        for i, first in enumerate(candidates):
            for second in candidates[i + 1:]:
                if not first.bounding_box.intersects(second.bounding_box):
                    continue
                if ancestry.is_nested(first, second):
                    continue
                issues.append(
                    Issue(
                        category=IssueCategory.OVERLAPPING_ELEMENTS,
                        description=f"{first.element_ref} overlaps with {second.element_ref}",
                        viewport=snapshot.viewport.name,
                        scenario=scenario,
                        element_ref=first.element_ref,
                        details={
                            "other_element": second.element_ref,
                            "first_box": first.bounding_box.to_dict(),
                            "second_box": second.bounding_box.to_dict(),
                        },
                    )
                )

        return issues

    def check_modal_sizing(
        self,
        snapshot: PageSnapshot,
        scenario: Optional[str] = None,
    ) -> list[Issue]:
        """Flag dialogs that do not fit inside the window."""
        issues = []
        window_width = snapshot.window_inner_width
        window_height = snapshot.window_inner_height

        for element in snapshot.elements:
            if not _is_dialog(element):
                continue
            box = element.bounding_box
            if box.width > window_width or box.height > window_height:
                issues.append(
                    Issue(
                        category=IssueCategory.MODAL_SIZING,
                        description=(
                            f"Modal {element.element_ref}: {_px(box.width)}x{_px(box.height)}px "
                            f"exceeds viewport {_px(window_width)}x{_px(window_height)}px"
                        ),
                        viewport=snapshot.viewport.name,
                        scenario=scenario,
                        element_ref=element.element_ref,
                        details={
                            "width": box.width,
                            "height": box.height,
                            "window_inner_width": window_width,
                            "window_inner_height": window_height,
                        },
                    )
                )

        return issues


class _AncestryIndex:
    """Answers ancestor/descendant questions from captured parent links."""

    def __init__(self, elements: tuple[ElementSnapshot, ...]):
        self._parents = {
            el.node_id: el.parent_id
            for el in elements
            if el.node_id is not None
        }

    def _is_ancestor(self, candidate: ElementSnapshot, element: ElementSnapshot) -> bool:
        if candidate.node_id is None:
            return False
        seen = set()
        current = element.parent_id
        while current is not None and current not in seen:
            if current == candidate.node_id:
                return True
            seen.add(current)
            current = self._parents.get(current)
        return False

    def is_nested(self, first: ElementSnapshot, second: ElementSnapshot) -> bool:
        if first.node_id is not None and second.node_id is not None:
            return self._is_ancestor(first, second) or self._is_ancestor(second, first)
        # Without captured ancestry, full containment reads as nesting
        return first.bounding_box.contains(second.bounding_box) or second.bounding_box.contains(
            first.bounding_box
        )


def _is_interactive(element: ElementSnapshot) -> bool:
    if element.tag_name in INTERACTIVE_TAGS:
        return True
    if element.role and element.role.lower() in INTERACTIVE_ROLES:
        return True
    return (
        element.tag_name == "input"
        and element.input_type is not None
        and element.input_type.lower() in TOGGLE_INPUT_TYPES
    )


def _is_dialog(element: ElementSnapshot) -> bool:
    if element.role and element.role.lower() in DIALOG_ROLES:
        return True
    if DIALOG_CLASSES.intersection(element.class_names):
        return True
    test_id = (element.test_id or "").lower()
    return "modal" in test_id or "dialog" in test_id


def _px(value: float) -> str:
    """Format a pixel value without a trailing ``.0`` for whole numbers."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


def detect(
    snapshot: PageSnapshot,
    scenario: Optional[str] = None,
    policy: Optional[DetectorPolicy] = None,
) -> tuple[Issue, ...]:
    """Classify a snapshot with the given (or default) policy."""
    return IssueDetector(policy).detect(snapshot, scenario)
