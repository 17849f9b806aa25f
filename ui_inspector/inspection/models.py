"""Inspection data models.

This module contains the immutable records that flow through the inspector:
viewports, the point-in-time page snapshot handed to the detector, and the
issues it produces. Every record validates itself on construction so that a
malformed snapshot fails loudly with ``ContractViolation`` instead of being
silently skipped by the checks.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class ContractViolation(ValueError):
    """Raised when a snapshot or model is constructed from malformed data."""

    pass


def _require_finite(owner: str, **values: float) -> None:
    for name, value in values.items():
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise ContractViolation(f"{owner}.{name} must be a number, got {value!r}")
        if not math.isfinite(value):
            raise ContractViolation(f"{owner}.{name} must be finite, got {value}")


def _require_non_negative(owner: str, **values: float) -> None:
    _require_finite(owner, **values)
    for name, value in values.items():
        if value < 0:
            raise ContractViolation(f"{owner}.{name} must be >= 0, got {value}")


def _require_optional_str(owner: str, **values: Any) -> None:
    for name, value in values.items():
        if value is not None and not isinstance(value, str):
            raise ContractViolation(f"{owner}.{name} must be a string or None, got {value!r}")


def _require_key(data: Mapping[str, Any], key: str, owner: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ContractViolation(f"{owner} is missing required field '{key}'") from None


class IssueCategory(Enum):
    """Closed set of issue categories the detector can emit."""

    ELEMENT_OVERFLOW = "Element Overflow"
    SMALL_TEXT = "Small Text"
    SMALL_TOUCH_TARGET = "Small Touch Target"
    HORIZONTAL_SCROLL = "Horizontal Scroll"
    TEXT_TRUNCATION = "Text Truncation"
    OVERLAPPING_ELEMENTS = "Overlapping Elements"
    MODAL_SIZING = "Modal Sizing"

    @property
    def is_high_priority(self) -> bool:
        """Categories that block interaction and should be fixed first."""
        return self in _HIGH_PRIORITY_CATEGORIES


_HIGH_PRIORITY_CATEGORIES = frozenset({
    IssueCategory.ELEMENT_OVERFLOW,
    IssueCategory.SMALL_TOUCH_TARGET,
    IssueCategory.HORIZONTAL_SCROLL,
})


class Overflow(Enum):
    """Subset of the CSS ``overflow`` property the detector understands."""

    VISIBLE = "visible"
    HIDDEN = "hidden"
    SCROLL = "scroll"
    AUTO = "auto"


class TextOverflow(Enum):
    """Subset of the CSS ``text-overflow`` property the detector understands."""

    CLIP = "clip"
    ELLIPSIS = "ellipsis"


@dataclass(frozen=True)
class Viewport:
    """A named browser window size.

    Example:
        mobile = Viewport(name="mobile", width=375, height=667)
    """

    name: str
    width: int
    height: int

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name:
            raise ContractViolation(f"Viewport.name must be a non-empty string, got {self.name!r}")
        for attr in ("width", "height"):
            value = getattr(self, attr)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ContractViolation(f"Viewport.{attr} must be a positive int, got {value!r}")

    def is_mobile(self, max_width: int = 375) -> bool:
        """Whether this viewport is narrow enough to be treated as a phone."""
        return self.width <= max_width

    def to_playwright_config(self) -> dict[str, Any]:
        """Convert to Playwright ``new_context`` keyword arguments."""
        return {
            "viewport": {"width": self.width, "height": self.height},
            "device_scale_factor": 1,
        }

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Viewport":
        return cls(
            name=_require_key(data, "name", "Viewport"),
            width=_require_key(data, "width", "Viewport"),
            height=_require_key(data, "height", "Viewport"),
        )


# Standard device sizes
DEFAULT_VIEWPORTS: tuple[Viewport, ...] = (
    Viewport(name="mobile", width=375, height=667),
    Viewport(name="tablet", width=768, height=1024),
    Viewport(name="desktop", width=1920, height=1080),
)

EXTENDED_VIEWPORTS: tuple[Viewport, ...] = (
    Viewport(name="mobile_small", width=360, height=800),
    Viewport(name="laptop", width=1366, height=768),
)


def get_viewport(name: str) -> Viewport:
    """Look up a viewport preset by name.

    Raises:
        KeyError: If no preset has that name
    """
    for viewport in DEFAULT_VIEWPORTS + EXTENDED_VIEWPORTS:
        if viewport.name == name:
            return viewport
    raise KeyError(f"Unknown viewport preset: {name}")


@dataclass(frozen=True)
class BoundingBox:
    """An element's on-screen rectangle in viewport-relative pixels."""

    left: float
    top: float
    width: float
    height: float

    def __post_init__(self) -> None:
        _require_finite("BoundingBox", left=self.left, top=self.top)
        _require_non_negative("BoundingBox", width=self.width, height=self.height)

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def has_area(self) -> bool:
        return self.width > 0 and self.height > 0

    def intersects(self, other: "BoundingBox") -> bool:
        """Check for a strict intersection; touching edges do not count."""
        return (
            self.left < other.right and other.left < self.right
            and self.top < other.bottom and other.top < self.bottom
        )

    def contains(self, other: "BoundingBox") -> bool:
        """Check whether ``other`` lies entirely inside this box."""
        return (
            self.left <= other.left and self.top <= other.top
            and other.right <= self.right and other.bottom <= self.bottom
        )

    def to_dict(self) -> dict[str, float]:
        return {"left": self.left, "top": self.top, "width": self.width, "height": self.height}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BoundingBox":
        return cls(
            left=_require_key(data, "left", "BoundingBox"),
            top=_require_key(data, "top", "BoundingBox"),
            width=_require_key(data, "width", "BoundingBox"),
            height=_require_key(data, "height", "BoundingBox"),
        )


@dataclass(frozen=True)
class ComputedStyle:
    """The computed-style subset read from the page for each element."""

    font_size_px: float
    overflow: Overflow = Overflow.VISIBLE
    text_overflow: TextOverflow = TextOverflow.CLIP

    def __post_init__(self) -> None:
        _require_non_negative("ComputedStyle", font_size_px=self.font_size_px)
        if not isinstance(self.overflow, Overflow):
            raise ContractViolation(f"ComputedStyle.overflow must be an Overflow, got {self.overflow!r}")
        if not isinstance(self.text_overflow, TextOverflow):
            raise ContractViolation(
                f"ComputedStyle.text_overflow must be a TextOverflow, got {self.text_overflow!r}"
            )

    def to_dict(self) -> dict[str, Any]:
        return {
            "font_size_px": self.font_size_px,
            "overflow": self.overflow.value,
            "text_overflow": self.text_overflow.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ComputedStyle":
        try:
            overflow = Overflow(data.get("overflow", "visible"))
            text_overflow = TextOverflow(data.get("text_overflow", "clip"))
        except ValueError as e:
            raise ContractViolation(str(e)) from e
        return cls(
            font_size_px=_require_key(data, "font_size_px", "ComputedStyle"),
            overflow=overflow,
            text_overflow=text_overflow,
        )


@dataclass(frozen=True)
class ElementSnapshot:
    """A single rendered element as read from the page at capture time."""

    tag: str
    bounding_box: BoundingBox
    computed_style: ComputedStyle
    class_names: tuple[str, ...] = ()
    text_preview: str = ""
    scroll_width: float = 0.0
    scroll_height: float = 0.0
    client_width: float = 0.0
    client_height: float = 0.0
    role: str | None = None
    aria_label: str | None = None
    node_id: int | None = None
    parent_id: int | None = None
    input_type: str | None = None
    test_id: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.tag, str) or not self.tag:
            raise ContractViolation(f"ElementSnapshot.tag must be a non-empty string, got {self.tag!r}")
        if not isinstance(self.bounding_box, BoundingBox):
            raise ContractViolation("ElementSnapshot.bounding_box must be a BoundingBox")
        if not isinstance(self.computed_style, ComputedStyle):
            raise ContractViolation("ElementSnapshot.computed_style must be a ComputedStyle")
        if not isinstance(self.text_preview, str):
            raise ContractViolation(
                f"ElementSnapshot.text_preview must be a string, got {self.text_preview!r}"
            )
        _require_optional_str(
            "ElementSnapshot",
            role=self.role,
            aria_label=self.aria_label,
            input_type=self.input_type,
            test_id=self.test_id,
        )
        # Lists from JSON are accepted and frozen
        object.__setattr__(self, "class_names", tuple(self.class_names))
        if not all(isinstance(name, str) for name in self.class_names):
            raise ContractViolation(f"ElementSnapshot.class_names must be strings, got {self.class_names!r}")
        _require_non_negative(
            "ElementSnapshot",
            scroll_width=self.scroll_width,
            scroll_height=self.scroll_height,
            client_width=self.client_width,
            client_height=self.client_height,
        )

    @property
    def element_ref(self) -> str:
        """Tag plus first class name, e.g. ``DIV.card``."""
        if self.class_names:
            return f"{self.tag}.{self.class_names[0]}"
        return self.tag

    @property
    def tag_name(self) -> str:
        return self.tag.lower()

    def label(self, limit: int = 30) -> str:
        """Visible text, falling back to the aria-label."""
        text = self.text_preview[:limit] if self.text_preview else ""
        return text or self.aria_label or "No text"

    def to_dict(self) -> dict[str, Any]:
        return {
            "tag": self.tag,
            "class_names": list(self.class_names),
            "bounding_box": self.bounding_box.to_dict(),
            "computed_style": self.computed_style.to_dict(),
            "text_preview": self.text_preview,
            "scroll_width": self.scroll_width,
            "scroll_height": self.scroll_height,
            "client_width": self.client_width,
            "client_height": self.client_height,
            "role": self.role,
            "aria_label": self.aria_label,
            "node_id": self.node_id,
            "parent_id": self.parent_id,
            "input_type": self.input_type,
            "test_id": self.test_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ElementSnapshot":
        """Create instance from dictionary."""
        return cls(
            tag=_require_key(data, "tag", "ElementSnapshot"),
            bounding_box=BoundingBox.from_dict(_require_key(data, "bounding_box", "ElementSnapshot")),
            computed_style=ComputedStyle.from_dict(_require_key(data, "computed_style", "ElementSnapshot")),
            class_names=tuple(data.get("class_names") or ()),
            text_preview=data.get("text_preview") or "",
            scroll_width=data.get("scroll_width", 0.0),
            scroll_height=data.get("scroll_height", 0.0),
            client_width=data.get("client_width", 0.0),
            client_height=data.get("client_height", 0.0),
            role=data.get("role"),
            aria_label=data.get("aria_label"),
            node_id=data.get("node_id"),
            parent_id=data.get("parent_id"),
            input_type=data.get("input_type"),
            test_id=data.get("test_id"),
        )


@dataclass(frozen=True)
class PageSnapshot:
    """Point-in-time capture of one page at one viewport.

    Created once per (viewport, scenario) pair and consumed only by the
    detector.
    """

    viewport: Viewport
    elements: tuple[ElementSnapshot, ...]
    document_scroll_width: float
    window_inner_width: float
    window_inner_height: float | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.viewport, Viewport):
            raise ContractViolation("PageSnapshot.viewport must be a Viewport")
        elements = tuple(self.elements)
        for element in elements:
            if not isinstance(element, ElementSnapshot):
                raise ContractViolation(
                    f"PageSnapshot.elements must contain ElementSnapshot, got {type(element).__name__}"
                )
        object.__setattr__(self, "elements", elements)
        _require_non_negative(
            "PageSnapshot",
            document_scroll_width=self.document_scroll_width,
            window_inner_width=self.window_inner_width,
        )
        if self.window_inner_height is None:
            object.__setattr__(self, "window_inner_height", float(self.viewport.height))
        else:
            _require_non_negative("PageSnapshot", window_inner_height=self.window_inner_height)

    def to_dict(self) -> dict[str, Any]:
        return {
            "viewport": self.viewport.to_dict(),
            "elements": [el.to_dict() for el in self.elements],
            "document_scroll_width": self.document_scroll_width,
            "window_inner_width": self.window_inner_width,
            "window_inner_height": self.window_inner_height,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PageSnapshot":
        """Create instance from dictionary."""
        return cls(
            viewport=Viewport.from_dict(_require_key(data, "viewport", "PageSnapshot")),
            elements=tuple(
                ElementSnapshot.from_dict(el) for el in _require_key(data, "elements", "PageSnapshot")
            ),
            document_scroll_width=_require_key(data, "document_scroll_width", "PageSnapshot"),
            window_inner_width=_require_key(data, "window_inner_width", "PageSnapshot"),
            window_inner_height=data.get("window_inner_height"),
        )


@dataclass(frozen=True)
class Issue:
    """A classified UI problem found in one snapshot.

    ``details`` holds the measured values behind the description and is
    excluded from hashing so issues can be counted and grouped.
    """

    category: IssueCategory
    description: str
    viewport: str
    scenario: str | None = None
    element_ref: str | None = None
    details: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        if not isinstance(self.category, IssueCategory):
            raise ContractViolation(f"Issue.category must be an IssueCategory, got {self.category!r}")
        object.__setattr__(self, "details", MappingProxyType(dict(self.details)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category.value,
            "description": self.description,
            "viewport": self.viewport,
            "scenario": self.scenario,
            "element_ref": self.element_ref,
            "details": dict(self.details),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Issue":
        """Create instance from dictionary."""
        try:
            category = IssueCategory(_require_key(data, "category", "Issue"))
        except ValueError as e:
            raise ContractViolation(str(e)) from e
        return cls(
            category=category,
            description=_require_key(data, "description", "Issue"),
            viewport=_require_key(data, "viewport", "Issue"),
            scenario=data.get("scenario"),
            element_ref=data.get("element_ref"),
            details=data.get("details") or {},
        )
