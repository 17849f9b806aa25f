"""Page snapshot capture.

Reads the rendered geometry and computed-style subset of every element of a
live Playwright page in a single ``page.evaluate`` call and converts the
result into an immutable ``PageSnapshot``. Also saves the full-page
screenshots that accompany each snapshot.
"""

import re
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
from playwright.async_api import Page

from .models import (
    BoundingBox,
    ComputedStyle,
    ContractViolation,
    ElementSnapshot,
    Overflow,
    PageSnapshot,
    TextOverflow,
    Viewport,
)

logger = structlog.get_logger(__name__)


# JavaScript for extracting every element's box, style subset and ancestry
SNAPSHOT_EXTRACTOR_JS = """
(maxElements) => {
    const skipTags = new Set(['HEAD', 'META', 'LINK', 'SCRIPT', 'STYLE', 'TITLE', 'NOSCRIPT', 'TEMPLATE']);
    const ids = new Map();
    const elements = [];

    const nearestCapturedAncestor = (el) => {
        let parent = el.parentElement;
        while (parent) {
            if (ids.has(parent)) {
                return ids.get(parent);
            }
            parent = parent.parentElement;
        }
        return null;
    };

    for (const el of document.querySelectorAll('*')) {
        if (elements.length >= maxElements) {
            break;
        }
        if (skipTags.has(el.tagName)) {
            continue;
        }

        const nodeId = elements.length;
        ids.set(el, nodeId);

        const rect = el.getBoundingClientRect();
        const style = window.getComputedStyle(el);
        const text = (el.textContent || '').replace(/\\s+/g, ' ').trim();

        elements.push({
            node_id: nodeId,
            parent_id: nearestCapturedAncestor(el),
            tag: el.tagName,
            class_names: (el.getAttribute('class') || '').split(/\\s+/).filter(Boolean),
            bounding_box: {
                left: rect.left,
                top: rect.top,
                width: rect.width,
                height: rect.height
            },
            font_size: parseFloat(style.fontSize) || 0,
            overflow: style.overflow,
            text_overflow: style.textOverflow,
            text_preview: text.substring(0, 100),
            scroll_width: el.scrollWidth,
            scroll_height: el.scrollHeight,
            client_width: el.clientWidth,
            client_height: el.clientHeight,
            role: el.getAttribute('role'),
            aria_label: el.getAttribute('aria-label'),
            input_type: el.tagName === 'INPUT' ? (el.getAttribute('type') || 'text') : null,
            test_id: el.getAttribute('data-testid')
        });
    }

    const body = document.body || document.documentElement;
    return {
        elements: elements,
        document_scroll_width: body.scrollWidth,
        window_inner_width: window.innerWidth,
        window_inner_height: window.innerHeight
    };
}
"""

_OVERFLOW_ALIASES = {
    "visible": Overflow.VISIBLE,
    "hidden": Overflow.HIDDEN,
    "clip": Overflow.HIDDEN,
    "scroll": Overflow.SCROLL,
    "auto": Overflow.AUTO,
    "overlay": Overflow.AUTO,
}


def normalize_overflow(value: Optional[str]) -> Overflow:
    """Map a computed ``overflow`` value onto the supported subset.

    Two-value forms (``"hidden auto"``) resolve to their horizontal part.
    """
    tokens = (value or "").split()
    if not tokens:
        return Overflow.VISIBLE
    return _OVERFLOW_ALIASES.get(tokens[0].lower(), Overflow.VISIBLE)


def normalize_text_overflow(value: Optional[str]) -> TextOverflow:
    if value and value.strip().lower() == "ellipsis":
        return TextOverflow.ELLIPSIS
    return TextOverflow.CLIP


def slugify(value: str) -> str:
    return re.sub(r"[^a-zA-Z0-9]", "_", value)


class SnapshotCapture:
    """Captures page snapshots and screenshots from a Playwright page.

    Usage:
        capture = SnapshotCapture(screenshot_dir="./screenshots")
        snapshot = await capture.capture_snapshot(page, viewport)
        await capture.take_screenshot(page, viewport, "Initial Load")
    """

    def __init__(
        self,
        screenshot_dir: Optional[str | Path] = None,
        max_elements: int = 5000,
    ):
        """Initialize SnapshotCapture.

        Args:
            screenshot_dir: Directory for screenshots (screenshots are
                skipped when not provided)
            max_elements: Maximum elements to extract per snapshot
        """
        self.screenshot_dir = Path(screenshot_dir) if screenshot_dir else None
        self.max_elements = max_elements
        self.log = logger.bind(component="snapshot_capture")

    async def capture_snapshot(self, page: Page, viewport: Viewport) -> PageSnapshot:
        """Read the page once and build an immutable snapshot.

        Args:
            page: Playwright page instance
            viewport: Viewport the page is rendered at

        Returns:
            PageSnapshot of the current render

        Raises:
            ContractViolation: If the page returned malformed geometry
        """
        raw = await page.evaluate(SNAPSHOT_EXTRACTOR_JS, self.max_elements)
        snapshot = self.build_snapshot(raw, viewport)

        self.log.debug(
            "Snapshot captured",
            viewport=viewport.name,
            elements=len(snapshot.elements),
            document_scroll_width=snapshot.document_scroll_width,
            window_inner_width=snapshot.window_inner_width,
        )
        return snapshot

    def build_snapshot(self, raw: Dict[str, Any], viewport: Viewport) -> PageSnapshot:
        """Convert the extractor's JSON result into a PageSnapshot."""
        try:
            elements = tuple(self._to_element_snapshot(item) for item in raw["elements"])
            return PageSnapshot(
                viewport=viewport,
                elements=elements,
                document_scroll_width=raw["document_scroll_width"],
                window_inner_width=raw["window_inner_width"],
                window_inner_height=raw.get("window_inner_height"),
            )
        except KeyError as e:
            raise ContractViolation(f"Snapshot data is missing field {e}") from e

    def _to_element_snapshot(self, item: Dict[str, Any]) -> ElementSnapshot:
        box = item["bounding_box"]
        return ElementSnapshot(
            tag=item["tag"],
            class_names=tuple(item.get("class_names") or ()),
            bounding_box=BoundingBox(
                left=box["left"],
                top=box["top"],
                width=box["width"],
                height=box["height"],
            ),
            computed_style=ComputedStyle(
                font_size_px=item.get("font_size") or 0.0,
                overflow=normalize_overflow(item.get("overflow")),
                text_overflow=normalize_text_overflow(item.get("text_overflow")),
            ),
            text_preview=item.get("text_preview") or "",
            scroll_width=item.get("scroll_width", 0),
            scroll_height=item.get("scroll_height", 0),
            client_width=item.get("client_width", 0),
            client_height=item.get("client_height", 0),
            role=item.get("role"),
            aria_label=item.get("aria_label"),
            node_id=item.get("node_id"),
            parent_id=item.get("parent_id"),
            input_type=item.get("input_type"),
            test_id=item.get("test_id"),
        )

    async def take_screenshot(
        self,
        page: Page,
        viewport: Viewport,
        scenario: str,
    ) -> Optional[Path]:
        """Save a full-page screenshot named after viewport and scenario.

        Returns:
            Path of the screenshot, or None when screenshots are disabled
        """
        if self.screenshot_dir is None:
            return None

        self.screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = self.screenshot_dir / f"{viewport.name}_{slugify(scenario)}.png"
        await page.screenshot(path=str(path), full_page=True, animations="disabled")

        self.log.debug("Screenshot taken", viewport=viewport.name, scenario=scenario, path=str(path))
        return path
