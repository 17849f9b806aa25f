"""Shared fixtures for inspection tests.

Provides factories for element and page snapshots so each test only spells
out the geometry it cares about.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from ui_inspector.inspection.models import (
    BoundingBox,
    ComputedStyle,
    ElementSnapshot,
    Overflow,
    PageSnapshot,
    TextOverflow,
    Viewport,
)


def build_element(
    tag="DIV",
    box=(0, 0, 10, 10),
    classes=(),
    font_size=16.0,
    overflow=Overflow.VISIBLE,
    text_overflow=TextOverflow.CLIP,
    text="",
    scroll=(0, 0),
    client=(0, 0),
    **kwargs,
):
    left, top, width, height = box
    return ElementSnapshot(
        tag=tag,
        class_names=tuple(classes),
        bounding_box=BoundingBox(left=left, top=top, width=width, height=height),
        computed_style=ComputedStyle(
            font_size_px=font_size,
            overflow=overflow,
            text_overflow=text_overflow,
        ),
        text_preview=text,
        scroll_width=scroll[0],
        scroll_height=scroll[1],
        client_width=client[0],
        client_height=client[1],
        **kwargs,
    )


def build_snapshot(
    elements=(),
    width=375,
    height=667,
    name="mobile",
    document_scroll_width=None,
    window_inner_width=None,
    window_inner_height=None,
):
    return PageSnapshot(
        viewport=Viewport(name=name, width=width, height=height),
        elements=tuple(elements),
        document_scroll_width=width if document_scroll_width is None else document_scroll_width,
        window_inner_width=width if window_inner_width is None else window_inner_width,
        window_inner_height=window_inner_height,
    )


@pytest.fixture
def make_element():
    """Factory fixture for ElementSnapshot."""
    return build_element


@pytest.fixture
def make_snapshot():
    """Factory fixture for PageSnapshot."""
    return build_snapshot


@pytest.fixture
def mobile_viewport():
    return Viewport(name="mobile", width=375, height=667)


@pytest.fixture
def desktop_viewport():
    return Viewport(name="desktop", width=1920, height=1080)


@pytest.fixture
def mixed_snapshot():
    """A mobile page with one problem of every kind."""
    return build_snapshot(
        document_scroll_width=500,
        elements=[
            build_element(tag="DIV", classes=["wide-table"], box=(0, 300, 500, 100), node_id=0),
            build_element(tag="SPAN", classes=["caption"], box=(10, 10, 80, 12), font_size=10, text="Fine print", node_id=1, parent_id=4),
            build_element(tag="BUTTON", classes=["icon"], box=(100, 100, 30, 30), text="X", node_id=2, parent_id=4),
            build_element(
                tag="P",
                classes=["summary"],
                box=(0, 150, 200, 40),
                overflow=Overflow.HIDDEN,
                text="A long summary that does not fit",
                scroll=(500, 40),
                client=(200, 40),
                node_id=3,
                parent_id=4,
            ),
            build_element(
                tag="DIV",
                classes=["modal"],
                box=(0, 0, 360, 900),
                role="dialog",
                node_id=4,
            ),
        ],
    )


@pytest.fixture
def mock_page():
    """Create a mocked Playwright page."""
    page = AsyncMock()
    page.evaluate = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"screenshot_data")
    page.goto = AsyncMock()
    page.wait_for_timeout = AsyncMock()
    page.fill = AsyncMock()
    page.click = AsyncMock()
    page.query_selector_all = AsyncMock(return_value=[])
    page.on = MagicMock()
    return page
