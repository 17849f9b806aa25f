"""Tests for inspection/runner.py."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import structlog

from ui_inspector.config import Settings
from ui_inspector.inspection.models import ContractViolation, IssueCategory, Viewport
from ui_inspector.inspection.runner import InspectionError, InspectionRunner
from ui_inspector.inspection.scenarios import Scenario, ScenarioAction


@pytest.fixture
def settings():
    return Settings(
        app_url="http://localhost:9999",
        navigation_timeout_ms=5000,
        settle_delay_ms=10,
        action_delay_ms=0,
    )


@pytest.fixture
def mock_capture(mixed_snapshot):
    capture = MagicMock()
    capture.take_screenshot = AsyncMock(return_value=None)
    capture.capture_snapshot = AsyncMock(return_value=mixed_snapshot)
    return capture


@pytest.fixture
def mock_browser(mock_page):
    context = MagicMock()
    context.new_page = AsyncMock(return_value=mock_page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.close = AsyncMock()
    return browser


@pytest.fixture
def mock_playwright(mock_browser):
    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=mock_browser)

    manager = MagicMock()
    manager.__aenter__.return_value = playwright
    manager.__aexit__.return_value = False

    with patch("ui_inspector.inspection.runner.async_playwright", return_value=manager):
        yield playwright


class TestInspectionRunnerInit:
    """Tests for InspectionRunner construction."""

    def test_viewports_from_settings(self, settings):
        runner = InspectionRunner(settings=settings)
        assert [v.name for v in runner.viewports] == ["mobile", "tablet", "desktop"]
        assert [s.name for s in runner.scenarios] == ["Initial Load"]

    def test_detector_policy_from_settings(self):
        runner = InspectionRunner(settings=Settings(min_font_size_px=14))
        assert runner.detector.policy.min_font_size_px == 14

    def test_unknown_viewport_name(self):
        with pytest.raises(KeyError):
            InspectionRunner(settings=Settings(viewports=["watch"]))


class TestInspectScenario:
    """Tests for InspectionRunner.inspect_scenario."""

    @pytest.mark.asyncio
    async def test_loads_captures_and_detects(self, settings, mock_capture, mock_page, mobile_viewport):
        runner = InspectionRunner(settings=settings, capture=mock_capture)
        scenario = Scenario(name="Initial Load")

        result = await runner.inspect_scenario(mock_page, mobile_viewport, scenario, settings.app_url)

        mock_page.goto.assert_awaited_once_with(
            "http://localhost:9999", wait_until="networkidle", timeout=5000
        )
        mock_capture.take_screenshot.assert_awaited_once_with(mock_page, mobile_viewport, "Initial Load")
        mock_capture.capture_snapshot.assert_awaited_once_with(mock_page, mobile_viewport)
        assert result.total_issues == 7
        assert all(i.scenario == "Initial Load" for i in result.issues)
        assert result.screenshots == ()

    @pytest.mark.asyncio
    async def test_screenshot_recorded(self, settings, mock_capture, mock_page, mobile_viewport, tmp_path):
        mock_capture.take_screenshot.return_value = tmp_path / "mobile_Initial_Load.png"
        runner = InspectionRunner(settings=settings, capture=mock_capture)

        result = await runner.inspect_scenario(
            mock_page, mobile_viewport, Scenario(name="Initial Load"), settings.app_url
        )

        assert result.screenshots == (str(tmp_path / "mobile_Initial_Load.png"),)

    @pytest.mark.asyncio
    async def test_log_context_bound(self, settings, mock_capture, mock_page, mobile_viewport, mixed_snapshot):
        seen = {}

        async def capture_snapshot(page, viewport):
            seen.update(structlog.contextvars.get_contextvars())
            return mixed_snapshot

        mock_capture.capture_snapshot.side_effect = capture_snapshot
        runner = InspectionRunner(settings=settings, capture=mock_capture)

        await runner.inspect_scenario(
            mock_page, mobile_viewport, Scenario(name="Initial Load"), settings.app_url
        )

        assert seen == {"viewport": "mobile", "scenario": "Initial Load"}
        assert "scenario" not in structlog.contextvars.get_contextvars()

    @pytest.mark.asyncio
    async def test_replays_actions(self, settings, mock_capture, mock_page, mobile_viewport):
        runner = InspectionRunner(settings=settings, capture=mock_capture)
        scenario = Scenario(
            name="Filled Form",
            actions=[ScenarioAction(type="click", selector="button.calculate")],
        )

        await runner.inspect_scenario(mock_page, mobile_viewport, scenario, settings.app_url)

        mock_page.click.assert_awaited_once_with("button.calculate")

    @pytest.mark.asyncio
    async def test_navigation_failure_skipped(self, settings, mock_capture, mock_page, mobile_viewport):
        mock_page.goto.side_effect = Exception("net::ERR_CONNECTION_REFUSED")
        runner = InspectionRunner(settings=settings, capture=mock_capture)

        result = await runner.inspect_scenario(
            mock_page, mobile_viewport, Scenario(name="Initial Load"), settings.app_url
        )

        assert result.total_issues == 0
        mock_capture.capture_snapshot.assert_not_called()

    @pytest.mark.asyncio
    async def test_contract_violation_propagates(self, settings, mock_capture, mock_page, mobile_viewport):
        mock_capture.capture_snapshot.side_effect = ContractViolation("bad geometry")
        runner = InspectionRunner(settings=settings, capture=mock_capture)

        with pytest.raises(ContractViolation):
            await runner.inspect_scenario(
                mock_page, mobile_viewport, Scenario(name="Initial Load"), settings.app_url
            )


class TestCheckVerticalScroll:
    """Tests for InspectionRunner.check_vertical_scroll."""

    @pytest.mark.asyncio
    async def test_scrolls(self, settings, mock_page, mobile_viewport):
        # offset reads interleave with scroll commands
        mock_page.evaluate.side_effect = [0, None, 600, None, 1200, None]
        runner = InspectionRunner(settings=settings)

        assert await runner.check_vertical_scroll(mock_page, mobile_viewport) is True
        assert mock_page.evaluate.await_count == 6
        assert [c.args[0] for c in mock_page.wait_for_timeout.await_args_list] == [500, 500, 300]

    @pytest.mark.asyncio
    async def test_does_not_scroll(self, settings, mock_page, mobile_viewport):
        mock_page.evaluate.side_effect = [0, None, 0, None, 0, None]
        runner = InspectionRunner(settings=settings)
        assert await runner.check_vertical_scroll(mock_page, mobile_viewport) is False

    @pytest.mark.asyncio
    async def test_only_bottom_moves(self, settings, mock_page, mobile_viewport):
        mock_page.evaluate.side_effect = [0, None, 0, None, 300, None]
        runner = InspectionRunner(settings=settings)
        assert await runner.check_vertical_scroll(mock_page, mobile_viewport) is True

    @pytest.mark.asyncio
    async def test_evaluate_error(self, settings, mock_page, mobile_viewport):
        mock_page.evaluate.side_effect = Exception("Target closed")
        runner = InspectionRunner(settings=settings)
        assert await runner.check_vertical_scroll(mock_page, mobile_viewport) is False


class TestCaptureScrollPositions:
    """Tests for InspectionRunner.capture_scroll_positions."""

    @pytest.mark.asyncio
    async def test_mid_and_bottom_screenshots(self, settings, mock_capture, mock_page, mobile_viewport, tmp_path):
        mock_capture.take_screenshot.side_effect = [
            tmp_path / "mobile_mid-scroll.png",
            tmp_path / "mobile_bottom-scroll.png",
        ]
        runner = InspectionRunner(settings=settings, capture=mock_capture)

        paths = await runner.capture_scroll_positions(mock_page, mobile_viewport)

        assert paths == [tmp_path / "mobile_mid-scroll.png", tmp_path / "mobile_bottom-scroll.png"]
        labels = [c.args[2] for c in mock_capture.take_screenshot.await_args_list]
        assert labels == ["mid-scroll", "bottom-scroll"]
        assert mock_page.evaluate.await_count == 3

    @pytest.mark.asyncio
    async def test_disabled_screenshots(self, settings, mock_capture, mock_page, mobile_viewport):
        runner = InspectionRunner(settings=settings, capture=mock_capture)
        assert await runner.capture_scroll_positions(mock_page, mobile_viewport) == []

    @pytest.mark.asyncio
    async def test_screenshot_error(self, settings, mock_capture, mock_page, mobile_viewport):
        mock_capture.take_screenshot.side_effect = Exception("Page crashed")
        runner = InspectionRunner(settings=settings, capture=mock_capture)
        assert await runner.capture_scroll_positions(mock_page, mobile_viewport) == []


class TestCheckMobileNavigation:
    """Tests for InspectionRunner.check_mobile_navigation."""

    @pytest.mark.asyncio
    async def test_row_layout_flagged(self, settings, mock_page, mobile_viewport):
        mock_page.evaluate.return_value = {"display": "flex", "flex_direction": "row"}
        runner = InspectionRunner(settings=settings)
        runner.log = MagicMock()

        assert await runner.check_mobile_navigation(mock_page, mobile_viewport) is False

        runner.log.warning.assert_called_once()
        assert runner.log.warning.call_args.args == ("Navigation may not be optimized for mobile",)
        assert runner.log.warning.call_args.kwargs["flex_direction"] == "row"

    @pytest.mark.asyncio
    async def test_column_layout(self, settings, mock_page, mobile_viewport):
        mock_page.evaluate.return_value = {"display": "flex", "flex_direction": "column"}
        runner = InspectionRunner(settings=settings)
        assert await runner.check_mobile_navigation(mock_page, mobile_viewport) is True

    @pytest.mark.asyncio
    async def test_no_navigation(self, settings, mock_page, mobile_viewport):
        mock_page.evaluate.return_value = None
        runner = InspectionRunner(settings=settings)
        assert await runner.check_mobile_navigation(mock_page, mobile_viewport) is True


class TestRun:
    """Tests for InspectionRunner.run."""

    @pytest.mark.asyncio
    async def test_folds_every_viewport(
        self, settings, mock_capture, mock_playwright, mock_browser, mock_page
    ):
        mock_page.evaluate.return_value = 0
        viewports = [
            Viewport(name="mobile", width=375, height=667),
            Viewport(name="desktop", width=1920, height=1080),
        ]
        runner = InspectionRunner(settings=settings, viewports=viewports, capture=mock_capture)

        report = await runner.run()

        mock_playwright.chromium.launch.assert_awaited_once_with(headless=True, slow_mo=0)
        assert mock_browser.new_context.await_count == 2
        mock_browser.new_context.assert_any_await(
            viewport={"width": 1920, "height": 1080}, device_scale_factor=1
        )
        mock_browser.close.assert_awaited_once()
        assert report.total_issues == 14
        assert {
            c for c in IssueCategory if c.is_high_priority
        } <= {i.category for i in report.high_priority_issues}

    @pytest.mark.asyncio
    async def test_error_listeners_attached(self, settings, mock_capture, mock_playwright, mock_page):
        mock_page.evaluate.return_value = 0
        runner = InspectionRunner(
            settings=settings,
            viewports=[Viewport(name="mobile", width=375, height=667)],
            capture=mock_capture,
        )

        await runner.run()

        events = [c.args[0] for c in mock_page.on.call_args_list]
        assert events == ["pageerror", "console"]

    @pytest.mark.asyncio
    async def test_failed_viewport_skipped(
        self, settings, mock_capture, mock_playwright, mock_browser, mock_page
    ):
        good_context = MagicMock()
        good_context.new_page = AsyncMock(return_value=mock_page)
        good_context.close = AsyncMock()
        mock_page.evaluate.return_value = 0
        mock_browser.new_context.side_effect = [Exception("context crashed"), good_context]
        runner = InspectionRunner(
            settings=settings,
            viewports=[
                Viewport(name="mobile", width=375, height=667),
                Viewport(name="mobile_small", width=360, height=800),
            ],
            capture=mock_capture,
        )

        report = await runner.run()

        assert report.total_issues == 7
        good_context.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_launch_failure(self, settings, mock_playwright):
        mock_playwright.chromium.launch.side_effect = Exception("Executable doesn't exist")
        runner = InspectionRunner(settings=settings)

        with pytest.raises(InspectionError, match="Could not launch browser"):
            await runner.run()

    @pytest.mark.asyncio
    async def test_scroll_screenshots_in_report(
        self, settings, mock_capture, mock_playwright, mock_page, tmp_path
    ):
        mock_page.evaluate.side_effect = [0, None, 600, None, 1200, None, None, None, None, None]
        mock_capture.take_screenshot.side_effect = [
            tmp_path / "desktop_Initial_Load.png",
            tmp_path / "desktop_mid-scroll.png",
            tmp_path / "desktop_bottom-scroll.png",
        ]
        runner = InspectionRunner(
            settings=settings,
            viewports=[Viewport(name="desktop", width=1920, height=1080)],
            capture=mock_capture,
        )

        report = await runner.run()

        assert [p.rsplit("/", 1)[-1] for p in report.screenshots] == [
            "desktop_Initial_Load.png",
            "desktop_mid-scroll.png",
            "desktop_bottom-scroll.png",
        ]
        assert "- `desktop_mid-scroll.png`" in report.to_markdown()
        # desktop skips the navigation layout check
        assert mock_page.evaluate.await_count == 9

    @pytest.mark.asyncio
    async def test_mobile_navigation_checked(self, settings, mock_capture, mock_playwright, mock_page):
        mock_page.evaluate.side_effect = [0, None, 0, None, 0, None, {"display": "flex", "flex_direction": "row"}]
        runner = InspectionRunner(
            settings=settings,
            viewports=[Viewport(name="mobile", width=375, height=667)],
            capture=mock_capture,
        )

        runner.log = MagicMock()

        report = await runner.run()

        assert report.total_issues == 7
        warnings = [c.args[0] for c in runner.log.warning.call_args_list]
        assert "Navigation may not be optimized for mobile" in warnings
