"""Inspection driver.

Launches a browser, renders the target app at every configured viewport,
replays each scenario on a fresh page load, captures a screenshot and a
snapshot, and folds the detector's findings into one ``Report``.

Browser failures (navigation timeouts, failed actions, page crashes) are
logged and skipped: the affected viewport or scenario simply contributes no
snapshot. Only a browser that cannot be launched, or snapshot data that
violates the model contract, aborts the run.
"""

from pathlib import Path
from typing import Optional, Sequence

import structlog
from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from ..config import Settings, get_settings
from .capture import SnapshotCapture
from .detector import DetectorPolicy, IssueDetector
from .models import ContractViolation, Viewport, get_viewport
from .report import Report
from .scenarios import DEFAULT_SCENARIOS, Scenario, execute_actions

logger = structlog.get_logger()

SCROLL_OFFSET_JS = "() => window.pageYOffset"
SCROLL_TO_MIDDLE_JS = "() => window.scrollTo(0, Math.max(document.body.scrollHeight / 2, 500))"
SCROLL_TO_BOTTOM_JS = "() => window.scrollTo(0, document.body.scrollHeight)"
SCROLL_TO_TOP_JS = "() => window.scrollTo(0, 0)"

NAV_LAYOUT_JS = """
() => {
    const nav = document.querySelector('nav, [role="navigation"], .navigation, .navbar');
    if (!nav) {
        return null;
    }
    const style = window.getComputedStyle(nav);
    return {display: style.display, flex_direction: style.flexDirection};
}
"""


class InspectionError(Exception):
    """Exception raised when an inspection run cannot start."""

    pass


class InspectionRunner:
    """Runs the viewport x scenario inspection loop.

    Usage:
        runner = InspectionRunner(settings)
        report = await runner.run()
        report.write(settings.output_dir)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        viewports: Optional[Sequence[Viewport]] = None,
        scenarios: Optional[Sequence[Scenario]] = None,
        detector: Optional[IssueDetector] = None,
        capture: Optional[SnapshotCapture] = None,
    ):
        self.settings = settings or get_settings()
        self.viewports = list(viewports) if viewports is not None else [
            get_viewport(name) for name in self.settings.viewports
        ]
        self.scenarios = list(scenarios) if scenarios is not None else list(DEFAULT_SCENARIOS)
        self.detector = detector or IssueDetector(DetectorPolicy.from_settings(self.settings))
        self.capture = capture or SnapshotCapture(
            screenshot_dir=self.settings.screenshot_dir,
            max_elements=self.settings.max_elements,
        )
        self.log = logger.bind(component="inspection_runner")

    async def run(self, url: Optional[str] = None) -> Report:
        """Inspect the app at every viewport and return the folded report.

        Raises:
            InspectionError: If the browser cannot be launched
        """
        url = url or self.settings.app_url
        report = Report()

        self.log.info(
            "Starting inspection",
            url=url,
            viewports=[v.name for v in self.viewports],
            scenarios=[s.name for s in self.scenarios],
        )

        async with async_playwright() as p:
            try:
                browser = await p.chromium.launch(
                    headless=self.settings.headless,
                    slow_mo=self.settings.slow_mo_ms,
                )
            except Exception as e:
                raise InspectionError(f"Could not launch browser: {e}") from e

            try:
                for viewport in self.viewports:
                    result = await self.inspect_viewport(browser, viewport, url)
                    report = report.extend(result.issues, result.screenshots)
            finally:
                await browser.close()

        self.log.info(
            "Inspection complete",
            total_issues=report.total_issues,
            by_viewport={vp: len(i) for vp, i in report.group_by_viewport().items()},
        )
        return report

    async def inspect_viewport(
        self,
        browser: Browser,
        viewport: Viewport,
        url: str,
    ) -> Report:
        """Run every scenario at one viewport with a fresh context.

        Returns a partial report holding this viewport's issues and
        screenshots.
        """
        result = Report()
        context: Optional[BrowserContext] = None
        log = self.log.bind(viewport=viewport.name)
        log.info("Inspecting viewport", width=viewport.width, height=viewport.height)

        try:
            context = await browser.new_context(**viewport.to_playwright_config())
            page = await context.new_page()
            self._attach_error_listeners(page, viewport)

            for scenario in self.scenarios:
                scenario_result = await self.inspect_scenario(page, viewport, scenario, url)
                result = result.extend(scenario_result.issues, scenario_result.screenshots)

            if await self.check_vertical_scroll(page, viewport):
                result = result.extend([], await self.capture_scroll_positions(page, viewport))

            if viewport.is_mobile(self.settings.mobile_max_width_px):
                await self.check_mobile_navigation(page, viewport)

        except ContractViolation:
            raise
        except Exception as e:
            log.error("Viewport inspection failed", error=str(e))
        finally:
            if context:
                await context.close()

        log.info("Viewport inspected", issues=result.total_issues)
        return result

    async def inspect_scenario(
        self,
        page: Page,
        viewport: Viewport,
        scenario: Scenario,
        url: str,
    ) -> Report:
        """Load the page, replay the scenario and detect issues.

        Returns an empty report when the page could not be loaded or captured.
        """
        with structlog.contextvars.bound_contextvars(viewport=viewport.name, scenario=scenario.name):
            try:
                await page.goto(
                    url,
                    wait_until="networkidle",
                    timeout=self.settings.navigation_timeout_ms,
                )
                await page.wait_for_timeout(self.settings.settle_delay_ms)

                if scenario.actions:
                    completed = await execute_actions(
                        page, scenario.actions, action_delay_ms=self.settings.action_delay_ms
                    )
                    self.log.debug("Actions replayed", completed=completed, total=len(scenario.actions))
                    await page.wait_for_timeout(self.settings.settle_delay_ms)

                screenshot = await self.capture.take_screenshot(page, viewport, scenario.name)
                snapshot = await self.capture.capture_snapshot(page, viewport)
            except ContractViolation:
                raise
            except Exception as e:
                self.log.error("Scenario capture failed", error=str(e))
                return Report()

            issues = self.detector.detect(snapshot, scenario=scenario.name)
            self.log.info("Scenario inspected", issues=len(issues))

        return Report(issues=issues, screenshots=(str(screenshot),) if screenshot else ())

    async def check_vertical_scroll(self, page: Page, viewport: Viewport) -> bool:
        """Scroll to the middle and the bottom, then back to the top.

        Returns:
            True if either position moved past the starting offset
        """
        try:
            initial = await page.evaluate(SCROLL_OFFSET_JS)
            await page.evaluate(SCROLL_TO_MIDDLE_JS)
            await page.wait_for_timeout(500)
            middle = await page.evaluate(SCROLL_OFFSET_JS)
            await page.evaluate(SCROLL_TO_BOTTOM_JS)
            await page.wait_for_timeout(500)
            end = await page.evaluate(SCROLL_OFFSET_JS)
            await page.evaluate(SCROLL_TO_TOP_JS)
            await page.wait_for_timeout(300)
        except Exception as e:
            self.log.warning("Scroll check failed", viewport=viewport.name, error=str(e))
            return False

        if middle <= initial and end <= initial:
            self.log.warning("Page does not scroll vertically", viewport=viewport.name)
            return False

        self.log.debug("Vertical scroll working", viewport=viewport.name, middle=middle, end=end)
        return True

    async def capture_scroll_positions(self, page: Page, viewport: Viewport) -> list[Path]:
        """Save screenshots at the middle and bottom scroll positions."""
        paths = []
        try:
            for js, label in ((SCROLL_TO_MIDDLE_JS, "mid-scroll"), (SCROLL_TO_BOTTOM_JS, "bottom-scroll")):
                await page.evaluate(js)
                path = await self.capture.take_screenshot(page, viewport, label)
                if path:
                    paths.append(path)
            await page.evaluate(SCROLL_TO_TOP_JS)
        except Exception as e:
            self.log.warning("Scroll screenshots failed", viewport=viewport.name, error=str(e))
        return paths

    async def check_mobile_navigation(self, page: Page, viewport: Viewport) -> bool:
        """Warn when the main navigation is not stacked vertically.

        Returns:
            False if a navigation bar was found with a non-column layout
        """
        try:
            nav = await page.evaluate(NAV_LAYOUT_JS)
        except Exception as e:
            self.log.warning("Navigation check failed", viewport=viewport.name, error=str(e))
            return True

        if nav and nav.get("flex_direction") != "column":
            self.log.warning(
                "Navigation may not be optimized for mobile",
                viewport=viewport.name,
                display=nav.get("display"),
                flex_direction=nav.get("flex_direction"),
            )
            return False
        return True

    def _attach_error_listeners(self, page: Page, viewport: Viewport) -> None:
        def on_page_error(error) -> None:
            self.log.warning("JavaScript error", viewport=viewport.name, error=str(error))

        def on_console(message) -> None:
            if message.type == "error":
                self.log.warning("Console error", viewport=viewport.name, text=message.text)

        page.on("pageerror", on_page_error)
        page.on("console", on_console)
