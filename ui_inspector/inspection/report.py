"""Inspection report model and renderers.

The report is an immutable value: the runner folds each detector result
into it with ``Report.extend``, which returns a new report. Grouping helpers
only reorganise issues for presentation and never drop or duplicate them.
"""

import json
from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional

import structlog

from ..config import ReportFormat
from .models import Issue, IssueCategory

logger = structlog.get_logger()

DEFAULT_TITLE = "UI Inspection Report"
MARKDOWN_FILENAME = "ui-inspection-report.md"
JSON_FILENAME = "ui-inspection-report.json"


@dataclass(frozen=True)
class Report:
    """Accumulated issues of one inspection run."""

    issues: tuple[Issue, ...] = ()
    screenshots: tuple[str, ...] = ()
    generated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def extend(
        self,
        issues: Iterable[Issue],
        screenshots: Iterable[str | Path] = (),
    ) -> "Report":
        """Return a new report with ``issues`` and ``screenshots`` appended."""
        return Report(
            issues=self.issues + tuple(issues),
            screenshots=self.screenshots + tuple(str(path) for path in screenshots),
            generated_at=self.generated_at,
        )

    @property
    def total_issues(self) -> int:
        return len(self.issues)

    @property
    def high_priority_issues(self) -> list[Issue]:
        return [issue for issue in self.issues if issue.category.is_high_priority]

    def group_by_category(self) -> dict[IssueCategory, list[Issue]]:
        """Group issues by category, keeping first-seen category order."""
        groups: dict[IssueCategory, list[Issue]] = {}
        for issue in self.issues:
            groups.setdefault(issue.category, []).append(issue)
        return groups

    def group_by_viewport(self) -> dict[str, list[Issue]]:
        """Group issues by viewport name, keeping first-seen viewport order."""
        groups: dict[str, list[Issue]] = {}
        for issue in self.issues:
            groups.setdefault(issue.viewport, []).append(issue)
        return groups

    def top_categories(self, limit: int = 5) -> list[tuple[IssueCategory, int]]:
        return Counter(issue.category for issue in self.issues).most_common(limit)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "generated_at": self.generated_at.isoformat(),
            "total_issues": self.total_issues,
            "issues_by_viewport": {
                viewport: len(issues) for viewport, issues in self.group_by_viewport().items()
            },
            "issues_by_category": {
                category.value: len(issues) for category, issues in self.group_by_category().items()
            },
            "issues": [issue.to_dict() for issue in self.issues],
            "screenshots": list(self.screenshots),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Report":
        """Create instance from dictionary."""
        return cls(
            issues=tuple(Issue.from_dict(issue) for issue in data.get("issues", [])),
            screenshots=tuple(data.get("screenshots", [])),
            generated_at=datetime.fromisoformat(data["generated_at"]),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)

    def to_markdown(
        self,
        title: str = DEFAULT_TITLE,
        screenshot_dir: Optional[str] = None,
    ) -> str:
        """Render the report as Markdown."""
        lines = [
            f"# {title}",
            "",
            f"**Generated:** {self.generated_at.isoformat()}",
            f"**Total Issues Found:** {self.total_issues}",
            "",
            "## Issues by Viewport",
            "",
        ]

        by_viewport = self.group_by_viewport()
        if not by_viewport:
            lines += ["No major issues found! 🎉", ""]
        else:
            for viewport, issues in by_viewport.items():
                lines.append(f"- **{viewport}**: {len(issues)} issues")
            lines.append("")

        by_category = self.group_by_category()
        if by_category:
            lines += ["## Issues by Category", ""]
            for category, issues in by_category.items():
                lines += [f"### {category.value} ({len(issues)} issues)", ""]
                for index, issue in enumerate(issues, start=1):
                    heading = issue.viewport
                    if issue.scenario:
                        heading = f"{heading} - {issue.scenario}"
                    lines += [f"**{index}. {heading}**", issue.description, ""]

        if screenshot_dir or self.screenshots:
            lines += ["## Screenshots", ""]
            if screenshot_dir:
                lines += [
                    "Screenshots for each viewport and scenario have been saved to:",
                    f"`{screenshot_dir}`",
                    "",
                ]
            if self.screenshots:
                lines += [f"- `{Path(path).name}`" for path in self.screenshots]
                lines.append("")

        lines += ["## Recommendations", ""]
        if not self.issues:
            lines.append("✅ No major UI issues were found.")
        else:
            lines += ["### Priority Fixes", ""]
            priority = self.high_priority_issues
            if priority:
                lines += [
                    "These issues should be addressed first as they significantly impact usability:",
                    "",
                ]
                for index, issue in enumerate(priority, start=1):
                    lines.append(
                        f"{index}. **{issue.category.value}** ({issue.viewport}): {issue.description}"
                    )
            else:
                lines.append("No critical issues found that would block user interaction.")

        return "\n".join(lines) + "\n"

    def write(
        self,
        output_dir: str | Path,
        report_format: ReportFormat = ReportFormat.MARKDOWN,
        title: str = DEFAULT_TITLE,
        screenshot_dir: Optional[str] = None,
    ) -> Path:
        """Persist the report and return the written path."""
        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        if report_format == ReportFormat.JSON:
            report_path = output_path / JSON_FILENAME
            report_path.write_text(self.to_json(), encoding="utf-8")
        else:
            report_path = output_path / MARKDOWN_FILENAME
            report_path.write_text(
                self.to_markdown(title=title, screenshot_dir=screenshot_dir),
                encoding="utf-8",
            )

        logger.info(
            "Report saved",
            path=str(report_path),
            format=report_format.value,
            total_issues=self.total_issues,
        )
        return report_path


def flatten_groups(groups: Mapping[Any, Iterable[Issue]]) -> list[Issue]:
    """Flatten grouped issues back into a single list."""
    return [issue for issues in groups.values() for issue in issues]
