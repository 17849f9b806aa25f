"""Scripted interaction scenarios.

A scenario is a named list of actions (fill, click, wait) replayed on a
freshly loaded page before the snapshot is taken. Scenarios are loaded from
a JSON file and validated with pydantic.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Optional

import structlog
from playwright.async_api import Page
from pydantic import BaseModel, Field, TypeAdapter, model_validator

logger = structlog.get_logger()

INITIAL_LOAD = "Initial Load"


class ActionType(str, Enum):
    """Supported scenario actions."""
    FILL = "fill"
    CLICK = "click"
    WAIT = "wait"


class ScenarioAction(BaseModel):
    """A single scripted interaction."""

    type: ActionType
    selector: Optional[str] = None
    value: Optional[str] = None
    index: Optional[int] = Field(None, ge=0, description="Pick the n-th match of selector")
    duration_ms: int = Field(0, ge=0, description="Wait duration for wait actions")

    @model_validator(mode="after")
    def _check_required_fields(self) -> "ScenarioAction":
        if self.type in (ActionType.FILL, ActionType.CLICK) and not self.selector:
            raise ValueError(f"{self.type.value} action requires a selector")
        if self.type == ActionType.FILL and self.value is None:
            raise ValueError("fill action requires a value")
        return self


class Scenario(BaseModel):
    """A named sequence of actions."""

    name: str = Field(..., min_length=1)
    description: str = ""
    actions: list[ScenarioAction] = Field(default_factory=list)


DEFAULT_SCENARIOS: list[Scenario] = [
    Scenario(name=INITIAL_LOAD, description="Layout right after the page loads"),
]

_scenario_list_adapter = TypeAdapter(list[Scenario])


def load_scenarios(path: str | Path) -> list[Scenario]:
    """Load and validate scenarios from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        json.JSONDecodeError: If the file is not valid JSON
        pydantic.ValidationError: If the file content is not a valid list of scenarios
    """
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    scenarios = _scenario_list_adapter.validate_python(data)
    logger.info("Scenarios loaded", path=str(path), count=len(scenarios))
    return scenarios


async def execute_actions(
    page: Page,
    actions: list[ScenarioAction],
    action_delay_ms: int = 300,
) -> int:
    """Replay actions on a page.

    A failing action is logged and skipped so the remaining actions still run.

    Returns:
        Number of actions that completed
    """
    completed = 0
    for action in actions:
        try:
            if action.type == ActionType.FILL:
                if action.index is not None:
                    matches = await page.query_selector_all(action.selector)
                    if action.index >= len(matches):
                        raise LookupError(
                            f"no match #{action.index} for {action.selector} ({len(matches)} found)"
                        )
                    await matches[action.index].fill(action.value)
                else:
                    await page.fill(action.selector, action.value)
            elif action.type == ActionType.CLICK:
                await page.click(action.selector)
            elif action.type == ActionType.WAIT:
                await page.wait_for_timeout(action.duration_ms)

            await page.wait_for_timeout(action_delay_ms)
            completed += 1
        except Exception as e:
            logger.warning(
                "Action failed",
                action=action.type.value,
                selector=action.selector,
                error=str(e),
            )

    return completed
