"""Workflow entry points by name."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from . import (
    calendar_availability,
    commit_pr,
    expense_classifier,
    paper_survey,
    repo_compare,
    subscription_research,
    video_compare,
    vscode_to_form,
    web_research,
    workspace_to_vscode,
)
from .base import WorkflowConfig, run_guarded

__all__ = ["WORKFLOWS", "WorkflowConfig", "WorkflowEntry", "run_guarded"]


@dataclass(frozen=True)
class WorkflowEntry:
    """A workflow's run coroutine and its configuration type."""

    run: Callable[..., Awaitable[Any]]
    config_type: type[WorkflowConfig]


WORKFLOWS: dict[str, WorkflowEntry] = {
    subscription_research.NAME: WorkflowEntry(
        subscription_research.run, subscription_research.SubscriptionResearchConfig
    ),
    paper_survey.NAME: WorkflowEntry(paper_survey.run, paper_survey.PaperSurveyConfig),
    web_research.NAME: WorkflowEntry(web_research.run, web_research.WebResearchConfig),
    repo_compare.NAME: WorkflowEntry(repo_compare.run, repo_compare.RepoCompareConfig),
    video_compare.NAME: WorkflowEntry(video_compare.run, video_compare.VideoCompareConfig),
    commit_pr.NAME: WorkflowEntry(commit_pr.run, commit_pr.CommitPrConfig),
    expense_classifier.NAME: WorkflowEntry(expense_classifier.run, expense_classifier.ExpenseClassifierConfig),
    workspace_to_vscode.NAME: WorkflowEntry(workspace_to_vscode.run, workspace_to_vscode.WorkspaceToVscodeConfig),
    vscode_to_form.NAME: WorkflowEntry(vscode_to_form.run, vscode_to_form.VscodeToFormConfig),
    calendar_availability.NAME: WorkflowEntry(
        calendar_availability.run, calendar_availability.CalendarAvailabilityConfig
    ),
}
