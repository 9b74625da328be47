"""
Service insights - digest du board + appel HTTP au modèle Gemini
"""

import logging
from datetime import datetime
from typing import List

import requests
from sqlalchemy.orm import Session, selectinload

from taskboard.core.config import settings
from taskboard.core.exceptions import InsightsUnavailableError
from taskboard.models.column import BoardColumn
from taskboard.models.project import Project
from taskboard.models.task import Task
from taskboard.services.access_service import VIEW_ROLES, Principal, guard_project

logger = logging.getLogger(__name__)


def build_board_digest(db: Session, project: Project) -> str:
    columns = db.query(BoardColumn).options(
        selectinload(BoardColumn.tasks).selectinload(Task.labels)
    ).filter(
        BoardColumn.project_id == project.id
    ).order_by(BoardColumn.order, BoardColumn.id).all()

    lines: List[str] = []
    for column in columns:
        lines.append(f"## Column: {column.title}")
        active = sorted((t for t in column.tasks if not t.is_archived), key=lambda t: (t.order, t.id))
        archived = sorted(
            (t for t in column.tasks if t.is_archived),
            key=lambda t: t.archived_at or datetime.min,
            reverse=True
        )

        lines.append(f"Active Tasks ({len(active)}):")
        for task in active:
            lines.append(f"  - {task.title}")
            if task.description:
                lines.append(f"    Description: {task.description}")
            if task.labels:
                lines.append(f"    Labels: {', '.join(label.name for label in task.labels)}")
            lines.append(f"    Status: {'Completed' if task.is_completed else 'In Progress'}")

        if archived:
            lines.append(f"Archived Tasks ({len(archived)}):")
            for task in archived:
                when = task.archived_at.strftime("%b %d") if task.archived_at else "?"
                lines.append(f"  - {task.title} (archived {when})")
        lines.append("")

    return "\n".join(lines)


def craft_prompt(project_title: str, digest: str) -> str:
    return f"""You are an AI Project Strategist analyzing a Kanban board for "{project_title}".

Based on the following board data, provide a concise executive summary that includes:
1. **Project Overview**: A 2-3 sentence summary of the project's current state.
2. **Progress Analysis**: What has been accomplished (completed tasks, archived items).
3. **Current Focus**: What the team is actively working on.
4. **Potential Bottlenecks**: Any columns with too many tasks or tasks that seem stalled.
5. **Strategic Recommendations**: 2-3 actionable next steps based on the data.

Keep the response concise and actionable. Use markdown formatting.

---

## Board Data:

{digest}

---

Provide your analysis:"""


def call_gemini(prompt: str) -> str:
    if not settings.GEMINI_API_KEY:
        raise InsightsUnavailableError("Insights are not configured (GEMINI_API_KEY is not set)")

    url = f"{settings.GEMINI_BASE_URL}/models/{settings.GEMINI_MODEL}:generateContent"
    body = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {"temperature": 0.7, "maxOutputTokens": 2048},
    }

    try:
        response = requests.post(
            url,
            params={"key": settings.GEMINI_API_KEY},
            json=body,
            timeout=settings.INSIGHTS_TIMEOUT
        )
        response.raise_for_status()
        data = response.json()
        return data["candidates"][0]["content"]["parts"][0]["text"].strip()
    except requests.RequestException as e:
        logger.error(f"Gemini request failed: {e.__class__.__name__}")
        raise InsightsUnavailableError("Unable to generate insights, please try again later") from e
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.error(f"Unexpected Gemini response: {e!r}")
        raise InsightsUnavailableError("The insights service returned an unexpected response") from e


def generate_insights(db: Session, principal: Principal, project_id: int) -> Project:
    """Generate the summary and cache it on the project."""
    project = guard_project(db, principal, project_id, VIEW_ROLES)

    prompt = craft_prompt(project.title, build_board_digest(db, project))
    summary = call_gemini(prompt) or "No insights generated."

    project.ai_summary = summary
    project.ai_summary_date = datetime.utcnow()
    db.commit()
    db.refresh(project)
    logger.info("user %s refreshed insights of project %s", principal.user_id, project.id)
    return project


def get_cached_insights(db: Session, principal: Principal, project_id: int) -> Project:
    return guard_project(db, principal, project_id, VIEW_ROLES)
