#checklist/services/email_templates.py
"""
Письма-уведомления на Jinja2-шаблонах из templates/emails/.
Каждая функция возвращает (subject, html). Значения экранируются автоматически.
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATE_FOLDER = Path(__file__).parent.parent / "templates"

@lru_cache()
def get_template_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_FOLDER)),
        autoescape=select_autoescape(["html"]),
    )

def _team_link(app_url: str, team_slug: str) -> str:
    return f"{app_url.rstrip('/')}/team/{team_slug}"

def _render(template_name: str, subject: str, **context) -> Tuple[str, str]:
    template = get_template_env().get_template(f"emails/{template_name}")
    return subject, template.render(subject=subject, **context)

def task_assignment(recipient_name, assigned_by_name, task_title, team_name, team_slug, app_url) -> Tuple[str, str]:
    return _render(
        "task_assignment.html",
        f"New Task Assignment in {team_name}",
        recipient_name=recipient_name,
        actor_name=assigned_by_name,
        task_title=task_title,
        team_name=team_name,
        link=_team_link(app_url, team_slug),
    )

def task_completion(recipient_name, completed_by_name, task_title, team_name, team_slug, app_url) -> Tuple[str, str]:
    return _render(
        "task_completion.html",
        f"Task Completed in {team_name}",
        recipient_name=recipient_name,
        actor_name=completed_by_name,
        task_title=task_title,
        team_name=team_name,
        link=_team_link(app_url, team_slug),
    )

def checkin(recipient_name, checked_in_user_name, team_name, team_slug, app_url, notes: Optional[str] = None) -> Tuple[str, str]:
    return _render(
        "checkin.html",
        f"{checked_in_user_name} checked in to {team_name}",
        recipient_name=recipient_name,
        actor_name=checked_in_user_name,
        team_name=team_name,
        notes=notes,
        link=_team_link(app_url, team_slug),
    )

def new_task(recipient_name, created_by_name, task_title, task_type, team_name, team_slug, app_url) -> Tuple[str, str]:
    label = "Checklist Item" if task_type == "checklist" else "Task"
    return _render(
        "new_task.html",
        f"New {label} in {team_name}",
        recipient_name=recipient_name,
        actor_name=created_by_name,
        task_title=task_title,
        label=label,
        team_name=team_name,
        link=_team_link(app_url, team_slug),
    )

def invitation(invited_by_name, team_name, token, app_url, recipient_name: Optional[str] = None, expires_in_days: int = 7) -> Tuple[str, str]:
    return _render(
        "invitation.html",
        f"You're invited to join {team_name}",
        recipient_name=recipient_name,
        actor_name=invited_by_name,
        team_name=team_name,
        expires_in_days=expires_in_days,
        link=f"{app_url.rstrip('/')}/invite/{token}",
    )
