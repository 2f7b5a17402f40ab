#checklist/crud/team.py
import random
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from checklist.models.team import Team, TeamMember, TeamBan
from checklist.models.task import Task, TaskAssignment
from checklist.models.user import User
from checklist.core.security import hash_password, verify_password
from checklist.core.validators import slugify, MANAGER_ROLES
from checklist.core.notification_kinds import NOTIFICATION_KINDS, team_default_field, user_field
from checklist.core.exceptions import (
    TeamNotFound,
    TeamValidationError,
    MembershipNotFound,
    PermissionDeniedError,
    BannedFromTeamError,
    ConcurrencyConflictError,
)
from checklist.crud import notification_preferences as prefs
from checklist.services.preferences import effective_settings

logger = logging.getLogger("Checklist.Teams")

MIN_TEAM_PASSWORD_LENGTH = 4
ASSIGNABLE_ROLES = ("member", "admin")

# === ДОСТУП ===

def get_membership(db: Session, team_id: int, user_id: int) -> Optional[TeamMember]:
    return db.query(TeamMember).filter_by(team_id=team_id, user_id=user_id).first()

def is_banned(db: Session, team_id: int, user_id: int) -> bool:
    return db.query(TeamBan).filter_by(team_id=team_id, user_id=user_id).first() is not None

def require_member(db: Session, team_id: int, user_id: int) -> TeamMember:
    """
    Участник команды без бана, иначе PermissionDeniedError / BannedFromTeamError.
    """
    if is_banned(db, team_id, user_id):
        raise BannedFromTeamError()
    membership = get_membership(db, team_id, user_id)
    if membership is None:
        raise PermissionDeniedError("You don't have access to this team")
    return membership

def require_manager(db: Session, team_id: int, user_id: int, action: str = "manage this team") -> TeamMember:
    membership = require_member(db, team_id, user_id)
    if membership.role not in MANAGER_ROLES:
        raise PermissionDeniedError(f"You don't have permission to {action}")
    return membership

def _commit(db: Session, what: str, error_cls=TeamValidationError) -> None:
    try:
        db.commit()
    except StaleDataError as e:
        db.rollback()
        logger.warning(f"Concurrent modification while trying to {what}: {e}")
        raise ConcurrencyConflictError()
    except IntegrityError as e:
        db.rollback()
        logger.error(f"Integrity error while trying to {what}: {e}")
        raise error_cls(f"Database error while trying to {what}.")

# === КОМАНДЫ ===

def get_team(db: Session, team_id: int, include_deleted: bool = False) -> Team:
    """
    Получить команду по ID (можно явно указать включать или нет удалённые).
    """
    query = db.query(Team).filter(Team.id == team_id)
    if not include_deleted:
        query = query.filter(Team.is_deleted == False)
    team = query.first()
    if not team:
        raise TeamNotFound(f"Team {team_id} not found{' (or is deleted)' if not include_deleted else ''}.")
    return team

def get_team_by_slug(db: Session, slug: str) -> Team:
    team = db.query(Team).filter(Team.slug == slug, Team.is_deleted == False).first()
    if not team:
        raise TeamNotFound(f"Team '{slug}' not found.")
    return team

def get_all_teams(db: Session) -> List[Team]:
    """
    Публичный список: не удалённые и не приватные команды.
    """
    return (
        db.query(Team)
        .filter(Team.is_deleted == False, Team.is_private == False)
        .order_by(Team.name)
        .all()
    )

def get_user_teams(db: Session, user_id: int) -> List[Dict[str, Any]]:
    """
    Команды пользователя вместе с его ролью.
    """
    rows = (
        db.query(Team, TeamMember.role)
        .join(TeamMember, TeamMember.team_id == Team.id)
        .filter(TeamMember.user_id == user_id, Team.is_deleted == False)
        .order_by(Team.name)
        .all()
    )
    return [{"team": team, "role": role} for team, role in rows]

def _unique_slug(db: Session, name: str) -> str:
    slug = slugify(name)
    if db.query(Team.id).filter(Team.slug == slug).first() is None:
        return slug
    candidate = f"{slug}-{random.randint(0, 999)}"
    if db.query(Team.id).filter(Team.slug == candidate).first() is not None:
        raise TeamValidationError("A team with a similar name already exists, please choose another name.")
    return candidate

def _validate_password(password: Optional[str]) -> str:
    if not password or len(password) < MIN_TEAM_PASSWORD_LENGTH:
        raise TeamValidationError(f"Team password must be at least {MIN_TEAM_PASSWORD_LENGTH} characters long.")
    return password

def _build_team(db: Session, data: dict, creator: User) -> Team:
    """
    Команда + создатель-админ + засев настроек создателя (без коммита).
    """
    name = (data.get("name") or "").strip()
    if not name:
        raise TeamValidationError("Team name is required.")
    password = _validate_password(data.get("password"))

    team = Team(
        name=name,
        slug=_unique_slug(db, name),
        password_hash=hash_password(password),
        is_private=bool(data.get("is_private", False)),
        is_cloneable=bool(data.get("is_cloneable", False)),
    )
    for kind, value in (data.get("default_settings") or {}).items():
        if value is not None:
            setattr(team, team_default_field(kind), bool(value))
    db.add(team)
    db.flush()

    db.add(TeamMember(team_id=team.id, user_id=creator.id, role="admin"))
    creator_settings = data.get("notification_settings")
    if creator_settings is None:
        creator_settings = {kind: bool(getattr(creator, user_field(kind))) for kind in NOTIFICATION_KINDS}
    prefs.add_user_to_team_notifications_with_settings(db, creator.id, team.id, creator_settings, commit=False)
    return team

def create_team(db: Session, data: dict, creator_id: int) -> Team:
    """
    Создать команду. Создатель становится admin, всё в одной транзакции.
    """
    creator = db.get(User, creator_id)
    if creator is None:
        raise TeamValidationError("Creator not found.")
    team = _build_team(db, data, creator)
    _commit(db, "create team")
    db.refresh(team)
    logger.info(f"Created team '{team.name}' (ID: {team.id}, slug: {team.slug}) by user {creator_id}")
    return team

def update_team(db: Session, team_id: int, actor_id: int, data: dict) -> Team:
    """
    Изменить название, флаги приватности / клонирования, пароль (только admin / owner).
    """
    team = get_team(db, team_id)
    require_manager(db, team_id, actor_id, "update this team")
    if "name" in data and data["name"] is not None:
        new_name = data["name"].strip()
        if not new_name:
            raise TeamValidationError("Team name is required.")
        team.name = new_name
    for flag in ("is_private", "is_cloneable"):
        if data.get(flag) is not None:
            setattr(team, flag, bool(data[flag]))
    if data.get("password") is not None:
        team.password_hash = hash_password(_validate_password(data["password"]))
    _commit(db, "update team")
    db.refresh(team)
    logger.info(f"Updated team {team_id} by user {actor_id}")
    return team

def join_team(db: Session, team_id: int, user_id: int, password: str) -> TeamMember:
    """
    Вступление по паролю: бан -> отказ, уже участник -> успех, иначе проверка пароля.
    Настройки уведомлений нового участника берутся из его глобальных флагов.
    """
    team = get_team(db, team_id)
    if is_banned(db, team_id, user_id):
        raise BannedFromTeamError()
    existing = get_membership(db, team_id, user_id)
    if existing:
        return existing
    if not verify_password(password, team.password_hash):
        raise PermissionDeniedError("Incorrect password")

    membership = TeamMember(team_id=team_id, user_id=user_id, role="member")
    db.add(membership)
    prefs.add_user_to_team_notifications(db, user_id, team_id, commit=False)
    _commit(db, "join team")
    logger.info(f"User {user_id} joined team {team_id}")
    return membership

def verify_access(db: Session, team_id: int, user_id: int) -> Dict[str, Any]:
    membership = get_membership(db, team_id, user_id)
    banned = is_banned(db, team_id, user_id)
    return {
        "has_access": membership is not None and not banned,
        "role": membership.role if membership else None,
        "is_banned": banned,
    }

def delete_team(db: Session, team_id: int, actor_id: int) -> int:
    """
    Soft-delete команды и всех её задач одной транзакцией. Возвращает число задач.
    """
    team = get_team(db, team_id)
    require_manager(db, team_id, actor_id, "delete this team")
    now = datetime.now(timezone.utc)
    team.is_deleted = True
    team.deleted_at = now
    tasks = db.query(Task).filter(Task.team_id == team_id, Task.is_deleted == False).all()
    for task in tasks:
        task.is_deleted = True
        task.deleted_at = now
    _commit(db, "delete team")
    logger.info(f"Soft-deleted team {team_id} with {len(tasks)} tasks by user {actor_id}")
    return len(tasks)

# === УЧАСТНИКИ ===

def get_team_members(db: Session, team_id: int, actor_id: int) -> List[Dict[str, Any]]:
    """
    Участники с ролью, статусом бана и итоговыми настройками уведомлений в команде.
    """
    get_team(db, team_id)
    require_member(db, team_id, actor_id)
    banned_ids = {user_id for (user_id,) in db.query(TeamBan.user_id).filter_by(team_id=team_id).all()}
    members = (
        db.query(TeamMember)
        .filter_by(team_id=team_id)
        .order_by(TeamMember.joined_at, TeamMember.id)
        .all()
    )
    result = []
    for member in members:
        user = member.user
        overrides = prefs.team_overrides(db, team_id, user.id)
        result.append({
            "id": user.id,
            "name": user.name,
            "email": user.email,
            "avatar_url": user.avatar_url,
            "role": member.role,
            "is_banned": user.id in banned_ids,
            "notification_settings": effective_settings(db, team_id, user),
            "team_specific": {kind: value is not None for kind, value in overrides.items()},
        })
    return result

def update_member_role(db: Session, team_id: int, actor_id: int, user_id: int, role: str) -> TeamMember:
    get_team(db, team_id)
    require_manager(db, team_id, actor_id, "update roles")
    if role not in ASSIGNABLE_ROLES:
        raise TeamValidationError(f"Role must be one of: {', '.join(ASSIGNABLE_ROLES)}.")
    if user_id == actor_id:
        raise TeamValidationError("You cannot change your own role.")
    membership = get_membership(db, team_id, user_id)
    if membership is None:
        raise MembershipNotFound(f"User {user_id} is not a member of team {team_id}.")
    if membership.role == "owner":
        raise PermissionDeniedError("The team owner's role cannot be changed")
    membership.role = role
    _commit(db, "update member role")
    logger.info(f"User {actor_id} set role of user {user_id} in team {team_id} to '{role}'")
    return membership

def ban_user(db: Session, team_id: int, actor_id: int, user_id: int) -> TeamBan:
    get_team(db, team_id)
    require_manager(db, team_id, actor_id, "ban users")
    if user_id == actor_id:
        raise TeamValidationError("You cannot ban yourself.")
    if is_banned(db, team_id, user_id):
        raise TeamValidationError("User is already banned from this team")
    target = get_membership(db, team_id, user_id)
    if target is not None and target.role == "owner":
        raise PermissionDeniedError("The team owner cannot be banned")
    ban = TeamBan(team_id=team_id, user_id=user_id)
    db.add(ban)
    _commit(db, "ban user")
    logger.info(f"User {actor_id} banned user {user_id} from team {team_id}")
    return ban

def unban_user(db: Session, team_id: int, actor_id: int, user_id: int) -> None:
    get_team(db, team_id)
    require_manager(db, team_id, actor_id, "unban users")
    ban = db.query(TeamBan).filter_by(team_id=team_id, user_id=user_id).first()
    if ban is None:
        raise TeamValidationError("User is not banned from this team")
    db.delete(ban)
    _commit(db, "unban user")
    logger.info(f"User {actor_id} unbanned user {user_id} in team {team_id}")

def leave_team(db: Session, team_id: int, user_id: int) -> None:
    """
    Выход из команды. Последний admin не может уйти, пока в команде есть другие участники.
    """
    get_team(db, team_id)
    membership = get_membership(db, team_id, user_id)
    if membership is None:
        raise MembershipNotFound(f"User {user_id} is not a member of team {team_id}.")
    if membership.role in MANAGER_ROLES:
        other_managers = (
            db.query(TeamMember)
            .filter(
                TeamMember.team_id == team_id,
                TeamMember.user_id != user_id,
                TeamMember.role.in_(MANAGER_ROLES),
            )
            .count()
        )
        others = db.query(TeamMember).filter(TeamMember.team_id == team_id, TeamMember.user_id != user_id).count()
        if others and not other_managers:
            raise TeamValidationError("Assign another admin before leaving the team.")
    db.delete(membership)
    prefs.clear_user_team_preferences(db, team_id, user_id, commit=False)
    _commit(db, "leave team")
    logger.info(f"User {user_id} left team {team_id}")

# === НАСТРОЙКИ ДЛЯ НОВЫХ УЧАСТНИКОВ ===

def get_team_defaults(db: Session, team_id: int) -> Dict[str, bool]:
    team = get_team(db, team_id)
    return {kind: bool(getattr(team, team_default_field(kind))) for kind in NOTIFICATION_KINDS}

def update_team_defaults(db: Session, team_id: int, actor_id: int, partial: Dict[str, Optional[bool]]) -> Dict[str, bool]:
    """
    Частичное обновление значений по умолчанию (колонки teams, только admin / owner).
    """
    team = get_team(db, team_id)
    require_manager(db, team_id, actor_id, "update team notification defaults")
    for kind, value in partial.items():
        if kind not in NOTIFICATION_KINDS:
            raise TeamValidationError(f"Unknown notification kind: {kind}")
        if value is not None:
            setattr(team, team_default_field(kind), bool(value))
    _commit(db, "update team defaults")
    logger.info(f"Updated notification defaults for team {team_id} by user {actor_id}")
    return get_team_defaults(db, team_id)

# === КЛОНИРОВАНИЕ ===

def clone_team(db: Session, source_team_id: int, actor_id: int, data: dict) -> Team:
    """
    Клонировать команду: новая команда (actor — admin) + копия леса задач
    с позициями и назначениями (только на участников новой команды), без выполнений.
    Одна транзакция.
    """
    source = get_team(db, source_team_id)
    if not source.is_cloneable:
        raise PermissionDeniedError("This team cannot be cloned")
    if is_banned(db, source_team_id, actor_id):
        raise BannedFromTeamError()
    if source.is_private and get_membership(db, source_team_id, actor_id) is None:
        raise PermissionDeniedError("You don't have access to this team")
    actor = db.get(User, actor_id)
    if actor is None:
        raise TeamValidationError("User not found.")

    payload = dict(data)
    if not payload.get("name"):
        payload["name"] = f"{source.name} (copy)"
    new_team = _build_team(db, payload, actor)

    tasks = (
        db.query(Task)
        .filter(Task.team_id == source_team_id, Task.is_deleted == False)
        .order_by(Task.position, Task.id)
        .all()
    )
    children: Dict[Optional[int], List[Task]] = {}
    for task in tasks:
        children.setdefault(task.parent_id, []).append(task)

    member_ids = {actor_id}
    copied = 0
    stack = [(task, None) for task in reversed(children.get(None, []))]
    while stack:
        original, new_parent_id = stack.pop()
        copy = Task(
            team_id=new_team.id,
            parent_id=new_parent_id,
            title=original.title,
            position=original.position,
            type=original.type,
            visibility=original.visibility,
            deadline=original.deadline,
            time=original.time,
        )
        db.add(copy)
        db.flush()
        copied += 1
        for assignment in original.assignments:
            if assignment.user_id in member_ids:
                db.add(TaskAssignment(task_id=copy.id, user_id=assignment.user_id))
        for child in reversed(children.get(original.id, [])):
            stack.append((child, copy.id))

    _commit(db, "clone team")
    db.refresh(new_team)
    logger.info(f"Cloned team {source_team_id} into {new_team.id} ({copied} tasks) by user {actor_id}")
    return new_team
