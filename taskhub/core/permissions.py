#taskhub/core/permissions.py
"""
Политика доступа.

Два представления одних и тех же правил:
- чистые функции can_* — проверка над уже прочитанной строкой;
- *_clause — те же правила в виде SQL-условия, которое подставляется в
  SELECT и в условный UPDATE, чтобы проверка и запись шли одним запросом.

CRUD использует только *_clause. Функции can_* — эталонная запись правил;
тесты сверяют по ним результаты *_clause на реальных строках.

Правила:
- проект: создатель или admin;
- задача (чтение и запись одинаково): создатель, исполнитель или владелец проекта;
- тег (изменение/удаление): только создатель, admin не имеет приоритета.
Удалённые ресурсы для не-админов считаются несуществующими.
"""

import enum
from typing import Optional

from sqlalchemy import or_, select, true

from taskhub.core.security import Principal
from taskhub.models.project import Project
from taskhub.models.tag import Tag
from taskhub.models.task import Task


class Action(str, enum.Enum):
    read = "read"
    update = "update"
    delete = "delete"


# ==== Чистые функции ====

def can_access_project(principal: Principal, project: Project, action: Action = Action.read) -> bool:
    if project.is_deleted and not principal.is_admin:
        return False
    return principal.is_admin or project.created_by == principal.user_id


def can_access_task(
    principal: Principal,
    task: Task,
    action: Action = Action.read,
    project_owner_id: Optional[int] = None,
) -> bool:
    if task.is_deleted:
        return False
    return principal.user_id in (task.created_by, task.assigned_to, project_owner_id)


def can_access_tag(principal: Principal, tag: Tag, action: Action = Action.read) -> bool:
    if tag.is_deleted:
        return False
    if action == Action.read:
        return True
    return tag.created_by == principal.user_id


def can_access(principal: Principal, resource, action: Action = Action.read, **context) -> bool:
    """
    Общая точка входа: выбирает правило по типу ресурса.
    """
    if isinstance(resource, Project):
        return can_access_project(principal, resource, action)
    if isinstance(resource, Task):
        return can_access_task(principal, resource, action, context.get("project_owner_id"))
    if isinstance(resource, Tag):
        return can_access_tag(principal, resource, action)
    raise TypeError(f"No access rule for {type(resource).__name__}")


# ==== SQL-условия ====

def project_clause(principal: Principal):
    if principal.is_admin:
        return true()
    return Project.created_by == principal.user_id


def owned_projects_subquery(principal: Principal):
    return select(Project.id).where(Project.created_by == principal.user_id)


def task_clause(principal: Principal):
    return or_(
        Task.created_by == principal.user_id,
        Task.assigned_to == principal.user_id,
        Task.project_id.in_(owned_projects_subquery(principal)),
    )


def tag_write_clause(principal: Principal):
    return Tag.created_by == principal.user_id
