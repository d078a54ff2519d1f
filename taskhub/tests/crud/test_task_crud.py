import pytest
from datetime import date
from unittest.mock import patch
from sqlalchemy.orm import Session

from taskhub.crud.project import create_project, soft_delete_project
from taskhub.crud.tag import create_tag, soft_delete_tag
from taskhub.crud.task import (
    create_task,
    get_task,
    get_tasks,
    update_task,
    soft_delete_task,
    add_tag_to_task,
    remove_tag_from_task,
)
from taskhub.models.notification import Notification
from taskhub.models.task import Task as TaskModel, TaskPriority, TaskStatus
from taskhub.models.task_tag import TaskTag
from taskhub.models.activity_log import ActivityLog, EntityType
from taskhub.core.exceptions import (
    TaskNotFound,
    TagNotFound,
    TaskTagNotFound,
    DuplicateTaskTag,
    TaskValidationError,
)


@pytest.fixture
def project_a(db: Session, user_a, as_principal):
    return create_project(db, as_principal(user_a), {"name": "Alice project"})


def _notifications_for(db: Session, user_id: int):
    return db.query(Notification).filter(Notification.user_id == user_id).order_by(Notification.id).all()


def test_create_task_defaults_and_derived_fields(db: Session, user_a, project_a, as_principal):
    task = create_task(db, as_principal(user_a), {"title": "  Write docs ", "project_id": project_a["id"]})

    assert task["title"] == "Write docs"
    assert task["priority"] == TaskPriority.medium
    assert task["status"] == TaskStatus.pending
    assert task["project_name"] == "Alice project"
    assert task["created_by_username"] == "alice"
    assert task["assigned_to"] is None
    assert task["assigned_to_username"] is None
    assert task["tags"] == []


def test_create_then_get_returns_same_shape(db: Session, user_a, user_b, project_a, as_principal):
    created = create_task(
        db, as_principal(user_a),
        {
            "title": "Ship",
            "description": "release 1.0",
            "project_id": project_a["id"],
            "assigned_to": user_b.id,
            "priority": TaskPriority.high,
            "due_date": date(2030, 1, 15),
        },
    )
    fetched = get_task(db, as_principal(user_a), created["id"])
    assert fetched == created
    assert fetched["assigned_to_username"] == "bob"
    assert fetched["due_date"] == date(2030, 1, 15)


def test_create_task_validation(db: Session, user_a, project_a, as_principal):
    principal = as_principal(user_a)
    with pytest.raises(TaskValidationError):
        create_task(db, principal, {"title": "", "project_id": project_a["id"]})
    with pytest.raises(TaskValidationError):
        create_task(db, principal, {"title": "No project"})
    with pytest.raises(TaskValidationError) as exc_info:
        create_task(db, principal, {"title": "Ghost project", "project_id": 9999})
    assert exc_info.value.details[0]["field"] == "project_id"
    with pytest.raises(TaskValidationError) as exc_info:
        create_task(db, principal, {"title": "Ghost user", "project_id": project_a["id"], "assigned_to": 9999})
    assert exc_info.value.details[0]["field"] == "assigned_to"
    assert db.query(TaskModel).count() == 0


def test_create_task_in_deleted_project_fails(db: Session, user_a, project_a, as_principal):
    soft_delete_project(db, as_principal(user_a), project_a["id"])
    with pytest.raises(TaskValidationError):
        create_task(db, as_principal(user_a), {"title": "Late", "project_id": project_a["id"]})


def test_assign_on_create_notifies_and_broadcasts(db: Session, user_a, user_b, project_a, as_principal):
    with patch("taskhub.crud.task.broadcaster") as task_broadcaster, \
            patch("taskhub.services.notification.broadcaster") as notify_broadcaster:
        task = create_task(
            db, as_principal(user_a),
            {"title": "Fix bug", "project_id": project_a["id"], "assigned_to": user_b.id},
        )

    notifications = _notifications_for(db, user_b.id)
    assert len(notifications) == 1
    assert notifications[0].type == "task_assigned"
    assert notifications[0].message == 'Task "Fix bug" assigned to you!'
    assert notifications[0].entity_type == EntityType.TASK
    assert notifications[0].entity_id == task["id"]
    assert notifications[0].is_read is False

    task_broadcaster.emit.assert_called_once()
    event, payload = task_broadcaster.emit.call_args.args
    assert event == "taskCreated"
    assert payload["task"]["id"] == task["id"]
    assert payload["task"]["status"] == "pending"

    notify_broadcaster.emit.assert_called_once()
    event, payload = notify_broadcaster.emit.call_args.args
    assert event == "newNotification"
    assert payload["notification"]["message"] == 'Task "Fix bug" assigned to you!'


def test_self_assignment_does_not_notify(db: Session, user_a, project_a, as_principal):
    create_task(db, as_principal(user_a), {"title": "Mine", "project_id": project_a["id"], "assigned_to": user_a.id})
    assert _notifications_for(db, user_a.id) == []


def test_reassign_and_complete_notifications(db: Session, user_a, user_b, user_c, project_a, as_principal):
    task = create_task(
        db, as_principal(user_a),
        {"title": "Fix bug", "project_id": project_a["id"], "assigned_to": user_b.id},
    )

    update_task(db, as_principal(user_a), task["id"], {"assigned_to": user_c.id})
    carol_notes = _notifications_for(db, user_c.id)
    assert [n.type for n in carol_notes] == ["task_reassigned"]
    assert carol_notes[0].message == 'Task "Fix bug" has been reassigned to you!'

    with patch("taskhub.crud.task.broadcaster") as task_broadcaster:
        updated = update_task(db, as_principal(user_c), task["id"], {"status": TaskStatus.completed})
    assert updated["status"] == TaskStatus.completed
    carol_notes = _notifications_for(db, user_c.id)
    assert [n.type for n in carol_notes] == ["task_reassigned", "task_completed"]
    assert carol_notes[1].message == 'You marked "Fix bug" as completed.'

    event, payload = task_broadcaster.emit.call_args.args
    assert event == "taskUpdated"
    assert payload["task"]["status"] == "completed"

    # повторное завершение не создаёт новых уведомлений
    update_task(db, as_principal(user_c), task["id"], {"status": TaskStatus.completed})
    assert len(_notifications_for(db, user_c.id)) == 2


def test_update_task_ignores_none_and_logs_changes(db: Session, user_a, project_a, as_principal):
    task = create_task(
        db, as_principal(user_a),
        {"title": "Draft", "description": "keep me", "project_id": project_a["id"]},
    )
    updated = update_task(
        db, as_principal(user_a), task["id"],
        {"title": "Final", "description": None, "priority": TaskPriority.urgent},
    )
    assert updated["title"] == "Final"
    assert updated["description"] == "keep me"
    assert updated["priority"] == TaskPriority.urgent

    entry = (
        db.query(ActivityLog)
        .filter(ActivityLog.entity_type == EntityType.TASK, ActivityLog.action_type == "UPDATED")
        .one()
    )
    assert entry.details["old"] == {"title": "Draft", "priority": "medium"}
    assert entry.details["new"] == {"title": "Final", "priority": "urgent"}


def test_update_task_can_move_between_projects(db: Session, user_a, project_a, as_principal):
    other = create_project(db, as_principal(user_a), {"name": "Other"})
    task = create_task(db, as_principal(user_a), {"title": "Move me", "project_id": project_a["id"]})
    moved = update_task(db, as_principal(user_a), task["id"], {"project_id": other["id"]})
    assert moved["project_id"] == other["id"]
    assert moved["project_name"] == "Other"

    with pytest.raises(TaskValidationError):
        update_task(db, as_principal(user_a), task["id"], {"project_id": 9999})


def test_parent_task_cycle_rejected(db: Session, user_a, project_a, as_principal):
    principal = as_principal(user_a)
    root = create_task(db, principal, {"title": "Root", "project_id": project_a["id"]})
    child = create_task(db, principal, {"title": "Child", "project_id": project_a["id"], "parent_task_id": root["id"]})
    grandchild = create_task(
        db, principal, {"title": "Grandchild", "project_id": project_a["id"], "parent_task_id": child["id"]}
    )

    with pytest.raises(TaskValidationError) as exc_info:
        update_task(db, principal, root["id"], {"parent_task_id": grandchild["id"]})
    assert exc_info.value.details[0]["field"] == "parent_task_id"

    with pytest.raises(TaskValidationError):
        update_task(db, principal, root["id"], {"parent_task_id": root["id"]})

    with pytest.raises(TaskValidationError):
        create_task(db, principal, {"title": "Orphan", "project_id": project_a["id"], "parent_task_id": 9999})

    assert get_task(db, principal, root["id"])["parent_task_id"] is None


def test_task_visibility(db: Session, user_a, user_b, user_c, admin_user, project_a, as_principal):
    assigned = create_task(
        db, as_principal(user_a),
        {"title": "For bob", "project_id": project_a["id"], "assigned_to": user_b.id},
    )
    private = create_task(db, as_principal(user_a), {"title": "Alice only", "project_id": project_a["id"]})

    assert {t["id"] for t in get_tasks(db, as_principal(user_a))} == {assigned["id"], private["id"]}
    assert [t["id"] for t in get_tasks(db, as_principal(user_b))] == [assigned["id"]]
    assert get_tasks(db, as_principal(user_c)) == []

    with pytest.raises(TaskNotFound):
        get_task(db, as_principal(user_c), private["id"])

    # у задач нет привилегии администратора
    assert get_tasks(db, as_principal(admin_user)) == []
    with pytest.raises(TaskNotFound):
        get_task(db, as_principal(admin_user), private["id"])
    with pytest.raises(TaskNotFound):
        soft_delete_task(db, as_principal(admin_user), private["id"])


def test_project_owner_sees_tasks_created_by_others(db: Session, user_a, user_b, project_a, as_principal):
    task = create_task(db, as_principal(user_b), {"title": "Bob in alice project", "project_id": project_a["id"]})
    assert [t["id"] for t in get_tasks(db, as_principal(user_a))] == [task["id"]]
    updated = update_task(db, as_principal(user_a), task["id"], {"description": "owner edit"})
    assert updated["description"] == "owner edit"


def test_non_visible_user_cannot_update(db: Session, user_a, user_c, project_a, as_principal):
    task = create_task(db, as_principal(user_a), {"title": "Secret", "project_id": project_a["id"]})
    with pytest.raises(TaskNotFound):
        update_task(db, as_principal(user_c), task["id"], {"title": "Hacked"})
    assert get_task(db, as_principal(user_a), task["id"])["title"] == "Secret"


def test_filters_and_search(db: Session, user_a, user_b, project_a, as_principal):
    principal = as_principal(user_a)
    other = create_project(db, principal, {"name": "Other"})
    t1 = create_task(db, principal, {
        "title": "Fix login", "project_id": project_a["id"], "priority": TaskPriority.high,
        "due_date": date(2030, 1, 1), "assigned_to": user_b.id,
    })
    t2 = create_task(db, principal, {
        "title": "Write docs", "description": "LOGIN page notes", "project_id": project_a["id"],
        "priority": TaskPriority.low, "due_date": date(2030, 2, 1),
    })
    t3 = create_task(db, principal, {
        "title": "Deploy", "project_id": other["id"], "status": TaskStatus.in_progress,
        "due_date": date(2030, 3, 1),
    })

    def ids(filters):
        return {t["id"] for t in get_tasks(db, principal, filters)}

    assert ids({"project_id": project_a["id"]}) == {t1["id"], t2["id"]}
    assert ids({"search": "login"}) == {t1["id"], t2["id"]}
    assert ids({"priority": TaskPriority.high}) == {t1["id"]}
    assert ids({"status": TaskStatus.in_progress}) == {t3["id"]}
    assert ids({"assigned_to": user_b.id}) == {t1["id"]}
    assert ids({"due_date_start": date(2030, 1, 15), "due_date_end": date(2030, 2, 15)}) == {t2["id"]}
    assert ids({"project_id": project_a["id"], "priority": TaskPriority.low}) == {t2["id"]}


def test_sorting_and_fallback(db: Session, user_a, project_a, as_principal):
    principal = as_principal(user_a)
    low = create_task(db, principal, {"title": "b", "project_id": project_a["id"], "priority": TaskPriority.low})
    urgent = create_task(db, principal, {"title": "c", "project_id": project_a["id"], "priority": TaskPriority.urgent})
    medium = create_task(db, principal, {"title": "a", "project_id": project_a["id"], "priority": TaskPriority.medium})

    by_priority = get_tasks(db, principal, order_by="priority", order_direction="DESC")
    assert [t["id"] for t in by_priority] == [urgent["id"], medium["id"], low["id"]]

    by_title = get_tasks(db, principal, order_by="title", order_direction="asc")
    assert [t["title"] for t in by_title] == ["a", "b", "c"]

    # неизвестная колонка и направление -> created_at DESC
    fallback = get_tasks(db, principal, order_by="password_hash; DROP TABLE tasks", order_direction="sideways")
    default = get_tasks(db, principal)
    assert [t["id"] for t in fallback] == [t["id"] for t in default]
    assert db.query(TaskModel).count() == 3


def test_tags_filter_requires_all(db: Session, user_a, project_a, as_principal):
    principal = as_principal(user_a)
    red = create_tag(db, principal, {"name": "red"})
    blue = create_tag(db, principal, {"name": "blue"})
    both = create_task(db, principal, {"title": "both", "project_id": project_a["id"]})
    only_red = create_task(db, principal, {"title": "red only", "project_id": project_a["id"]})
    create_task(db, principal, {"title": "none", "project_id": project_a["id"]})

    add_tag_to_task(db, principal, both["id"], red["id"])
    add_tag_to_task(db, principal, both["id"], blue["id"])
    add_tag_to_task(db, principal, only_red["id"], red["id"])

    result = get_tasks(db, principal, {"tags": [red["id"], blue["id"]]})
    assert [t["id"] for t in result] == [both["id"]]
    assert [tag["name"] for tag in result[0]["tags"]] == ["blue", "red"]

    result = get_tasks(db, principal, {"tags": [red["id"]]})
    assert {t["id"] for t in result} == {both["id"], only_red["id"]}


def test_add_and_remove_tag(db: Session, user_a, project_a, as_principal):
    principal = as_principal(user_a)
    tag = create_tag(db, principal, {"name": "urgent-fix"})
    task = create_task(db, principal, {"title": "Tagged", "project_id": project_a["id"]})

    with patch("taskhub.crud.task.broadcaster") as mock_broadcaster:
        link = add_tag_to_task(db, principal, task["id"], tag["id"])
    assert link == {"taskId": task["id"], "tagId": tag["id"]}
    mock_broadcaster.emit.assert_called_once_with("taskTagAdded", {"taskId": task["id"], "tagId": tag["id"]})
    assert get_task(db, principal, task["id"])["tags"] == [{"id": tag["id"], "name": "urgent-fix"}]

    with pytest.raises(DuplicateTaskTag):
        add_tag_to_task(db, principal, task["id"], tag["id"])
    assert db.query(TaskTag).count() == 1

    with patch("taskhub.crud.task.broadcaster") as mock_broadcaster:
        remove_tag_from_task(db, principal, task["id"], tag["id"])
    mock_broadcaster.emit.assert_called_once_with("taskTagRemoved", {"taskId": task["id"], "tagId": tag["id"]})
    assert get_task(db, principal, task["id"])["tags"] == []

    with pytest.raises(TaskTagNotFound):
        remove_tag_from_task(db, principal, task["id"], tag["id"])


def test_add_deleted_or_missing_tag(db: Session, user_a, project_a, as_principal):
    principal = as_principal(user_a)
    tag = create_tag(db, principal, {"name": "gone"})
    task = create_task(db, principal, {"title": "Tagged", "project_id": project_a["id"]})
    soft_delete_tag(db, principal, tag["id"])

    with pytest.raises(TagNotFound):
        add_tag_to_task(db, principal, task["id"], tag["id"])
    with pytest.raises(TagNotFound):
        add_tag_to_task(db, principal, task["id"], 9999)


def test_deleted_tag_hidden_from_task(db: Session, user_a, project_a, as_principal):
    principal = as_principal(user_a)
    keep = create_tag(db, principal, {"name": "keep"})
    drop = create_tag(db, principal, {"name": "drop"})
    task = create_task(db, principal, {"title": "Tagged", "project_id": project_a["id"]})
    add_tag_to_task(db, principal, task["id"], keep["id"])
    add_tag_to_task(db, principal, task["id"], drop["id"])

    soft_delete_tag(db, principal, drop["id"])

    assert [t["name"] for t in get_task(db, principal, task["id"])["tags"]] == ["keep"]
    # связь в task_tags сохраняется
    assert db.query(TaskTag).filter(TaskTag.task_id == task["id"]).count() == 2
    assert get_tasks(db, principal, {"tags": [drop["id"]]}) == []


def test_tag_operations_require_task_access(db: Session, user_a, user_c, project_a, as_principal):
    tag = create_tag(db, as_principal(user_c), {"name": "carol-tag"})
    task = create_task(db, as_principal(user_a), {"title": "Alice task", "project_id": project_a["id"]})
    with pytest.raises(TaskNotFound):
        add_tag_to_task(db, as_principal(user_c), task["id"], tag["id"])
    # чужой тег можно повесить на свою задачу
    add_tag_to_task(db, as_principal(user_a), task["id"], tag["id"])


def test_soft_delete_task(db: Session, user_a, project_a, as_principal):
    principal = as_principal(user_a)
    task = create_task(db, principal, {"title": "Bye", "project_id": project_a["id"]})

    with patch("taskhub.crud.task.broadcaster") as mock_broadcaster:
        soft_delete_task(db, principal, task["id"])
    mock_broadcaster.emit.assert_called_once_with("taskDeleted", {"id": task["id"]})

    db_task = db.query(TaskModel).filter(TaskModel.id == task["id"]).one()
    assert db_task.is_deleted is True
    assert db_task.deleted_at is not None
    assert get_tasks(db, principal) == []
    with pytest.raises(TaskNotFound):
        get_task(db, principal, task["id"])
    with pytest.raises(TaskNotFound):
        soft_delete_task(db, principal, task["id"])


def test_assignee_completes_task_scenario(db: Session, user_a, user_b, as_principal):
    website = create_project(db, as_principal(user_a), {"name": "Website"})
    with patch("taskhub.crud.task.broadcaster") as task_broadcaster:
        task = create_task(
            db, as_principal(user_a),
            {"title": "Design homepage", "project_id": website["id"], "assigned_to": user_b.id},
        )
    payload = task_broadcaster.emit.call_args.args[1]
    assert payload["task"]["project_name"] == "Website"

    update_task(db, as_principal(user_b), task["id"], {"status": TaskStatus.completed})

    assert [n.type for n in _notifications_for(db, user_b.id)] == ["task_assigned", "task_completed"]
    entry = (
        db.query(ActivityLog)
        .filter(ActivityLog.action_type == "UPDATED", ActivityLog.entity_type == EntityType.TASK)
        .one()
    )
    assert entry.user_id == user_b.id
    assert entry.details == {"old": {"status": "pending"}, "new": {"status": "completed"}}


def test_search_treats_wildcards_literally(db: Session, user_a, project_a, as_principal):
    principal = as_principal(user_a)
    percent = create_task(db, principal, {"title": "Reach 100% coverage", "project_id": project_a["id"]})
    create_task(db, principal, {"title": "Release 1000 units", "project_id": project_a["id"]})
    snake = create_task(db, principal, {"title": "rename user_id", "project_id": project_a["id"]})
    create_task(db, principal, {"title": "user-id docs", "project_id": project_a["id"]})
    backslash = create_task(db, principal, {"title": r"path C:\temp", "project_id": project_a["id"]})

    def ids(search):
        return [t["id"] for t in get_tasks(db, principal, {"search": search})]

    assert ids("100%") == [percent["id"]]
    assert ids("user_id") == [snake["id"]]
    assert ids("\\") == [backslash["id"]]
