from datetime import timedelta
from decimal import Decimal

import pytest

from sprintboard.core.exceptions import NotFoundError
from sprintboard.models.enums import StoryStatus, TaskStatus, LineageSource
from sprintboard.services.activity_log_service import ActivityLogService
from sprintboard.services.backlog_service import BacklogService
from sprintboard.services.story_service import StoryService


@pytest.fixture
async def sprint(factory):
    project = await factory.project(id="PROJ001")
    return await factory.sprint(project, id="SPNT001")


async def test_pull_copies_story_and_open_tasks(db, factory, sprint, today):
    story = await factory.story(
        sprint, id="STRY001", status=StoryStatus.IN_PROGRESS, actual_hours=Decimal("3.00")
    )
    await factory.task(story, id="TASK001", status=TaskStatus.IN_PROGRESS, assignee_id="USER001")
    await factory.task(story, id="TASK002", status=TaskStatus.DONE)

    service = StoryService(db)
    pulled = await service.create_story_from_previous_sprint("STRY001", "SPNT002", today=today)

    assert pulled.id != "STRY001"
    assert pulled.sprint_id == "SPNT002"
    assert pulled.parent_id == "STRY001"
    assert pulled.lineage_source == LineageSource.PREVIOUS_SPRINT
    assert pulled.status == StoryStatus.TODO
    assert pulled.actual_hours == Decimal("0")

    tasks = await service.task_service.get_tasks_by_story(pulled.id)
    assert len(tasks) == 1
    assert tasks[0].status == TaskStatus.IN_PROGRESS
    assert tasks[0].assignee_id == "USER001"
    assert tasks[0].is_pulled_from_backlog is True


async def test_pull_of_a_pulled_story_points_at_the_root(db, factory, sprint, today):
    story = await factory.story(sprint, id="STRY001")
    await factory.task(story)

    service = StoryService(db)
    second = await service.create_story_from_previous_sprint("STRY001", "SPNT002", today=today)
    third = await service.create_story_from_previous_sprint(second.id, "SPNT003", today=today)

    assert third.parent_id == "STRY001"


async def test_pull_logs_activity_for_the_user(db, factory, sprint, today):
    story = await factory.story(sprint, id="STRY001", title="Search")
    await factory.task(story, id="TASK001", title="Index titles")

    service = StoryService(db)
    pulled = await service.create_story_from_previous_sprint(
        "STRY001", "SPNT002", user_id="USER001", today=today
    )

    entries = await ActivityLogService(db).get_entity_activity("story", pulled.id)
    assert len(entries) == 1
    assert entries[0].action == "pulled_to_sprint"
    assert entries[0].user_id == "USER001"
    assert entries[0].new_values["tasks_copied"] == 1
    assert entries[0].old_values["sprint_id"] == "SPNT001"

    task = (await service.task_service.get_tasks_by_story(pulled.id))[0]
    task_entries = await ActivityLogService(db).get_entity_activity("task", task.id)
    assert task_entries[0].new_values["original_task_id"] == "TASK001"


async def test_pull_of_missing_story_raises(db):
    with pytest.raises(NotFoundError):
        await StoryService(db).create_story_from_previous_sprint("STRY404", "SPNT002")


async def test_lineage_collects_every_attempt(db, factory, sprint, today):
    story = await factory.story(sprint, id="STRY001")
    await factory.task(story, due_date=today - timedelta(days=1))

    backlog_service = BacklogService(db)
    backlog_story = (await backlog_service.move_sprint_to_backlog("SPNT001", today=today))[0]
    first_clone = await backlog_service.clone_story_from_backlog(backlog_story.id, "SPNT002")
    second_clone = await backlog_service.clone_story_from_backlog(backlog_story.id, "SPNT003")

    lineage = await StoryService(db).get_story_lineage(second_clone.id)

    assert lineage.root_id == "STRY001"
    assert lineage.stories[0].id == "STRY001"
    assert {s.id for s in lineage.stories[1:]} == {first_clone.id, second_clone.id}
    assert lineage.rollover_count == 2


async def test_lineage_of_a_story_without_history(db, factory, sprint):
    await factory.story(sprint, id="STRY001")

    lineage = await StoryService(db).get_story_lineage("STRY001")

    assert lineage.root_id == "STRY001"
    assert [s.id for s in lineage.stories] == ["STRY001"]
    assert lineage.rollover_count == 0
