from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from sprintboard.config import settings
from sprintboard.core.exceptions import NotFoundError
from sprintboard.models.backlog import BacklogStory, BacklogTask, BacklogSubtask
from sprintboard.models.enums import StoryStatus, TaskStatus, Priority, LineageSource
from sprintboard.models.story import Story, Task
from sprintboard.services.backlog_service import BacklogService
from sprintboard.services.notification_service import NotificationService
from sprintboard.services.task_service import TaskService


async def _count(db, model) -> int:
    result = await db.execute(select(func.count()).select_from(model))
    return result.scalar_one()


@pytest.fixture
async def sprint(factory):
    project = await factory.project(id="PROJ001")
    return await factory.sprint(project, id="SPNT001")


class TestMoveSprintToBacklog:

    async def test_overdue_task_is_carried_and_done_task_is_not(self, db, factory, sprint, today):
        story = await factory.story(sprint, id="STRY001", title="Checkout flow")
        await factory.task(story, id="TASK001", status=TaskStatus.IN_PROGRESS, due_date=today - timedelta(days=1))
        await factory.task(story, id="TASK002", status=TaskStatus.DONE)

        created = await BacklogService(db).move_sprint_to_backlog("SPNT001", today=today)

        assert len(created) == 1
        backlog_story = created[0]
        assert backlog_story.original_story_id == "STRY001"
        assert backlog_story.original_sprint_id == "SPNT001"
        assert backlog_story.created_from_sprint_id == "SPNT001"
        assert backlog_story.status == StoryStatus.BACKLOG

        backlog_tasks = await BacklogService(db).get_backlog_tasks_by_story(backlog_story.id)
        assert [t.original_task_id for t in backlog_tasks] == ["TASK001"]
        assert backlog_tasks[0].is_overdue is True

    async def test_fully_resolved_story_is_not_copied(self, db, factory, sprint, today):
        story = await factory.story(sprint)
        await factory.task(story, status=TaskStatus.DONE, due_date=today - timedelta(days=3))
        await factory.task(story, status=TaskStatus.CANCELLED)

        created = await BacklogService(db).move_sprint_to_backlog(sprint.id, today=today)

        assert created == []
        assert await _count(db, BacklogStory) == 0

    async def test_story_without_tasks_is_not_copied(self, db, factory, sprint, today):
        await factory.story(sprint)

        assert await BacklogService(db).move_sprint_to_backlog(sprint.id, today=today) == []

    async def test_empty_sprint_returns_empty_list(self, db, sprint, today):
        assert await BacklogService(db).move_sprint_to_backlog(sprint.id, today=today) == []

    async def test_unknown_sprint_raises_not_found(self, db):
        with pytest.raises(NotFoundError) as exc_info:
            await BacklogService(db).move_sprint_to_backlog("SPNT999")
        assert exc_info.value.entity_id == "SPNT999"

    async def test_overdue_flag_is_strictly_before_reference_date(self, db, factory, sprint, today):
        story = await factory.story(sprint)
        await factory.task(story, id="TASK010", due_date=today, order_index=0)
        await factory.task(story, id="TASK011", due_date=today - timedelta(days=1), order_index=1)
        await factory.task(story, id="TASK012", due_date=None, order_index=2)

        created = await BacklogService(db).move_sprint_to_backlog(sprint.id, today=today)
        backlog_tasks = await BacklogService(db).get_backlog_tasks_by_story(created[0].id)

        flags = {t.original_task_id: t.is_overdue for t in backlog_tasks}
        assert flags == {"TASK010": False, "TASK011": True, "TASK012": False}

    async def test_story_fields_are_copied(self, db, factory, sprint, today):
        story = await factory.story(
            sprint,
            title="Search",
            description="Full text search",
            acceptance_criteria=["Finds by title", "Finds by label"],
            status=StoryStatus.REVIEW,
            priority=Priority.HIGH,
            story_points=5,
            assignee_id="USER001",
            reporter_id="USER002",
            epic_id="EPIC001",
            release_id="RELS001",
            labels=["search"],
            order_index=3,
            estimated_hours=Decimal("12.50"),
            actual_hours=Decimal("7.00"),
        )
        await factory.task(story)

        backlog_story = (await BacklogService(db).move_sprint_to_backlog(sprint.id, today=today))[0]

        assert backlog_story.project_id == "PROJ001"
        assert backlog_story.title == "Search"
        assert backlog_story.description == "Full text search"
        assert backlog_story.acceptance_criteria == ["Finds by title", "Finds by label"]
        assert backlog_story.priority == Priority.HIGH
        assert backlog_story.story_points == 5
        assert backlog_story.assignee_id == "USER001"
        assert backlog_story.reporter_id == "USER002"
        assert backlog_story.epic_id == "EPIC001"
        assert backlog_story.release_id == "RELS001"
        assert backlog_story.labels == ["search"]
        assert backlog_story.order_index == 3
        assert backlog_story.estimated_hours == Decimal("12.50")
        assert backlog_story.actual_hours == Decimal("7.00")
        assert backlog_story.id != story.id

    async def test_only_open_subtasks_are_carried(self, db, factory, sprint, today):
        story = await factory.story(sprint)
        task = await factory.task(story)
        await factory.subtask(task, id="SUBT001", is_completed=False, severity="major")
        await factory.subtask(task, id="SUBT002", is_completed=True)

        service = BacklogService(db)
        backlog_story = (await service.move_sprint_to_backlog(sprint.id, today=today))[0]
        backlog_task = (await service.get_backlog_tasks_by_story(backlog_story.id))[0]
        backlog_subtasks = await service.get_backlog_subtasks_by_task(backlog_task.id)

        assert [s.original_subtask_id for s in backlog_subtasks] == ["SUBT001"]
        assert backlog_subtasks[0].is_completed is False
        assert backlog_subtasks[0].severity == "major"

    async def test_live_rows_are_left_untouched(self, db, factory, sprint, today):
        story = await factory.story(sprint, id="STRY001", status=StoryStatus.IN_PROGRESS)
        await factory.task(story, id="TASK001", status=TaskStatus.BLOCKED)

        await BacklogService(db).move_sprint_to_backlog(sprint.id, today=today)
        db.expunge_all()

        live_story = await db.get(Story, "STRY001")
        live_task = await db.get(Task, "TASK001")
        assert live_story.sprint_id == "SPNT001"
        assert live_story.status == StoryStatus.IN_PROGRESS
        assert live_task.status == TaskStatus.BLOCKED
        assert await _count(db, Story) == 1

    async def test_running_twice_duplicates_shadows_by_default(self, db, factory, sprint, today):
        story = await factory.story(sprint)
        await factory.task(story)

        service = BacklogService(db)
        await service.move_sprint_to_backlog(sprint.id, today=today)
        await service.move_sprint_to_backlog(sprint.id, today=today)

        assert await _count(db, BacklogStory) == 2

    async def test_skip_existing_shadows_setting(self, db, factory, sprint, today, monkeypatch):
        monkeypatch.setattr(settings, "rollover_skip_existing_shadows", True)
        story = await factory.story(sprint)
        await factory.task(story)

        service = BacklogService(db)
        first = await service.move_sprint_to_backlog(sprint.id, today=today)
        second = await service.move_sprint_to_backlog(sprint.id, today=today)

        assert len(first) == 1
        assert second == []
        assert await _count(db, BacklogStory) == 1

    async def test_failure_leaves_no_partial_backlog(self, db, factory, sprint, today, monkeypatch):
        first = await factory.story(sprint, order_index=0)
        await factory.task(first)
        second = await factory.story(sprint, order_index=1)
        await factory.task(second)
        sprint_id = sprint.id

        service = BacklogService(db)
        original_shadow_task = service._shadow_task
        calls = []

        async def failing_shadow_task(task, backlog_story_id, reference_date):
            calls.append(task.id)
            if len(calls) == 2:
                raise RuntimeError("disk full")
            return await original_shadow_task(task, backlog_story_id, reference_date)

        monkeypatch.setattr(service, "_shadow_task", failing_shadow_task)

        with pytest.raises(RuntimeError):
            await service.move_sprint_to_backlog(sprint_id, today=today)

        assert await _count(db, BacklogStory) == 0
        assert await _count(db, BacklogTask) == 0
        assert await _count(db, BacklogSubtask) == 0


class TestCloneStoryFromBacklog:

    @pytest.fixture
    async def backlog_story_id(self, db, factory, sprint, today):
        story = await factory.story(
            sprint,
            id="STRY001",
            title="Checkout flow",
            status=StoryStatus.IN_PROGRESS,
            labels=["payments"],
            estimated_hours=Decimal("10.00"),
            actual_hours=Decimal("6.00"),
        )
        task = await factory.task(
            story,
            id="TASK001",
            status=TaskStatus.IN_PROGRESS,
            assignee_id="USER001",
            due_date=today - timedelta(days=2),
            task_number=1,
        )
        await factory.subtask(task, is_completed=False, title="Card validation")

        created = await BacklogService(db).move_sprint_to_backlog(sprint.id, today=today)
        return created[0].id

    async def test_clone_resets_story_and_links_parent(self, db, backlog_story_id):
        story = await BacklogService(db).clone_story_from_backlog(backlog_story_id, "SPNT002")

        assert story.id not in ("STRY001", backlog_story_id)
        assert story.sprint_id == "SPNT002"
        assert story.parent_id == "STRY001"
        assert story.lineage_source == LineageSource.ROLLOVER
        assert story.status == StoryStatus.TODO
        assert story.actual_hours == Decimal("0")
        assert story.estimated_hours == Decimal("10.00")
        assert story.title == "Checkout flow"
        assert story.labels == ["payments"]

    async def test_clone_preserves_task_and_subtask_state(self, db, backlog_story_id, today):
        service = BacklogService(db)
        story = await service.clone_story_from_backlog(backlog_story_id, "SPNT002")

        tasks = (await db.execute(select(Task).where(Task.story_id == story.id))).scalars().all()
        assert len(tasks) == 1
        task = tasks[0]
        assert task.id != "TASK001"
        assert task.status == TaskStatus.IN_PROGRESS
        assert task.assignee_id == "USER001"
        assert task.due_date == today - timedelta(days=2)
        assert task.is_pulled_from_backlog is True
        assert task.task_number == 1

        subtasks = await service.subtask_service.get_subtasks_by_task(task.id)
        assert [s.title for s in subtasks] == ["Card validation"]
        assert subtasks[0].is_completed is False

    async def test_clone_renumbers_tasks_sharing_number_one(self, db, factory, sprint, today):
        story = await factory.story(sprint, id="STRY009")
        for index, title in enumerate(["Schema", "Endpoint", "Docs"]):
            await factory.task(story, title=title, task_number=1, order_index=index)

        service = BacklogService(db)
        created = await service.move_sprint_to_backlog(sprint.id, today=today)
        clone = await service.clone_story_from_backlog(created[0].id, "SPNT002")

        tasks = (await db.execute(
            select(Task).where(Task.story_id == clone.id).order_by(Task.order_index)
        )).scalars().all()
        assert [t.title for t in tasks] == ["Schema", "Endpoint", "Docs"]
        assert [t.task_number for t in tasks] == [1, 2, 3]

    async def test_clone_survives_rejected_assignee_notification(self, db, backlog_story_id):
        class UntitledNotificationService(NotificationService):
            async def create_notification(self, **kwargs):
                kwargs["title"] = None
                return await super().create_notification(**kwargs)

        task_service = TaskService(db, notification_service=UntitledNotificationService(db))
        service = BacklogService(db, task_service=task_service)

        story = await service.clone_story_from_backlog(backlog_story_id, "SPNT002")
        story_id = story.id

        db.expunge_all()
        tasks = (await db.execute(select(Task).where(Task.story_id == story_id))).scalars().all()
        assert [t.assignee_id for t in tasks] == ["USER001"]
        assert len(await service.subtask_service.get_subtasks_by_task(tasks[0].id)) == 1

    async def test_clone_leaves_backlog_rows_untouched(self, db, backlog_story_id):
        service = BacklogService(db)
        await service.clone_story_from_backlog(backlog_story_id, "SPNT002")
        db.expunge_all()

        backlog_story = await service.get_backlog_story_by_id(backlog_story_id)
        assert backlog_story.status == StoryStatus.BACKLOG
        assert backlog_story.actual_hours == Decimal("6.00")
        assert len(await service.get_backlog_tasks_by_story(backlog_story_id)) == 1

    async def test_cloning_twice_gives_independent_stories(self, db, backlog_story_id):
        service = BacklogService(db)
        first = await service.clone_story_from_backlog(backlog_story_id, "SPNT002")
        second = await service.clone_story_from_backlog(backlog_story_id, "SPNT003")

        assert first.id != second.id
        assert first.parent_id == second.parent_id == "STRY001"
        assert first.title == second.title
        assert await _count(db, Task) == 3

    async def test_clone_of_backlog_story_without_origin_points_at_itself(self, db, factory, sprint):
        backlog_story = BacklogStory(
            id="STRYBACKLOGONLY",
            project_id=sprint.project_id,
            title="Idea from grooming",
            status=StoryStatus.BACKLOG,
        )
        db.add(backlog_story)
        await db.commit()

        story = await BacklogService(db).clone_story_from_backlog("STRYBACKLOGONLY", "SPNT002")

        assert story.parent_id == "STRYBACKLOGONLY"
        assert story.lineage_source == LineageSource.SELF_ORIGIN

    async def test_clone_of_missing_backlog_story_raises(self, db):
        with pytest.raises(NotFoundError) as exc_info:
            await BacklogService(db).clone_story_from_backlog("BAD_ID", "SPNT002")
        assert exc_info.value.entity == "Backlog story"
        assert "BAD_ID" in exc_info.value.message


class TestCloneStoriesFromBacklog:

    @pytest.fixture
    async def backlog_story_ids(self, db, factory, sprint, today):
        for index in range(2):
            story = await factory.story(sprint, title=f"Story {index}", order_index=index)
            await factory.task(story)
        created = await BacklogService(db).move_sprint_to_backlog(sprint.id, today=today)
        return [backlog_story.id for backlog_story in created]

    async def test_bad_id_is_skipped(self, db, backlog_story_ids):
        bs1, bs2 = backlog_story_ids

        stories = await BacklogService(db).clone_stories_from_backlog([bs1, "BAD_ID", bs2], "SPNT003")

        assert [story.title for story in stories] == ["Story 0", "Story 1"]
        assert all(story.sprint_id == "SPNT003" for story in stories)
        assert await _count(db, Story) == 4

    async def test_detailed_result_reports_failures(self, db, backlog_story_ids):
        bs1, bs2 = backlog_story_ids

        result = await BacklogService(db).clone_stories_from_backlog_detailed(
            [bs1, "BAD_ID", bs2], "SPNT003"
        )

        assert len(result.stories) == 2
        assert [f.backlog_story_id for f in result.failures] == ["BAD_ID"]
        assert "BAD_ID" in result.failures[0].error

    async def test_empty_batch(self, db):
        assert await BacklogService(db).clone_stories_from_backlog([], "SPNT003") == []


class TestReadAccessors:

    async def test_backlog_stories_by_project(self, db, factory, sprint, today):
        story = await factory.story(sprint)
        await factory.task(story)
        await BacklogService(db).move_sprint_to_backlog(sprint.id, today=today)

        service = BacklogService(db)
        assert len(await service.get_backlog_stories_by_project("PROJ001")) == 1
        assert await service.get_backlog_stories_by_project("PROJ404") == []

    async def test_missing_lookups_return_empty(self, db):
        service = BacklogService(db)
        assert await service.get_backlog_tasks_by_story("nope") == []
        assert await service.get_backlog_subtasks_by_task("nope") == []
