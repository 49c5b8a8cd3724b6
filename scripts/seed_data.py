#!/usr/bin/env python3
"""
Seed Data Script for Sprint Board

Creates realistic test data for development:
- 4 Users (various roles)
- 1 Project
- 1 Active Sprint with stories, tasks and subtasks in mixed states

Usage:
    python scripts/seed_data.py              # Add seed data
    python scripts/seed_data.py --clear      # Clear all data first
    python scripts/seed_data.py --complete   # Also close the sprint into the backlog
"""
import asyncio
import sys
import os
from datetime import date, timedelta
from decimal import Decimal
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sprintboard.database import async_session, create_tables, dispose_engine
from sprintboard.models.enums import StoryStatus, TaskStatus, Priority
from sprintboard.models.sprint import Project, Sprint
from sprintboard.models.story import Story, Task, Subtask
from sprintboard.models.backlog import BacklogStory, BacklogTask, BacklogSubtask
from sprintboard.models.user import User
from sprintboard.models.notification import Notification
from sprintboard.models.activity_log import ActivityLog
from sprintboard.models.id_sequence import IdSequence
from sprintboard.services.id_generation import IdGenerationService, EntityKind
from sprintboard.services.sprint_service import SprintService
from sprintboard.services.story_service import StoryService
from sprintboard.services.task_service import TaskService, SubtaskService


# ==================== DATA DEFINITIONS ====================

USERS_DATA = [
    {"email": "alice.sm@company.com", "full_name": "Alice Johnson", "role": "scrum_master"},
    {"email": "carol.po@company.com", "full_name": "Carol Williams", "role": "product_owner"},
    {"email": "emma.dev@company.com", "full_name": "Emma Rodriguez", "role": "developer"},
    {"email": "frank.dev@company.com", "full_name": "Frank Smith", "role": "developer"},
]

# Each story carries (title, status, [(task title, status, due offset in days, [subtasks])])
STORIES_DATA = [
    {
        "title": "User login with SSO",
        "priority": Priority.HIGH,
        "story_points": 8,
        "status": StoryStatus.IN_PROGRESS,
        "tasks": [
            ("Configure identity provider", TaskStatus.DONE, -5, []),
            ("Login callback endpoint", TaskStatus.IN_PROGRESS, -1, [
                ("Handle expired state parameter", False),
                ("Map provider claims to user", True),
            ]),
            ("Session refresh", TaskStatus.TO_DO, 4, []),
        ],
    },
    {
        "title": "Export sprint report as CSV",
        "priority": Priority.MEDIUM,
        "story_points": 3,
        "status": StoryStatus.DONE,
        "tasks": [
            ("CSV writer", TaskStatus.DONE, -3, []),
        ],
    },
    {
        "title": "Notification preferences page",
        "priority": Priority.LOW,
        "story_points": 5,
        "status": StoryStatus.TODO,
        "tasks": [
            ("Preferences form", TaskStatus.TO_DO, -2, [
                ("Email toggle", False),
            ]),
            ("Drop legacy settings table", TaskStatus.CANCELLED, None, []),
        ],
    },
]


async def clear_all_data(session: AsyncSession):
    """Clear all existing data"""
    print("Clearing existing data...")

    for model in (
        BacklogSubtask, BacklogTask, BacklogStory,
        Subtask, Task, Story, Sprint, Project,
        Notification, ActivityLog, User, IdSequence,
    ):
        await session.execute(delete(model))
    await session.commit()

    print("All data cleared")


async def create_users(session: AsyncSession, id_generator: IdGenerationService):
    """Create users"""
    print("\nCreating users...")

    users_map = {}
    for user_data in USERS_DATA:
        user = User(id=await id_generator.next(EntityKind.USER), **user_data)
        session.add(user)
        users_map[user_data["email"]] = user
        print(f"  Created: {user.full_name} ({user.email}) - Role: {user.role}")

    await session.commit()
    return users_map


async def create_project(session: AsyncSession, id_generator: IdGenerationService):
    print("\nCreating project...")

    project = Project(
        id=await id_generator.generate_project_id(),
        name="Customer Portal",
        key="PORTAL",
        description="Self-service portal for customers"
    )
    session.add(project)
    await session.commit()

    print(f"  Created: {project.name} ({project.id})")
    return project


async def create_sprint(session: AsyncSession, id_generator: IdGenerationService, project):
    """Create an active sprint for the project"""
    print(f"\nCreating sprint for {project.name}...")

    today = date.today()
    sprint_start = today - timedelta(days=10)  # Started 10 days ago
    sprint_end = sprint_start + timedelta(days=14)

    sprint_service = SprintService(session, id_generator)
    sprint = await sprint_service.create_sprint(
        project_id=project.id,
        name="Sprint 24",
        start_date=sprint_start,
        end_date=sprint_end,
        goal="Ship SSO login and reporting exports"
    )
    sprint = await sprint_service.start_sprint(sprint.id)

    print(f"  Created: {sprint.name}")
    print(f"    Start: {sprint_start}, End: {sprint_end}")
    print(f"    Goal: {sprint.goal}")

    return sprint


async def create_stories(session: AsyncSession, id_generator: IdGenerationService, project, sprint, users):
    """Create stories, tasks and subtasks in the sprint"""
    print(f"\nCreating stories for {sprint.name}...")

    task_service = TaskService(session, id_generator)
    subtask_service = SubtaskService(session, id_generator)
    story_service = StoryService(session, id_generator, task_service)

    today = date.today()
    developers = [u for u in users if u.role == "developer"]
    task_count = 0

    for index, story_data in enumerate(STORIES_DATA):
        story = await story_service.create_story(Story(
            project_id=project.id,
            sprint_id=sprint.id,
            title=story_data["title"],
            status=story_data["status"],
            priority=story_data["priority"],
            story_points=story_data["story_points"],
            order_index=index,
            estimated_hours=Decimal(story_data["story_points"] * 4),
            acceptance_criteria=[f"{story_data['title']} works end to end"],
        ), commit=False)

        for task_index, (title, status, due_offset, subtasks) in enumerate(story_data["tasks"]):
            assignee = developers[task_count % len(developers)]
            task = await task_service.create_task(Task(
                story_id=story.id,
                title=title,
                status=status,
                priority=story_data["priority"],
                assignee_id=assignee.id,
                order_index=task_index,
                due_date=today + timedelta(days=due_offset) if due_offset is not None else None,
            ), commit=False)
            task_count += 1

            for subtask_index, (subtask_title, is_completed) in enumerate(subtasks):
                await subtask_service.create_subtask(Subtask(
                    task_id=task.id,
                    title=subtask_title,
                    is_completed=is_completed,
                    order_index=subtask_index,
                ), commit=False)

    await session.commit()

    print(f"  Created {len(STORIES_DATA)} stories with {task_count} tasks")


async def complete_sprint(session: AsyncSession, id_generator: IdGenerationService, sprint):
    print(f"\nCompleting {sprint.name}...")

    sprint_service = SprintService(session, id_generator)
    completion = await sprint_service.complete_sprint(sprint.id)

    print(f"  Moved {len(completion.backlog_stories)} stories to the backlog")
    for backlog_story in completion.backlog_stories:
        print(f"    - {backlog_story.title} ({backlog_story.id})")


# ==================== MAIN ====================

async def seed_database(clear_first: bool = False, complete: bool = False):
    """Main seed function"""
    print("=" * 60)
    print("Sprint Board - Database Seeding")
    print("=" * 60)

    await create_tables()

    async with async_session() as session:
        if clear_first:
            await clear_all_data(session)

        id_generator = IdGenerationService(session)

        users_map = await create_users(session, id_generator)
        project = await create_project(session, id_generator)
        sprint = await create_sprint(session, id_generator, project)
        await create_stories(session, id_generator, project, sprint, list(users_map.values()))

        if complete:
            await complete_sprint(session, id_generator, sprint)

    await dispose_engine()

    print("\n" + "=" * 60)
    print("Database seeding complete!")
    print("=" * 60)
    print("\nSummary:")
    print(f"  Users: {len(USERS_DATA)}")
    print(f"  Project: {project.name} ({project.id})")
    print(f"  Sprint: {sprint.name} ({sprint.id})")
    print(f"  Stories: {len(STORIES_DATA)}")
    print("\nTest Users:")
    print("  Scrum Master: alice.sm@company.com")
    print("  Developer: emma.dev@company.com")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed Sprint Board database")
    parser.add_argument("--clear", action="store_true", help="Clear all data before seeding")
    parser.add_argument("--complete", action="store_true", help="Complete the sprint after seeding")
    args = parser.parse_args()

    asyncio.run(seed_database(clear_first=args.clear, complete=args.complete))
