# src/taskmaster/tasks/demo.py

from __future__ import annotations

import logging
from datetime import timedelta

from .task_models import TaskInput
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def seed_demo_tasks(store: TaskStore) -> int:
    """Add the sample tasks shown on first run. Does nothing if the store has tasks."""
    if len(store):
        return 0

    now = store.now()
    samples = [
        TaskInput(
            title="🎉 Welcome to TaskMaster!",
            description="Explore the features. Try editing this task to see the detailed options available.",
            priority="medium",
            category="personal",
            tags="welcome, demo, getting-started",
            estimated_time=15,
            subtasks=[
                "Explore the task editing commands",
                "Try different priority levels",
                "Add your first real task",
            ],
        ),
        TaskInput(
            title="📊 Prepare quarterly report",
            description="Compile sales data, analyze trends, and create presentation for stakeholders meeting.",
            priority="high",
            category="work",
            tags="report, quarterly, presentation, meeting",
            due_date=now + timedelta(days=3),
            estimated_time=240,
            location="Conference Room A",
            subtasks=[
                {"title": "Gather sales data from Q1-Q3", "completed": True},
                "Analyze growth trends",
                "Create presentation",
                "Review with manager",
            ],
        ),
        TaskInput(
            title="🏃 Morning workout routine",
            description="Complete 30-minute cardio session and strength training.",
            priority="medium",
            category="health",
            tags="fitness, health, routine, morning",
            recurring=True,
            recurrence_pattern="daily",
            estimated_time=30,
            location="Home Gym",
        ),
        TaskInput(
            title="⚡ Fix critical bug in production",
            description="Users are reporting login issues. Need immediate investigation and hotfix deployment.",
            priority="urgent",
            category="work",
            tags="bug, critical, production, hotfix",
            due_date=now + timedelta(hours=2),
            estimated_time=120,
            url="https://github.com/project/issues/123",
        ),
        TaskInput(
            title="🛒 Weekly grocery shopping",
            description="Buy groceries for the week including fresh vegetables, fruits, and household items.",
            priority="low",
            category="shopping",
            tags="groceries, weekly, food, household",
            location="Whole Foods Market",
            estimated_time=60,
            subtasks=[
                "Fresh vegetables and fruits",
                "Dairy products",
                "Cleaning supplies",
                "Snacks for the week",
            ],
        ),
    ]

    for data in samples:
        store.create(data)
    logger.info("Seeded %d demo tasks", len(samples))
    return len(samples)
