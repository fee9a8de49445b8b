"""Example tasks inserted on first run, when the store is empty."""

from .models import TaskDraft

# Declared newest first: the store appends them in this order, which keeps
# the in-memory list sorted by created_at descending.
SEED_TASKS: tuple[TaskDraft, ...] = (
    TaskDraft(
        title="Complete project documentation",
        description="Write comprehensive documentation for the new feature release",
        completed=False,
        priority="high",
        category="Work",
        dueDate="2024-01-20",
        createdAt="2024-01-15T09:00:00Z",
        updatedAt="2024-01-15T09:00:00Z",
    ),
    TaskDraft(
        title="Review pull requests",
        description="Review and provide feedback on pending PRs",
        completed=True,
        priority="medium",
        category="Development",
        dueDate="2024-01-16",
        createdAt="2024-01-14T14:30:00Z",
        updatedAt="2024-01-15T10:15:00Z",
    ),
    TaskDraft(
        title="Update dependencies",
        description="Update all packages to latest stable versions",
        completed=False,
        priority="low",
        category="Maintenance",
        createdAt="2024-01-13T11:00:00Z",
        updatedAt="2024-01-13T11:00:00Z",
    ),
    TaskDraft(
        title="Team meeting preparation",
        description="Prepare agenda and slides for weekly team sync",
        completed=False,
        priority="medium",
        category="Meetings",
        dueDate="2024-01-18",
        createdAt="2024-01-12T16:00:00Z",
        updatedAt="2024-01-12T16:00:00Z",
    ),
    TaskDraft(
        title="Code refactoring",
        description="Refactor authentication module for better performance",
        completed=True,
        priority="high",
        category="Development",
        createdAt="2024-01-10T08:30:00Z",
        updatedAt="2024-01-11T15:45:00Z",
    ),
    TaskDraft(
        title="Database backup",
        description="Schedule and verify weekly database backup",
        completed=False,
        priority="high",
        category="Maintenance",
        dueDate="2024-01-19",
        createdAt="2024-01-09T13:00:00Z",
        updatedAt="2024-01-09T13:00:00Z",
    ),
)
