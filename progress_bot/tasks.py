"""Task list derived from the free-text "today" answer.

Tasks have no identity of their own: task ``n`` is line ``n`` of
``Standup.day`` and ``Standup.done`` stores the 1-based line numbers that
were ticked off. Everything that needs tasks goes through ``derive_tasks``.
"""

from __future__ import annotations

from typing import List, Sequence

from .models import Standup, Task

NUMBER_EMOJI = (
    ":one:",
    ":two:",
    ":three:",
    ":four:",
    ":five:",
    ":six:",
    ":seven:",
    ":eight:",
    ":nine:",
    ":keycap_ten:",
)


def number_emoji(index: int) -> str:
    if 1 <= index <= len(NUMBER_EMOJI):
        return NUMBER_EMOJI[index - 1]
    return f"{index}."


def derive_tasks(standup: Standup) -> List[Task]:
    if standup.day is None:
        return []
    return [
        Task(
            content=line.strip(),
            done=index in standup.done,
            prefix=number_emoji(index),
            standup_id=standup.id,
        )
        for index, line in enumerate(standup.day.split("\n"), start=1)
    ]


def task_in_range(standup: Standup, index: int) -> bool:
    return 1 <= index <= len(derive_tasks(standup))


def mark_done(standup: Standup, index: int) -> bool:
    """Add ``index`` to the done set; returns ``False`` if it was already there."""

    if index in standup.done:
        return False
    standup.done.add(index)
    return True


def mark_undone(standup: Standup, index: int) -> bool:
    if index not in standup.done:
        return False
    standup.done.discard(index)
    return True


def append_task(standup: Standup, text: str) -> None:
    standup.day = f"{standup.day or ''}\n{text}".strip()


def print_tasks(tasks: Sequence[Task]) -> str:
    return "\n".join(f"> {task}" for task in tasks)


def summary_header(real_name: str, tasks: Sequence[Task]) -> str:
    total = len(tasks)
    done = sum(1 for task in tasks if task.done)
    if total == done:
        return f"Hey {real_name}, you've completed all your tasks for *today*, well done! :tada:"
    if done > 0:
        return f"Hey {real_name}, you've completed {done}/{total} tasks you have in store for *today*:"
    task_word = "task" if total == 1 else "tasks"
    return f"Hey {real_name}, you have {total} {task_word} in store for *today*:"


def completed_tasks_copy(standup: Standup | None) -> str:
    if standup is None:
        return ""
    return "\n".join(
        f":white_check_mark: {task.content}" for task in derive_tasks(standup) if task.done
    )


__all__ = [
    "append_task",
    "completed_tasks_copy",
    "derive_tasks",
    "mark_done",
    "mark_undone",
    "number_emoji",
    "print_tasks",
    "summary_header",
    "task_in_range",
]
