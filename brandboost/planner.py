"""Initial task lists for newly started projects."""

from __future__ import annotations

from typing import List

DEFAULT_PHASES = [
    "Discovery & Research",
    "Concept & Ideation",
    "Design & Build",
    "Final Review & Delivery",
]


class TaskPlanner:
    """Turns a client brief into a short list of high-level tasks.

    The default planner returns the agency's standard project phases.
    Swap in a subclass (for example one backed by a language model) by
    passing it to ``create_app``. Implementations should return at most
    five tasks and never an empty list.
    """

    max_tasks = 5

    def plan(self, brief: str) -> List[str]:
        return list(DEFAULT_PHASES)

    def __call__(self, brief: str) -> List[str]:
        tasks = [t.strip() for t in self.plan(brief) if t and t.strip()]
        return (tasks or list(DEFAULT_PHASES))[: self.max_tasks]
