# common/orchestrator.py
# -*- coding: utf-8 -*-
"""
Sequential task runner shared by the bootstrap entry points.

Tasks run in the order they were added. Each one receives the shared
``context`` and the ``app_settings`` as keyword arguments. Every task is
fatal: the first failure ends the process with exit status 1.
"""

import logging
import sys
import time
from dataclasses import dataclass
from typing import Any, Callable, List, Optional


@dataclass
class Task:
    name: str
    func: Callable


class Orchestrator:
    """Runs named tasks in order against one shared context."""

    def __init__(
        self,
        app_settings: Any,
        orchestrator_logger: Optional[logging.Logger] = None,
        context: Any = None,
    ):
        """
        Args:
            app_settings: The application settings object.
            orchestrator_logger: An optional logger instance.
            context: State shared by the tasks. Defaults to an empty dict.
        """
        self.app_settings = app_settings
        self.logger = orchestrator_logger or logging.getLogger(__name__)
        self.context: Any = {} if context is None else context
        self.tasks: List[Task] = []
        self.completed: List[str] = []

    def add_task(self, name: str, func: Callable) -> None:
        """
        Queue a task.

        Args:
            name: A human-readable name for the task.
            func: The callable to run. It is called with the ``context`` and
                ``app_settings`` keyword arguments.
        """
        self.tasks.append(Task(name, func))
        self.logger.debug(f"Task '{name}' added to the queue.")

    def run(self) -> bool:
        """
        Execute all queued tasks in sequence.

        Returns:
            True once every task has run.

        Raises:
            SystemExit: A task failed (exit status 1).
        """
        total = len(self.tasks)
        self.logger.info(f"Orchestration started ({total} tasks).")
        for index, task in enumerate(self.tasks, start=1):
            self.logger.info(f"--- Stage {index}/{total}: {task.name} ---")
            started = time.monotonic()
            try:
                task.func(context=self.context, app_settings=self.app_settings)
            except Exception as e:
                self.logger.critical(
                    f"🔥 Task '{task.name}' failed: {e}", exc_info=True
                )
                self.logger.error(
                    f"A fatal error occurred after {len(self.completed)} completed task(s). "
                    "Halting orchestration and exiting application."
                )
                sys.exit(1)

            self.completed.append(task.name)
            self.logger.info(
                f"✅ Task '{task.name}' completed in {time.monotonic() - started:.2f}s."
            )

        self.logger.info("✨ Orchestration finished successfully.")
        return True
