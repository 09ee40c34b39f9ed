"""
Periodic timers that post events to the dashboard inbox.
"""

import asyncio
import time
from typing import Callable, Dict, List, Optional

import structlog

from ore_dashboard.core.config import settings
from ore_dashboard.dashboard.events import Event, FetchPrice, Refresh, SaveConfig
from ore_dashboard.dashboard.state import Dashboard


logger = structlog.get_logger(__name__)


class ScheduledTask:
    """An event producer that fires every `interval_seconds`."""

    def __init__(
        self,
        name: str,
        produce: Callable[[], Optional[Event]],
        interval_seconds: float,
        enabled: bool = True,
        run_immediately: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.produce = produce
        self.interval_seconds = interval_seconds
        self.enabled = enabled
        self.clock = clock
        self.run_count = 0
        self.next_run = clock() if run_immediately else clock() + interval_seconds

    def should_run(self) -> bool:
        return self.enabled and self.clock() >= self.next_run

    def schedule_next_run(self):
        self.next_run = self.clock() + self.interval_seconds

    def run(self) -> Optional[Event]:
        self.schedule_next_run()
        self.run_count += 1
        return self.produce()


class TaskScheduler:
    """Drives the refresh, save and price timers of one Dashboard."""

    def __init__(self, dashboard: Dashboard, clock: Callable[[], float] = time.monotonic):
        self.dashboard = dashboard
        self.clock = clock
        self.tasks: Dict[str, ScheduledTask] = {}
        self.running = False
        self.loop_interval = 1.0
        self.logger = logger.bind(service="task_scheduler")

    def register_default_tasks(self) -> "TaskScheduler":
        self.register_task("refresh", self._refresh_event, settings.data_interval)
        self.register_task("save_config", self._save_event, settings.save_interval)
        self.register_task("price", lambda: FetchPrice(), settings.price_interval)
        return self

    def register_task(self, name: str, produce: Callable[[], Optional[Event]], interval_seconds: float, enabled: bool = True):
        self.tasks[name] = ScheduledTask(name, produce, interval_seconds, enabled, clock=self.clock)
        self.logger.debug("Registered task", task=name, interval=interval_seconds)

    def _refresh_event(self) -> Optional[Event]:
        return Refresh() if self.dashboard.auto_refresh else None

    def _save_event(self) -> Optional[Event]:
        return None if self.dashboard.is_saved else SaveConfig()

    def run_pending_tasks(self) -> List[Event]:
        """Fire every due task and post the events it produced."""
        posted = []
        for task in self.tasks.values():
            if not task.should_run():
                continue
            event = task.run()
            if event is not None:
                self.dashboard.dispatch(event)
                posted.append(event)
        return posted

    async def start(self):
        self.logger.info("Starting timers", tasks=list(self.tasks))
        self.running = True
        while self.running:
            try:
                self.run_pending_tasks()
                await asyncio.sleep(self.loop_interval)
            except asyncio.CancelledError:
                break
        self.logger.info("Timers stopped")

    def stop(self):
        self.running = False
