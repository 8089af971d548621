"""Task commands - add and list local tasks, verify the remote credential."""

from datetime import date
from typing import Callable, Optional
import logging

from ..core.models import SyncConfig
from ..local.parser import format_task
from ..local.store import TaskStore
from ..sync.runner import SyncRunner, default_client_factory


class AddCommand:
    """Append a task to the task file."""

    def __init__(self, config: SyncConfig, verbose: bool = False,
                 client_factory: Optional[Callable] = None):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        self.store = TaskStore(config.tasks_path, logger=self.logger)
        self.client_factory = client_factory

    def run(self, text: str, sync: Optional[bool] = None) -> bool:
        """Add ``text`` as a task; optionally follow with a sync pass.

        The pass runs on a background thread whose errors are only
        logged; the command waits for it so the process outlives it.
        """
        if not text.strip():
            print("Nothing to add.")
            return False

        task = self.store.add_task(text)
        print(f"✅ Added: {format_task(task)}")

        if sync is None:
            sync = self.config.sync_on_change
        if sync:
            runner = SyncRunner(self.config, client_factory=self.client_factory, logger=self.logger)
            runner.run_in_background().join()
        return True


class ListCommand:
    """Print tasks from the task file."""

    def __init__(self, config: SyncConfig, verbose: bool = False, today: Optional[date] = None):
        self.config = config
        self.verbose = verbose
        self.today = today
        self.store = TaskStore(config.tasks_path, logger=logging.getLogger(__name__), today=today)

    def run(self, show_done: bool = False) -> bool:
        tasks = self.store.load()
        if not show_done:
            tasks = [task for task in tasks if not task.completed]

        if not tasks:
            print("No tasks.")
            return True

        today = self.today or date.today()
        for task in tasks:
            checkbox = "[x]" if task.completed else "[ ]"
            flag = ""
            if task.deadline and not task.completed:
                if task.deadline < today:
                    flag = "  ⚠️ overdue"
                elif task.deadline == today:
                    flag = "  📅 today"
            print(f"{checkbox} {format_task(task)}{flag}")
        return True


class VerifyCommand:
    """Check that the configured API token is accepted."""

    def __init__(self, config: SyncConfig, verbose: bool = False,
                 client_factory: Optional[Callable] = None):
        self.config = config
        self.verbose = verbose
        self.client_factory = client_factory or default_client_factory

    def run(self) -> bool:
        client = self.client_factory(self.config)
        if client.verify_credentials():
            print("✅ API token is valid")
            return True
        print("❌ API token was rejected or is missing")
        return False
