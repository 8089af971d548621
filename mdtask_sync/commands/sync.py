"""Sync command - reconcile the task file with the remote service."""

from typing import Callable, Optional
import logging

from ..core.exceptions import AuthenticationError, RateLimitError
from ..core.models import SyncConfig
from ..sync.engine import SyncReport
from ..sync.runner import SyncRunner


class SyncCommand:
    """Command for running one sync pass in the foreground."""

    def __init__(self, config: SyncConfig, verbose: bool = False,
                 client_factory: Optional[Callable] = None):
        self.config = config
        self.verbose = verbose
        self.logger = logging.getLogger(__name__)
        if verbose:
            self.logger.setLevel(logging.DEBUG)
        self.runner = SyncRunner(config, client_factory=client_factory, logger=self.logger)

    def run(self, dry_run: bool = False) -> bool:
        """Run the sync command."""
        print("🔄 Syncing tasks...")
        try:
            report = self.runner.run(dry_run=dry_run)
        except RateLimitError as exc:
            self._show_summary(getattr(exc, "report", None))
            print(f"\n⏳ Rate limited by the remote service. Retry in {exc.retry_after}s.")
            return False
        except AuthenticationError as exc:
            self._show_summary(getattr(exc, "report", None))
            print(f"\n❌ Authentication failed: {exc}")
            return False

        self._show_summary(report)
        # Skipped actions are warnings, not failures
        return True

    def _show_summary(self, report: Optional[SyncReport]) -> None:
        if report is None:
            return

        if report.dry_run:
            if not report.actions:
                print("\nNo changes needed - everything is in sync!")
                return
            print(f"\nPlanned actions ({len(report.actions)}):")
            for action in report.actions:
                print(f"  • {action.describe()}")
            print("\n💡 This was a dry run. Run without --dry-run to apply.")
            return

        print(f"\n🔄 Sync Summary: {report.summary()}")
        if report.created_remote:
            print(f"  Remote creations: {report.created_remote}")
        if report.updated_remote:
            print(f"  Remote updates: {report.updated_remote}")
        if report.deleted_remote:
            print(f"  Remote deletions: {report.deleted_remote}")
        if report.created_local:
            print(f"  Local creations: {report.created_local}")
        if report.updated_local:
            print(f"  Local updates: {report.updated_local}")
        if report.deleted_local:
            print(f"  Local deletions: {report.deleted_local}")
        if report.skipped:
            print(f"  ⚠️  Skipped: {report.skipped}")
            if self.verbose:
                for failure in report.failures:
                    print(f"     - {failure}")
        if not report.pushed and not report.pulled and not report.skipped:
            print("  No changes needed - everything is in sync!")
