#!/usr/bin/env python3
"""
mdtask-sync - plain-text task list with two-way sync to a remote task service.
"""

import argparse
import logging
import sys

from mdtask_sync.core.config import load_config, get_default_config_path
from mdtask_sync.core.exceptions import MdTaskSyncError
from mdtask_sync.commands import (
    AddCommand,
    ListCommand,
    SyncCommand,
    VerifyCommand
)


def main(argv=None):
    """Main entry point for mdtask-sync."""
    parser = argparse.ArgumentParser(
        description="Plain-text task list with two-way sync to a remote task service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  mdtask-sync add "Finish report !tomorrow #work $2"
  mdtask-sync list --done         # Include completed tasks
  mdtask-sync sync                # Run a sync pass
  mdtask-sync sync --dry-run      # Show planned actions only
  mdtask-sync verify              # Check the API token
        """
    )

    default_config = get_default_config_path()

    parser.add_argument(
        '--config',
        help=f'Path to configuration file (default: {default_config})',
        default=None
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Add command
    add_parser = subparsers.add_parser('add', help='Add a task')
    add_parser.add_argument('text', nargs='+', help='Task text with optional markers')
    add_sync = add_parser.add_mutually_exclusive_group()
    add_sync.add_argument(
        '--sync',
        dest='sync',
        action='store_true',
        default=None,
        help='Run a sync pass after adding'
    )
    add_sync.add_argument(
        '--no-sync',
        dest='sync',
        action='store_false',
        help='Do not sync even if sync_on_change is configured'
    )

    # List command
    list_parser = subparsers.add_parser('list', help='List tasks')
    list_parser.add_argument(
        '--done',
        action='store_true',
        help='Include completed tasks'
    )

    # Sync command
    sync_parser = subparsers.add_parser('sync', help='Sync tasks with the remote service')
    sync_parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be done without making changes'
    )

    # Verify command
    subparsers.add_parser('verify', help='Verify the remote API token')

    args = parser.parse_args(argv)

    # Configure logging if verbose mode is enabled
    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # Show help if no command specified
    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)

        if args.verbose:
            actual_config_path = args.config if args.config else default_config
            print(f"Using config: {actual_config_path}")

        if args.command == 'add':
            cmd = AddCommand(config, verbose=args.verbose)
            success = cmd.run(' '.join(args.text), sync=args.sync)

        elif args.command == 'list':
            cmd = ListCommand(config, verbose=args.verbose)
            success = cmd.run(show_done=args.done)

        elif args.command == 'sync':
            cmd = SyncCommand(config, verbose=args.verbose)
            success = cmd.run(dry_run=args.dry_run)

        elif args.command == 'verify':
            cmd = VerifyCommand(config, verbose=args.verbose)
            success = cmd.run()

        else:
            print(f"Unknown command '{args.command}'.")
            return 1

        return 0 if success else 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.")
        return 130
    except MdTaskSyncError as e:
        print(f"Error: {e}")
        if not args.verbose:
            print("Re-run with --verbose for more detail.")
        return 1


if __name__ == '__main__':
    sys.exit(main())
