#!/usr/bin/env python3
"""
Module: manage.py
Purpose: Command-line entry point for running and maintaining the journal.

Commands
--------
serve : Run the API server with uvicorn
    Options: --host, --port, --no-reload
seed : Write a snapshot populated with demo data
    Options: --output, --force
lock_reviews : Lock submitted reviews whose edit window has closed
    Options: --snapshot
check_config : Validate settings and report problems
    Options: --config

Usage
-----
    python src/manage.py seed
    JOURNAL_PERSIST_SNAPSHOTS=1 python src/manage.py serve --port 8000
    python src/manage.py lock_reviews --snapshot data_work/journal.json
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from config import SNAPSHOT_PATH, LOG_LEVEL, load_journal_config, validate_config
from utils import log_tags
from utils.log import configure_logging, get_logger

logger = get_logger('manage')


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    p = argparse.ArgumentParser(
        description='Journal management commands',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    p.add_argument('--log-level', default=LOG_LEVEL, help='Logging level (default: %(default)s)')
    sub = p.add_subparsers(dest='cmd', required=True)

    p_serve = sub.add_parser('serve', help='Run the API server')
    p_serve.add_argument('--host', default=None, help='Host to bind to')
    p_serve.add_argument('--port', type=int, default=None, help='Port to bind to')
    p_serve.add_argument(
        '--no-reload',
        action='store_true',
        help='Disable auto-reload on code changes'
    )

    p_seed = sub.add_parser('seed', help='Write a demo snapshot')
    p_seed.add_argument(
        '--output', '-o',
        type=Path,
        default=SNAPSHOT_PATH,
        help='Snapshot file to write (default: %(default)s)'
    )
    p_seed.add_argument(
        '--force',
        action='store_true',
        help='Overwrite an existing snapshot'
    )

    p_lock = sub.add_parser('lock_reviews', help='Lock reviews past their edit window')
    p_lock.add_argument(
        '--snapshot',
        type=Path,
        default=SNAPSHOT_PATH,
        help='Snapshot file to update (default: %(default)s)'
    )

    p_check = sub.add_parser('check_config', help='Validate configuration')
    p_check.add_argument(
        '--config', '-c',
        type=Path,
        default=None,
        help='YAML settings file (default: journal.yml at the project root)'
    )

    return p.parse_args(argv)


def seed(output: Path, force: bool = False) -> int:
    from web.services.context import ServiceContext
    from web.services.seed import seed_demo_data

    if output.exists() and not force:
        print(f'ERROR: {output} exists (use --force to overwrite)', file=sys.stderr)
        return 1

    context = ServiceContext(settings=load_journal_config())
    ids = seed_demo_data(context)
    context.store.save_snapshot(output)

    print(f'Wrote demo snapshot to {output}')
    for name, record_id in ids.items():
        print(f'  {name:<18} {record_id}')
    return 0


def lock_reviews(snapshot: Path) -> int:
    from web.services.context import ServiceContext
    from web.services.review_service import ReviewService
    from web.services.store import InMemoryStore

    if not snapshot.exists():
        print(f'ERROR: snapshot not found: {snapshot}', file=sys.stderr)
        return 1

    store = InMemoryStore.load_snapshot(snapshot, persist=True)
    context = ServiceContext(store=store, settings=load_journal_config())
    locked = ReviewService(context).lock_expired_reviews()
    logger.info(f"{log_tags.CLI} Locked {len(locked)} review(s)")
    print(f'Locked {len(locked)} review(s)')
    return 0


def check_config(path: Path = None) -> int:
    try:
        settings = load_journal_config(path)
    except ValueError as e:
        print(f'ERROR: {e}', file=sys.stderr)
        return 1

    errors = validate_config(settings)
    if errors:
        print('Configuration problems:')
        for error in errors:
            print(f'  - {error}')
        return 1

    print('Configuration OK')
    for key, value in settings.to_dict().items():
        print(f'  {key}: {value}')
    return 0


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.log_level)

    if args.cmd == 'serve':
        from web.app import run_server
        from web.config import WEB_HOST, WEB_PORT
        run_server(
            host=args.host or WEB_HOST,
            port=args.port or WEB_PORT,
            reload=not args.no_reload,
        )
        return 0

    elif args.cmd == 'seed':
        return seed(args.output, force=args.force)

    elif args.cmd == 'lock_reviews':
        return lock_reviews(args.snapshot)

    elif args.cmd == 'check_config':
        return check_config(args.config)

    return 1


if __name__ == '__main__':
    sys.exit(main())
