#!/usr/bin/env python3
"""
Recompute conversion rates and lead scores from the command line.

Usage:
    python scripts/recompute_scores.py                          # every client, full recompute
    python scripts/recompute_scores.py --client-id acme         # one client
    python scripts/recompute_scores.py --client-id acme --scores-only

Prints the summary as JSON. Exit code is 1 when any client reported errors.

Requires: DATABASE_URL set (or defaults to sqlite:///local.db); Redis for the
per-client lock (runs without it if unreachable).
"""
import argparse
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from leadops.config import MODE_FULL, MODE_SCORES_ONLY
from leadops.logging_config import configure_logging
from leadops.services.batch import build_runner


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Recompute conversion rates and lead scores.')
    parser.add_argument('--client-id', help='Only recompute this client (default: all clients)')
    parser.add_argument('--scores-only', action='store_true',
                        help='Rescore leads from stored conversion rates without recomputing them')
    parser.add_argument('--config', help='Path to a scoring config YAML')
    return parser.parse_args(argv)


def main(argv=None, runner=None):
    args = parse_args(argv)
    configure_logging()

    runner = runner or build_runner(config_path=args.config)
    mode = MODE_SCORES_ONLY if args.scores_only else MODE_FULL

    if args.client_id:
        output = {'client_id': args.client_id, **runner.run_client(args.client_id, mode=mode, trigger='cli').to_dict()}
    else:
        output = runner.run_all(mode=mode, trigger='cli').to_dict()

    print(json.dumps(output, indent=2))
    return 1 if output['errors'] else 0


if __name__ == '__main__':
    sys.exit(main())
