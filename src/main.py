# Command-line entry point: run chat commands against the local data directory.

import argparse
import logging
import random
import sys

from commands import CommandDispatcher


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description='Run knockout tournament commands, e.g. "add player Alice" or "tournament start".'
    )
    parser.add_argument('command', nargs='*', help='command to run; read commands from stdin when omitted')
    parser.add_argument('--data-dir', help='directory holding players.yaml, tables.csv and tournaments.yaml')
    parser.add_argument('--seed', type=int, help='seed for the player shuffle')
    parser.add_argument('--verbose', '-v', action='store_true', help='enable debug logging')
    return parser.parse_args(argv)


def print_reply(reply, out=None):
    if out is None:
        out = sys.stdout
    print(f"== {reply.title} ==", file=out)
    print(reply.description, file=out)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    rng = random.Random(args.seed) if args.seed is not None else None
    dispatcher = CommandDispatcher(data_dir=args.data_dir, rng=rng)

    if args.command:
        reply = dispatcher.handle(' '.join(args.command))
        print_reply(reply)
        return 0 if reply.ok else 1

    failures = 0
    for line in sys.stdin:
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        reply = dispatcher.handle(line)
        print_reply(reply)
        if not reply.ok:
            failures += 1
    return 1 if failures else 0


if __name__ == '__main__':
    sys.exit(main())
