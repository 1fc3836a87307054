"""CLI for database migrations."""
import argparse
import sys
from pathlib import Path

from alembic import command
from alembic.config import Config

ROOT = Path(__file__).resolve().parents[1]


def _config() -> Config:
    cfg = Config(str(ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    return cfg


def cmd_migrate(args):
    """Upgrade the database to a revision (head by default)."""
    print(f"Upgrading database to {args.revision}")
    command.upgrade(_config(), args.revision)
    return 0


def cmd_downgrade(args):
    """Downgrade the database to a revision."""
    print(f"Downgrading database to {args.revision}")
    command.downgrade(_config(), args.revision)
    return 0


def cmd_stamp(args):
    """Stamp alembic revision without running migrations."""
    command.stamp(_config(), args.revision)
    return 0


def cmd_current(args):
    """Show the revision the database is at."""
    command.current(_config(), verbose=args.verbose)
    return 0


def build_parser():
    p = argparse.ArgumentParser(prog="migrations")
    sub = p.add_subparsers(dest="cmd")
    s = sub.add_parser("migrate", help="Run migrations (upgrade head)")
    s.add_argument("--revision", "-r", help="Target revision", default="head")
    s.set_defaults(func=cmd_migrate)
    s = sub.add_parser("downgrade", help="Revert migrations")
    s.add_argument("--revision", "-r", help="Target revision", default="-1")
    s.set_defaults(func=cmd_downgrade)
    s = sub.add_parser("stamp", help="Stamp alembic to a revision")
    s.add_argument("--revision", "-r", help="Revision to stamp", default="head")
    s.set_defaults(func=cmd_stamp)
    s = sub.add_parser("current", help="Show current revision")
    s.add_argument("--verbose", "-v", action="store_true")
    s.set_defaults(func=cmd_current)
    return p


def main(argv=None):
    p = build_parser()
    args = p.parse_args(argv)
    if not hasattr(args, "func"):
        p.print_help()
        return 2
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
