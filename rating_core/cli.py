"""
CKAN Rating CLI - Command line interface for dataset ratings.

Usage:
    ckan-rating get DATASET [--config=DIR]
    ckan-rating post DATASET --user=USER --score=N [--config=DIR]
    ckan-rating config show [--section=SECTION] [--config=DIR]
    ckan-rating config validate [--config=DIR]
    ckan-rating version
    ckan-rating --help

Commands:
    get                 Show the rating published on a dataset
    post                Register a user's vote and publish the new rating
    config              Show or validate configuration
    version             Show version information

Options:
    -h --help           Show this help message
    --user=USER         Voting user id
    --score=N           Score between 1 and 5
    --section=SECTION   Configuration section (catalog, ledger, logging)
    --config=DIR        Configuration directory
"""

import json
import logging
import os
import sys
import traceback
from typing import Any, Dict, List, Optional, Tuple

from dotenv import load_dotenv

from rating_core import __version__
from rating_core.config.config_manager import ConfigManager, ConfigValidationError
from rating_core.exceptions import RatingError
from rating_core.monitoring.structured_logger import configure_logging
from rating_core.rating.factory import create_rating_engine

logger = logging.getLogger(__name__)


class RatingCLI:
    """CKAN rating command line interface."""

    def __init__(self, config_dir: Optional[str] = None):
        self.config_manager = ConfigManager(config_dir)
        logging_config = self.config_manager.config.logging
        configure_logging(
            log_level=logging_config.level.value,
            json_format=logging_config.json_format,
            log_format=logging_config.format,
        )
        self._engine = None

    @property
    def engine(self):
        if self._engine is None:
            self._engine = create_rating_engine(self.config_manager)
        return self._engine

    def get_command(self, dataset_id: str) -> Dict[str, Any]:
        summary = self.engine.get_rating(dataset_id)
        return summary.to_dict()

    def post_command(self, dataset_id: str, user_id: str, score: int) -> Dict[str, Any]:
        summary = self.engine.post_rating(dataset_id, user_id, score)
        return summary.to_dict()

    def config_command(self, action: str, section: Optional[str] = None) -> Dict[str, Any]:
        if action == "show":
            config_dict = self.config_manager.to_dict()
            if section:
                if section not in config_dict:
                    raise KeyError(f"Unknown configuration section: {section}")
                config_dict = {section: config_dict[section]}
            catalog = config_dict.get("catalog")
            if catalog and catalog.get("api_key"):
                catalog["api_key"] = "***"
            return config_dict
        if action == "validate":
            self.config_manager._validate_configuration()
            return {"valid": True}
        raise KeyError(f"Unknown config action: {action}")


def parse_args(argv: List[str]) -> Tuple[Optional[str], Dict[str, Any]]:
    """Parse command line arguments manually."""
    if not argv:
        return None, {}

    command = argv[0]
    args: Dict[str, Any] = {"positional": []}

    i = 1
    while i < len(argv):
        arg = argv[i]

        if arg.startswith("--"):
            if "=" in arg:
                key, value = arg[2:].split("=", 1)
                args[key] = value
            else:
                key = arg[2:]
                if i + 1 < len(argv) and not argv[i + 1].startswith("--"):
                    args[key] = argv[i + 1]
                    i += 1
                else:
                    args[key] = True
        else:
            args["positional"].append(arg)

        i += 1

    return command, args


def _print_json(data: Dict[str, Any]):
    print(json.dumps(data, indent=2, default=str))


def _fail(message: str) -> int:
    print(f"❌ {message}", file=sys.stderr)
    return 1


def run(argv: List[str]) -> int:
    """Run a CLI command and return the process exit status."""
    command, args = parse_args(argv)

    if command is None or command in ("--help", "-h", "help"):
        print(__doc__)
        return 0 if command else 1

    if command == "version":
        print(f"ckan-rating {__version__}")
        return 0

    if command not in ("get", "post", "config"):
        print(f"❌ Unknown command: {command}")
        print("Run 'ckan-rating --help' for usage information")
        return 1

    positional = args["positional"]
    if not positional:
        if command == "config":
            return _fail("Config command requires action (show, validate)")
        return _fail(f"{command} requires a DATASET argument")

    try:
        cli = RatingCLI(args.get("config"))

        if command == "get":
            _print_json(cli.get_command(positional[0]))

        elif command == "post":
            if "user" not in args or "score" not in args:
                return _fail("post requires --user and --score arguments")
            if not isinstance(args["user"], str) or not isinstance(args["score"], str):
                return _fail("--user and --score need a value (--user=USER --score=N)")
            try:
                score = int(args["score"])
            except ValueError:
                return _fail(f"Score must be an integer: {args['score']}")
            _print_json(cli.post_command(positional[0], args["user"], score))

        else:
            _print_json(cli.config_command(positional[0], section=args.get("section")))

    except RatingError as e:
        _print_json(e.to_dict())
        return 1
    except ConfigValidationError as e:
        return _fail(str(e))
    except KeyError as e:
        return _fail(str(e.args[0]) if e.args else str(e))

    return 0


def main():
    """Main CLI entry point."""
    load_dotenv()
    try:
        sys.exit(run(sys.argv[1:]))
    except KeyboardInterrupt:
        print("\n🛑 Operation cancelled")
        sys.exit(1)
    except Exception as e:
        print(f"❌ Unexpected error: {e}")
        if os.getenv("DEBUG"):
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
