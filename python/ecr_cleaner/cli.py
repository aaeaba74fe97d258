"""
Command line entrypoint for the ECR asset cleaner.

Usage:
    # List unused images only (default)
    ecr-asset-cleaner

    # Delete unused images
    ecr-asset-cleaner --dryrun=false

    # Treat only images of currently running ECS tasks as in use
    ecr-asset-cleaner --ecs-usage-source running_tasks
"""

import argparse
import sys
from typing import List, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ecr_cleaner.cleaner import run_cleanup
from ecr_cleaner.config_manager import USAGE_SOURCES, ConfigManager, ConfigValidationError, config_manager
from ecr_cleaner.error_utils import CleanerError, describe_aws_error
from ecr_cleaner.logging_utils import get_logger, set_log_level

logger = get_logger(__name__)


def parse_bool(value: str) -> bool:
    """argparse type for true/false style flag values"""
    normalized = str(value).strip().lower()
    if normalized in ("true", "t", "yes", "y", "1"):
        return True
    if normalized in ("false", "f", "no", "n", "0"):
        return False
    raise argparse.ArgumentTypeError(f"expected a boolean, got {value!r}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find ECR image tags not used by ECS or Lambda and optionally delete them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Configuration:
  Settings are read from config.yaml (or CONFIG_FILE). Environment overrides:
  - AWS_REGION / AWS_PROFILE: AWS region and credentials profile
  - ECS_USAGE_SOURCE: task_definitions (default) or running_tasks
  - DELETE_BATCH_SIZE: tags per delete call (max 100)
  - LOG_LEVEL: logging level
""",
    )
    parser.add_argument(
        "--dryrun",
        type=parse_bool,
        nargs="?",
        const=True,
        default=None,
        help="Set to false to run the deletion (default: true)",
    )
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument(
        "--ecs-usage-source",
        choices=USAGE_SOURCES,
        help="How ECS image usage is found (default: from config)",
    )
    parser.add_argument("--log-level", help="Logging level (default: from config)")
    parser.add_argument("--show-config", action="store_true", help="Print the effective configuration first")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = ConfigManager(config_file=args.config, validate=False) if args.config else config_manager
        config.validate_config()
        set_log_level(args.log_level or config.get_log_level())
        if args.show_config:
            config.print_config()

        dry_run = config.is_dry_run_by_default() if args.dryrun is None else args.dryrun
        run_cleanup(
            dry_run=dry_run,
            client_factory=config.get_client,
            usage_source=args.ecs_usage_source or config.get_ecs_usage_source(),
            batch_size=config.get_delete_batch_size(),
        )
    except (CleanerError, ConfigValidationError, ClientError, BotoCoreError, ValueError) as e:
        print(e)
        guidance = describe_aws_error(e)
        if guidance is not None:
            print(guidance)
        logger.debug("Run failed", exc_info=True)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
