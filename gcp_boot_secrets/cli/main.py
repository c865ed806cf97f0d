"""CLI entrypoint for gcp-boot-secrets."""
import sys
import argparse
import logging

import yaml

from .. import __version__
from ..secrets.domains.app_config import load_app_config
from ..secrets.domains.config_loader import ConfigError, load_settings, locate_settings
from ..secrets.domains.errors import ResolutionError

logger = logging.getLogger(__name__)

_LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


def _configure_logging(verbosity: int) -> None:
    # Logs go to stderr so --show output on stdout stays parseable
    logging.basicConfig(
        level=_LOG_LEVELS[min(verbosity, len(_LOG_LEVELS) - 1)],
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr
    )


def cmd_version(args):
    """Show version information."""
    print(f"gcp-boot-secrets {__version__}")


def cmd_config_show(args):
    """Show which settings file would be used."""
    config_path, source = locate_settings(args.settings)

    if config_path.exists():
        print(f"Settings path: {config_path}")
        print(f"Source: {source}")
    else:
        print(f"Settings path: {config_path}")
        print(f"Source: {source} (file not found)")


def cmd_references(args):
    """List secret references in an application config without fetching."""
    from ..secrets.workflows.walker import iter_references

    raw_config = load_app_config(args.app_config)
    references = list(iter_references(raw_config))

    for path, reference in references:
        print(f"{path or '<root>'}\t{reference.type_tag}\t{reference.secret_name}\t{reference.version}")

    print(f"{len(references)} secret references", file=sys.stderr)


def cmd_resolve(args):
    """Resolve every secret reference in an application config."""
    from ..secrets.workflows.bootstrap import run_from_settings
    from ..secrets.workflows.walker import iter_references

    settings = load_settings(args.settings)
    raw_config = load_app_config(args.app_config)
    resolved = run_from_settings(raw_config, settings, project=args.project_id)

    if args.show:
        # Plain dump: resolved configs hold ordinary dicts, lists and scalars
        print(yaml.safe_dump(resolved, sort_keys=False), end="")
    else:
        references = list(iter_references(raw_config))
        unique = {reference.fetch_key for _, reference in references}
        print(f"Resolved {len(references)} secret references ({len(unique)} unique)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bootsecrets",
        description="Resolve GCP Secret Manager references in application configuration at boot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit codes:
  0 - Success
  1 - Runtime error (settings, authentication, secret not found, cast failure, etc.)
  2 - Usage error (invalid arguments)

Environment variables:
  GCP_PROJECT              - GCP project ID (overrides settings file)
  GCP_BOOT_SECRETS_CONFIG  - Settings file path

Settings:
  Default location: ~/.config/gcp-boot-secrets/config.yml
  View current: Run 'bootsecrets config show'
        """
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser(
        "version",
        help="Show version information",
        description="Display the current version of gcp-boot-secrets"
    )

    config_parser = subparsers.add_parser(
        "config",
        help="Settings management",
        description="Inspect gcp-boot-secrets settings"
    )
    config_subparsers = config_parser.add_subparsers(dest="config_command")

    config_show_parser = config_subparsers.add_parser(
        "show",
        help="Show current settings path",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="""
Display the settings file path and its source.

Sources:
  - argument: Path passed with --settings
  - environment: GCP_BOOT_SECRETS_CONFIG
  - default: ~/.config/gcp-boot-secrets/config.yml
        """
    )
    config_show_parser.add_argument("--settings", help="Settings file path")

    references_parser = subparsers.add_parser(
        "references",
        help="List secret references in an application config",
        description="Parse an application config and list every secret reference without fetching anything"
    )
    references_parser.add_argument("app_config", help="Application config YAML file")

    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Resolve secret references in an application config",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="""
Run a full resolution pass against GCP Secret Manager.

Every reference is fetched once and cast to its declared type. Any failure
aborts the pass and nothing is printed to stdout.
        """
    )
    resolve_parser.add_argument("app_config", help="Application config YAML file")
    resolve_parser.add_argument("--settings", help="Settings file path")
    resolve_parser.add_argument(
        "--project-id",
        help="GCP project ID (overrides GCP_PROJECT and the settings file)"
    )
    resolve_parser.add_argument(
        "--show",
        action="store_true",
        help="Print the resolved configuration as YAML (contains secret values)"
    )

    return parser


def main(argv=None):
    """Main CLI entrypoint.

    Exit codes:
        0 - Success
        1 - Runtime errors (settings, authentication, secret not found, cast failure, etc.)
        2 - Usage errors (invalid arguments)
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if not args.command:
        parser.print_help()
        sys.exit(2)

    try:
        if args.command == "version":
            cmd_version(args)
        elif args.command == "config":
            if args.config_command == "show":
                cmd_config_show(args)
            else:
                print("Error: missing config subcommand (available: show)", file=sys.stderr)
                sys.exit(2)
        elif args.command == "references":
            cmd_references(args)
        elif args.command == "resolve":
            cmd_resolve(args)
        else:
            parser.print_help()
            sys.exit(2)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(1)
    except ResolutionError as e:
        print(f"Error: secret resolution failed: {e}", file=sys.stderr)
        sys.exit(1)
    except (ConfigError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.debug("Unexpected error", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
