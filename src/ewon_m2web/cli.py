"""
Command-line interface for the M2Web client.

Provides CLI commands to query the eWONs of a Talk2M account:
- list: List all eWONs, optionally restricted to a pool
- get: Show one eWON selected by id or by name

Usage:
    ewon-m2web [--config PATH] list [--pool POOL]
    ewon-m2web [--config PATH] get (--id ID | --name NAME)

Environment Variables:
    EWON_M2WEB_CONFIG_PATH: Path to the JSON configuration file
        (default: ./m2web.json, overridden by --config)
"""

import argparse
import asyncio
import json
import sys

import structlog

from . import config, m2webapi

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="ewon-m2web",
        description="Query eWONs through the Talk2M M2Web API",
    )
    parser.add_argument(
        "--config",
        help=f"Path to the JSON configuration file (default: ${config.CONFIG_ENV_VAR} "
        f"or {config.DEFAULT_CONFIG_PATH})",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List the eWONs of the account")
    list_parser.add_argument("--pool", help="Only list eWONs belonging to this pool")

    get_parser = subparsers.add_parser("get", help="Show one eWON")
    selector = get_parser.add_mutually_exclusive_group(required=True)
    selector.add_argument("--id", type=int, dest="ewon_id", help="eWON id")
    selector.add_argument("--name", help="Exact eWON name")

    return parser


async def run_command(
    client: m2webapi.M2WebClient,
    args: argparse.Namespace,
) -> list[m2webapi.Ewon] | m2webapi.Ewon:
    """Execute the selected command against the API.

    In stateful mode, a session is opened before the call and closed after it.
    """
    try:
        if client.stateful_auth:
            await client.login()

        try:
            result = await query_ewons(client, args)
        except m2webapi.M2WebError:
            # The query error is the one reported.
            if client.session is not None:
                try:
                    await client.logout()
                except m2webapi.M2WebError as exc:
                    logger.warning("Logout failed after command error", error=str(exc))
            raise

        if client.session is not None:
            await client.logout()
        return result
    finally:
        await client.close()


async def query_ewons(
    client: m2webapi.M2WebClient,
    args: argparse.Namespace,
) -> list[m2webapi.Ewon] | m2webapi.Ewon:
    """Run the device query selected on the command line."""
    if args.command == "list":
        return await client.get_ewons(args.pool)
    if args.ewon_id is not None:
        return await client.get_ewon_by_id(args.ewon_id)
    return await client.get_ewon_by_name(args.name)


def format_result(result: list[m2webapi.Ewon] | m2webapi.Ewon) -> str:
    """Render one or many eWONs as indented JSON."""
    if isinstance(result, list):
        payload = [ewon.model_dump(mode="json", by_alias=True) for ewon in result]
    else:
        payload = result.model_dump(mode="json", by_alias=True)
    return json.dumps(payload, indent=2)


def main(argv: list[str] | None = None) -> int:
    """Entry point of the ``ewon-m2web`` command.

    Returns:
        Process exit code: 0 on success, 1 on error.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    config_path = config.resolve_config_path(args.config)
    try:
        client_config = config.load_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        print(f"Error: invalid configuration {config_path}: {exc}", file=sys.stderr)
        return 1

    config.configure_logging(client_config.log_level)

    try:
        client = config.create_client(client_config)
        result = asyncio.run(run_command(client, args))
    except m2webapi.M2WebError as exc:
        logger.error("Command failed", command=args.command, error=str(exc))
        return 1

    print(format_result(result))
    return 0


if __name__ == "__main__":
    sys.exit(main())
