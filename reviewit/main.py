"""`reviewit` command.

reviewit server   JSON API plus background integration jobs (default)
reviewit push     send the HEAD commit as a new merge request or version
"""

import argparse
import logging
import sys
from pathlib import Path

from reviewit.config import AppConfig, load_config
from reviewit.logging import ReviewitLogging

SUBCOMMANDS = ("server", "push")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse `reviewit [server|push] [options]`; no subcommand means server."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] not in SUBCOMMANDS + ("-h", "--help"):
        argv.insert(0, "server")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", "-c", type=Path, default=Path("config.yaml"), help="YAML config file")
    common.add_argument("--check", action="store_true", help="Validate the config and exit")

    parser = argparse.ArgumentParser(prog="reviewit", description="Review it! merge request server and client")
    sub = parser.add_subparsers(dest="subcommand", required=True)
    sub.add_parser("server", parents=[common], help="Run the API server")
    push = sub.add_parser("push", parents=[common], help="Push HEAD as a merge request")
    push.add_argument("--message", "-m", default="", help="Description of this version")
    return parser.parse_args(argv)


def _push(config: AppConfig, message: str) -> int:
    from reviewit.client import ApiClient, ApiError, run_push
    from reviewit.services.git import GitRunnerError

    log = logging.getLogger("reviewit.client")
    token = config.client_token_resolved
    if not token:
        log.error("No API token: set client.api_token, CLIENT_API_TOKEN or CLIENT_API_TOKEN_FILE")
        return 1
    client = ApiClient(config.client.api_url, token, config.client.project_id)
    try:
        mr_id = run_push(client, config.client.target_branch, message=message)
    except (ApiError, GitRunnerError) as e:
        log.error("Push failed: %s", e)
        return 1
    print(f"Merge request #{mr_id}")
    return 0


def _serve(config: AppConfig) -> int:
    from reviewit.api.run import run_server

    try:
        run_server(config)
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        logging.getLogger("reviewit.server").exception("Server stopped: %s", e)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    config = load_config(args.config)
    if args.check:
        print(f"Config OK: data_dir={config.store.data_dir} port={config.server.port}")
        return 0
    ReviewitLogging(config.logging).setup()
    if args.subcommand == "push":
        return _push(config, args.message)
    return _serve(config)


if __name__ == "__main__":
    sys.exit(main())
