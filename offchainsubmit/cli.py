from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from .auth import DEFAULT_ACCOUNT_PATH
from .client import OffchainSubmitClient
from .config import DEFAULT_CHAINS_PATH, DEFAULT_CONTRACTS_DIR, DEFAULT_PROJECT_PATH
from .errors import OffchainSubmitError
from .session import DEFAULT_POLL_INTERVAL, DEFAULT_REQUEST_TIMEOUT


def _configure_logging(verbose: bool) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("[offchainsubmit] %(message)s"))
    package_logger = logging.getLogger("offchainsubmit")
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    package_logger.propagate = False


def _emit_json(payload: Any) -> None:
    sys.stdout.write(json.dumps(payload, indent=2, sort_keys=True) + "\n")


def _add_verbose_argument(
    parser: argparse.ArgumentParser, *, default: object = False
) -> None:
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Enable verbose request tracing",
    )


def _add_format_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=["text", "json"],
        default="text",
        help="Output format",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="offchain-submit",
        description="Client for an off-chain compute/work server.",
    )
    _add_verbose_argument(parser, default=False)
    parser.add_argument(
        "--chain",
        default=None,
        help="Chain name from the chain table (default: its 'default' entry)",
    )
    parser.add_argument(
        "--chains",
        default=DEFAULT_CHAINS_PATH,
        help=f"Path to the chain table (default: {DEFAULT_CHAINS_PATH})",
    )
    parser.add_argument(
        "--project",
        default=DEFAULT_PROJECT_PATH,
        help=f"Path to the project file (default: {DEFAULT_PROJECT_PATH})",
    )
    parser.add_argument(
        "--account",
        default=DEFAULT_ACCOUNT_PATH,
        help=f"Path to the account file holding the token (default: {DEFAULT_ACCOUNT_PATH})",
    )
    parser.add_argument(
        "--contracts-dir",
        default=DEFAULT_CONTRACTS_DIR,
        help=f"Directory of compiled contract descriptors (default: {DEFAULT_CONTRACTS_DIR})",
    )
    parser.add_argument(
        "--server",
        default=None,
        help="Server URL override for the selected chain",
    )
    parser.add_argument(
        "--jwtoken",
        default=None,
        help="Bearer token override",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_REQUEST_TIMEOUT,
        help="HTTP request timeout in seconds",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help="Seconds between status polls while waiting for work",
    )

    subparsers = parser.add_subparsers(dest="action", required=True)

    deploy = subparsers.add_parser("deploy", help="Deploy the project app")
    _add_verbose_argument(deploy, default=argparse.SUPPRESS)
    deploy.add_argument("--app-name", default=None)

    upload = subparsers.add_parser("upload", help="Upload a data file")
    _add_verbose_argument(upload, default=argparse.SUPPRESS)
    upload.add_argument("data_path")

    submit = subparsers.add_parser("submit", help="Submit work to a deployed app")
    _add_verbose_argument(submit, default=argparse.SUPPRESS)
    submit.add_argument("app_uid")

    result = subparsers.add_parser("result", help="Fetch the result of a work")
    _add_verbose_argument(result, default=argparse.SUPPRESS)
    result.add_argument("work_uid")
    result.add_argument(
        "--save",
        nargs="?",
        const=True,
        default=False,
        metavar="NAME",
        help="Download the result (file named after the work uid, or NAME)",
    )
    result.add_argument(
        "--watch",
        action="store_true",
        help="Block until the work reaches a terminal status",
    )
    result.add_argument(
        "--wait-timeout",
        type=float,
        default=None,
        help="Give up waiting after this many seconds (with --watch)",
    )
    _add_format_argument(result)

    version = subparsers.add_parser("version", help="Show the server version")
    _add_verbose_argument(version, default=argparse.SUPPRESS)

    api = subparsers.add_parser("api", help="Call a raw session operation by name")
    _add_verbose_argument(api, default=argparse.SUPPRESS)
    api.add_argument("operation")
    api.add_argument(
        "args",
        nargs="*",
        help="Positional operation arguments (put them after -- if one starts with a dash)",
    )
    _add_format_argument(api)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    _configure_logging(bool(getattr(ns, "verbose", False)))

    client = OffchainSubmitClient(
        chains_path=ns.chains,
        project_path=ns.project,
        account_path=ns.account,
        contracts_dir=ns.contracts_dir,
        jwtoken=ns.jwtoken,
        server=ns.server,
        request_timeout=ns.timeout,
        poll_interval=ns.poll_interval,
    )

    try:
        if ns.action == "deploy":
            deployed = client.deploy_application(ns.chain, ns.app_name)
            sys.stdout.write(
                "App %s deployed on the off-chain platform. Only callable through %s dapp at: %s\n"
                % (deployed.app_uid, deployed.chain, deployed.contract_address)
            )
        elif ns.action == "upload":
            uploaded = client.upload_data(ns.chain, ns.data_path)
            sys.stdout.write("Data uploaded, available at %s\n" % uploaded.data_uri)
        elif ns.action == "submit":
            submitted = client.submit_work(ns.chain, ns.app_uid)
            sys.stdout.write(
                "Work %s submitted to app %s\n" % (submitted.work_uid, submitted.app_uid)
            )
        elif ns.action == "result":
            fetched = client.fetch_result(
                ns.work_uid,
                ns.chain,
                save=ns.save,
                watch=ns.watch,
                timeout=ns.wait_timeout,
            )
            if ns.format == "json":
                _emit_json(fetched.to_dict())
            elif not fetched.completed:
                sys.stdout.write("%s...\n" % fetched.status)
            else:
                sys.stdout.write("Result: %s\n" % json.dumps(fetched.result_uri))
                if fetched.path:
                    sys.stdout.write("Saved result to file %s\n" % fetched.path)
            if fetched.failed:
                return 1
        elif ns.action == "version":
            sys.stdout.write("Server version: %s\n" % client.fetch_version(ns.chain))
        else:
            args = list(ns.args)
            value = client.invoke_generic(ns.chain, ns.operation, args)
            if ns.format == "json":
                _emit_json(value)
            else:
                sys.stdout.write(
                    "%s(%s) result:\n%s\n"
                    % (ns.operation, ", ".join(args), json.dumps(value, indent=2))
                )
    except (OffchainSubmitError, OSError) as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2
    return 0
