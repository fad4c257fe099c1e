"""CLI entry point for rtrbatch."""
import argparse
import sys
from typing import List, Optional

from rtrbatch.api import RTRClient
from rtrbatch.config import load_settings
from rtrbatch.errors import AuthenticationFailed, DiscoveryFailed, TransportError
from rtrbatch.executor import RTRBatchExecutor
from rtrbatch.executor_utils.batch_controller import MAX_WORKERS, PACE_INTERVAL
from rtrbatch.executor_utils.response_models import ExecutionPolicy


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rtrbatch",
        description="Run a script on every host matching a pattern through Real Time Response",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    parser.add_argument(
        "pattern",
        help="Host pattern, matched against --criteria-type"
    )
    parser.add_argument(
        "script",
        help="Script body to run on each host"
    )
    parser.add_argument(
        "--criteria-type",
        type=str,
        default="hostname",
        help="Device field the pattern is matched against"
    )
    parser.add_argument(
        "--filter",
        type=str,
        default=None,
        dest="raw_filter",
        help="Raw device filter, used when the pattern is empty"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=5000,
        help="Maximum number of hosts to resolve"
    )
    parser.add_argument(
        "--max-workers",
        type=int,
        default=MAX_WORKERS,
        help="Maximum number of hosts processed concurrently"
    )
    parser.add_argument(
        "--pace",
        type=float,
        default=PACE_INTERVAL,
        help="Seconds each worker waits after a host before taking the next"
    )
    parser.add_argument(
        "--session-timeout",
        type=int,
        default=30,
        help="Batch session timeout in seconds"
    )
    parser.add_argument(
        "--session-timeout-duration",
        type=str,
        default="30s",
        help="Batch session timeout as a duration string"
    )
    parser.add_argument(
        "--exec-timeout",
        type=int,
        default=30,
        help="Command timeout in seconds"
    )
    parser.add_argument(
        "--exec-timeout-duration",
        type=str,
        default="10m",
        help="Command timeout as a duration string"
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=".env",
        help="File holding CLIENT_ID and CLIENT_SECRET"
    )
    parser.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="API root (default: BASE_URL setting or https://api.crowdstrike.com)"
    )
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip TLS certificate verification"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print progress to stderr"
    )
    return parser


def _fail(message: str) -> int:
    print(f"[rtrbatch] Error: {message}", file=sys.stderr)
    return 1


def run(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run the batch and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.max_workers < 1:
        parser.error("--max-workers must be at least 1")

    settings = load_settings(args.env_file)

    if not settings.has_credentials:
        return _fail("CLIENT_ID and CLIENT_SECRET must be set in the .env file or environment variables")

    base_url = args.base_url or settings.base_url
    verify_cert = settings.verify_cert and not args.no_verify

    policy = ExecutionPolicy(
        session_timeout=args.session_timeout,
        session_timeout_duration=args.session_timeout_duration,
        exec_timeout=args.exec_timeout,
        exec_timeout_duration=args.exec_timeout_duration
    )

    if args.verbose:
        print("=" * 60, file=sys.stderr)
        print("Starting rtrbatch", file=sys.stderr)
        print("=" * 60, file=sys.stderr)
        print(f"  API:                     {base_url}", file=sys.stderr)
        print(f"  Verify Cert:             {verify_cert}", file=sys.stderr)
        print(f"  Pattern:                 {args.criteria_type}:'{args.pattern}'", file=sys.stderr)
        print(f"  Max Workers:             {args.max_workers}", file=sys.stderr)
        print(f"  Pace:                    {args.pace}s", file=sys.stderr)
        print("=" * 60, file=sys.stderr)

    with RTRClient(base_url=base_url, verify_cert=verify_cert, pool_size=args.max_workers) as client:
        try:
            client.authenticate(settings.client_id, settings.client_secret)
        except (AuthenticationFailed, TransportError) as e:
            return _fail(f"Authenticating: {e}")

        try:
            targets = client.discover_targets(
                args.pattern,
                limit=args.limit,
                criteria_type=args.criteria_type,
                raw_filter=args.raw_filter
            )
        except (DiscoveryFailed, TransportError) as e:
            return _fail(f"Searching for hosts: {e}")

        if args.verbose:
            print(f"[rtrbatch] Resolved {len(targets)} hosts", file=sys.stderr)

        executor = RTRBatchExecutor(
            client,
            policy=policy,
            max_workers=args.max_workers,
            pace_interval=args.pace,
            verbose=args.verbose
        )
        executor.execute(targets, args.script)

    return 0


def main():
    """CLI entry point for rtrbatch."""
    try:
        sys.exit(run())
    except KeyboardInterrupt:
        print("\n\nInterrupted", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
