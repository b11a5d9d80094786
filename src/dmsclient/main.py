"""Command line front end for the DMS client."""

import argparse
import asyncio
import sys
from typing import Optional

from dmsclient.models.config import DMSConfig
from dmsclient.services.reachability import HttpHealthProbe, ReachabilityMonitor
from dmsclient.services.reporter import InstallReporter
from dmsclient.session import DMSSession
from dmsclient.utils.errors import MonitorInitError
from dmsclient.utils.logging import setup_logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dmsclient",
        description="List, download, and report device firmware via the DMS",
    )
    parser.add_argument("--base-url", help="DMS base URL (env DMS_BASE_URL)")
    parser.add_argument("--api-key", help="DMS API key (env DMS_API_KEY)")
    parser.add_argument(
        "--download-dir", help="Where firmware images are stored (env DMS_DOWNLOAD_DIR)"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    parser.add_argument("--log-file", default=None, help="Also log to this file")

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="List available firmware versions")
    list_parser.add_argument("device_id")

    download_parser = subparsers.add_parser("download", help="Download a firmware image")
    download_parser.add_argument("device_id")
    download_parser.add_argument("version")

    report_parser = subparsers.add_parser("report", help="Report a completed installation")
    report_parser.add_argument("device_uuid")
    report_parser.add_argument("bundle_id")

    watch_parser = subparsers.add_parser("watch", help="Print DMS reachability changes")
    watch_parser.add_argument("--seconds", type=float, default=30.0)

    return parser


async def _list(config: DMSConfig, device_id: str) -> int:
    try:
        session = DMSSession.create(device_id, config)
    except MonitorInitError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    async with session:
        result = await session.retrieve_available_versions()
    if result.error:
        print(f"error: {result.error}", file=sys.stderr)
        return 1
    if not result.firmware_list:
        print("No compatible firmware available")
    for entry in result.firmware_list:
        print(f"{entry.version}\t{entry.tag}\t{entry.size_bytes}\t{entry.description}")
    return 0


async def _download(config: DMSConfig, device_id: str, version: str) -> int:
    try:
        session = DMSSession.create(device_id, config)
    except MonitorInitError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    async with session:
        result = await session.load_firmware_version(version)
    if result.error:
        print(f"error: {result.error}", file=sys.stderr)
        return 1
    print(result.file_path)
    return 0


async def _watch(config: DMSConfig, seconds: float) -> int:
    monitor = ReachabilityMonitor(
        config.host,
        HttpHealthProbe.for_config(config),
        on_change=lambda reachable: print(
            f"{config.host}: {'reachable' if reachable else 'unreachable'}",
            flush=True,
        ),
        retry_interval=config.probe_interval,
    )
    monitor.start()
    try:
        await asyncio.sleep(seconds)
    finally:
        monitor.stop()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the dmsclient console script."""
    args = build_parser().parse_args(argv)
    setup_logger("dmsclient", args.log_file, level=args.log_level)

    config = DMSConfig.from_env(
        base_url=args.base_url,
        api_key=args.api_key,
        download_dir=args.download_dir,
    )

    if args.command == "list":
        return asyncio.run(_list(config, args.device_id))
    if args.command == "download":
        return asyncio.run(_download(config, args.device_id, args.version))
    if args.command == "report":
        asyncio.run(InstallReporter.send_report(args.device_uuid, args.bundle_id, config))
        return 0
    return asyncio.run(_watch(config, args.seconds))


if __name__ == "__main__":
    sys.exit(main())
