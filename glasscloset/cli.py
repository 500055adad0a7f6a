"""Command line entrypoint for scanning garments and browsing the closet."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import sys
from dataclasses import replace
from pathlib import Path
from typing import Awaitable, Callable

from glasscloset.api.auth import AuthSession, TokenStore
from glasscloset.api.client import AnalysisClient
from glasscloset.api.connectivity import NetworkMonitor
from glasscloset.catalog.index import ClosetCategory
from glasscloset.config.settings import Settings, get_settings
from glasscloset.errors import ClosetError
from glasscloset.imgproc.detector import draw_overlay
from glasscloset.imgproc.normalize import RawImage
from glasscloset.integrations import run_all_checks
from glasscloset.monitoring.logging import configure_logging
from glasscloset.services.closet import ClosetService
from glasscloset.services.pipeline import CapturePipeline, PipelineSnapshot
from glasscloset.services.stages import PipelineStage

Command = Callable[[argparse.Namespace, Settings, AnalysisClient, TokenStore], Awaitable[int]]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="glasscloset", description="Scan garments and browse your closet.")
    commands = parser.add_subparsers(dest="command", required=True)

    login = commands.add_parser("login", help="Sign in and store the access token")
    login.add_argument("email")
    login.add_argument("--password", help="Prompted for when omitted")

    signup = commands.add_parser("signup", help="Create an account")
    signup.add_argument("email")
    signup.add_argument("--password", help="Prompted for when omitted")

    commands.add_parser("logout", help="Forget the stored access token")

    scan = commands.add_parser("scan", help="Analyse a garment photo")
    scan.add_argument("image", type=Path)
    scan.add_argument("--detect", action="store_true", help="Run on-device detection before upload")
    scan.add_argument("--overlay", type=Path, help="Write the detection overlay to this file")

    closet = commands.add_parser("closet", help="List stored items")
    closet.add_argument(
        "--category",
        default=ClosetCategory.ALL.value,
        choices=[category.value for category in ClosetCategory],
    )
    closet.add_argument("--query", default="", help="Every word must match")

    delete = commands.add_parser("delete", help="Delete a stored item")
    delete.add_argument("item_id")

    commands.add_parser("check", help="Check that the backend is reachable")
    return parser.parse_args(argv)


def _password(args: argparse.Namespace) -> str:
    return args.password or getpass.getpass("Password: ")


async def _login(args: argparse.Namespace, settings: Settings, client: AnalysisClient, store: TokenStore) -> int:
    user = await AuthSession(client, store).login(args.email, _password(args))
    print(f"Signed in as {user.username}.")
    return 0


async def _signup(args: argparse.Namespace, settings: Settings, client: AnalysisClient, store: TokenStore) -> int:
    user_id = await AuthSession(client, store).signup(args.email, _password(args))
    print(f"Account created ({user_id}). Run `glasscloset login {args.email}` next.")
    return 0


async def _logout(args: argparse.Namespace, settings: Settings, client: AnalysisClient, store: TokenStore) -> int:
    await AuthSession(client, store).logout()
    print("Signed out.")
    return 0


def _print_stage(snapshot: PipelineSnapshot) -> None:
    if snapshot.in_flight:
        print(f"… {snapshot.stage.value}")


async def _scan(args: argparse.Namespace, settings: Settings, client: AnalysisClient, store: TokenStore) -> int:
    if args.detect:
        settings = replace(settings, detection_enabled=True)
    try:
        data = await asyncio.to_thread(args.image.read_bytes)
    except OSError as exc:
        print(f"Cannot read {args.image}: {exc.strerror or exc}", file=sys.stderr)
        return 1
    raw = RawImage.from_bytes(data)
    pipeline = CapturePipeline.from_settings(settings, client)
    pipeline.subscribe(_print_stage)

    snapshot = await pipeline.capture(raw)
    if snapshot.stage is PipelineStage.FAILED and snapshot.error is not None:
        print(f"Analysis failed: {snapshot.error.description}", file=sys.stderr)
        if snapshot.needs_authentication:
            print("Please log in with `glasscloset login EMAIL` and try again.", file=sys.stderr)
        return 1

    attributes = snapshot.attributes
    if attributes is None:
        return 1
    print(attributes.formatted())
    if attributes.id:
        print(f"Saved as item {attributes.id}")
    if args.overlay and snapshot.image is not None and snapshot.detections:
        await asyncio.to_thread(draw_overlay(snapshot.image, snapshot.detections).save, args.overlay)
        print(f"Detection overlay written to {args.overlay}")
    return 0


async def _closet(args: argparse.Namespace, settings: Settings, client: AnalysisClient, store: TokenStore) -> int:
    service = ClosetService(client)
    await service.refresh()
    items = service.list_items(args.category, args.query)
    if not items:
        print("No items match.")
        return 0
    for item in items:
        print(f"{item.id}  {item.date_added:%Y-%m-%d}  {item.name}")
    return 0


async def _delete(args: argparse.Namespace, settings: Settings, client: AnalysisClient, store: TokenStore) -> int:
    deleted = await ClosetService(client).delete(args.item_id)
    print("Deleted." if deleted else "The backend did not delete the item.")
    return 0 if deleted else 1


async def _check(args: argparse.Namespace, settings: Settings, client: AnalysisClient, store: TokenStore) -> int:
    results = await run_all_checks()
    for result in results:
        status = "✅" if result.success else "❌"
        print(f"{status} {result.name}: {result.message}")
    return 0 if all(result.success for result in results) else 1


# commands that never reach the backend through the shared client
OFFLINE_COMMANDS = frozenset({"logout", "check"})

COMMANDS: dict[str, Command] = {
    "login": _login,
    "signup": _signup,
    "logout": _logout,
    "scan": _scan,
    "closet": _closet,
    "delete": _delete,
    "check": _check,
}


async def main(argv: list[str] | None = None) -> int:
    """Initialise dependencies and run the requested command."""

    args = parse_args(argv)
    configure_logging()
    settings = get_settings()
    store = TokenStore(Path(settings.token_path))
    monitor = NetworkMonitor()
    try:
        client = AnalysisClient(settings, token_provider=store.get_token, connectivity=monitor)
    except ClosetError as exc:
        print(f"Error: {exc.description}", file=sys.stderr)
        return 1

    try:
        if args.command not in OFFLINE_COMMANDS:
            await monitor.probe(settings.api_base_url)
        return await COMMANDS[args.command](args, settings, client, store)
    except ClosetError as exc:
        print(f"Error: {exc.description}", file=sys.stderr)
        return 1
    finally:
        await client.close()


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
