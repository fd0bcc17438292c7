"""
CursorGallery - command-line administration and rendering.

The CLI acts as the local administrator: it holds the manage privilege
and issues its own nonces.

Usage:
    cursor-gallery list
    cursor-gallery save --set enabled=1 --set animation_type=spin --image arrow.png
    cursor-gallery render 2
    cursor-gallery expand page.html
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence
import argparse
import json
import sys

from cursor_gallery.admin.actions import (
    DELETE_ACTION,
    NEW_ACTION,
    NEXT_ACTION,
    PREV_ACTION,
    SAVE_ACTION,
    SELECT_ACTION,
    ActionResult,
    CursorAdmin,
)
from cursor_gallery.admin.guard import AdminRequest, RequestGuard, Upload
from cursor_gallery.core.config import AppConfig, StorageConfig
from cursor_gallery.core.errors import CursorGalleryError
from cursor_gallery.embed import EmbedRenderer
from cursor_gallery.imaging.media_library import MediaLibrary
from cursor_gallery.imaging.normalizer import ImageNormalizer
from cursor_gallery.render.codegen import render
from cursor_gallery.storage.backing_store import BackingStoreError, JsonFileStore
from cursor_gallery.storage.gallery_store import GalleryStore
from cursor_gallery.storage.schema import to_form_fields, warnings_as_dicts
from cursor_gallery.utils.logger import setup_logger, get_logger

# Commands that only read the gallery
READ_ONLY_COMMANDS = {"render", "expand"}


@dataclass
class Services:
    """Wired-up components for one process."""

    config: AppConfig
    gallery: GalleryStore
    guard: RequestGuard
    admin: CursorAdmin
    embed: EmbedRenderer


def build_services(config: AppConfig) -> Services:
    """
    Wire the components together around a JSON file store.

    Args:
        config: Application configuration

    Returns:
        Services bundle
    """
    backing = JsonFileStore(config.storage)
    gallery = GalleryStore(backing, config.storage)
    guard = RequestGuard(config.security)
    admin = CursorAdmin(
        gallery,
        guard,
        media=MediaLibrary(config.storage, backing),
        normalizer=ImageNormalizer(),
    )
    return Services(
        config=config,
        gallery=gallery,
        guard=guard,
        admin=admin,
        embed=EmbedRenderer(gallery, config.render),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cursor-gallery", description="Manage and render custom cursors."
    )
    parser.add_argument("--data-dir", type=Path, help="Directory holding the store")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init", help="Create the gallery if it does not exist")
    sub.add_parser("list", help="List cursors (* marks the current one)")

    show = sub.add_parser("show", help="Print a cursor as JSON")
    show.add_argument("id", type=int, nargs="?")

    sub.add_parser("new", help="Create a cursor and select it")

    delete = sub.add_parser("delete", help="Delete a cursor")
    delete.add_argument("id", type=int, nargs="?")

    sub.add_parser("next", help="Select the next cursor")
    sub.add_parser("prev", help="Select the previous cursor")

    select = sub.add_parser("select", help="Select a cursor by id")
    select.add_argument("id", type=int)

    save = sub.add_parser("save", help="Update the current cursor")
    save.add_argument(
        "--set", dest="assignments", action="append", default=[],
        metavar="FIELD=VALUE", help="Field to change (repeatable)",
    )
    save.add_argument("--image", type=Path, help="Image file to upload")

    render_cmd = sub.add_parser("render", help="Print the HTML for a cursor")
    render_cmd.add_argument("id", type=int, nargs="?")

    expand = sub.add_parser("expand", help="Expand embed directives in a file")
    expand.add_argument("file", type=Path)

    return parser


def parse_assignments(assignments: Sequence[str]) -> Dict[str, str]:
    """
    Parse ``FIELD=VALUE`` pairs.

    Raises:
        ValueError: If an assignment has no '='
    """
    fields: Dict[str, str] = {}
    for item in assignments:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            raise ValueError(f"Expected FIELD=VALUE, got {item!r}")
        fields[name.strip()] = value
    return fields


def _request(services: Services, action: str, **kwargs) -> AdminRequest:
    return AdminRequest(
        can_manage=True, nonce=services.guard.issue_nonce(action), **kwargs
    )


def _report(result: ActionResult) -> int:
    print(f"{result.status.value}: cursor {result.record.id} ({result.record.name})")
    for warning in warnings_as_dicts(result.warnings):
        print(f"  warning [{warning['field']}]: {warning['message']}", file=sys.stderr)
    return 0 if result.ok else 1


def run(args: argparse.Namespace, services: Services) -> int:
    """Execute one parsed command. Returns the exit code."""
    gallery = services.gallery
    admin = services.admin

    if args.command not in READ_ONLY_COMMANDS:
        gallery.initialize()

    if args.command == "init":
        print(f"gallery ready: {len(gallery.list())} cursor(s)")
        return 0

    if args.command == "list":
        current_id = gallery.get_current().id
        for record in gallery.list():
            marker = "*" if record.id == current_id else " "
            state = "on " if record.enabled else "off"
            print(f"{marker} {record.id:>3} {state} {record.name}  {record.image_url}")
        return 0

    if args.command == "show":
        record = gallery.require(args.id) if args.id is not None else gallery.get_current()
        print(json.dumps(record.to_dict(), indent=2))
        return 0

    if args.command == "new":
        return _report(admin.create(_request(services, NEW_ACTION)))

    if args.command == "delete":
        return _report(admin.delete(_request(services, DELETE_ACTION), args.id))

    if args.command == "next":
        return _report(admin.next(_request(services, NEXT_ACTION)))

    if args.command == "prev":
        return _report(admin.prev(_request(services, PREV_ACTION)))

    if args.command == "select":
        return _report(admin.select(_request(services, SELECT_ACTION), args.id))

    if args.command == "save":
        fields = to_form_fields(admin.current())
        fields.update(parse_assignments(args.assignments))
        upload = None
        if args.image is not None:
            upload = Upload(filename=args.image.name, data=args.image.read_bytes())
        return _report(admin.save(_request(services, SAVE_ACTION, fields=fields, upload=upload)))

    if args.command == "render":
        cursor_id = args.id if args.id is not None else gallery.current_id
        record = gallery.get_by_id(cursor_id) if cursor_id is not None else None
        print(render(record, services.config.render).to_html())
        return 0

    if args.command == "expand":
        print(services.embed.expand(args.file.read_text(encoding="utf-8")), end="")
        return 0

    raise ValueError(f"Unknown command {args.command!r}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = AppConfig()
    if args.data_dir is not None:
        config.storage = StorageConfig(data_dir=args.data_dir)
    if args.log_level:
        config.log_level = args.log_level

    setup_logger(
        name="cursor_gallery",
        level=config.log_level,
        log_file=config.storage.log_path,
        enable_file_logging=config.storage.enable_file_logging,
    )
    logger = get_logger(__name__)
    logger.info(f"CursorGallery {config.version}: {args.command}")

    try:
        services = build_services(config)
        return run(args, services)
    except (CursorGalleryError, BackingStoreError, ValueError, OSError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
