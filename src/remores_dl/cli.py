"""remores-dl - download Canvas submissions for REMORES bookings.

Usage:
    remores-dl [--canvas-api-token TOKEN] <command> [options]

Commands:
    courses                         List courses where you are a teacher or TA
    assignments <course_id>         List assignments of a course
    bookings -r REPO -k KTH_ID      List your bookings in a REMORES repository
    download [folder] -r REPO -k KTH_ID -c COURSE -a ASSIGNMENT
                                    Download the submissions matching your bookings
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional

from .canvas import CanvasClient
from .config import Settings
from .errors import RemoresDLError
from .remores import RemoresClient

logger = logging.getLogger(__name__)


def _canvas_client(settings: Settings) -> CanvasClient:
    return CanvasClient(
        settings.require_token(),
        base_url=settings.canvas_api_url,
        per_page=settings.per_page,
        timeout=settings.http_timeout,
    )


def _remores_client(settings: Settings, repository: str) -> RemoresClient:
    return RemoresClient(
        repository,
        url=settings.remores_url,
        email_domain=settings.email_domain,
        timeout=settings.http_timeout,
    )


async def cmd_courses(args: argparse.Namespace, settings: Settings) -> None:
    client = _canvas_client(settings)
    try:
        print("Finding courses on Canvas...")
        courses = await client.get_courses()
        print("Available courses:")
        for course in courses:
            print(f"  {course.id}: {course.name}")
    finally:
        await client.close()


async def cmd_assignments(args: argparse.Namespace, settings: Settings) -> None:
    client = _canvas_client(settings)
    try:
        print(f"Finding assignments for course {args.course_id} on Canvas...")
        assignments = await client.get_assignments(args.course_id)
        print("Available assignments:")
        for assignment in assignments:
            print(f"  {assignment.id}: {assignment.name}")
    finally:
        await client.close()


async def cmd_bookings(args: argparse.Namespace, settings: Settings) -> None:
    remores = _remores_client(settings, args.repo)
    try:
        print(f"Finding bookings for {args.repo} on REMORES...")
        bookings = await remores.get_bookings_for(args.kth_id)
        print(f"Found {len(bookings)} bookings")
        for booking in bookings:
            print(f"  {booking}")
    finally:
        await remores.close()


async def cmd_download(args: argparse.Namespace, settings: Settings) -> None:
    canvas = _canvas_client(settings)
    remores = _remores_client(settings, args.repo)
    try:
        print(f"Finding bookings for {args.repo} on REMORES...")
        bookings = await remores.get_bookings_for(args.kth_id)
        print(f"Found {len(bookings)} bookings")

        print(f"Finding submissions for assignment {args.assignment} in course {args.course} on Canvas...")
        matches = await canvas.get_assignment_submissions(
            args.course, args.assignment, bookings, threshold=settings.match_threshold
        )
        print(f"Found matching submissions for {sum(m.matched for m in matches)} bookings")
        for match in matches:
            if not match.matched:
                print(f"  No submission for {match.booking}")

        print(f"Downloading submissions to {args.folder}...")
        report = await canvas.download_matches(matches, args.folder)
        for path in report.paths:
            print(f"Downloaded submission to {path}")
        for failure in report.failures:
            target = f" ({failure.attachment})" if failure.attachment else ""
            print(f"Failed to download submission {failure.user}{target}: {failure.reason}", file=sys.stderr)
    finally:
        await remores.close()
        await canvas.close()


COMMANDS = {
    "courses": cmd_courses,
    "assignments": cmd_assignments,
    "bookings": cmd_bookings,
    "download": cmd_download,
}


def _add_remores_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-r", "--repo", required=True, help="The REMORES repository name")
    parser.add_argument("-k", "--kth-id", required=True, help="Your KTH ID, eg. `asalamon`")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="remores-dl",
        description="Download Canvas submissions matching bookings from REMORES.",
    )
    parser.add_argument(
        "--canvas-api-token",
        help="Can be obtained from https://canvas.kth.se/profile/settings (default: $CANVAS_API_TOKEN)",
    )
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser(
        "courses", help="List available courses on Canvas where you are either a teacher or a TA."
    )

    assignments = subparsers.add_parser(
        "assignments", help="List all available assignments for a specific course on Canvas."
    )
    assignments.add_argument("course_id", help="The Canvas course ID")

    bookings = subparsers.add_parser("bookings", help="List your bookings on REMORES.")
    _add_remores_args(bookings)

    download = subparsers.add_parser(
        "download", help="Download submissions from Canvas, matching bookings from REMORES."
    )
    download.add_argument(
        "folder", nargs="?", default="downloads", help="The folder to download the submissions to"
    )
    _add_remores_args(download)
    download.add_argument("-c", "--course", type=int, required=True, help="The Canvas course ID")
    download.add_argument("-a", "--assignment", type=int, required=True, help="The Canvas assignment ID")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        settings = Settings.from_env()
    except RemoresDLError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if args.canvas_api_token:
        settings.canvas_api_token = args.canvas_api_token

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )

    try:
        asyncio.run(COMMANDS[args.command](args, settings))
    except RemoresDLError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
