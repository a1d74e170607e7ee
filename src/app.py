"""Application entry point for guardianbot."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv

import settings
from adapters.error_sinks import ConsoleErrorSink
from adapters.formatting import format_issue_line, format_message, format_post
from client import Services, build_services
from core.errors import GuardianError
from frontend.validators import normalize_phone, parse_location

NAME = "GUARDIANBOT"
FONT = "tarty-1"
EXIT_WORDS = {"exit", "quit"}


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    # Console logging would draw over the terminal UI, so it is off by default.
    if config.get("console", False):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/guardianbot.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)


def _run_tui(services: Services) -> None:
    from frontend.app import GuardianApp

    GuardianApp(services, db_label=os.path.basename(settings.DB_PATH)).run()


async def _chat_loop(services: Services) -> None:
    errors = ConsoleErrorSink()
    transcript = services.transcript(errors)
    for message in transcript.open():
        print(format_message(message, services.assistant_name))

    while True:
        try:
            text = await asyncio.to_thread(input, "you> ")
        except EOFError:
            print()
            return
        if text.strip().lower() in EXIT_WORDS:
            return
        reply = await transcript.submit(text)
        if reply is not None:
            print(format_message(reply, services.assistant_name))


def _print_feed(services: Services) -> None:
    posts = services.feed.list_posts()
    if not posts:
        print("No posts yet.")
        return
    for post in posts:
        print(format_post(post))
        print()


def _report(services: Services, args: argparse.Namespace) -> int:
    location = parse_location(args.location)
    if location.error or location.location is None:
        print(f"error: {location.error}", file=sys.stderr)
        return 2
    phone, phone_error = normalize_phone(args.phone or "")
    if phone_error:
        print(f"error: {phone_error}", file=sys.stderr)
        return 2
    issue = services.issues.report_issue(
        args.type,
        args.description,
        location.location,
        reporter_name=args.name,
        reporter_phone=phone,
    )
    print(format_issue_line(issue))
    return 0


def _list_issues(services: Services, args: argparse.Namespace) -> None:
    issues = services.issues.list_issues(status=args.status, issue_type=args.type, days=args.days)
    if not issues:
        print("No issues match the current filter.")
        return
    for issue in issues:
        print(format_issue_line(issue))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="guardianbot")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Launch the terminal UI (default)")
    subparsers.add_parser("chat", help="Chat with the assistant on the console")

    post = subparsers.add_parser("post", help="Create a community post")
    post.add_argument("--caption", required=True)
    post.add_argument("--hashtags", default="", help='Space separated, e.g. "#flood #help"')
    post.add_argument("--media-url")
    post.add_argument("--goal", type=float, help="Donation goal")

    donate = subparsers.add_parser("donate", help="Donate to a post")
    donate.add_argument("post_id")
    donate.add_argument("amount", type=float)

    subparsers.add_parser("feed", help="Print the community feed, newest first")

    report = subparsers.add_parser("report", help="Report an issue")
    report.add_argument("--type", required=True, choices=list(settings.ISSUES.types))
    report.add_argument("--description", required=True)
    report.add_argument("--location", required=True, help='"lat, lng"')
    report.add_argument("--name")
    report.add_argument("--phone")

    issues = subparsers.add_parser("issues", help="List reported issues")
    issues.add_argument("--status", default="all")
    issues.add_argument("--type", default="all")
    issues.add_argument("--days", type=int)

    set_status = subparsers.add_parser("set-status", help="Change an issue status")
    set_status.add_argument("issue_id")
    set_status.add_argument("status")
    return parser


def _dispatch(services: Services, args: argparse.Namespace) -> int:
    if args.command == "chat":
        asyncio.run(_chat_loop(services))
    elif args.command == "post":
        post = services.feed.create_post(
            args.caption,
            args.hashtags,
            media_url=args.media_url,
            donation_goal=args.goal,
        )
        print(format_post(post))
    elif args.command == "donate":
        print(format_post(services.feed.donate(args.post_id, args.amount)))
    elif args.command == "feed":
        _print_feed(services)
    elif args.command == "report":
        return _report(services, args)
    elif args.command == "issues":
        _list_issues(services, args)
    elif args.command == "set-status":
        print(format_issue_line(services.issues.update_status(args.issue_id, args.status)))
    else:
        _print_banner()
        _run_tui(services)
    return 0


def main(argv: Optional[list[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    _configure_logging()
    logger = logging.getLogger(__name__)
    logger.info("Starting guardianbot (%s)", args.command or "run")

    services = build_services()
    try:
        code = _dispatch(services, args)
    except GuardianError as exc:
        logger.warning("Command %s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        code = 1
    if code:
        raise SystemExit(code)


if __name__ == "__main__":
    main()
