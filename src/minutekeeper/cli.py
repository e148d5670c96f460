"""Command-line interface for minutekeeper."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
import time
from pathlib import Path

from .client import MinutesClient
from .config import load_config
from .errors import MinutesError
from .minutes import Minutes
from .models import TopicRecord

log = logging.getLogger(__name__)


def _format_topic(topic: TopicRecord) -> str:
    flags = []
    if topic.is_new:
        flags.append("new")
    flags.append("open" if topic.is_open else "closed")
    return f"  - [{', '.join(flags)}] {topic.subject} ({topic.id})"


def render_minutes(minutes: Minutes, topic_filter: str | None = None) -> str:
    state = "finalized" if minutes.is_finalized else "draft"
    lines = [
        f"Minutes {minutes.date} ({minutes.id}) [{state}]",
        f"  series: {minutes.parent_meeting_series_id()}",
    ]
    if minutes.participants:
        lines.append(f"  participants: {minutes.participants}")

    if topic_filter == "new":
        topics = minutes.get_new_topics()
    elif topic_filter == "old-closed":
        topics = minutes.get_old_closed_topics()
    else:
        topics = minutes.topics

    if topics:
        lines.append("Topics:")
        lines.extend(_format_topic(topic) for topic in topics)
    else:
        lines.append("No topics")
    return "\n".join(lines)


def _follow(client: MinutesClient, minutes: Minutes, topic_filter: str | None) -> None:
    def _reprint() -> None:
        try:
            minutes.refresh()
        except MinutesError as e:
            log.warning("Could not refresh minutes: %s", e)
            return
        print(render_minutes(minutes, topic_filter), flush=True)

    stop_event = threading.Event()

    def _shutdown(signum: int, frame: object) -> None:
        sig_name = signal.Signals(signum).name
        log.info("Received %s, shutting down...", sig_name)
        stop_event.set()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    client.watch(on_reload=_reprint)
    while not stop_event.is_set():
        time.sleep(1)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="minutekeeper",
        description="Inspect meeting minutes held in the local cache",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to config YAML (default: ~/.config/minutekeeper/config.yaml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Show one set of minutes and its topics")
    show.add_argument("minutes_id", help="Id of the minutes to show")
    filters = show.add_mutually_exclusive_group()
    filters.add_argument(
        "--new",
        dest="topic_filter",
        action="store_const",
        const="new",
        help="Only list topics that are new",
    )
    filters.add_argument(
        "--old-closed",
        dest="topic_filter",
        action="store_const",
        const="old-closed",
        help="Only list topics that are neither new nor open",
    )
    show.add_argument(
        "--follow", "-f",
        action="store_true",
        help="Keep watching the cache and reprint on change",
    )

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1) from None

    try:
        with MinutesClient(config) as client:
            minutes = client.minutes(args.minutes_id)
            print(render_minutes(minutes, args.topic_filter))
            if args.follow:
                _follow(client, minutes, args.topic_filter)
    except MinutesError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1) from None
