"""Command line panel: view, clear, and export the prompt log, flip capture
toggles, feed events in by hand, or serve the HTTP file API."""

import argparse
import asyncio
import json
import logging
import sys

from prompt_logger.config import Config
from prompt_logger.extension import PromptLoggerExtension
from prompt_logger.file_service import create_app
from prompt_logger.host import MESSAGE_SENT, EventBus, HostContext, static_context
from prompt_logger.notify import ConsoleNotifier

logger = logging.getLogger(__name__)

TOGGLES = ("prompt", "history", "context")


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Prompt logger")
    parser.add_argument("--config", default=None,
                        help="Path to YAML config (default: $CONFIG_PATH or config.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("view", help="Print the formatted log")
    sub.add_parser("clear", help="Truncate the log")

    export = sub.add_parser("export", help="Write the raw log to a dated .jsonl file")
    export.add_argument("--out", default=None, help="Directory to export into")

    sub.add_parser("settings", help="Show the capture toggles")

    toggle = sub.add_parser("toggle", help="Turn a capture toggle on or off")
    toggle.add_argument("name", choices=TOGGLES)
    toggle.add_argument("state", choices=("on", "off"))

    capture = sub.add_parser("capture", help="Capture one event payload read as JSON")
    capture.add_argument("--event", default="-", help="Event JSON file ('-' for stdin)")
    capture.add_argument("--context", default=None, help="Host context JSON file")
    capture.add_argument("--event-type", default=MESSAGE_SENT)

    serve = sub.add_parser("serve", help="Run the /readFile and /writeFile service")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--root-dir", default=None)
    return parser


def _load_json(path: str | None):
    if path is None:
        return None
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


async def _run(args, config: Config, notifier: ConsoleNotifier) -> None:
    context = HostContext.from_mapping(_load_json(getattr(args, "context", None)))
    bus = EventBus()
    ext = PromptLoggerExtension(config, bus, static_context(context), notifier=notifier)
    try:
        if args.command == "view":
            content = await ext.viewer.view()
            if content is not None:
                print(content)
        elif args.command == "clear":
            await ext.viewer.clear()
        elif args.command == "export":
            if args.out:
                ext.viewer.export_dir = args.out
            await ext.viewer.export()
        elif args.command == "settings":
            for key, value in ext.capture.policy.to_dict().items():
                print(f"  {key}: {'on' if value else 'off'}")
        elif args.command == "toggle":
            policy = ext.on_toggle(args.name, args.state == "on")
            notifier.success(f"{args.name} logging {args.state} ({policy.to_dict()})")
        elif args.command == "capture":
            if args.event_type not in config["capture"]["events"]:
                logger.warning("Event type %s is not in capture.events, nothing will be logged",
                               args.event_type)
            ext.start()
            await bus.emit(args.event_type, _load_json(args.event))
    finally:
        await ext.close()


def main(argv=None) -> int:
    args = build_cli_parser().parse_args(argv)
    config = Config(args.config) if args.config else Config.from_env()

    level = logging.DEBUG if args.verbose else config["logging"]["level"]
    logging.basicConfig(
        level=level,
        format="%(asctime)s [prompt-logger] %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    if args.command == "serve":
        server = config["server"]
        app = create_app(args.root_dir or server["root_dir"], token=server["token"])
        logger.info("Serving file API from %s", app.config["ROOT_DIR"])
        app.run(host=args.host or server["host"], port=args.port or server["port"],
                debug=server["debug"])
        return 0

    notifier = ConsoleNotifier()
    asyncio.run(_run(args, config, notifier))
    return 1 if notifier.error_count else 0


if __name__ == "__main__":
    sys.exit(main())
