"""
Human Log -- formatter and helper for acquisition progress lines.

Produces short readable output so the user can follow ``dojo add``
step by step without technical noise.

Example output:
    Resolving effect-ts via registry "dojocho"...
    Fetching @dojocho/effect-ts...
      extracted 42 entries
    Installing effect-ts dependencies...
      linked 1 workspace package
    Wired effect-ts into .claude
"""

import logging
import sys

from .levels import HUMAN

_RECORD_ATTRS = frozenset((
    "msg", "args", "levelname", "levelno", "pathname", "filename", "module",
    "exc_info", "exc_text", "stack_info", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "processName",
    "process", "message", "taskName", "name", "event",
))


class HumanFormatter:
    """Turns structured pipeline events into one readable line each."""

    def format_event(self, event: str, **kw) -> str | None:
        """Format an event as readable text.

        Args:
            event: Event name (e.g. "pack.fetch.start")
            **kw: Event parameters

        Returns:
            Formatted text, or None if the event has no human format
        """
        match event:

            # ── SOURCES ─────────────────────────────────────────────────
            case "pack.add.start":
                return f"Adding {kw.get('source', '?')} ({kw.get('kind', '?')})"

            case "registry.lookup":
                return f"Resolving {kw.get('name', '?')} via registry \"{kw.get('registry', '?')}\"..."

            case "pack.fetch.start":
                return f"Fetching {kw.get('target', '?')}..."

            case "pack.pack_local":
                return f"Packing {kw.get('path', '?')} with {kw.get('package_manager', '?')}..."

            case "pack.extract.complete":
                return f"  extracted {kw.get('entries', '?')} entries"

            # ── INSTALL ──────────────────────────────────────────────────
            case "pack.deps.install":
                return f"Installing {kw.get('name', '?')} dependencies..."

            case "pack.replace":
                return f"Replacing existing {kw.get('name', '?')}"

            case "pack.link.complete":
                count = kw.get("count", 0)
                noun = "package" if count == 1 else "packages"
                return f"  linked {count} workspace {noun}"

            case "wiring.agent.complete":
                return f"Wired {kw.get('name', '?')} into {kw.get('agent_dir', '?')}"

            case "pack.add.complete":
                return f"\n✓ Pack \"{kw.get('name', '?')}\" added"

            case _:
                return None


class HumanLogHandler(logging.Handler):
    """Logging handler that renders HUMAN events with HumanFormatter.

    Only processes HUMAN (25) records. Writes to stderr so stdout stays
    clean for scripting.
    """

    def __init__(self, stream=None) -> None:
        super().__init__(level=HUMAN)
        self.stream = stream or sys.stderr
        self.formatter_inst = HumanFormatter()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if record.levelno != HUMAN:
                return

            # wrap_for_formatter leaves the structlog event dict in msg
            if isinstance(record.msg, dict):
                kw = dict(record.msg)
                event = str(kw.pop("event", ""))
            else:
                event = getattr(record, "event", None) or record.getMessage()
                kw = {
                    k: v for k, v in record.__dict__.items()
                    if not k.startswith("_") and k not in _RECORD_ATTRS
                }

            formatted = self.formatter_inst.format_event(event, **kw)
            if formatted is not None:
                self.stream.write(formatted + "\n")
                self.stream.flush()
        except Exception:
            self.handleError(record)


class HumanLog:
    """Typed helper for emitting HUMAN level events.

    Usage:
        hlog = HumanLog(structlog.get_logger())
        hlog.fetch("https://example.com/pack.tgz")
    """

    def __init__(self, logger) -> None:
        self._log = logger

    def add_start(self, source: str, kind: str) -> None:
        self._log.log(HUMAN, "pack.add.start", source=source, kind=kind)

    def registry_lookup(self, name: str, registry: str) -> None:
        self._log.log(HUMAN, "registry.lookup", name=name, registry=registry)

    def fetch(self, target: str) -> None:
        self._log.log(HUMAN, "pack.fetch.start", target=target)

    def pack_local(self, path: str, package_manager: str) -> None:
        self._log.log(HUMAN, "pack.pack_local", path=path, package_manager=package_manager)

    def extracted(self, entries: int) -> None:
        self._log.log(HUMAN, "pack.extract.complete", entries=entries)

    def deps_install(self, name: str) -> None:
        self._log.log(HUMAN, "pack.deps.install", name=name)

    def replacing(self, name: str) -> None:
        self._log.log(HUMAN, "pack.replace", name=name)

    def linked(self, count: int) -> None:
        self._log.log(HUMAN, "pack.link.complete", count=count)

    def agent_wired(self, name: str, agent_dir: str) -> None:
        self._log.log(HUMAN, "wiring.agent.complete", name=name, agent_dir=agent_dir)

    def add_complete(self, name: str) -> None:
        self._log.log(HUMAN, "pack.add.complete", name=name)
