"""Sub-command dispatcher shared by the console tools."""

from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from utils.error_tracker import CameraError, ErrorTracker
from utils.logger import Logger, LoggerType

EXIT_OK = 0
EXIT_CAMERA_ERROR = 1
EXIT_USAGE = 2

Handler = Callable[[argparse.Namespace], None]
ArgumentHook = Callable[[argparse.ArgumentParser], None]


@dataclass
class Command:
    """One sub-command: its handler, argument hook and help line."""

    name: str
    handler: Handler
    add_arguments: Optional[ArgumentHook] = None
    help: str | None = None


@dataclass
class CommandDispatcher:
    """
    Parse ``argv`` and run the selected :class:`Command`.

    ``add_common_arguments`` is applied to every sub-parser so options like
    ``--config`` or ``--serial`` can follow the command name.
    """

    description: str
    commands: List[Command] = field(default_factory=list)
    add_common_arguments: Optional[ArgumentHook] = None

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(description=self.description)
        parser.add_argument(
            "--log-level",
            default=None,
            choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"],
            help="Override the configured log level",
        )
        subparsers = parser.add_subparsers(dest="command")
        for cmd in self.commands:
            sp = subparsers.add_parser(cmd.name, help=cmd.help)
            if self.add_common_arguments:
                self.add_common_arguments(sp)
            if cmd.add_arguments:
                cmd.add_arguments(sp)
            sp.set_defaults(func=cmd.handler)
        return parser

    def run(
        self,
        args: Optional[Sequence[str]] = None,
        *,
        logger: Optional[LoggerType] = None,
        track_exceptions: bool = True,
    ) -> int:
        """
        Dispatch one command and return the process exit status.

        Camera errors are logged and turned into ``EXIT_CAMERA_ERROR`` after
        the registered cleanups (open sessions) have run. Anything else
        propagates to the :class:`ErrorTracker` hook.
        """
        logger = logger or Logger.get_logger("utils.cli")
        if track_exceptions:
            ErrorTracker.install_excepthook()
            ErrorTracker.install_signal_handlers()

        parser = self.build_parser()
        try:
            ns = parser.parse_args(args)
        except SystemExit as exc:  # argparse exits on bad usage and --help
            if exc.code:
                logger.error(f"Argument parsing failed: {exc}")
                return EXIT_USAGE
            return EXIT_OK

        if ns.log_level:
            Logger.configure(level=ns.log_level)
        if not hasattr(ns, "func"):
            parser.print_help()
            return EXIT_USAGE

        try:
            ns.func(ns)
        except CameraError as exc:
            logger.error(f"{ns.command} failed: {exc}")
            ErrorTracker.run_cleanup()
            return EXIT_CAMERA_ERROR
        return EXIT_OK
