"""Drive an asciinema recording from a script of shell lines and controls.

Lines starting with ``#$`` are controls: ``delay <ms>`` sets the typing
interval and ``wait <ms>`` the pause after each command.
"""

from __future__ import annotations

import re
import subprocess
import sys
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import IO, Any, Protocol, Sequence, Union

CTRL_PREFIX = "#$"

_INTEGER = re.compile(r"[+-]?\d+")


class ScriptError(ValueError):
    """Base class for script parsing errors."""

    default_message = "script error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class UnknownControlError(ScriptError):
    """A control line names an unknown command."""

    default_message = "unknown control command"


class NoArgumentsError(ScriptError):
    """A control command was given no arguments."""

    default_message = "no arguments given to command"


class BadArgumentError(ScriptError):
    """A control command argument is not valid."""

    default_message = "invalid command argument"


class _Command(Protocol):
    def run(self, script: "Script") -> None: ...


@dataclass
class Shell:
    """A shell line, typed one character at a time."""

    cmd: str

    def __post_init__(self) -> None:
        if not self.cmd.endswith("\n"):
            self.cmd += "\n"

    def run(self, script: "Script") -> None:
        """Type the line into the recording."""
        for ch in self.cmd:
            try:
                script.stdin.write(ch.encode())
                script.stdin.flush()
            except (OSError, ValueError, AttributeError):
                raise SystemExit(1)
            time.sleep(script.delay.total_seconds())


@dataclass
class Wait:
    """Changes the pause after each following command."""

    duration: timedelta

    def run(self, script: "Script") -> None:
        script.wait = self.duration


@dataclass
class Delay:
    """Changes the typing interval of following commands."""

    interval: timedelta

    def run(self, script: "Script") -> None:
        script.delay = self.interval


Command = Union[Shell, Wait, Delay]


def _milliseconds(opts: Sequence[str]) -> timedelta:
    if not opts:
        raise NoArgumentsError()
    text = opts[0].strip()
    if not _INTEGER.fullmatch(text):
        raise BadArgumentError()
    return timedelta(milliseconds=int(text))


def parse_control(cmd: str) -> Command:
    """Parse the text after the control prefix into a command."""
    tokens = cmd.split(" ")
    name = tokens[0].strip()
    if name == "delay":
        return Delay(_milliseconds(tokens[1:]))
    if name == "wait":
        return Wait(_milliseconds(tokens[1:]))
    raise UnknownControlError()


@dataclass
class Script:
    """A script to be typed into an asciinema recording."""

    args: list[str] = field(default_factory=list)
    commands: list[Command] = field(default_factory=list)
    delay: timedelta = timedelta(milliseconds=40)
    wait: timedelta = timedelta(milliseconds=100)
    process: Any = None
    stdin: IO[bytes] | None = None

    def start(self) -> None:
        """Start recording."""
        self.process = subprocess.Popen(
            ["asciinema", "rec", *self.args],
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        self.stdin = self.process.stdin
        for stream in (self.process.stdout, self.process.stderr):
            threading.Thread(target=_echo, args=(stream,), daemon=True).start()

    def stop(self) -> None:
        """Stop recording, confirming with the user when asciinema asks."""
        try:
            self.stdin.write(b"\x04")
            self.stdin.flush()
            if not self.args or self.args[0].startswith("-"):
                self._end_dialog()
        finally:
            self.process.wait()

    def _end_dialog(self) -> None:
        try:
            input()
        except KeyboardInterrupt:
            self.process.send_signal(subprocess.signal.SIGINT)
            return
        except EOFError:
            pass
        self.stdin.write(b"\n")
        self.stdin.flush()

    def execute(self) -> None:
        """Run every command, pausing after each."""
        for command in self.commands:
            command.run(self)
            time.sleep(self.wait.total_seconds())


def _echo(stream: IO[bytes]) -> None:
    for chunk in iter(lambda: stream.read1(1024), b""):
        sys.stdout.write(chunk.decode(errors="replace"))
        sys.stdout.flush()


def load_script(path: str | Path, args: Sequence[str]) -> Script:
    """Read a script file; ``args`` are passed to ``asciinema rec``."""
    lines = Path(path).read_text().split("\n")
    script = Script(args=list(args))
    last = len(lines) - 1
    for number, line in enumerate(lines, start=1):
        if line == "" and number - 1 == last:
            continue
        if line.startswith(CTRL_PREFIX):
            try:
                command = parse_control(line[len(CTRL_PREFIX):].strip())
            except ScriptError as exc:
                raise type(exc)(f"{exc} (line {number})") from exc
            script.commands.append(command)
        else:
            script.commands.append(Shell(line))
    return script


def _asciinema_available() -> bool:
    try:
        return subprocess.run(["asciinema", "-h"], capture_output=True).returncode == 0
    except OSError:
        return False


def main(argv: Sequence[str] | None = None) -> int:
    """Record the script named on the command line."""
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] in ("-h", "--help"):
        sys.exit(f"usage: {Path(sys.argv[0]).name} <script>")
    if not _asciinema_available():
        sys.exit("can't find asciinema executable")

    try:
        script = load_script(argv[0], argv[1:])
    except (OSError, ScriptError) as exc:
        sys.exit(f"parsing script failed: {exc}")

    try:
        script.start()
    except OSError as exc:
        sys.exit(f"couldn't start recording: {exc}")
    try:
        script.execute()
    finally:
        try:
            script.stop()
        except OSError as exc:
            sys.exit(f"couldn't stop recording: {exc}")
    return 0