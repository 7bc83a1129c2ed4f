"""Command-line option handling for the gateway."""

from __future__ import annotations

import getopt
import re
import sys
from dataclasses import dataclass, field, replace

VERSION = "0.1.0"

_SHORT_OPTIONS = "c:hfd:sw:vx:i:"
_TAKES_ARGUMENT = frozenset("cdwxi")
_LEADING_INT = re.compile(r"\s*[+-]?\d+")


@dataclass
class Options:
    """Settings chosen on the command line.

    ``restart_argv`` holds the arguments to pass when the program restarts
    itself; ``restart_orig_pid`` is the parent's PID when started by a restart.
    """

    config_file: str | None = None
    wdctl_sock: str | None = None
    internal_sock: str | None = None
    daemon: bool = True
    debug_level: int | None = None
    log_syslog: bool = False
    restart_orig_pid: int = 0
    restart_argv: list[str] = field(default_factory=list)


class UsageError(Exception):
    """The command line asks to stop: help, version, or a bad option.

    ``text`` is what to print and ``status`` the exit status.
    """

    def __init__(self, text: str, status: int = 1) -> None:
        super().__init__(text.strip())
        self.text = text
        self.status = status


def usage() -> str:
    """Return the usage text."""
    return (
        "Usage: wifidog [options]\n"
        "\n"
        "  -c [filename] Use this config file\n"
        "  -f            Run in foreground\n"
        "  -d <level>    Debug level\n"
        "  -s            Log to syslog\n"
        "  -w <path>     Wdctl socket path\n"
        "  -h            Print usage\n"
        "  -v            Print version information\n"
        "  -x pid        Used internally by WiFiDog when re-starting itself "
        "*DO NOT ISSUE THIS SWITCH MANUAlLY*\n"
        "  -i <path>     Internal socket path used when re-starting self\n"
        "\n"
    )


def _atoi(text: str) -> int:
    match = _LEADING_INT.match(text)
    return int(match.group()) if match else 0


def parse_commandline(argv: list[str], options: Options | None = None) -> Options:
    """Apply ``argv`` (program name first) to a copy of ``options`` and return it.

    Raises :class:`UsageError` for -h, -v and malformed command lines.
    """
    result = replace(options) if options is not None else Options()
    program = argv[0] if argv else "wifidog"
    try:
        pairs, _ = getopt.gnu_getopt(list(argv[1:]), _SHORT_OPTIONS)
    except getopt.GetoptError as exc:
        raise UsageError(usage()) from exc

    restart = [program]
    for flag, value in pairs:
        letter = flag[1]
        skip_on_restart = False
        if letter == "h":
            raise UsageError(usage())
        if letter == "v":
            raise UsageError(f"This is WiFiDog version {VERSION}\n")
        if letter == "c":
            result.config_file = value
        elif letter == "w":
            result.wdctl_sock = value
        elif letter == "f":
            skip_on_restart = True
            result.daemon = False
        elif letter == "d":
            result.debug_level = _atoi(value)
        elif letter == "s":
            result.log_syslog = True
        elif letter == "x":
            skip_on_restart = True
            result.restart_orig_pid = _atoi(value)
        elif letter == "i":
            result.internal_sock = value

        if not skip_on_restart:
            restart.append(flag)
            if letter in _TAKES_ARGUMENT:
                restart.append(value)

    result.restart_argv = restart
    return result


def main(argv: list[str] | None = None) -> int:
    """Parse the command line; print help, version or errors and return the exit status."""
    if argv is None:
        full = list(sys.argv)
    else:
        full = ["wifidog", *argv]
    try:
        parse_commandline(full)
    except UsageError as exc:
        print(exc.text, end="")
        return exc.status
    return 0