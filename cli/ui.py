"""Terminal helpers for the CLI: colors, screen handling, spinner, logging."""

import atexit
import logging
import shutil
import sys
import threading
import time

import colorlog

# ANSI escape codes
DIM = "\033[2m"
RESET = "\033[0m"
ALT_SCREEN_ON = "\033[?1049h"
ALT_SCREEN_OFF = "\033[?1049l"
CURSOR_HOME = "\033[H"
CLEAR_SCREEN = "\033[J"
SHOW_CURSOR = "\033[?25h"

LOG_FORMAT = "%(log_color)s%(asctime)s [%(levelname)8s] %(name)s: %(message)s"
LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}

_in_fullscreen = False


def configure_logging(level: str = "INFO") -> None:
    """Send library log records to stderr with level colors."""
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level!r}")

    handler = colorlog.StreamHandler(sys.stderr)
    handler.setFormatter(
        colorlog.ColoredFormatter(LOG_FORMAT, datefmt="%H:%M:%S", log_colors=LOG_COLORS)
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)


def _write(*codes: str):
    sys.stdout.write("".join(codes))
    sys.stdout.flush()


def enter_fullscreen():
    """Take over the terminal with the alternate screen; undone at exit."""
    global _in_fullscreen
    _write(ALT_SCREEN_ON, CURSOR_HOME, CLEAR_SCREEN)
    if not _in_fullscreen:
        atexit.register(exit_fullscreen)
    _in_fullscreen = True


def exit_fullscreen():
    """Back to the normal screen; safe to call more than once."""
    global _in_fullscreen
    if not _in_fullscreen:
        return
    _write(SHOW_CURSOR, ALT_SCREEN_OFF)
    _in_fullscreen = False


def separator_line() -> str:
    """Dim rule as wide as the terminal."""
    width = shutil.get_terminal_size(fallback=(80, 24)).columns
    return DIM + "─" * width + RESET


def draw_header(title: str = "RuuviTag Decoder"):
    _write(CURSOR_HOME, CLEAR_SCREEN)
    print(title)
    print(f"{DIM}help lists commands, exit leaves{RESET}\n")


class Spinner:
    """Animated spinner shown while a blocking call runs.

    Usage:
        with Spinner("Scanning"):
            slow_call()
    """

    FRAMES = "⠋⠙⠹⠸⠼⠴⠦⠧⠇⠏"

    def __init__(self, message: str = "Loading"):
        self.message = message
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def _spin(self):
        i = 0
        while not self._stop.is_set():
            frame = self.FRAMES[i % len(self.FRAMES)]
            print(f"\r{frame} {self.message}...", end="", flush=True)
            time.sleep(0.1)
            i += 1

    def __enter__(self):
        self._stop.clear()
        self._thread = threading.Thread(target=self._spin, daemon=True)
        self._thread.start()
        return self

    def __exit__(self, *exc):
        self._stop.set()
        if self._thread:
            self._thread.join()
        print("\r" + " " * (len(self.message) + 10) + "\r", end="", flush=True)
        return False
