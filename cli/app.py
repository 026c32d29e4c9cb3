"""Interactive RuuviTag shell built on the cmd module."""

import cmd
import readline
import sys
from pathlib import Path

from ruuvitag_data.config import ConfigError

from .commands.ble import handle_ble
from .commands.config import get_config, handle_config
from .commands.decode import do_decode, do_metadata
from .commands.mqtt import handle_mqtt
from .ui import DIM, RESET, configure_logging, draw_header, enter_fullscreen, exit_fullscreen, separator_line

HISTORY_FILE = Path.home() / ".ruuvitag_cli_history"

# (usage, description); indented usages are subcommands
COMMAND_HELP = [
    ("decode <hex>", "Decode an advertisement with configured precision"),
    ("  decode <hex> raw", "Decode at native resolution"),
    ("metadata <3|5>", "Range and step of exposed fields"),
    ("  metadata <3|5> all", "Include feature-disabled fields"),
    ("config", "Show configuration"),
    ("  config precision <field> <n>", "Decimals for temperature, humidity or pressure"),
    ("  config feature <name> on|off", "Expose or hide an optional field"),
    ("ble", "BLE status"),
    ("  ble scan [dur]", "List RuuviTags in range"),
    ("  ble listen [dur]", "Print every broadcast heard"),
    ("mqtt", "MQTT status"),
    ("  mqtt config", "Set up the broker connection"),
    ("  mqtt listen [dur]", "Print readings relayed by a Ruuvi Gateway"),
    ("help [command]", "Show help"),
    ("exit", "Leave the shell"),
]


def _load_history():
    if HISTORY_FILE.exists():
        readline.read_history_file(str(HISTORY_FILE))


def _save_history():
    try:
        readline.write_history_file(str(HISTORY_FILE))
    except OSError:
        pass


class RuuviTagCLI(cmd.Cmd):
    """Shell for decoding RuuviTag data and watching live broadcasts.

    With interactive=False the screen, history and separators are left
    alone so a single command can run from argv.
    """

    prompt = "> "
    interactive = True

    def preloop(self):
        if self.interactive:
            _load_history()
            enter_fullscreen()
            draw_header()

    def postloop(self):
        if self.interactive:
            _save_history()
            exit_fullscreen()

    def precmd(self, line: str) -> str:
        if self.interactive:
            print(separator_line())
        # Accept /command as well as command
        return line.lstrip("/")

    def postcmd(self, stop: bool, line: str) -> bool:
        if self.interactive and not stop:
            print(separator_line())
        return stop

    def emptyline(self):
        return False

    def default(self, line: str):
        print(f"Unknown command: {line}")
        print(f"{DIM}Type 'help' for available commands.{RESET}")

    def onecmd(self, line: str) -> bool:
        """Run a command; bad settings are reported without leaving the shell."""
        try:
            return super().onecmd(line)
        except ConfigError as e:
            print(f"Error: {e}")
            return False

    def do_decode(self, arg: str):
        """decode <hex> [raw]: decode a Ruuvi advertisement"""
        do_decode(arg)

    def do_metadata(self, arg: str):
        """metadata <3|5> [all]: field ranges and steps"""
        do_metadata(arg)

    def do_config(self, arg: str):
        """config [precision <field> <n>|feature <name> on|off]"""
        handle_config(arg)

    def do_ble(self, arg: str):
        """ble [scan|listen] [dur]: Bluetooth scanning"""
        handle_ble(arg)

    def do_mqtt(self, arg: str):
        """mqtt [config|listen [dur]]: Ruuvi Gateway over MQTT"""
        handle_mqtt(arg)

    def do_exit(self, arg: str):
        """Leave the shell."""
        return True

    do_quit = do_exit

    def do_EOF(self, arg: str):
        print()
        return True

    def do_help(self, arg: str):
        if arg:
            super().do_help(arg)
            return
        width = max(len(usage) for usage, _ in COMMAND_HELP) + 3
        print("Available commands:\n")
        for usage, description in COMMAND_HELP:
            print(f"  {usage:<{width}}{DIM}{description}{RESET}")


def main(argv: list[str] | None = None):
    """Start the shell, or run the command given on the command line."""
    argv = sys.argv[1:] if argv is None else argv

    try:
        configure_logging(get_config().logging.level)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if argv:
        shell = RuuviTagCLI()
        shell.interactive = False
        shell.onecmd(shell.precmd(" ".join(argv)))
        return

    try:
        RuuviTagCLI().cmdloop()
    except KeyboardInterrupt:
        exit_fullscreen()
        print()
