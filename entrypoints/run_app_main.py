"""Launcher for the alarm console (used by packaged/frozen builds)."""

import sys

from smarthome_alarm.dev.run_app import main as run_console


def main() -> int:
    try:
        run_console()
    except (FileNotFoundError, ValueError) as exc:
        # configuration problems: report without a traceback
        print(f"smarthome-alarm: invalid configuration: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
