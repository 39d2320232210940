from __future__ import annotations

import logging
import shlex
import sys
from typing import List, Optional, TextIO

from smarthome_alarm.bootstrap import AppWiring, build_alarm_system

HELP = """\
commands:
  arm_full | arm_perimeter | disarm
  mode <mode>                 set the control mode directly
  silence on|off              mute/unmute siren outputs
  set <sensor id> <value>     simulate a sensor update
  status                      print the published state
  events                      print the last event record
  quit
"""


def _parse_config_path(argv: List[str]) -> Optional[str]:
    if "--config" in argv:
        i = argv.index("--config")
        if i + 1 < len(argv):
            return argv[i + 1]
    return None


def _print_status(wiring: AppWiring, out: TextIO) -> None:
    state = wiring.store.snapshot()
    print(f"mode={state.mode.value} alarm={state.alarm_active} outputs={state.outputs_active} "
          f"silenced={state.silenced} exit={state.exit_remaining}s entry={state.entry_remaining}s", file=out)
    print(f"trouble={list(state.trouble_list)} open={list(state.open_list)} "
          f"bypassed={list(state.bypassed_list)}", file=out)
    print(f"last={state.last_trigger_sensor!r} {state.last_reason} {state.last_trigger_time}", file=out)
    print(f"outputs={dict(state.outputs_status)}", file=out)


def handle_line(wiring: AppWiring, line: str, out: TextIO = sys.stdout) -> bool:
    """
    Execute one console line; returns False when the runner should exit.
    """
    try:
        parts = shlex.split(line)
    except ValueError as e:
        print(f"parse error: {e}", file=out)
        return True
    if not parts:
        return True

    cmd, args = parts[0], parts[1:]
    runtime = wiring.runtime

    if cmd in ("quit", "exit"):
        return False
    if cmd in ("arm_full", "arm_perimeter", "disarm"):
        runtime.submit_command(cmd, True)
    elif cmd == "mode" and len(args) == 1:
        runtime.submit_command("mode", args[0])
    elif cmd == "silence" and len(args) == 1 and args[0] in ("on", "off"):
        runtime.submit_command("silenced", args[0] == "on")
    elif cmd == "set" and len(args) == 2:
        wiring.registry.set_sensor(args[0], args[1])
    elif cmd == "status":
        runtime.wait_idle()
        _print_status(wiring, out)
    elif cmd == "events":
        runtime.wait_idle()
        last = wiring.store.last_event
        print(last.to_dict() if last is not None else "no events", file=out)
    else:
        print(HELP, file=out)
    return True


def main() -> None:
    """
    Start the alarm runtime with a line-based console.

    Notes
    -----
    - Loads configuration from `config.yaml` by default.
    - Optional CLI usage:
        python -m smarthome_alarm.dev.run_app --config path/to/config.yaml
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    wiring = build_alarm_system(config_path=_parse_config_path(sys.argv))
    wiring.runtime.start()
    print(HELP)

    try:
        for line in sys.stdin:
            if not handle_line(wiring, line):
                break
    except KeyboardInterrupt:
        pass
    finally:
        wiring.runtime.stop()


if __name__ == "__main__":
    main()
