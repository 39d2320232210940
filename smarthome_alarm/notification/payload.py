from __future__ import annotations

from typing import Any, Dict

from smarthome_alarm.core.state_store import StateStore
from smarthome_alarm.domain.events import EventRecord
from smarthome_alarm.notification.base import ALARM_EVENT


def build_event_webhook_payload(store: StateStore, ev: EventRecord) -> Dict[str, Any]:
    """
    Build a webhook payload for an event record plus a snapshot of the system.

    The payload includes:
    - "event": the record fields (see :meth:`EventRecord.to_dict`)
    - "status": current mode, alarm flags, trouble list and event counter
      read from the store at the time the payload is built

    Parameters
    ----------
    store
        Published state store.
    ev
        Event record that triggered the webhook.

    Returns
    -------
    dict
        Webhook payload dictionary with keys: "type", "event", and "status".
    """
    state = store.snapshot()

    status_payload = {
        "mode": state.mode.value,
        "alarm_active": state.alarm_active,
        "outputs_active": state.outputs_active,
        "silenced": state.silenced,
        "trouble_active": state.trouble_active,
        "trouble_list": list(state.trouble_list),
        "open_list": list(state.open_list),
        "bypassed_list": list(state.bypassed_list),
        "last_reason": state.last_reason,
        "event_counter": state.event_counter,
    }

    return {
        "type": ALARM_EVENT,
        "event": ev.to_dict(),
        "status": status_payload,
    }
