from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from smarthome_alarm.domain.models import SensorDefinition

logger = logging.getLogger(__name__)


@dataclass
class SensorConfigRegistry:
    """
    Registry of sensor definitions keyed by sensor id.

    Populated once per configuration load and then queried by the sensor
    monitor, the arming sequencer and the trouble tracker.

    Notes
    -----
    - Duplicate ids are reported with a warning; the last definition wins.
    - Iteration order follows the first appearance of each id.
    """

    _configs: Dict[str, SensorDefinition] = field(default_factory=dict)

    def load(self, cfgs: Iterable[SensorDefinition]) -> None:
        """
        Load or update sensor definitions.

        Parameters
        ----------
        cfgs
            Iterable of SensorDefinition objects indexed by id.
        """
        for cfg in cfgs:
            if cfg.id in self._configs:
                logger.warning("Duplicate sensor id %s, the last definition wins", cfg.id)
            self._configs[cfg.id] = cfg

    def get(self, sensor_id: str) -> Optional[SensorDefinition]:
        """
        Retrieve the definition for a sensor id.

        Returns
        -------
        SensorDefinition or None
            None if the sensor is not registered.
        """
        return self._configs.get(sensor_id)

    def name_of(self, sensor_id: str) -> str:
        """Display name of a sensor, falling back to its id."""
        cfg = self._configs.get(sensor_id)
        return cfg.name if cfg is not None and cfg.name else sensor_id

    def all(self) -> List[SensorDefinition]:
        """Return all registered definitions."""
        return list(self._configs.values())

    def __contains__(self, sensor_id: object) -> bool:
        return sensor_id in self._configs

    def __len__(self) -> int:
        return len(self._configs)
