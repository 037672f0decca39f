import logging
import math
from typing import Dict, Optional

from citizens import CitizenSystem
from contributions import ContributionMap, ContributorId
from event_log import EventLog
from happiness import HappinessStore
from resources import ResourceLedger

logger = logging.getLogger("township")

BASE_CITIZEN_INTERVAL = 60000  # ms between recruits at happiness 90
TIMER_STEP_MS = 100
MIN_CITIZEN_INTERVAL_MS = 1000  # one ledger tick
GATING_RESOURCES = ("food", "gold")
UPGRADE_COST_RESOURCE = "gold"

TOWN_HALL = ContributorId("buildings", "townHall")

LevelTable = Dict[int, Dict]

TOWN_HALL_LEVELS: LevelTable = {
    1: {
        "capacities": {"food": 50, "gold": 100, "wood": 50, "iron": 20, "labour": 30},
        "revenue": {"food": 0, "gold": 0.5, "wood": 0, "iron": 0, "labour": 0},
        "citizens": 10,
    },
    2: {
        "capacities": {"food": 100, "gold": 250, "wood": 120, "iron": 50, "labour": 80},
        "revenue": {"food": 0, "gold": 1, "wood": 0, "iron": 0, "labour": 0},
        "citizens": 15,
    },
    3: {
        "capacities": {"food": 200, "gold": 600, "wood": 250, "iron": 120, "labour": 180},
        "revenue": {"food": 1, "gold": 2, "wood": 0, "iron": 0, "labour": 0},
        "citizens": 25,
    },
    4: {
        "capacities": {"food": 400, "gold": 1500, "wood": 500, "iron": 250, "labour": 400},
        "revenue": {"food": 2, "gold": 4, "wood": 0, "iron": 0, "labour": 1},
        "citizens": 40,
    },
    5: {
        "capacities": {"food": 800, "gold": 4000, "wood": 1000, "iron": 500, "labour": 900},
        "revenue": {"food": 4, "gold": 8, "wood": 0, "iron": 0, "labour": 2},
        "citizens": 60,
    },
}


class TownHall:
    """Town hall level and the citizen recruitment timer.

    The level decides every resource's base capacity and revenue. Recruitment
    runs only while the level's citizen threshold is above the population;
    the timer is advanced by :meth:`step` in fixed 100 ms increments and the
    period is re-read on every check since happiness keeps moving.
    """

    def __init__(
        self,
        resources: ResourceLedger,
        citizens: CitizenSystem,
        happiness: HappinessStore,
        levels: Optional[LevelTable] = None,
        log: Optional[EventLog] = None,
        level: int = 1,
    ):
        self.resources = resources
        self.citizens = citizens
        self.happiness = happiness
        self.levels: LevelTable = levels if levels is not None else TOWN_HALL_LEVELS
        self.log = log
        if level not in self.levels:
            raise KeyError(f"level {level} missing from town hall table")
        self._level = level
        self.citizen_interval_multiplier = ContributionMap(base=1)
        self.passed_interval_ms = 0.0
        self.recruiting = False

        self._sync_level()
        self.citizens.add_population_listener(lambda _previous, _current: self._refresh_recruitment())
        self._refresh_recruitment()

    # --------- level ---------

    @property
    def level(self) -> int:
        return self._level

    def _apply_level(self, level: int):
        if level == self._level:
            return
        self._level = level
        self._sync_level()
        self._refresh_recruitment()

    def _sync_level(self):
        config = self.levels[self._level]
        for key in self.resources.keys():
            resource = self.resources[key]
            resource.set_capacity(TOWN_HALL, config["capacities"].get(key, 0.0))
            resource.set_revenue(TOWN_HALL, config["revenue"].get(key, 0.0))
        logger.debug("town hall level %d applied", self._level)

    @property
    def upgradeable(self) -> bool:
        if self._level + 1 not in self.levels:
            return False
        return all(self.resources[key].at_capacity for key in GATING_RESOURCES)

    def upgrade(self) -> bool:
        if not self.upgradeable:
            return False
        # the spend resource is full, so this empties it
        self.resources.spend(UPGRADE_COST_RESOURCE, self.resources[UPGRADE_COST_RESOURCE].stock)
        self._apply_level(self._level + 1)
        if self.log:
            self.log.add(f"the town hall expands to level {self._level}.")
        return True

    # --------- recruitment ---------

    @property
    def citizen_threshold(self) -> int:
        return int(self.levels[self._level]["citizens"])

    @property
    def can_recruit(self) -> bool:
        return self.citizen_threshold > self.citizens.count

    @property
    def citizen_interval_ms(self) -> float:
        value = BASE_CITIZEN_INTERVAL * ((190 - self.happiness.happiness) / 100)
        whole_seconds = math.floor(value / 1000) * 1000
        return max(MIN_CITIZEN_INTERVAL_MS, whole_seconds * self.citizen_interval_multiplier.total)

    def stop_recruitment(self):
        self.recruiting = False
        self.passed_interval_ms = 0.0

    def _refresh_recruitment(self):
        eligible = self.can_recruit
        if eligible == self.recruiting:
            return
        self.stop_recruitment()
        self.recruiting = eligible
        logger.debug("recruitment %s", "started" if eligible else "stopped")

    def step(self, ms: float = TIMER_STEP_MS) -> bool:
        """Advance the recruitment timer; returns True if a citizen arrived."""
        if not self.recruiting:
            return False
        self.passed_interval_ms += ms
        return self._check_recruitment_time()

    def _check_recruitment_time(self) -> bool:
        if self.passed_interval_ms < self.citizen_interval_ms:
            return False
        self.citizens.count += 1
        self.passed_interval_ms = 0.0
        if self.log:
            self.log.add("a new family arrives and settles near the town hall.")
        return True
