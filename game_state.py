from typing import Dict, List, Optional

from citizens import CitizenSystem
from event_log import HISTORY_LIMIT, EventLog
from happiness import HappinessStore
from resources import ResourceLedger
from town_hall import TIMER_STEP_MS, LevelTable, TownHall

TICK_MS = 1000  # game tick in milliseconds
STARTING_STOCKS: Dict[str, float] = {
    "food": 20.0,
    "gold": 10.0,
    "wood": 0.0,
    "iron": 0.0,
    "labour": 0.0,
}


class GameState:
    """Owns one of every store and drives them from a single clock.

    Time only moves through :meth:`advance`. It is cut into 100 ms timer
    steps; whenever a step lands on a ``TICK_MS`` boundary the ledger ticks
    first (so starvation has already happened) and the recruitment timer
    step for that instant runs after it.
    """

    def __init__(self, initial_state: Optional[dict] = None, levels: Optional[LevelTable] = None):
        self.log = EventLog("a few families settle around a modest town hall.")
        self.resources = ResourceLedger(initial=STARTING_STOCKS)
        self.happiness = HappinessStore()
        self.citizens = CitizenSystem(self.resources, self.happiness, log=self.log)
        self.town_hall = TownHall(
            self.resources, self.citizens, self.happiness, levels=levels, log=self.log
        )
        self.clock_ms = 0
        self.pending_ms = 0.0  # time below one timer step, carried to the next advance

        # apply overrides from json state file
        self._apply_initial_state(initial_state or {})

    # --------- helpers ---------

    def add_log(self, text: str):
        self.log.add(text)

    def consume_logs(self) -> List[str]:
        return self.log.consume()

    @property
    def log_history(self) -> List[str]:
        return self.log.log_history

    @property
    def level(self) -> int:
        return self.town_hall.level

    # --------- state serialization ---------

    def _apply_initial_state(self, state: dict):
        """Override starting values from a JSON blob for quick testing setups."""
        if "level" in state:
            try:
                level = int(state["level"])
            except (TypeError, ValueError):
                level = self.town_hall.level
            if level in self.town_hall.levels:
                self.town_hall._apply_level(level)

        resources = state.get("resources")
        if isinstance(resources, dict):
            for key, value in resources.items():
                if key not in self.resources:
                    continue
                try:
                    self.resources[key].stock = max(0.0, float(value))
                except (TypeError, ValueError):
                    self.resources[key].stock = 0.0

        if "citizens" in state:
            try:
                self.citizens.count = int(state["citizens"])
            except (TypeError, ValueError):
                pass

        jobs = state.get("jobs")
        if isinstance(jobs, dict):
            for job, count in jobs.items():
                if job not in self.citizens.jobs:
                    continue
                try:
                    self.citizens.assign_job(job, int(count))
                except (TypeError, ValueError):
                    continue

        if self.town_hall.recruiting:
            try:
                self.town_hall.passed_interval_ms = max(0.0, float(state.get("passed_interval_ms", 0.0)))
            except (TypeError, ValueError):
                self.town_hall.passed_interval_ms = 0.0

        try:
            clock_ms = max(0, int(state.get("clock_ms", self.clock_ms)))
            self.clock_ms = clock_ms - clock_ms % TIMER_STEP_MS
            self.pending_ms = max(0.0, float(state.get("pending_ms", self.pending_ms)))
        except (TypeError, ValueError):
            self.clock_ms = 0
            self.pending_ms = 0.0

        if isinstance(state.get("log_history"), list):
            self.log.log_history = [str(line) for line in state["log_history"]][-HISTORY_LIMIT:]
            if self.log.log_history:
                self.log.log_text = self.log.log_history[-1]

    def _export_state(self) -> dict:
        return {
            "level": self.town_hall.level,
            "resources": self.resources.snapshot(),
            "citizens": self.citizens.count,
            "jobs": dict(self.citizens.jobs),
            "passed_interval_ms": self.town_hall.passed_interval_ms,
            "clock_ms": self.clock_ms,
            "pending_ms": self.pending_ms,
            "log_history": list(self.log.log_history),
        }

    def _load_state_dict(self, state: dict):
        # reset key fields to defaults before applying new state
        self.__init__(initial_state=state, levels=self.town_hall.levels)

    # --------- actions ---------

    def action_assign_job(self, job: str, count: int) -> int:
        after = self.citizens.assign_job(job, count)
        if after < count:
            self.add_log(f"only {after} citizens could be spared for the {job}.")
        return after

    def action_add_worker(self, job: str) -> bool:
        if self.citizens.idle <= 0:
            self.add_log(f"no idle citizens to join the {job}.")
            return False
        self.citizens.increment_job(job)
        return True

    def action_remove_worker(self, job: str) -> bool:
        if self.citizens.jobs[job] <= 0:
            self.add_log(f"no {job} to reassign.")
            return False
        self.citizens.increment_job(job, -1)
        return True

    def action_upgrade_town_hall(self) -> bool:
        if not self.town_hall.upgradeable:
            self.add_log("the town hall needs full granaries and coffers before it can grow.")
            return False
        return self.town_hall.upgrade()

    # --------- simulation ---------

    def advance(self, ms: float) -> int:
        """Advance simulated time by ``ms``; returns how many ledger ticks ran."""
        if ms <= 0:
            return 0
        # rounding keeps fractional inputs from drifting just short of a step
        self.pending_ms = round(self.pending_ms + ms, 6)
        ticks = 0
        while self.pending_ms >= TIMER_STEP_MS:
            self.pending_ms = round(self.pending_ms - TIMER_STEP_MS, 6)
            self.clock_ms += TIMER_STEP_MS
            if self.clock_ms % TICK_MS == 0:
                self.resources.tick()
                ticks += 1
            self.town_hall.step()
        return ticks

    def game_tick(self):
        # one game tick: ten timer steps with the ledger tick on the last one
        self.advance(TICK_MS)
