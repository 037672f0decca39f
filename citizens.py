import logging
from typing import Callable, Dict, List, Optional

from contributions import ContributionMap, ContributorId
from event_log import EventLog
from happiness import HappinessStore
from resources import Resource, ResourceLedger

logger = logging.getLogger("township")

JOB_KEYS = ("farmers", "merchants", "lumberjacks", "miners", "builders")

JOB_RESOURCE_MAP: Dict[str, str] = {
    "farmers": "food",
    "merchants": "gold",
    "lumberjacks": "wood",
    "miners": "iron",
    "builders": "labour",
}

# output per assigned citizen per tick, before boosts
JOB_BASE_RATES: Dict[str, float] = {
    "farmers": 2.0,
    "merchants": 1.0,
    "lumberjacks": 0.4,
    "miners": 0.1,
    "builders": 1.0,
}

STARTING_CITIZENS = 5
IDLE_FOOD_YIELD = 1.0  # idle citizens forage a little
FOOD_UPKEEP_PER_CAPITA = -0.9
HAPPINESS_PER_CAPITA = -0.2

CITIZENS = ContributorId("citizens")
IDLE_REVENUE = CITIZENS.child("idle")
FOOD_UPKEEP = CITIZENS.child("upkeep")
POPULATION_IMPACT = CITIZENS.child("population")

PopulationListener = Callable[[int, int], None]


class CitizenSystem:
    """Population, job assignments and everything they feed into.

    Every derived contribution (job revenue, idle foraging, food upkeep,
    happiness impact) is pushed to its target as soon as one of its inputs
    changes. A population drop first demotes surplus workers, so revenue
    never reads an assignment map larger than the population.
    """

    def __init__(
        self,
        resources: ResourceLedger,
        happiness: HappinessStore,
        log: Optional[EventLog] = None,
        count: int = STARTING_CITIZENS,
    ):
        self.resources = resources
        self.happiness = happiness
        self.log = log
        self._count = max(0, int(count))
        self.jobs: Dict[str, int] = {job: 0 for job in JOB_KEYS}
        self.job_increments: Dict[str, ContributionMap] = {
            job: ContributionMap(base=JOB_BASE_RATES[job]) for job in JOB_KEYS
        }
        self.idle_increments = ContributionMap(base=IDLE_FOOD_YIELD)
        self.food_consumption = ContributionMap(base=FOOD_UPKEEP_PER_CAPITA)
        self.population_penalty = ContributionMap(base=HAPPINESS_PER_CAPITA)
        self._population_listeners: List[PopulationListener] = []

        for job, increments in self.job_increments.items():
            increments.subscribe(lambda _total, job=job: self._sync_job_revenue(job))
        self.idle_increments.subscribe(lambda _total: self._sync_idle_revenue())
        self.food_consumption.subscribe(lambda _total: self._sync_food_upkeep())
        self.population_penalty.subscribe(lambda _total: self._sync_happiness())

        self.resources["food"].add_tick_listener(self._on_food_tick)
        self._sync_all()

    # --------- derived values ---------

    @property
    def count(self) -> int:
        return self._count

    @count.setter
    def count(self, value: int):
        value = max(0, int(value))
        previous = self._count
        if value == previous:
            return
        self._count = value
        self._demote_excess()
        self._sync_all()
        for callback in list(self._population_listeners):
            callback(previous, value)

    @property
    def citizens_with_jobs(self) -> int:
        return sum(self.jobs.values())

    @property
    def idle(self) -> int:
        return max(0, self._count - self.citizens_with_jobs)

    def add_population_listener(self, callback: PopulationListener):
        """Run ``callback(previous, current)`` after each population change."""
        self._population_listeners.append(callback)

    # --------- actions ---------

    def assign_job(self, job: str, count: int) -> int:
        """Set a job's headcount, growing only out of idle citizens."""
        if job not in self.jobs:
            raise KeyError(f"unknown job: {job}")
        count = max(0, int(count))
        max_count = self.jobs[job] + self.idle
        self.jobs[job] = min(count, max_count)
        self._sync_job_revenue(job)
        self._sync_idle_revenue()
        return self.jobs[job]

    def increment_job(self, job: str, by: int = 1) -> int:
        if job not in self.jobs:
            raise KeyError(f"unknown job: {job}")
        return self.assign_job(job, self.jobs[job] + by)

    # --------- invariants ---------

    def _demote_excess(self) -> List[str]:
        demoted: List[str] = []
        excess = self.citizens_with_jobs - self._count
        for _ in range(max(0, excess)):
            busiest = None
            busiest_count = 0
            for job, assigned in self.jobs.items():
                if assigned > busiest_count:
                    busiest, busiest_count = job, assigned
            if busiest is None:
                break
            self.jobs[busiest] -= 1
            demoted.append(busiest)
        if demoted:
            logger.debug("demoted %d workers: %s", len(demoted), demoted)
            if self.log and len(demoted) == 1:
                self.log.add("a worker abandons their post as the town shrinks.")
            elif self.log:
                self.log.add(f"{len(demoted)} workers abandon their posts as the town shrinks.")
        return demoted

    def _on_food_tick(self, resource: Resource, unclamped: float):
        # the ledger clamps food at zero, so the deficit is read from the raw value
        if unclamped < 0 and self._count > 0:
            self.count -= 1
            if self.log:
                self.log.add("a citizen starves as the granaries run dry.")

    # --------- contribution feeds ---------

    def _sync_job_revenue(self, job: str):
        resource = self.resources[JOB_RESOURCE_MAP[job]]
        resource.set_revenue(CITIZENS.child(job), self.jobs[job] * self.job_increments[job].total)

    def _sync_idle_revenue(self):
        self.resources["food"].set_revenue(IDLE_REVENUE, self.idle * self.idle_increments.total)

    def _sync_food_upkeep(self):
        self.resources["food"].set_revenue(FOOD_UPKEEP, self._count * self.food_consumption.total)

    def _sync_happiness(self):
        self.happiness.set_happiness_impact(
            POPULATION_IMPACT, self._count * self.population_penalty.total
        )

    def _sync_all(self):
        for job in self.jobs:
            self._sync_job_revenue(job)
        self._sync_idle_revenue()
        self._sync_food_upkeep()
        self._sync_happiness()
