# tests/test_citizens.py
import pytest

from citizens import CitizenSystem
from event_log import EventLog
from happiness import HappinessStore
from resources import ResourceLedger

# ==========================================
# 1. FIXTURES (Setup Data)
# ==========================================

@pytest.fixture
def ledger():
    """Resources with generous storage so clamping stays out of the way."""
    resources = ResourceLedger(initial={"food": 50})
    for resource in resources:
        resource.set_capacity("test.storage", 1000)
    return resources


@pytest.fixture
def happiness():
    return HappinessStore(base=50)


@pytest.fixture
def log():
    return EventLog()


def make_citizens(ledger, happiness, log=None, count=5):
    return CitizenSystem(ledger, happiness, log=log, count=count)


# ==========================================
# 2. ASSIGNMENT
# ==========================================

def test_everyone_starts_idle(ledger, happiness):
    citizens = make_citizens(ledger, happiness)
    assert citizens.idle == 5
    assert citizens.citizens_with_jobs == 0


def test_assignment_is_clamped_to_idle(ledger, happiness):
    citizens = make_citizens(ledger, happiness, count=2)
    assert citizens.assign_job("farmers", 100) == 2
    assert citizens.jobs["farmers"] == 2
    assert citizens.idle == 0


def test_negative_assignment_means_zero(ledger, happiness):
    citizens = make_citizens(ledger, happiness)
    citizens.assign_job("miners", 3)
    citizens.assign_job("miners", -4)
    assert citizens.jobs["miners"] == 0
    assert citizens.idle == 5


def test_assignment_can_only_grow_from_idle(ledger, happiness):
    citizens = make_citizens(ledger, happiness)
    citizens.assign_job("farmers", 3)
    citizens.assign_job("merchants", 5)
    assert citizens.jobs["merchants"] == 2

    citizens.assign_job("farmers", 1)
    assert citizens.idle == 2
    assert citizens.increment_job("merchants", by=10) == 4


def test_unknown_job_is_a_programming_error(ledger, happiness):
    citizens = make_citizens(ledger, happiness)
    with pytest.raises(KeyError):
        citizens.assign_job("wizards", 1)


# ==========================================
# 3. CONTRIBUTION FEEDS
# ==========================================

def test_initial_feeds_for_idle_population(ledger, happiness):
    citizens = make_citizens(ledger, happiness)
    food = ledger["food"]
    assert food.revenue.get("citizens.idle") == pytest.approx(5)
    assert food.revenue.get("citizens.upkeep") == pytest.approx(-4.5)
    assert happiness.happiness == pytest.approx(49)
    assert citizens.count == 5


def test_job_revenue_follows_assignments_and_boosts(ledger, happiness):
    citizens = make_citizens(ledger, happiness)
    citizens.assign_job("farmers", 2)
    citizens.assign_job("miners", 3)

    assert ledger["food"].revenue.get("citizens.farmers") == pytest.approx(4)
    assert ledger["food"].revenue.get("citizens.idle") == pytest.approx(0)
    assert ledger["iron"].revenue.get("citizens.miners") == pytest.approx(0.3)

    citizens.job_increments["farmers"].set("buildings.mill", 1)
    assert ledger["food"].revenue.get("citizens.farmers") == pytest.approx(6)


def test_upkeep_and_penalty_track_population(ledger, happiness):
    citizens = make_citizens(ledger, happiness)
    citizens.count = 10
    assert ledger["food"].revenue.get("citizens.upkeep") == pytest.approx(-9)
    assert happiness.happiness == pytest.approx(48)

    citizens.population_penalty.set("buildings.tavern", 0.2)
    assert happiness.happiness == pytest.approx(50)


# ==========================================
# 4. DEMOTION
# ==========================================

def test_population_drop_demotes_busiest_jobs_first(ledger, happiness, log):
    citizens = make_citizens(ledger, happiness, log=log, count=7)
    citizens.assign_job("farmers", 3)
    citizens.assign_job("miners", 3)
    citizens.assign_job("builders", 1)

    citizens.count = 4

    # farmers win the tie with miners because they come first
    assert citizens.jobs == {"farmers": 1, "merchants": 0, "lumberjacks": 0, "miners": 2, "builders": 1}
    assert citizens.citizens_with_jobs == 4
    assert citizens.idle == 0
    assert ledger["iron"].revenue.get("citizens.miners") == pytest.approx(0.2)
    assert log.consume() == ["3 workers abandon their posts as the town shrinks."]


def test_demotion_stops_when_no_jobs_remain(ledger, happiness):
    citizens = make_citizens(ledger, happiness, count=3)
    citizens.assign_job("builders", 2)
    citizens.count = 0
    assert citizens.citizens_with_jobs == 0
    assert citizens.count == 0


def test_population_never_goes_negative(ledger, happiness):
    citizens = make_citizens(ledger, happiness, count=1)
    citizens.count = -3
    assert citizens.count == 0


def test_population_listeners_get_previous_and_current(ledger, happiness):
    citizens = make_citizens(ledger, happiness)
    seen = []
    citizens.add_population_listener(lambda previous, current: seen.append((previous, current)))
    citizens.count += 1
    citizens.count = 6  # unchanged
    citizens.count -= 2
    assert seen == [(5, 6), (6, 4)]


# ==========================================
# 5. STARVATION
# ==========================================

def test_food_deficit_on_empty_granary_starves_one_citizen(ledger, happiness, log):
    citizens = make_citizens(ledger, happiness, log=log)
    citizens.assign_job("merchants", 5)
    ledger["food"].stock = 2

    ledger.tick()  # 2 - 4.5 < 0

    assert ledger["food"].stock == 0
    assert citizens.count == 4
    assert citizens.jobs["merchants"] == 4
    assert "a citizen starves as the granaries run dry." in log.consume()


def test_surplus_food_never_starves(ledger, happiness):
    citizens = make_citizens(ledger, happiness)
    ledger["food"].stock = 0
    for _ in range(10):
        ledger.tick()
    assert citizens.count == 5


def test_starvation_with_no_citizens_left(ledger, happiness):
    citizens = make_citizens(ledger, happiness, count=1)
    citizens.food_consumption.set("base", -5)
    ledger["food"].stock = 0
    ledger.tick()
    ledger.tick()
    assert citizens.count == 0
