from datetime import datetime, timedelta, timezone

from ripple.state.cooldown import CooldownTracker

T0 = datetime(2025, 11, 6, 12, 0, tzinfo=timezone.utc)


def test_first_alert_is_always_allowed():
    tracker = CooldownTracker(cooldown_hours=6)
    assert tracker.may_alert("2025-11-07", now=T0)
    assert tracker.last_alert("2025-11-07") is None


def test_blocked_right_after_record_then_released():
    tracker = CooldownTracker(cooldown_hours=6)
    tracker.record_alert("2025-11-07", now=T0)

    assert not tracker.may_alert("2025-11-07", now=T0)
    assert not tracker.may_alert("2025-11-07", now=T0 + timedelta(hours=5, minutes=59))
    assert tracker.may_alert("2025-11-07", now=T0 + timedelta(hours=6))
    # Other cohorts are independent
    assert tracker.may_alert("2025-11-08", now=T0)


def test_explicit_cooldown_overrides_default():
    tracker = CooldownTracker(cooldown_hours=6)
    tracker.record_alert("2025-11-07", now=T0)

    assert tracker.may_alert("2025-11-07", cooldown_hours=1, now=T0 + timedelta(hours=1))
    assert tracker.may_alert("2025-11-07", cooldown_hours=0, now=T0)


def test_may_alert_is_idempotent():
    tracker = CooldownTracker(cooldown_hours=6)
    tracker.record_alert("2025-11-07", now=T0)
    later = T0 + timedelta(hours=2)

    answers = {tracker.may_alert("2025-11-07", now=later) for _ in range(3)}

    assert answers == {False}
    assert tracker.last_alert("2025-11-07") == T0


def test_record_overwrites_previous_entry():
    tracker = CooldownTracker(cooldown_hours=6)
    tracker.record_alert("2025-11-07", now=T0)
    tracker.record_alert("2025-11-07", now=T0 + timedelta(hours=8))

    assert tracker.last_alert("2025-11-07") == T0 + timedelta(hours=8)
    assert len(tracker) == 1


def test_claim_is_check_and_set():
    tracker = CooldownTracker(cooldown_hours=6)

    assert tracker.claim("2025-11-07", now=T0)
    assert not tracker.claim("2025-11-07", now=T0 + timedelta(hours=1))
    assert tracker.last_alert("2025-11-07") == T0
    assert tracker.claim("2025-11-07", now=T0 + timedelta(hours=7))


def test_hold_allows_nested_calls():
    tracker = CooldownTracker(cooldown_hours=6)

    with tracker.hold() as held:
        assert held.may_alert("2025-11-07", now=T0)
        held.record_alert("2025-11-07", now=T0)
        assert not held.may_alert("2025-11-07", now=T0)


def test_entries_returns_a_copy():
    tracker = CooldownTracker(cooldown_hours=6)
    tracker.record_alert("2025-11-07", now=T0)

    entries = tracker.entries()
    entries.clear()

    assert len(tracker) == 1


def test_naive_instants_are_treated_as_utc():
    tracker = CooldownTracker(cooldown_hours=6)
    naive = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(hours=7)

    tracker.record_alert("2025-11-07", now=naive)

    assert tracker.may_alert("2025-11-07")
    assert tracker.last_alert("2025-11-07").tzinfo is not None
    assert not tracker.may_alert("2025-11-07", now=naive + timedelta(hours=1))
    assert tracker.claim("2025-11-08", now=T0.replace(tzinfo=None))
    assert not tracker.may_alert("2025-11-08", now=T0)


def test_release_restores_previous_entry():
    tracker = CooldownTracker(cooldown_hours=6)
    tracker.record_alert("2025-11-07", now=T0)
    later = T0 + timedelta(hours=7)

    assert tracker.claim("2025-11-07", now=later)
    tracker.release("2025-11-07", claimed_at=later, previous=T0)

    assert tracker.last_alert("2025-11-07") == T0


def test_release_without_previous_forgets_cohort():
    tracker = CooldownTracker(cooldown_hours=6)

    assert tracker.claim("2025-11-07", now=T0)
    tracker.release("2025-11-07", claimed_at=T0)

    assert tracker.last_alert("2025-11-07") is None
    assert len(tracker) == 0


def test_release_ignores_a_newer_record():
    tracker = CooldownTracker(cooldown_hours=6)
    tracker.claim("2025-11-07", now=T0)
    tracker.record_alert("2025-11-07", now=T0 + timedelta(hours=1))

    tracker.release("2025-11-07", claimed_at=T0)

    assert tracker.last_alert("2025-11-07") == T0 + timedelta(hours=1)
