"""Tests for SLA deadline, breach and metrics calculations."""

from datetime import datetime, timedelta, timezone

import pytest

from src.config import ReportStatus, SLATarget
from src.sla.domain import SLACalculator, SLAMetrics

from tests.conftest import make_program, make_report


NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def _hours_ago(hours):
    return NOW - timedelta(hours=hours)


@pytest.fixture
def program():
    return make_program("company-1", sla_first_response=24, sla_triage=72, sla_resolution=None)


def _report(program, **kwargs):
    report = make_report(program, "researcher-1", **kwargs)
    report.program = program
    return report


@pytest.mark.parametrize("hours", [0, None])
def test_unset_target_has_no_deadline(hours):
    assert SLACalculator.calculate_deadline(NOW, hours) is None


@pytest.mark.parametrize("hours", [1, 24, 0.5, 720])
def test_deadline_is_start_plus_wall_clock_hours(hours):
    assert SLACalculator.calculate_deadline(NOW, hours) == NOW + timedelta(hours=hours)


def test_late_first_response_stays_breached(program):
    """A response 28h after submission does not clear a missed 24h deadline."""
    report = _report(program, submitted_at=_hours_ago(30))

    assert SLACalculator.is_breached(report, SLATarget.FIRST_RESPONSE, NOW)

    report.first_responded_at = _hours_ago(2)

    assert SLACalculator.is_breached(report, SLATarget.FIRST_RESPONSE, NOW)
    assert SLACalculator.deadline_for(report, SLATarget.FIRST_RESPONSE) == _hours_ago(6)


def test_timely_response_is_not_breached_later(program):
    report = _report(program, submitted_at=_hours_ago(30), first_responded_at=_hours_ago(20))

    assert not SLACalculator.is_breached(report, SLATarget.FIRST_RESPONSE, NOW)
    assert not SLACalculator.is_breached(report, SLATarget.FIRST_RESPONSE, NOW + timedelta(days=30))


def test_breach_is_monotonic_in_time(program):
    report = _report(program, submitted_at=_hours_ago(10))
    checkpoints = [NOW + timedelta(hours=h) for h in range(0, 200, 7)]

    results = [SLACalculator.is_breached(report, SLATarget.TRIAGE, t) for t in checkpoints]

    first_breach = results.index(True)
    assert all(results[first_breach:])
    assert not any(results[:first_breach])


def test_untracked_target_is_never_breached(program):
    report = _report(program, submitted_at=_hours_ago(10_000))

    assert not SLACalculator.is_breached(report, SLATarget.RESOLUTION, NOW)


def test_draft_without_submission_is_not_tracked(program):
    report = _report(program, status=ReportStatus.DRAFT)

    assert SLACalculator.deadline_for(report, SLATarget.FIRST_RESPONSE) is None
    assert not SLACalculator.is_breached(report, SLATarget.FIRST_RESPONSE, NOW)


def test_evaluate_lists_every_target(program):
    report = _report(program, submitted_at=_hours_ago(30))

    view = SLACalculator.evaluate(report, NOW)

    assert [t.target for t in view.targets] == [SLATarget.FIRST_RESPONSE, SLATarget.TRIAGE, SLATarget.RESOLUTION]
    assert view.breached_targets == [SLATarget.FIRST_RESPONSE]
    assert view.targets[2].deadline is None
    assert not view.targets[2].is_tracked


def test_escalation_due_after_grace_period(program):
    report = _report(program, submitted_at=_hours_ago(30))

    assert not SLACalculator.is_escalation_due(report, SLATarget.FIRST_RESPONSE, 24, NOW)
    assert SLACalculator.is_escalation_due(report, SLATarget.FIRST_RESPONSE, 24, NOW + timedelta(hours=19))


def test_metrics_of_no_reports():
    assert SLACalculator.calculate_metrics([], NOW) == SLAMetrics(
        total_sla_eligible=0, breached_count=0, compliance_rate=100, avg_response_time=0.0
    )


def test_metrics_compliance_and_average_response(program):
    untracked = make_program("company-1")
    reports = [
        _report(program, submitted_at=_hours_ago(40), first_responded_at=_hours_ago(30)),  # 10h, met
        _report(program, submitted_at=_hours_ago(60), first_responded_at=_hours_ago(30)),  # 30h, breached
        _report(program, submitted_at=_hours_ago(2)),  # pending, not yet breached
        _report(untracked, submitted_at=_hours_ago(100)),  # not eligible
    ]

    metrics = SLACalculator.calculate_metrics(reports, NOW)

    assert metrics.total_sla_eligible == 3
    assert metrics.breached_count == 1
    assert metrics.compliance_rate == 67
    assert metrics.avg_response_time == 20.0


def test_compliance_rate_rounds_half_up(program):
    reports = [
        _report(program, submitted_at=_hours_ago(30)),
        _report(program, submitted_at=_hours_ago(1)),
    ]

    assert SLACalculator.calculate_metrics(reports, NOW).compliance_rate == 50

    reports = [_report(program, submitted_at=_hours_ago(30))] + [
        _report(program, submitted_at=_hours_ago(1)) for _ in range(7)
    ]
    # 7 of 8 compliant = 87.5%
    assert SLACalculator.calculate_metrics(reports, NOW).compliance_rate == 88
