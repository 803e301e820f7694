"""Tests for the SLA breach sweep."""

from datetime import timedelta

import pytest

from src.administration.application import StaticPlatformConfigProvider
from src.administration.domain import PlatformConfig
from src.config import AccountRole, AuditAction, ReportStatus, SLATarget
from src.sla.application import SLABreachMonitor, SLAService

from tests.conftest import make_account, make_program, make_report


@pytest.fixture
async def sla_program(program_repo, company):
    return await program_repo.create(make_program(company.id, sla_first_response=24))


@pytest.fixture
def monitor(report_repo, account_service, audit_service, notifier, config_provider):
    return SLABreachMonitor(
        report_repo,
        account_service,
        audit_service,
        notifier,
        config_provider,
        fallback_admin_email="fallback@xploitarena.example",
    )


async def test_breach_is_notified_once(monitor, report_repo, audit_repo, notifier, company, researcher, sla_program, now):
    report = await report_repo.create(make_report(
        sla_program, researcher.id, submitted_at=now - timedelta(hours=30)
    ))

    first = await monitor.check_and_notify_breaches(now)
    second = await monitor.check_and_notify_breaches(now + timedelta(minutes=5))

    assert notifier.sent == [{
        "kind": "sla_breach",
        "to": company.email,
        "report_id": report.id,
        "target": SLATarget.FIRST_RESPONSE,
    }]
    assert first.breaches_notified == 1
    assert second.breaches_notified == 0
    assert second.already_notified == 1
    assert audit_repo.actions() == [AuditAction.sla_breach(SLATarget.FIRST_RESPONSE)]


async def test_escalation_after_grace_period(monitor, report_repo, notifier, company, researcher, platform_admin, sla_program, now):
    await report_repo.create(make_report(
        sla_program, researcher.id, submitted_at=now - timedelta(hours=30)
    ))

    await monitor.check_and_notify_breaches(now)
    assert notifier.kinds() == ["sla_breach"]

    # deadline + 24h grace passes 18h later
    result = await monitor.check_and_notify_breaches(now + timedelta(hours=19))
    await monitor.check_and_notify_breaches(now + timedelta(hours=20))

    assert notifier.kinds() == ["sla_breach", "sla_escalation"]
    assert notifier.sent[1]["to"] == platform_admin.email
    assert result.escalations_sent == 1


async def test_escalation_falls_back_to_configured_address(monitor, report_repo, notifier, researcher, sla_program, now):
    await report_repo.create(make_report(
        sla_program, researcher.id, submitted_at=now - timedelta(hours=60)
    ))

    await monitor.check_and_notify_breaches(now)

    assert notifier.sent[1]["kind"] == "sla_escalation"
    assert notifier.sent[1]["to"] == "fallback@xploitarena.example"


async def test_failed_delivery_is_retried_next_sweep(monitor, report_repo, audit_repo, notifier, researcher, sla_program, now):
    await report_repo.create(make_report(
        sla_program, researcher.id, submitted_at=now - timedelta(hours=30)
    ))
    notifier.deliver = False

    failed = await monitor.check_and_notify_breaches(now)

    assert failed.failed == 1
    assert audit_repo.entries == []

    notifier.deliver = True
    retried = await monitor.check_and_notify_breaches(now + timedelta(minutes=5))

    assert retried.breaches_notified == 1
    assert len(audit_repo.entries) == 1


async def test_inactive_statuses_are_skipped(monitor, report_repo, notifier, researcher, sla_program, now):
    for status in (ReportStatus.DRAFT, ReportStatus.RESOLVED, ReportStatus.PAID, ReportStatus.CLOSED):
        await report_repo.create(make_report(
            sla_program, researcher.id, status=status, submitted_at=now - timedelta(hours=100)
        ))

    result = await monitor.check_and_notify_breaches(now)

    assert result.reports_checked == 0
    assert notifier.sent == []


async def test_on_time_report_is_not_notified(monitor, report_repo, notifier, researcher, sla_program, now):
    await report_repo.create(make_report(
        sla_program, researcher.id, submitted_at=now - timedelta(hours=2)
    ))

    result = await monitor.check_and_notify_breaches(now)

    assert result.reports_checked == 1
    assert notifier.sent == []


async def test_disabled_notifications_skip_the_sweep(report_repo, account_service, audit_service, notifier, researcher, sla_program, now):
    monitor = SLABreachMonitor(
        report_repo,
        account_service,
        audit_service,
        notifier,
        StaticPlatformConfigProvider(PlatformConfig(notifications_enabled=False)),
    )
    await report_repo.create(make_report(
        sla_program, researcher.id, submitted_at=now - timedelta(hours=30)
    ))

    result = await monitor.check_and_notify_breaches(now)

    assert result.reports_checked == 0
    assert notifier.sent == []


async def test_dashboard_is_scoped_to_company(report_repo, program_repo, account_repo, company, researcher, sla_program, now):
    other_company = await account_repo.create(make_account(AccountRole.COMPANY_ADMIN))
    other_program = await program_repo.create(make_program(other_company.id, sla_first_response=24))
    await report_repo.create(make_report(sla_program, researcher.id, submitted_at=now - timedelta(hours=30)))
    await report_repo.create(make_report(other_program, researcher.id, submitted_at=now - timedelta(hours=1)))
    admin = make_account(AccountRole.ADMIN)
    service = SLAService(report_repo)

    own = await service.get_dashboard(company, now=now)
    everything = await service.get_dashboard(admin, now=now)

    assert own["metrics"].total_sla_eligible == 1
    assert own["metrics"].compliance_rate == 0
    assert len(own["breached"]) == 1
    assert everything["metrics"].total_sla_eligible == 2
    assert everything["metrics"].compliance_rate == 50
