"""Tests for bounty payouts and budget alerts."""

from decimal import Decimal

import pytest

from src.administration.application import StaticPlatformConfigProvider
from src.administration.domain import PlatformConfig
from src.config import AuditAction, ProgramStatus, ReportStatus
from src.core import BudgetExceeded, InvalidStatusTransition, PermissionDenied, ValidationException
from src.programs.application import ReportService
from src.programs.domain import BudgetPolicy

from tests.conftest import make_program, make_report


async def _accepted_report(report_repo, program, researcher):
    return await report_repo.create(make_report(program, researcher.id, status=ReportStatus.ACCEPTED))


async def _pay_and_notify(report_service, actor, report_id, amount):
    payout = await report_service.pay_bounty(actor, report_id, amount)
    await report_service.send_budget_alerts(payout.alerts)
    return payout.report


async def test_second_payout_over_budget_is_refused(report_service, report_repo, program_repo, company, researcher, budget_program, notifier):
    """$40 then $70 on a $100 budget: the first lands, the second changes nothing."""
    first = await _accepted_report(report_repo, budget_program, researcher)
    second = await _accepted_report(report_repo, budget_program, researcher)

    payout = await report_service.pay_bounty(company, first.id, Decimal("40"))

    assert payout.report.status == ReportStatus.PAID
    assert payout.report.bounty_amount == Decimal("40")
    assert payout.alerts == []
    assert program_repo.programs[budget_program.id].budget_spent == Decimal("40")

    with pytest.raises(BudgetExceeded) as exc:
        await report_service.pay_bounty(company, second.id, Decimal("70"))

    assert exc.value.remaining == Decimal("60")
    assert program_repo.programs[budget_program.id].budget_spent == Decimal("40")
    assert report_repo.reports[second.id].status == ReportStatus.ACCEPTED
    assert report_repo.reports[second.id].bounty_amount is None


async def test_payout_locks_the_program_row(report_service, report_repo, program_repo, company, researcher, budget_program):
    report = await _accepted_report(report_repo, budget_program, researcher)

    await report_service.pay_bounty(company, report.id, Decimal("10"))

    assert program_repo.locked == [budget_program.id]


async def test_payout_returns_alerts_without_sending_them(report_service, report_repo, audit_repo, company, researcher, budget_program, notifier):
    report = await _accepted_report(report_repo, budget_program, researcher)

    payout = await report_service.pay_bounty(company, report.id, Decimal("80"))

    assert notifier.sent == []
    assert AuditAction.BUDGET_ALERT in audit_repo.actions()
    assert [(a.threshold, a.recipient, a.remaining) for a in payout.alerts] == [
        (75, company.email, Decimal("20"))
    ]

    assert await report_service.send_budget_alerts(payout.alerts) == 1
    assert notifier.sent[0]["percentage"] == 75
    assert notifier.sent[0]["remaining"] == "20"


async def test_each_threshold_alerts_once(report_service, report_repo, program_repo, audit_repo, company, researcher, budget_program, notifier):
    reports = [await _accepted_report(report_repo, budget_program, researcher) for _ in range(3)]

    await _pay_and_notify(report_service, company, reports[0].id, Decimal("80"))
    assert [m["percentage"] for m in notifier.sent] == [75]
    assert notifier.sent[0]["to"] == company.email

    await _pay_and_notify(report_service, company, reports[1].id, Decimal("5"))
    assert [m["percentage"] for m in notifier.sent] == [75]

    await _pay_and_notify(report_service, company, reports[2].id, Decimal("10"))
    assert [m["percentage"] for m in notifier.sent] == [75, 90]

    program = program_repo.programs[budget_program.id]
    assert program.budget_alert_level == 90
    assert program.status == ProgramStatus.ACTIVE
    assert audit_repo.actions().count(AuditAction.BUDGET_ALERT) == 2


async def test_exhausting_budget_pauses_program(report_service, report_repo, program_repo, audit_repo, company, researcher, budget_program, notifier):
    """One payout to exactly 100% crosses every threshold and pauses the program."""
    report = await _accepted_report(report_repo, budget_program, researcher)

    await _pay_and_notify(report_service, company, report.id, Decimal("100"))

    program = program_repo.programs[budget_program.id]
    assert program.status == ProgramStatus.PAUSED
    assert program.budget_alert_level == 100
    assert [m["percentage"] for m in notifier.sent] == [75, 90, 100]
    assert AuditAction.PROGRAM_PAUSED in audit_repo.actions()
    assert program.rejection_reason() == "program is paused"


async def test_alerts_respect_notification_switch(report_repo, program_repo, account_repo, audit_service, audit_repo, notifier, company, researcher, budget_program):
    service = ReportService(
        report_repo, program_repo, account_repo, audit_service, notifier,
        StaticPlatformConfigProvider(PlatformConfig(notifications_enabled=False)),
    )
    report = await _accepted_report(report_repo, budget_program, researcher)

    payout = await service.pay_bounty(company, report.id, Decimal("80"))

    assert payout.alerts == []
    assert notifier.sent == []
    assert AuditAction.BUDGET_ALERT in audit_repo.actions()
    assert program_repo.programs[budget_program.id].budget_alert_level == 75


async def test_failed_alert_delivery_does_not_undo_payout(report_service, report_repo, program_repo, company, researcher, budget_program, notifier):
    notifier.deliver = False
    report = await _accepted_report(report_repo, budget_program, researcher)

    payout = await report_service.pay_bounty(company, report.id, Decimal("80"))

    assert await report_service.send_budget_alerts(payout.alerts) == 0
    assert payout.report.status == ReportStatus.PAID
    assert program_repo.programs[budget_program.id].budget_spent == Decimal("80")


async def test_uncapped_program_pays_without_alerts(report_service, report_repo, program_repo, company, researcher, notifier):
    program = await program_repo.create(make_program(company.id))
    report = await _accepted_report(report_repo, program, researcher)

    payout = await report_service.pay_bounty(company, report.id, Decimal("5000"))

    assert payout.alerts == []
    assert program_repo.programs[program.id].budget_spent == Decimal("5000")


async def test_zero_budget_program_is_uncapped(program_service, report_service, report_repo, program_repo, company, researcher):
    program = await program_service.create_program(company, name="Acme Web", budget_total=Decimal("0"))
    report = await _accepted_report(report_repo, program, researcher)

    assert program.budget_total is None
    assert program.rejection_reason() is None

    payout = await report_service.pay_bounty(company, report.id, Decimal("250"))

    assert payout.report.status == ReportStatus.PAID
    assert program_repo.programs[program.id].budget_spent == Decimal("250")


async def test_zero_budget_update_removes_the_cap(program_service, company, budget_program):
    program = await program_service.update_program(company, budget_program.id, {"budget_total": Decimal("0")})

    assert program.budget_total is None
    assert program.remaining_budget is None


async def test_only_owning_company_pays(report_service, report_repo, platform_admin, researcher, budget_program):
    report = await _accepted_report(report_repo, budget_program, researcher)

    with pytest.raises(PermissionDenied):
        await report_service.pay_bounty(platform_admin, report.id, Decimal("10"))


async def test_unaccepted_report_is_not_payable(report_service, report_repo, company, researcher, budget_program):
    report = await report_repo.create(make_report(budget_program, researcher.id, status=ReportStatus.TRIAGING))

    with pytest.raises(InvalidStatusTransition):
        await report_service.pay_bounty(company, report.id, Decimal("10"))


def test_non_positive_amount_is_rejected(budget_program):
    with pytest.raises(ValidationException):
        BudgetPolicy.check_payout(budget_program, Decimal("0"))


@pytest.mark.parametrize("amount", ["10.005", "0.001", "99.999"])
def test_sub_cent_amount_is_rejected(budget_program, amount):
    with pytest.raises(ValidationException) as exc:
        BudgetPolicy.check_payout(budget_program, Decimal(amount))

    assert exc.value.details == {"amount": amount}


@pytest.mark.parametrize("amount", ["10", "10.5", "10.50", "10.500", "0.01"])
def test_cent_amounts_are_accepted(budget_program, amount):
    BudgetPolicy.check_payout(budget_program, Decimal(amount))


async def test_sub_cent_payout_changes_nothing(report_service, report_repo, program_repo, company, researcher, budget_program):
    report = await _accepted_report(report_repo, budget_program, researcher)

    with pytest.raises(ValidationException):
        await report_service.pay_bounty(company, report.id, Decimal("10.005"))

    assert program_repo.programs[budget_program.id].budget_spent == Decimal("0")
    assert report_repo.reports[report.id].status == ReportStatus.ACCEPTED


def test_crossed_thresholds_are_above_alerted_level():
    assert BudgetPolicy.crossed_thresholds(0, Decimal("92"), [75, 90, 100]) == [75, 90]
    assert BudgetPolicy.crossed_thresholds(75, Decimal("92"), [100, 90, 75]) == [90]
    assert BudgetPolicy.crossed_thresholds(90, Decimal("92"), [75, 90, 100]) == []
    assert BudgetPolicy.crossed_thresholds(0, None, [75]) == []
