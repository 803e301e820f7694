"""SQLAlchemy repositories against a SQLite database built from the models."""

from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy import event, update
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

import src.access.infrastructure.models  # noqa: F401
import src.administration.infrastructure.models  # noqa: F401
import src.audit.infrastructure.models  # noqa: F401
from src.access.domain import CustomRole, Permission
from src.access.infrastructure import (
    SQLAlchemyAccountRepository,
    SQLAlchemyPermissionRepository,
    SQLAlchemyRoleRepository,
)
from src.audit.application import AuditService
from src.audit.domain import AuditEntry
from src.audit.infrastructure import SQLAlchemyAuditRepository
from src.config import (
    AccountRole,
    AuditAction,
    PermissionCategory,
    ProgramStatus,
    ReportStatus,
    SLATarget,
)
from src.infrastructure.database import Base
from src.programs.application import ReportService
from src.programs.infrastructure import (
    ProgramModel,
    SQLAlchemyProgramRepository,
    SQLAlchemyReportRepository,
)
from src.programs.infrastructure.repositories import program_select

from tests.conftest import make_account, make_program, make_report


SLA_CLAIM = AuditAction.sla_breach(SLATarget.FIRST_RESPONSE)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'arena.db'}")

    # pysqlite only nests SAVEPOINTs when SQLAlchemy emits BEGIN itself
    @event.listens_for(engine.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def sql_company(session):
    return await SQLAlchemyAccountRepository(session).create(make_account(AccountRole.COMPANY_ADMIN))


async def _permission(session, key):
    return await SQLAlchemyPermissionRepository(session).create(Permission(
        id=str(uuid4()),
        key=key,
        category=PermissionCategory.COMPANY,
        name=key,
    ))


# ========== Roles ==========

async def test_replace_swaps_the_whole_permission_set(session, session_maker, sql_company):
    p0, p1, p2 = [await _permission(session, f"company:p{i}") for i in range(3)]
    roles = SQLAlchemyRoleRepository(session)
    accounts = SQLAlchemyAccountRepository(session)

    role = await roles.create(CustomRole(
        id=str(uuid4()), owner_id=sql_company.id, name="Triage", permissions=[p0, p1]
    ))
    employee = await accounts.create(make_account(
        AccountRole.COMPANY_ADMIN, parent_id=sql_company.id, custom_role_id=role.id
    ))
    assert employee.permission_keys == {"company:p0", "company:p1"}

    role.name = "Payments"
    role.permissions = [p1, p2]
    replaced = await roles.replace(role)
    await session.commit()

    assert sorted(replaced.permission_keys) == ["company:p1", "company:p2"]

    async with session_maker() as fresh:
        stored = await SQLAlchemyRoleRepository(fresh).get_by_id(role.id)
        reloaded = await SQLAlchemyAccountRepository(fresh).get_by_id(employee.id)

    assert stored.name == "Payments"
    assert sorted(stored.permission_keys) == ["company:p1", "company:p2"]
    assert reloaded.permission_keys == {"company:p1", "company:p2"}


async def test_replace_with_empty_set_clears_links(session, session_maker, sql_company):
    p0 = await _permission(session, "company:p0")
    roles = SQLAlchemyRoleRepository(session)
    role = await roles.create(CustomRole(
        id=str(uuid4()), owner_id=sql_company.id, name="Triage", permissions=[p0]
    ))
    await session.commit()

    role.permissions = []
    await roles.replace(role)
    await session.commit()

    async with session_maker() as fresh:
        stored = await SQLAlchemyRoleRepository(fresh).get_by_id(role.id)

    assert stored.permissions == []


# ========== Audit claims ==========

async def test_dedupe_key_admits_one_entry(session):
    audit_repo = SQLAlchemyAuditRepository(session)
    report_id, other_id = str(uuid4()), str(uuid4())

    def claim(rid):
        return AuditEntry(
            action=SLA_CLAIM,
            report_id=rid,
            dedupe_key=AuditEntry.dedupe_key_for(rid, SLA_CLAIM),
        )

    results = [
        await audit_repo.add_unique(claim(report_id)),
        await audit_repo.add_unique(claim(report_id)),
        await audit_repo.add_unique(claim(other_id)),
    ]

    assert results == [True, False, True]

    # The rejected insert leaves the transaction usable
    await audit_repo.add(AuditEntry(action=AuditAction.PROGRAM_CREATED, details={"name": "Acme Web"}))
    await session.commit()

    assert len(await audit_repo.list({"action": SLA_CLAIM})) == 2
    assert len(await audit_repo.list({"action": AuditAction.PROGRAM_CREATED})) == 1


async def test_released_claim_can_be_taken_again(session, session_maker):
    audit = AuditService(SQLAlchemyAuditRepository(session))
    report_id = str(uuid4())

    assert await audit.claim(report_id, SLA_CLAIM) is True
    await session.commit()

    await audit.release(report_id, SLA_CLAIM)
    assert not await SQLAlchemyAuditRepository(session).exists(report_id, SLA_CLAIM)

    assert await audit.claim(report_id, SLA_CLAIM) is True
    assert await audit.claim(report_id, SLA_CLAIM) is False
    await session.commit()

    async with session_maker() as fresh:
        entries = await SQLAlchemyAuditRepository(fresh).list({"report_id": report_id})

    assert [e.dedupe_key for e in entries] == [f"{report_id}:{SLA_CLAIM}"]


# ========== Programs ==========

def test_lock_select_uses_for_update():
    dialect = postgresql.dialect()

    locked = str(program_select(uuid4(), lock=True).compile(dialect=dialect))
    plain = str(program_select(uuid4()).compile(dialect=dialect))

    assert locked.rstrip().endswith("FOR UPDATE")
    assert "FOR UPDATE" not in plain


async def test_get_for_update_refreshes_loaded_program(session, sql_company):
    programs = SQLAlchemyProgramRepository(session)
    program = await programs.create(make_program(sql_company.id, budget_total=Decimal("100")))
    await session.commit()

    # Written behind the identity map, as a concurrent payout would
    await session.execute(
        update(ProgramModel)
        .where(ProgramModel.id == UUID(program.id))
        .values(budget_spent=Decimal("40"))
        .execution_options(synchronize_session=False)
    )

    assert (await programs.get_by_id(program.id)).budget_spent == Decimal("0")

    locked = await programs.get_for_update(program.id)

    assert locked.budget_spent == Decimal("40")
    assert locked.remaining_budget == Decimal("60")


async def test_get_for_update_of_unknown_program(session):
    programs = SQLAlchemyProgramRepository(session)

    assert await programs.get_for_update(str(uuid4())) is None
    assert await programs.get_for_update("not-a-uuid") is None


async def test_payout_persists_budget_and_audit(session, session_maker, sql_company, notifier, config_provider):
    researcher = await SQLAlchemyAccountRepository(session).create(make_account(AccountRole.RESEARCHER))
    program = await SQLAlchemyProgramRepository(session).create(make_program(
        sql_company.id, budget_total=Decimal("100"), status=ProgramStatus.ACTIVE
    ))
    report = await SQLAlchemyReportRepository(session).create(
        make_report(program, researcher.id, status=ReportStatus.ACCEPTED)
    )
    await session.commit()

    service = ReportService(
        SQLAlchemyReportRepository(session),
        SQLAlchemyProgramRepository(session),
        SQLAlchemyAccountRepository(session),
        AuditService(SQLAlchemyAuditRepository(session)),
        notifier,
        config_provider,
    )
    payout = await service.pay_bounty(sql_company, report.id, Decimal("80"))
    await session.commit()

    assert notifier.sent == []
    assert await service.send_budget_alerts(payout.alerts) == 1
    assert notifier.sent[0]["to"] == sql_company.email

    async with session_maker() as fresh:
        stored_program = await SQLAlchemyProgramRepository(fresh).get_by_id(program.id)
        stored_report = await SQLAlchemyReportRepository(fresh).get_by_id(report.id)
        paid_audited = await SQLAlchemyAuditRepository(fresh).exists(report.id, AuditAction.BOUNTY_PAID)

    assert stored_program.budget_spent == Decimal("80")
    assert stored_program.budget_alert_level == 75
    assert stored_report.status == ReportStatus.PAID
    assert stored_report.bounty_amount == Decimal("80")
    assert paid_audited
