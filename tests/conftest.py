"""Shared fixtures: in-memory repositories and a recording notifier."""

import copy
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

import pytest

from src.access.application import (
    AccountService,
    IAccountRepository,
    IPermissionRepository,
    IRoleRepository,
    RoleService,
)
from src.access.domain import Account, CustomRole, Permission
from src.administration.application import StaticPlatformConfigProvider
from src.administration.domain import PlatformConfig
from src.audit.application import AuditService, IAuditRepository
from src.audit.domain import AuditEntry
from src.config import AccountRole, PermissionCategory, ProgramStatus, ReportStatus
from src.core import RepositoryException
from src.infrastructure.notifications import INotificationClient
from src.programs.application import (
    IProgramRepository,
    IReportRepository,
    ProgramService,
    ReportService,
)
from src.programs.domain import Program, Report


# ========== In-memory repositories ==========

class InMemoryAuditRepository(IAuditRepository):
    def __init__(self):
        self.entries: List[AuditEntry] = []

    async def add(self, entry: AuditEntry) -> AuditEntry:
        entry.id = str(uuid4())
        self.entries.append(entry)
        return entry

    async def add_unique(self, entry: AuditEntry) -> bool:
        if any(e.dedupe_key == entry.dedupe_key for e in self.entries):
            return False
        await self.add(entry)
        return True

    async def delete_by_dedupe_key(self, dedupe_key: str) -> None:
        self.entries = [e for e in self.entries if e.dedupe_key != dedupe_key]

    async def exists(self, report_id: str, action: str) -> bool:
        return any(e.report_id == report_id and e.action == action for e in self.entries)

    async def list(self, filters: dict, limit: int = 100, offset: int = 0) -> List[AuditEntry]:
        entries = [
            e for e in reversed(self.entries)
            if all(getattr(e, k, None) == v for k, v in filters.items() if k != "company_id")
        ]
        return entries[offset:offset + limit]

    def actions(self) -> List[str]:
        return [e.action for e in self.entries]


class InMemoryPermissionRepository(IPermissionRepository):
    def __init__(self):
        self.permissions: Dict[str, Permission] = {}

    async def get_by_id(self, permission_id: str) -> Optional[Permission]:
        return self.permissions.get(permission_id)

    async def get_by_key(self, key: str) -> Optional[Permission]:
        return next((p for p in self.permissions.values() if p.key == key), None)

    async def get_many(self, permission_ids: Sequence[str]) -> List[Permission]:
        return [self.permissions[pid] for pid in permission_ids if pid in self.permissions]

    async def list(self, category: Optional[PermissionCategory] = None) -> List[Permission]:
        found = [p for p in self.permissions.values() if category is None or p.category == category]
        return sorted(found, key=lambda p: p.name)

    async def create(self, permission: Permission) -> Permission:
        self.permissions[permission.id] = permission
        return permission

    async def delete(self, permission_id: str) -> bool:
        return self.permissions.pop(permission_id, None) is not None


class InMemoryRoleRepository(IRoleRepository):
    def __init__(self):
        self.roles: Dict[str, CustomRole] = {}

    async def get_by_id(self, role_id: str) -> Optional[CustomRole]:
        role = self.roles.get(role_id)
        return copy.deepcopy(role) if role else None

    async def list_by_owner(self, owner_id: str) -> List[CustomRole]:
        return [copy.deepcopy(r) for r in self.roles.values() if r.owner_id == owner_id]

    async def create(self, role: CustomRole) -> CustomRole:
        self.roles[role.id] = copy.deepcopy(role)
        return role

    async def replace(self, role: CustomRole) -> CustomRole:
        if role.id not in self.roles:
            raise RepositoryException(f"Role {role.id} not found")
        self.roles[role.id] = copy.deepcopy(role)
        return copy.deepcopy(role)


class InMemoryAccountRepository(IAccountRepository):
    """Accounts resolve their effective keys from the role store, like the SQL repository."""

    def __init__(self, role_repository: Optional[InMemoryRoleRepository] = None):
        self.accounts: Dict[str, Account] = {}
        self._roles = role_repository

    def _resolve(self, account: Account) -> Account:
        resolved = copy.deepcopy(account)
        keys = frozenset()
        if self._roles is not None and account.custom_role_id in self._roles.roles:
            keys = self._roles.roles[account.custom_role_id].permission_keys
        resolved.permission_keys = keys
        return resolved

    async def get_by_id(self, account_id: str) -> Optional[Account]:
        account = self.accounts.get(account_id)
        return self._resolve(account) if account else None

    async def get_by_email(self, email: str) -> Optional[Account]:
        account = next((a for a in self.accounts.values() if a.email == email), None)
        return self._resolve(account) if account else None

    async def create(self, account: Account) -> Account:
        self.accounts[account.id] = copy.deepcopy(account)
        return self._resolve(account)

    async def update(self, account: Account) -> Account:
        self.accounts[account.id] = copy.deepcopy(account)
        return self._resolve(account)

    async def list_children(self, parent_id: str) -> List[Account]:
        return [self._resolve(a) for a in self.accounts.values() if a.parent_id == parent_id]

    async def list_by_roles(self, roles: Sequence[AccountRole]) -> List[Account]:
        found = [
            a for a in self.accounts.values()
            if a.role in roles and a.parent_id is None and a.is_active
        ]
        return [self._resolve(a) for a in sorted(found, key=lambda a: a.created_at)]


class InMemoryProgramRepository(IProgramRepository):
    def __init__(self):
        self.programs: Dict[str, Program] = {}
        self.locked: List[str] = []

    async def get_by_id(self, program_id: str) -> Optional[Program]:
        program = self.programs.get(program_id)
        return copy.deepcopy(program) if program else None

    async def get_for_update(self, program_id: str) -> Optional[Program]:
        self.locked.append(program_id)
        return await self.get_by_id(program_id)

    async def list(self, filters: dict, limit: int = 100, offset: int = 0) -> List[Program]:
        found = [
            copy.deepcopy(p) for p in self.programs.values()
            if ("company_id" not in filters or p.company_id == filters["company_id"])
            and ("status" not in filters or p.status == filters["status"])
        ]
        return found[offset:offset + limit]

    async def create(self, program: Program) -> Program:
        self.programs[program.id] = copy.deepcopy(program)
        return copy.deepcopy(program)

    async def update(self, program: Program) -> Program:
        if program.id not in self.programs:
            raise RepositoryException(f"Program {program.id} not found")
        self.programs[program.id] = copy.deepcopy(program)
        return copy.deepcopy(program)


class InMemoryReportRepository(IReportRepository):
    """Reports are returned with their program attached, like the SQL join."""

    def __init__(self, program_repository: InMemoryProgramRepository):
        self.reports: Dict[str, Report] = {}
        self._programs = program_repository

    def _load(self, report: Report) -> Report:
        loaded = copy.deepcopy(report)
        program = self._programs.programs.get(report.program_id)
        loaded.program = copy.deepcopy(program) if program else None
        return loaded

    def _matches(self, report: Report, filters: dict) -> bool:
        program = self._programs.programs.get(report.program_id)
        if "researcher_id" in filters and report.researcher_id != filters["researcher_id"]:
            return False
        if "program_id" in filters and report.program_id != filters["program_id"]:
            return False
        if "company_id" in filters and (program is None or program.company_id != filters["company_id"]):
            return False
        if "status" in filters and report.status != filters["status"]:
            return False
        return True

    async def get_by_id(self, report_id: str) -> Optional[Report]:
        report = self.reports.get(report_id)
        return self._load(report) if report else None

    async def list(self, filters: dict, limit: Optional[int] = 100, offset: int = 0) -> List[Report]:
        found = [self._load(r) for r in self.reports.values() if self._matches(r, filters)]
        found = found[offset:]
        return found if limit is None else found[:limit]

    async def list_excluding_statuses(self, statuses) -> List[Report]:
        return [self._load(r) for r in self.reports.values() if r.status not in statuses]

    async def create(self, report: Report) -> Report:
        stored = copy.deepcopy(report)
        stored.program = None
        self.reports[report.id] = stored
        return self._load(stored)

    async def update(self, report: Report) -> Report:
        if report.id not in self.reports:
            raise RepositoryException(f"Report {report.id} not found")
        stored = copy.deepcopy(report)
        stored.program = None
        self.reports[report.id] = stored
        updated = copy.deepcopy(stored)
        updated.program = report.program
        return updated


class RecordingNotifier(INotificationClient):
    """Notifier that records every message and reports a configurable outcome."""

    def __init__(self, deliver: bool = True):
        self.deliver = deliver
        self.sent: List[Dict[str, Any]] = []

    async def send_sla_breach(self, to, report_id, report_title, program_name, target, deadline) -> bool:
        self.sent.append({"kind": "sla_breach", "to": to, "report_id": report_id, "target": target})
        return self.deliver

    async def send_sla_escalation(
        self, to, report_id, report_title, program_name, company_name, target, deadline
    ) -> bool:
        self.sent.append({
            "kind": "sla_escalation",
            "to": to,
            "report_id": report_id,
            "target": target,
            "company_name": company_name,
        })
        return self.deliver

    async def send_budget_alert(self, to, program_id, program_name, percentage, remaining) -> bool:
        self.sent.append({"kind": "budget_alert", "to": to, "percentage": percentage, "remaining": remaining})
        return self.deliver

    def kinds(self) -> List[str]:
        return [m["kind"] for m in self.sent]


# ========== Fixtures ==========

def make_account(role: AccountRole, **kwargs) -> Account:
    kwargs.setdefault("id", str(uuid4()))
    kwargs.setdefault("email", f"{kwargs['id'][:8]}@example.com")
    return Account(role=role, **kwargs)


def make_program(company_id: str, **kwargs) -> Program:
    kwargs.setdefault("id", str(uuid4()))
    kwargs.setdefault("name", "Acme Web")
    return Program(company_id=company_id, **kwargs)


def make_report(program: Program, researcher_id: str, **kwargs) -> Report:
    kwargs.setdefault("id", str(uuid4()))
    kwargs.setdefault("title", "Stored XSS in profile")
    kwargs.setdefault("description", "Payload persists in display name")
    kwargs.setdefault("status", ReportStatus.SUBMITTED)
    return Report(program_id=program.id, researcher_id=researcher_id, **kwargs)


@pytest.fixture
def now():
    return datetime(2024, 1, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def audit_repo():
    return InMemoryAuditRepository()


@pytest.fixture
def audit_service(audit_repo):
    return AuditService(audit_repo)


@pytest.fixture
def permission_repo():
    return InMemoryPermissionRepository()


@pytest.fixture
def role_repo():
    return InMemoryRoleRepository()


@pytest.fixture
def account_repo(role_repo):
    return InMemoryAccountRepository(role_repo)


@pytest.fixture
def program_repo():
    return InMemoryProgramRepository()


@pytest.fixture
def report_repo(program_repo):
    return InMemoryReportRepository(program_repo)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def platform_config():
    return PlatformConfig(escalation_grace_hours=24, budget_alert_thresholds=[75, 90, 100])


@pytest.fixture
def config_provider(platform_config):
    return StaticPlatformConfigProvider(platform_config)


@pytest.fixture
def role_service(permission_repo, role_repo, account_repo, audit_service):
    return RoleService(permission_repo, role_repo, account_repo, audit_service)


@pytest.fixture
def account_service(account_repo, role_repo, audit_service):
    return AccountService(account_repo, role_repo, audit_service)


@pytest.fixture
def program_service(program_repo, audit_service):
    return ProgramService(program_repo, audit_service)


@pytest.fixture
def report_service(report_repo, program_repo, account_repo, audit_service, notifier, config_provider):
    return ReportService(report_repo, program_repo, account_repo, audit_service, notifier, config_provider)


@pytest.fixture
async def company(account_repo):
    return await account_repo.create(make_account(AccountRole.COMPANY_ADMIN, email="security@acme.example"))


@pytest.fixture
async def researcher(account_repo):
    return await account_repo.create(make_account(AccountRole.RESEARCHER, email="hunter@example.com"))


@pytest.fixture
async def platform_admin(account_repo):
    return await account_repo.create(make_account(AccountRole.ADMIN, email="ops@xploitarena.example"))


@pytest.fixture
async def budget_program(program_repo, company):
    """Active program with a $100 budget."""
    return await program_repo.create(make_program(
        company.id,
        budget_total=Decimal("100"),
        status=ProgramStatus.ACTIVE,
        sla_first_response=24,
    ))
