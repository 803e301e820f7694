"""Bearer token resolution through the HTTP stack."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from src.access.infrastructure import create_access_token, decode_access_token
from src.access.interfaces.dependencies import get_account_repository
from src.config import AccountRole
from src.core import AuthenticationException
from src.infrastructure.database import get_session
from src.main import app
from src.sla.application import SLAService
from src.sla.interfaces.dependencies import get_sla_service

from tests.conftest import make_account, make_program, make_report


@pytest.fixture
async def client(account_repo, report_repo):
    app.dependency_overrides[get_session] = lambda: None
    app.dependency_overrides[get_account_repository] = lambda: account_repo
    app.dependency_overrides[get_sla_service] = lambda: SLAService(report_repo)

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


async def test_valid_token_resolves_account(client, company):
    response = await client.get("/accounts/me", headers=_bearer(create_access_token(company.id)))

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == company.id
    assert body["email"] == "security@acme.example"
    assert body["role"] == "COMPANY_ADMIN"


async def test_token_grants_only_role_permissions(client, company, researcher, program_repo, report_repo):
    program = await program_repo.create(make_program(company.id, sla_first_response=24))
    submitted = datetime.now(timezone.utc) - timedelta(hours=30)
    await report_repo.create(make_report(program, researcher.id, submitted_at=submitted))

    allowed = await client.get("/sla/dashboard", headers=_bearer(create_access_token(company.id)))
    denied = await client.get("/sla/dashboard", headers=_bearer(create_access_token(researcher.id)))

    assert allowed.status_code == 200
    assert allowed.json()["metrics"]["total_sla_eligible"] == 1
    assert denied.status_code == 403


async def test_missing_token_is_rejected(client):
    response = await client.get("/accounts/me")

    assert response.status_code == 401


async def test_expired_token_is_rejected(client, company):
    token = create_access_token(company.id, expires_in=timedelta(seconds=-1))

    response = await client.get("/accounts/me", headers=_bearer(token))

    assert response.status_code == 401
    assert response.json()["details"]["error"] == "expired"


async def test_token_signed_with_other_secret_is_rejected(client, company):
    token = create_access_token(company.id, secret="a-different-signing-secret-for-tests")

    response = await client.get("/accounts/me", headers=_bearer(token))

    assert response.status_code == 401


async def test_malformed_token_is_rejected(client):
    response = await client.get("/accounts/me", headers=_bearer("not-a-jwt"))

    assert response.status_code == 401


async def test_deactivated_account_is_rejected(client, account_repo, company):
    token = create_access_token(company.id)
    company.is_active = False
    await account_repo.update(company)

    response = await client.get("/accounts/me", headers=_bearer(token))

    assert response.status_code == 401


async def test_token_for_unknown_account_is_rejected(client, account_repo):
    ghost = make_account(AccountRole.COMPANY_ADMIN)

    response = await client.get("/accounts/me", headers=_bearer(create_access_token(ghost.id)))

    assert response.status_code == 401


def test_token_carries_account_id():
    assert decode_access_token(create_access_token("account-1")) == "account-1"


def test_decoding_with_other_secret_fails():
    token = create_access_token("account-1")

    with pytest.raises(AuthenticationException):
        decode_access_token(token, secret="a-different-signing-secret-for-tests")
