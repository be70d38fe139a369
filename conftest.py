"""
Shared pytest fixtures for the registry, the reports and the CLI tests.

Each test runs against a fresh, isolated in-memory SQLite database whose
schema is generated from the Tortoise models, and HTTP calls go through an
httpx AsyncClient bound to the ASGI app, so requests and fixtures share one
event loop.

Key Fixtures:
- `initialize_test_db`: (autouse) Creates a fresh DB schema and one user per role.
- `app_for_testing`: The FastAPI application with its production lifespan disabled.
- `client`: A non-authenticated AsyncClient.
- `admin_client`, `data_entry_client`, `viewer_client`: AsyncClients holding a bearer
  token for the matching role.
- `entry_factory`: Creates registry entries with borrowers directly in the database.
"""

import datetime
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, AsyncGenerator, Generator, Optional

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from rahunu.features.auth.models import Role, User
from rahunu.features.auth.service import hash_password
from rahunu.features.entries.models import Borrower, EntryStatus, RegistryEntry
from rahunu.main import MODEL_MODULES, app as actual_app

TEST_PASSWORD = "password123"

TEST_USERS = {
    Role.ADMIN: "adminfixture",
    Role.DATA_ENTRY: "dataentryfixture",
    Role.VIEWER: "viewerfixture",
}


async def add_user(username: str, role: Role) -> User:
    return await User.create(
        username=username,
        email=f"{username}@example.com",
        hashed_password=hash_password(TEST_PASSWORD),
        role=role,
    )


@pytest_asyncio.fixture(scope="function", autouse=True)
async def initialize_test_db() -> AsyncGenerator[None, None]:
    """Fresh in-memory registry database per test, seeded with one user per role."""
    test_db_config = {
        "connections": {"default": "sqlite://:memory:"},
        "apps": {
            "models": {
                "models": MODEL_MODULES,
                "default_connection": "default",
            }
        },
    }
    await Tortoise.init(config=test_db_config)
    await Tortoise.generate_schemas()
    for role, username in TEST_USERS.items():
        await add_user(username, role)

    yield

    await Tortoise.close_connections()


@pytest.fixture(scope="function")
def app_for_testing() -> Generator[FastAPI, Any, None]:
    """
    Provides the FastAPI application with its production lifespan manager
    replaced, so `initialize_test_db` owns the database connection.
    """
    original_lifespan = actual_app.router.lifespan_context

    @asynccontextmanager
    async def dummy_lifespan(app: FastAPI):
        yield

    actual_app.router.lifespan_context = dummy_lifespan

    yield actual_app

    actual_app.router.lifespan_context = original_lifespan


@pytest_asyncio.fixture(scope="function")
async def client(app_for_testing: FastAPI) -> AsyncGenerator[AsyncClient, Any]:
    async with AsyncClient(transport=ASGITransport(app=app_for_testing), base_url="http://test") as ac:
        yield ac


async def _authenticated_client(app: FastAPI, username: str) -> AsyncClient:
    ac = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    response = await ac.post(
        "/api/v1/auth/token", data={"username": username, "password": TEST_PASSWORD}
    )
    if response.status_code != 200:
        await ac.aclose()
        raise Exception(f"Authentication failed for {username}: {response.text}")
    ac.headers["Authorization"] = f"Bearer {response.json()['access_token']}"
    return ac


@pytest_asyncio.fixture(scope="function")
async def admin_client(app_for_testing: FastAPI) -> AsyncGenerator[AsyncClient, Any]:
    ac = await _authenticated_client(app_for_testing, TEST_USERS[Role.ADMIN])
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture(scope="function")
async def data_entry_client(app_for_testing: FastAPI) -> AsyncGenerator[AsyncClient, Any]:
    ac = await _authenticated_client(app_for_testing, TEST_USERS[Role.DATA_ENTRY])
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture(scope="function")
async def viewer_client(app_for_testing: FastAPI) -> AsyncGenerator[AsyncClient, Any]:
    ac = await _authenticated_client(app_for_testing, TEST_USERS[Role.VIEWER])
    yield ac
    await ac.aclose()


@pytest_asyncio.fixture
async def entry_factory():
    """A factory to create registry entries; numbers are assigned in creation order."""

    async def _factory(
        loan_amount: str = "100000.00",
        status: EntryStatus = EntryStatus.ONGOING,
        island: str = "S.Hithadhoo",
        branch: str = "Branch A",
        agreement_date: datetime.date = datetime.date(2025, 6, 1),
        borrowers: Optional[list[str]] = None,
        is_deleted: bool = False,
        number: Optional[int] = None,
    ) -> RegistryEntry:
        number = number or await RegistryEntry.next_number()
        entry = await RegistryEntry.create(
            number=number,
            address=f"House {number}",
            island=island,
            branch=branch,
            form_number=f"{number}/2025",
            agreement_number=f"AG/2025/{number}",
            agreement_date=agreement_date,
            status=status,
            loan_amount=Decimal(loan_amount),
            date_of_cancelled=agreement_date if status == EntryStatus.CANCELLED else None,
            date_of_completed=agreement_date if status == EntryStatus.COMPLETED else None,
            is_deleted=is_deleted,
        )
        for index, name in enumerate(borrowers or [f"Borrower {number}"]):
            await Borrower.create(entry=entry, full_name=name, national_id=f"A{number:04d}{index}")
        return entry

    return _factory
