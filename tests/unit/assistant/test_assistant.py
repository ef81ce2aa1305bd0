"""Unit tests for the operational snapshot and the assistant."""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from mro_ops.core.exceptions import APIClientError
from mro_ops.schemas.assistant import (
    AircraftSnapshot,
    CertificationDetail,
    CertificationSnapshot,
    OperationalContext,
    WorkforceSnapshot,
    WorkforceToday,
)
from mro_ops.services.assistant import context as context_module
from mro_ops.services.assistant.chat import AssistantService
from mro_ops.services.assistant.context import OperationalContextService, format_context_for_prompt

TODAY = date(2025, 5, 10)


@pytest.fixture
def session_maker():
    """Session factory whose sessions work as async context managers."""
    return MagicMock()


@pytest.fixture
def repositories(monkeypatch):
    visit_repo = AsyncMock()
    visit_repo.count_by_status.side_effect = [
        {"In Progress": 2, "Scheduled": 1},
        {"In Progress": 2, "Scheduled": 5, "Completed": 10},
    ]
    visit_repo.list_active_on.return_value = [
        SimpleNamespace(aircraft=SimpleNamespace(registration="A6-EDA"), status="In Progress", check_type="C-Check"),
        SimpleNamespace(aircraft=None, status=None, check_type="A-Check"),
    ]

    employee_repo = AsyncMock()
    employee_repo.count.return_value = 20

    assignment_repo = AsyncMock()
    assignment_repo.count_codes_on.return_value = {"AV": 15, "L": 2, "AL": 1, "TR": 1}

    authorization_repo = AsyncMock()
    authorization_repo.count_expiring.side_effect = [4, 1]
    authorization_repo.list_expiring.return_value = [
        SimpleNamespace(
            employee=SimpleNamespace(name="John Smith"),
            authorization_type=SimpleNamespace(name="EASA B1"),
            expiry_date=date(2025, 5, 30),
        )
    ]

    monkeypatch.setattr(context_module, "MaintenanceVisitRepository", lambda session: visit_repo)
    monkeypatch.setattr(context_module, "EmployeeRepository", lambda session: employee_repo)
    monkeypatch.setattr(context_module, "EmployeeSupportRepository", lambda session: assignment_repo)
    monkeypatch.setattr(context_module, "EmployeeAuthorizationRepository", lambda session: authorization_repo)

    return SimpleNamespace(
        visits=visit_repo,
        employees=employee_repo,
        assignments=assignment_repo,
        authorizations=authorization_repo,
    )


class TestOperationalContextService:

    @pytest.mark.asyncio
    async def test_gathers_all_slices(self, session_maker, repositories):
        service = OperationalContextService(session_maker)

        context = await service.gather(TODAY)

        assert context.current_date == TODAY
        assert context.aircraft.today.total == 3
        assert context.aircraft.today.in_maintenance == 2
        assert context.aircraft.overall.total_visits == 17
        assert context.aircraft.overall.completed == 10
        assert context.aircraft.today.details[1].registration == "Unknown"
        assert context.aircraft.today.details[1].status == "Unknown"

        assert context.workforce.today.available == 15
        assert context.workforce.today.on_leave == 3
        assert context.workforce.today.in_training == 1
        assert context.workforce.today.availability_rate == 75
        assert context.workforce.total_employees == 20

        assert context.certifications.expiring_soon == 4
        assert context.certifications.critical == 1
        assert context.certifications.details[0].employee_name == "John Smith"

        # One session per slice
        assert session_maker.call_count == 3
        repositories.authorizations.count_expiring.assert_any_await(TODAY, date(2025, 8, 8))
        repositories.authorizations.count_expiring.assert_any_await(TODAY, date(2025, 6, 9))

    @pytest.mark.asyncio
    async def test_failing_slice_yields_defaults(self, session_maker, repositories):
        repositories.visits.count_by_status.side_effect = RuntimeError("relation does not exist")
        service = OperationalContextService(session_maker)

        context = await service.gather(TODAY)

        assert context.aircraft == AircraftSnapshot()
        assert context.workforce.today.available == 15

    @pytest.mark.asyncio
    async def test_no_employees_means_zero_rate(self, session_maker, repositories):
        repositories.employees.count.return_value = 0
        repositories.assignments.count_codes_on.return_value = {}
        service = OperationalContextService(session_maker)

        workforce = await service.fetch_workforce(TODAY)

        assert workforce.today.availability_rate == 0


class TestFormatContext:

    def test_renders_sections(self):
        context = OperationalContext(
            current_date=TODAY,
            workforce=WorkforceSnapshot(
                today=WorkforceToday(total=20, available=15, on_leave=3, in_training=1, availability_rate=75),
                total_employees=20,
            ),
            certifications=CertificationSnapshot(
                expiring_soon=4,
                critical=1,
                details=[CertificationDetail(employee_name="John Smith", authorization_type="EASA B1", expiry_date=date(2025, 5, 30))],
            ),
        )

        text = format_context_for_prompt(context)

        assert text.startswith("OPERATIONAL STATUS (as of 2025-05-10):")
        assert "- Available for assignment: 15 (75%)" in text
        assert "- Authorizations expiring in 90 days: 4" in text
        assert "- Critical expiries: John Smith - EASA B1 (2025-05-30)" in text
        # No visit details line when there are none
        assert "- Details:" not in text

    def test_zero_snapshot(self):
        text = format_context_for_prompt(OperationalContext(current_date=TODAY))
        assert "- Active maintenance visits: 0" in text


class TestAssistantService:

    @pytest.mark.asyncio
    async def test_answer_is_returned_verbatim(self):
        context_service = AsyncMock()
        context_service.gather.return_value = OperationalContext(current_date=TODAY)
        llm_client = AsyncMock()
        llm_client.complete.return_value = "🔧 3 aircraft are in maintenance today."
        service = AssistantService(context_service=context_service, llm_client=llm_client)

        answer = await service.answer("What is in the hangar?", TODAY)

        assert answer == "🔧 3 aircraft are in maintenance today."
        context_service.gather.assert_awaited_once_with(TODAY)
        messages = llm_client.complete.call_args.args[0]
        assert [m["role"] for m in messages] == ["system", "system", "user"]
        assert messages[1]["content"].startswith("OPERATIONAL STATUS")
        assert messages[2]["content"] == "What is in the hangar?"
        assert llm_client.complete.call_args.kwargs["max_tokens"] == 3000

    @pytest.mark.asyncio
    async def test_failure_returns_apology(self):
        context_service = AsyncMock()
        context_service.gather.return_value = OperationalContext(current_date=TODAY)
        llm_client = AsyncMock()
        llm_client.complete.side_effect = APIClientError("API Client Error 401: invalid key")
        service = AssistantService(context_service=context_service, llm_client=llm_client)

        answer = await service.answer("Hello", TODAY)

        assert answer.startswith("⚠️ Error: API Client Error 401: invalid key")
        assert "OpenAI API key" in answer

    @pytest.mark.asyncio
    async def test_missing_api_key_returns_apology(self):
        context_service = AsyncMock()
        context_service.gather.return_value = OperationalContext(current_date=TODAY)
        service = AssistantService(context_service=context_service)

        answer = await service.answer("Hello", TODAY)

        assert "OPENAI_API_KEY is not configured" in answer
