"""Tests for the capture service (split + classify flow)."""

from datetime import datetime
from typing import Any

import pytest

from taskcapture.capture.folders import FolderDefinition
from taskcapture.config_schema import AppConfig
from taskcapture.core.logging import get_capture_id
from taskcapture.service import CaptureService, create_capture_service
from taskcapture.splitter.ai_splitter import AiSplitter
from taskcapture.splitter.orchestrator import SplitOrchestrator


@pytest.fixture
def service(sample_config: AppConfig) -> CaptureService:
    """Capture service with the sample config (Moscow, 'finance', splitter off)."""
    return CaptureService(sample_config)


class TestCaptureSplitting:
    """Tests for splitting and folder reapplication."""

    @pytest.mark.asyncio
    async def test_prefix_applies_to_every_item(
        self, service: CaptureService, now: datetime
    ) -> None:
        """Test that the message-level folder is kept for each item."""
        results = await service.capture("work: 1. fix bug\n2. deploy", now=now)

        assert [r.content for r in results] == ["fix bug", "deploy"]
        assert [r.folder for r in results] == ["work", "work"]
        assert all(r.has_explicit_tag for r in results)

    @pytest.mark.asyncio
    async def test_items_classified_independently(
        self, service: CaptureService, now: datetime
    ) -> None:
        """Test that each item gets its own schedule and link detection."""
        results = await service.capture(
            "- позвонить маме завтра\n- почитать https://example.com", now=now
        )

        assert results[0].content == "позвонить маме"
        assert results[0].scheduled_date == "2026-02-11"
        assert results[0].status == "active"
        assert results[1].folder == "media"
        assert results[1].media_type == "link"

    @pytest.mark.asyncio
    async def test_single_message(self, service: CaptureService, now: datetime) -> None:
        """Test that a plain message is one result."""
        results = await service.capture("купить молоко", now=now)

        assert len(results) == 1
        assert results[0].needs_ai_classification is True

    @pytest.mark.asyncio
    async def test_blank_message(self, service: CaptureService, now: datetime) -> None:
        """Test that blank text gives no results."""
        assert await service.capture("   ", now=now) == []
        assert await service.capture("работа:", now=now) == []

    @pytest.mark.asyncio
    async def test_prefix_separator_run(self, service: CaptureService, now: datetime) -> None:
        """Test that a dash after the prefix colon is not kept in the content."""
        results = await service.capture("работа:- сделать отчет", now=now)

        assert [r.content for r in results] == ["сделать отчет"]
        assert results[0].folder == "work"
        assert await service.capture("работа: - ", now=now) == []

    @pytest.mark.asyncio
    async def test_configured_folder_prefix(self, service: CaptureService, now: datetime) -> None:
        """Test a prefix naming a configured custom folder."""
        results = await service.capture("Финансы: оплатить счет; сдать налоги", now=now)

        assert [r.folder for r in results] == ["finance", "finance"]

    @pytest.mark.asyncio
    async def test_per_call_custom_folders(self, service: CaptureService, now: datetime) -> None:
        """Test folders passed with the call."""
        results = await service.capture(
            "спорт: пробежка",
            custom_folders=[FolderDefinition("sport", "Спорт")],
            now=now,
        )

        assert results[0].folder == "sport"
        # Not remembered for later calls
        later = await service.capture("спорт: пробежка", now=now)
        assert later[0].has_explicit_tag is False

    @pytest.mark.asyncio
    async def test_config_timezone(self, service: CaptureService, now: datetime) -> None:
        """Test that the config timezone is the default for deadlines."""
        results = await service.capture("завтра в 10:00", now=now)
        assert results[0].deadline == 1770793200000

    @pytest.mark.asyncio
    async def test_call_timezone_overrides(self, service: CaptureService, now: datetime) -> None:
        """Test a per-call timezone."""
        results = await service.capture("завтра в 10:00", timezone="UTC", now=now)
        assert results[0].deadline == 1770804000000

    @pytest.mark.asyncio
    async def test_ai_split_in_apply_mode(
        self, sample_config: AppConfig, now: datetime, make_provider: Any, split_response: Any
    ) -> None:
        """Test that an injected orchestrator is used."""
        provider = make_provider("openai", split_response("купить молоко", "позвонить маме"))
        orchestrator = SplitOrchestrator(ai_splitter=AiSplitter([provider]), mode="apply")
        service = CaptureService(sample_config, orchestrator=orchestrator)

        results = await service.capture("купить молоко\n\nпозвонить маме", now=now)

        assert [r.content for r in results] == ["купить молоко", "позвонить маме"]


class TestCaptureMedia:
    """Tests for media messages."""

    @pytest.mark.asyncio
    async def test_media_not_split(self, service: CaptureService, now: datetime) -> None:
        """Test that a media caption is one item."""
        results = await service.capture("1. first\n2. second", media_type="photo", now=now)

        assert len(results) == 1
        assert results[0].folder == "media"
        assert results[0].media_type == "photo"

    @pytest.mark.asyncio
    async def test_media_without_caption(self, service: CaptureService, now: datetime) -> None:
        """Test the placeholder content for bare media."""
        results = await service.capture("", media_type="voice", now=now)

        assert len(results) == 1
        assert results[0].content == "[voice]"
        assert results[0].folder == "media"

    @pytest.mark.asyncio
    async def test_media_with_prefix(self, service: CaptureService, now: datetime) -> None:
        """Test that a tagged caption keeps the tagged folder."""
        results = await service.capture("идеи: референс", media_type="photo", now=now)

        assert results[0].folder == "ideas"
        assert results[0].content == "референс"
        assert results[0].media_type == "photo"


class TestCaptureLifecycle:
    """Tests for service construction and correlation IDs."""

    @pytest.mark.asyncio
    async def test_capture_id_per_call(self, service: CaptureService, now: datetime) -> None:
        """Test that every call binds a new correlation ID."""
        await service.capture("a", now=now)
        first = get_capture_id()
        await service.capture("b", now=now)

        assert first is not None
        assert get_capture_id() != first

    @pytest.mark.asyncio
    @pytest.mark.usefixtures("set_config_env")
    async def test_create_from_config_singleton(self, now: datetime) -> None:
        """Test bootstrapping from TASKCAPTURE_CONFIG_PATH."""
        service = create_capture_service()

        results = await service.capture("финансы: налоги", now=now)

        assert results[0].folder == "finance"
