"""Tests for ProgressionService.

Covers idempotent item completion, the insert race, module completion
and the module view guards.
"""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from cassandra.cluster import Session

from lms.catalog.models import Assessment, AssessmentType, ItemType, Module, ModuleItem
from lms.core.errors import ConflictError, NotEnrolledError, NotFoundError
from lms.progression.service import ProgressionService


# ==============================================================================
# Helpers
# ==============================================================================


def one(row) -> Mock:
    """Result whose ``one()`` returns ``row``."""
    result = Mock()
    result.one.return_value = row
    return result


def lwt(applied: bool, row=None) -> Mock:
    """Result of an ``IF NOT EXISTS`` insert; ``row`` is the existing row."""
    result = Mock(was_applied=applied)
    result.one.return_value = row
    return result


def completion_row(student_id: UUID, item: ModuleItem) -> Mock:
    return Mock(
        id=uuid4(),
        student_id=student_id,
        class_id=item.class_id,
        module_id=item.module_id,
        module_item_id=item.id,
        completed_at=datetime(2025, 9, 1, tzinfo=UTC),
    )


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def class_id() -> UUID:
    return uuid4()


@pytest.fixture
def module(class_id: UUID) -> Module:
    return Module(class_id=class_id, title="Week 1", is_published=True)


@pytest.fixture
def pages(module: Module) -> list[ModuleItem]:
    return [
        ModuleItem(
            class_id=module.class_id,
            module_id=module.id,
            item_type=ItemType.PAGE.value,
            title=f"Reading {i}",
            order_index=i,
            is_published=True,
        )
        for i in range(2)
    ]


@pytest.fixture
def mock_catalog(module: Module, pages: list[ModuleItem]) -> Mock:
    catalog = Mock()
    catalog.get_item = AsyncMock(return_value=pages[0])
    catalog.get_class = AsyncMock(return_value=Mock(id=module.class_id))
    catalog.list_modules = AsyncMock(return_value=[module])
    catalog.list_class_items = AsyncMock(return_value=pages)
    catalog.list_module_items = AsyncMock(return_value=pages)
    catalog.list_assessments = AsyncMock(return_value=[])
    return catalog


@pytest.fixture
def mock_enrollments() -> Mock:
    enrollments = Mock()
    enrollments.require_active_enrollment = AsyncMock(return_value=Mock())
    return enrollments


@pytest.fixture
def mock_session() -> Mock:
    session = Mock(spec=Session)
    session.prepare = Mock(return_value=Mock())
    session.aexecute = AsyncMock(return_value=Mock())
    return session


@pytest.fixture
def progression_service(
    mock_session: Mock, mock_catalog: Mock, mock_enrollments: Mock
) -> ProgressionService:
    return ProgressionService(
        session=mock_session,
        keyspace="test_keyspace",
        catalog_service=mock_catalog,
        enrollment_service=mock_enrollments,
    )


# ==============================================================================
# complete_item
# ==============================================================================


class TestCompleteItem:
    """Tests for complete_item."""

    @pytest.mark.asyncio
    async def test_first_of_two_items(
        self,
        progression_service: ProgressionService,
        mock_session: Mock,
        pages: list[ModuleItem],
    ) -> None:
        """Completing half the required items does not complete the module."""
        student_id = uuid4()
        mock_session.aexecute.side_effect = [
            one(None),
            lwt(True),
            [completion_row(student_id, pages[0])],
        ]

        result = await progression_service.complete_item(student_id, pages[0].id)

        assert result.module_completed is False
        assert result.completion.module_item_id == pages[0].id
        assert result.completion.student_id == student_id
        assert mock_session.aexecute.call_count == 3

    @pytest.mark.asyncio
    async def test_last_item_completes_module(
        self,
        progression_service: ProgressionService,
        mock_session: Mock,
        mock_catalog: Mock,
        pages: list[ModuleItem],
    ) -> None:
        """Completing the last required item records a module completion."""
        student_id = uuid4()
        mock_catalog.get_item.return_value = pages[1]
        mock_session.aexecute.side_effect = [
            one(None),
            lwt(True),
            [completion_row(student_id, p) for p in pages],
            one(None),
            lwt(True),
        ]

        result = await progression_service.complete_item(student_id, pages[1].id)

        assert result.module_completed is True
        assert mock_session.aexecute.call_count == 5

    @pytest.mark.asyncio
    async def test_repeat_call_returns_stored_completion(
        self,
        progression_service: ProgressionService,
        mock_session: Mock,
        pages: list[ModuleItem],
    ) -> None:
        """A second call returns the first completion and writes nothing."""
        student_id = uuid4()
        stored = completion_row(student_id, pages[0])
        mock_session.aexecute.side_effect = [one(stored)]

        result = await progression_service.complete_item(student_id, pages[0].id)

        assert result.completion.id == stored.id
        assert result.module_completed is False
        assert mock_session.aexecute.call_count == 1

    @pytest.mark.asyncio
    async def test_lost_insert_race_returns_winner(
        self,
        progression_service: ProgressionService,
        mock_session: Mock,
        pages: list[ModuleItem],
    ) -> None:
        """When a concurrent request inserted first, its row is returned."""
        student_id = uuid4()
        winner = completion_row(student_id, pages[0])
        mock_session.aexecute.side_effect = [one(None), lwt(False), one(winner)]

        result = await progression_service.complete_item(student_id, pages[0].id)

        assert result.completion.id == winner.id
        assert result.module_completed is False

    @pytest.mark.asyncio
    async def test_lost_insert_race_uses_row_from_insert_result(
        self,
        progression_service: ProgressionService,
        mock_session: Mock,
        mock_catalog: Mock,
        pages: list[ModuleItem],
    ) -> None:
        """A not-applied insert returns the stored row and skips module checks."""
        student_id = uuid4()
        mock_catalog.list_module_items.return_value = [pages[0]]
        winner = completion_row(student_id, pages[0])
        mock_session.aexecute.side_effect = [one(None), lwt(False, winner)]

        result = await progression_service.complete_item(student_id, pages[0].id)

        assert result.completion.id == winner.id
        assert result.completion.completed_at == winner.completed_at
        assert result.module_completed is False
        assert mock_session.aexecute.call_count == 2
        mock_catalog.list_module_items.assert_not_called()

    @pytest.mark.asyncio
    async def test_lost_insert_race_without_readable_row(
        self,
        progression_service: ProgressionService,
        mock_session: Mock,
        mock_catalog: Mock,
        pages: list[ModuleItem],
    ) -> None:
        """An unsaved completion is never returned and the module is untouched."""
        student_id = uuid4()
        mock_catalog.list_module_items.return_value = [pages[0]]
        mock_session.aexecute.side_effect = [one(None), lwt(False), one(None)]

        with pytest.raises(ConflictError) as exc_info:
            await progression_service.complete_item(student_id, pages[0].id)

        assert exc_info.value.code == "completion_in_progress"
        assert mock_session.aexecute.call_count == 3
        mock_catalog.list_module_items.assert_not_called()

    @pytest.mark.asyncio
    async def test_module_completion_conflict_still_reports_success(
        self,
        progression_service: ProgressionService,
        mock_session: Mock,
        mock_catalog: Mock,
        pages: list[ModuleItem],
    ) -> None:
        """A concurrent module completion is not an error."""
        student_id = uuid4()
        mock_catalog.list_module_items.return_value = [pages[0]]
        mock_session.aexecute.side_effect = [
            one(None),
            lwt(True),
            [completion_row(student_id, pages[0])],
            one(None),
            lwt(False),
        ]

        result = await progression_service.complete_item(student_id, pages[0].id)

        assert result.module_completed is True

    @pytest.mark.asyncio
    async def test_module_without_required_items_completes(
        self,
        progression_service: ProgressionService,
        mock_session: Mock,
        mock_catalog: Mock,
        pages: list[ModuleItem],
    ) -> None:
        for page in pages:
            page.is_required = False
        student_id = uuid4()
        mock_session.aexecute.side_effect = [
            one(None),
            lwt(True),
            [completion_row(student_id, pages[0])],
            one(None),
            lwt(True),
        ]

        result = await progression_service.complete_item(student_id, pages[0].id)

        assert result.module_completed is True

    @pytest.mark.asyncio
    async def test_missing_item(
        self, progression_service: ProgressionService, mock_catalog: Mock
    ) -> None:
        mock_catalog.get_item.return_value = None
        with pytest.raises(NotFoundError):
            await progression_service.complete_item(uuid4(), uuid4())

    @pytest.mark.asyncio
    async def test_unpublished_item(
        self,
        progression_service: ProgressionService,
        pages: list[ModuleItem],
    ) -> None:
        pages[0].is_published = False
        with pytest.raises(NotFoundError):
            await progression_service.complete_item(uuid4(), pages[0].id)

    @pytest.mark.asyncio
    async def test_not_enrolled(
        self,
        progression_service: ProgressionService,
        mock_enrollments: Mock,
        mock_session: Mock,
        pages: list[ModuleItem],
    ) -> None:
        mock_enrollments.require_active_enrollment.side_effect = NotEnrolledError()
        with pytest.raises(NotEnrolledError):
            await progression_service.complete_item(uuid4(), pages[0].id)
        mock_session.aexecute.assert_not_called()


class TestVisibilityFilterSetting:
    """The required-items check with and without the visibility filter."""

    @pytest.fixture
    def dangling_item(self, module: Module) -> ModuleItem:
        return ModuleItem(
            class_id=module.class_id,
            module_id=module.id,
            item_type=ItemType.ASSESSMENT.value,
            title="Removed quiz",
            is_published=True,
            assessment_id=uuid4(),
        )

    @pytest.mark.asyncio
    async def test_dangling_item_blocks_by_default(
        self,
        progression_service: ProgressionService,
        mock_session: Mock,
        mock_catalog: Mock,
        pages: list[ModuleItem],
        dangling_item: ModuleItem,
    ) -> None:
        student_id = uuid4()
        mock_catalog.list_module_items.return_value = [pages[0], dangling_item]
        mock_session.aexecute.side_effect = [
            one(None),
            lwt(True),
            [completion_row(student_id, pages[0])],
        ]

        result = await progression_service.complete_item(student_id, pages[0].id)

        assert result.module_completed is False
        mock_catalog.list_assessments.assert_not_called()

    @pytest.mark.asyncio
    async def test_dangling_item_ignored_when_enabled(
        self,
        mock_session: Mock,
        mock_catalog: Mock,
        mock_enrollments: Mock,
        pages: list[ModuleItem],
        dangling_item: ModuleItem,
    ) -> None:
        service = ProgressionService(
            session=mock_session,
            keyspace="test_keyspace",
            catalog_service=mock_catalog,
            enrollment_service=mock_enrollments,
            completion_check_applies_visibility_filter=True,
        )
        student_id = uuid4()
        mock_catalog.list_module_items.return_value = [pages[0], dangling_item]
        mock_session.aexecute.side_effect = [
            one(None),
            lwt(True),
            [completion_row(student_id, pages[0])],
            one(None),
            lwt(True),
        ]

        result = await service.complete_item(student_id, pages[0].id)

        assert result.module_completed is True


# ==============================================================================
# get_class_modules
# ==============================================================================


class TestGetClassModules:
    """Tests for the module view."""

    @pytest.mark.asyncio
    async def test_missing_class(
        self, progression_service: ProgressionService, mock_catalog: Mock
    ) -> None:
        mock_catalog.get_class.return_value = None
        with pytest.raises(NotFoundError):
            await progression_service.get_class_modules(uuid4(), uuid4())

    @pytest.mark.asyncio
    async def test_not_enrolled(
        self,
        progression_service: ProgressionService,
        mock_enrollments: Mock,
        class_id: UUID,
    ) -> None:
        mock_enrollments.require_active_enrollment.side_effect = NotEnrolledError()
        with pytest.raises(NotEnrolledError):
            await progression_service.get_class_modules(uuid4(), class_id)

    @pytest.mark.asyncio
    async def test_progress_from_completions(
        self,
        progression_service: ProgressionService,
        mock_session: Mock,
        mock_catalog: Mock,
        module: Module,
        pages: list[ModuleItem],
    ) -> None:
        student_id = uuid4()
        quiz = Assessment(
            class_id=module.class_id,
            title="Quiz",
            type=AssessmentType.QUIZ.value,
            max_points=Decimal(5),
            is_published=False,
        )
        hidden = ModuleItem(
            class_id=module.class_id,
            module_id=module.id,
            item_type=ItemType.ASSESSMENT.value,
            title="Draft quiz",
            is_published=True,
            assessment_id=quiz.id,
        )
        mock_catalog.list_class_items.return_value = [*pages, hidden]
        mock_catalog.list_assessments.return_value = [quiz]
        mock_session.aexecute.side_effect = [
            [completion_row(student_id, pages[0])],
            [],
        ]

        views = await progression_service.get_class_modules(
            student_id, module.class_id
        )

        assert len(views) == 1
        assert views[0].total_items == 2
        assert views[0].progress == 50
        assert views[0].is_completed is False
        assert views[0].lock.is_locked is False
