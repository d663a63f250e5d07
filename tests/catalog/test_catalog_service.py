"""Tests for catalog authoring: class codes, modules, items and reordering."""

from datetime import UTC, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, Mock
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError as PydanticValidationError

from lms.catalog.models import Assessment, CourseClass, ItemType, Module, ModuleItem
from lms.catalog.schemas import CreateAssessmentRequest
from lms.catalog.service import (
    CatalogService,
    generate_class_code,
    parse_reorder_entries,
)
from lms.core.errors import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def catalog_service(mock_session: Mock) -> CatalogService:
    return CatalogService(session=mock_session, keyspace="test_keyspace")


@pytest.fixture
def class_id() -> UUID:
    return uuid4()


# ==============================================================================
# Class codes
# ==============================================================================


class TestGenerateClassCode:
    """Tests for generate_class_code."""

    @pytest.mark.parametrize(
        "term,year,section,expected",
        [
            ("Fall", 2025, "1", "ALI-CS101-FA25-01"),
            ("Spring", 2026, "12", "ALI-CS101-SP26-12"),
            ("Summer", 2030, "03", "ALI-CS101-SU30-03"),
            ("Winter", 2024, "7", "ALI-CS101-WI24-07"),
        ],
    )
    def test_format(self, term: str, year: int, section: str, expected: str) -> None:
        assert generate_class_code("ali", "cs101", term, year, section) == expected

    def test_unknown_term(self) -> None:
        with pytest.raises(ValidationError, match="Invalid term"):
            generate_class_code("ALI", "CS101", "Autumn", 2025, "1")


class TestCreateClass:
    """Tests for create_class."""

    @pytest.mark.asyncio
    async def test_creates_class(
        self, catalog_service: CatalogService, mock_session: Mock
    ) -> None:
        mock_session.aexecute.return_value = Mock(was_applied=True)
        professor_id = uuid4()

        course_class = await catalog_service.create_class(
            professor_id=professor_id,
            title="  Data Structures ",
            professor_code="ali",
            course_code="cs201",
            term="Fall",
            year=2025,
            section="2",
        )

        assert course_class.class_code == "ALI-CS201-FA25-02"
        assert course_class.title == "Data Structures"
        assert course_class.section == "02"
        assert course_class.professor_id == professor_id
        # Code claim, class row, professor index
        assert mock_session.aexecute.call_count == 3

    @pytest.mark.asyncio
    async def test_code_taken(
        self, catalog_service: CatalogService, mock_session: Mock
    ) -> None:
        mock_session.aexecute.return_value = Mock(was_applied=False)

        with pytest.raises(ConflictError) as exc_info:
            await catalog_service.create_class(
                professor_id=uuid4(),
                title="Data Structures",
                professor_code="ALI",
                course_code="CS201",
                term="Fall",
                year=2025,
                section="2",
            )

        assert exc_info.value.code == "class_code_taken"
        assert mock_session.aexecute.call_count == 1


# ==============================================================================
# Modules
# ==============================================================================


class TestModules:
    """Tests for module authoring."""

    @pytest.mark.asyncio
    async def test_create_appends_to_end(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        catalog_service.list_modules = AsyncMock(
            return_value=[
                Module(class_id=class_id, title="A", order_index=0),
                Module(class_id=class_id, title="B", order_index=4),
            ]
        )

        module = await catalog_service.create_module(class_id, "C")

        assert module.order_index == 5

    @pytest.mark.asyncio
    async def test_create_with_foreign_prerequisite(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        catalog_service.list_modules = AsyncMock(return_value=[])
        with pytest.raises(ValidationError):
            await catalog_service.create_module(
                class_id, "Week 2", prerequisite_ids=[uuid4()]
            )

    @pytest.mark.asyncio
    async def test_update_rejects_self_prerequisite(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        module = Module(class_id=class_id, title="Week 1")
        catalog_service.get_module = AsyncMock(return_value=module)
        catalog_service.list_modules = AsyncMock(return_value=[module])

        with pytest.raises(ValidationError, match="own prerequisite"):
            await catalog_service.update_module(
                class_id, module.id, {"prerequisite_ids": [module.id]}
            )

    @pytest.mark.asyncio
    async def test_update_partial_fields(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        first = Module(class_id=class_id, title="Week 1")
        second = Module(class_id=class_id, title="Week 2", description="Intro")
        catalog_service.get_module = AsyncMock(return_value=second)
        catalog_service.list_modules = AsyncMock(return_value=[first, second])

        updated = await catalog_service.update_module(
            class_id,
            second.id,
            {"is_published": True, "prerequisite_ids": [first.id]},
        )

        assert updated.is_published is True
        assert updated.prerequisite_ids == {first.id}
        assert updated.description == "Intro"
        assert updated.title == "Week 2"

    @pytest.mark.asyncio
    async def test_update_normalizes_naive_unlock_at(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        module = Module(class_id=class_id, title="Week 3")
        catalog_service.get_module = AsyncMock(return_value=module)

        updated = await catalog_service.update_module(
            class_id, module.id, {"unlock_at": datetime(2025, 10, 1, 8, 0)}
        )

        assert updated.unlock_at == datetime(2025, 10, 1, 8, 0, tzinfo=UTC)

    @pytest.mark.asyncio
    async def test_update_missing_module(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        catalog_service.get_module = AsyncMock(return_value=None)
        with pytest.raises(NotFoundError):
            await catalog_service.update_module(class_id, uuid4(), {"title": "X"})


# ==============================================================================
# Reordering
# ==============================================================================


class TestReorder:
    """Tests for reorder payload parsing and module reordering."""

    @pytest.mark.parametrize("raw", [None, {"id": "x"}, "abc", 3])
    def test_payload_must_be_array(self, raw) -> None:
        with pytest.raises(ValidationError, match="items must be an array"):
            parse_reorder_entries(raw)

    @pytest.mark.parametrize(
        "raw",
        [
            ["not-an-object"],
            [{"id": "not-a-uuid", "order_index": 0}],
            [{"id": str(uuid4()), "order_index": -1}],
            [{"id": str(uuid4())}],
        ],
    )
    def test_invalid_entries(self, raw) -> None:
        with pytest.raises(ValidationError):
            parse_reorder_entries(raw)

    def test_valid_entries(self) -> None:
        module_id = uuid4()
        entries = parse_reorder_entries([{"id": str(module_id), "order_index": 2}])
        assert entries[0].id == module_id
        assert entries[0].order_index == 2

    @pytest.mark.asyncio
    async def test_unknown_module(
        self, catalog_service: CatalogService, mock_session: Mock, class_id: UUID
    ) -> None:
        catalog_service.list_modules = AsyncMock(
            return_value=[Module(class_id=class_id, title="Week 1")]
        )
        with pytest.raises(NotFoundError):
            await catalog_service.reorder_modules(
                class_id, [{"id": str(uuid4()), "order_index": 0}]
            )
        mock_session.aexecute.assert_not_called()

    @pytest.mark.asyncio
    async def test_reorders_known_modules(
        self, catalog_service: CatalogService, mock_session: Mock, class_id: UUID
    ) -> None:
        modules = [Module(class_id=class_id, title=t) for t in ("A", "B")]
        catalog_service.list_modules = AsyncMock(return_value=modules)

        updated = await catalog_service.reorder_modules(
            class_id,
            [
                {"id": str(modules[0].id), "order_index": 1},
                {"id": str(modules[1].id), "order_index": 0},
            ],
        )

        assert updated == 2
        assert mock_session.aexecute.call_count == 2

    def test_endpoint_rejects_non_array(
        self, client: TestClient, professor_token: str, professor_id: UUID
    ) -> None:
        service = Mock()
        service.require_managed_class = AsyncMock(
            return_value=CourseClass(
                title="Biology", class_code="X-BIO-FA25-01", professor_id=professor_id
            )
        )
        service.reorder_modules = AsyncMock(
            side_effect=ValidationError("items must be an array")
        )
        client.app.state.catalog_service = service

        response = client.post(
            f"/v1/professor/classes/{uuid4()}/modules/reorder",
            headers={"Authorization": f"Bearer {professor_token}"},
            json={"items": {"id": "x"}},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "items must be an array"


# ==============================================================================
# Items and assessments
# ==============================================================================


class TestCreateItem:
    """Tests for create_item validation."""

    @pytest.fixture
    def module(self, catalog_service: CatalogService, class_id: UUID) -> Module:
        module = Module(class_id=class_id, title="Week 1")
        catalog_service.get_module = AsyncMock(return_value=module)
        catalog_service.list_module_items = AsyncMock(return_value=[])
        return module

    @pytest.mark.asyncio
    async def test_assessment_id_required(
        self, catalog_service: CatalogService, module: Module
    ) -> None:
        with pytest.raises(ValidationError):
            await catalog_service.create_item(
                module.class_id, module.id, ItemType.ASSESSMENT, "Quiz"
            )

    @pytest.mark.asyncio
    async def test_assessment_must_be_in_class(
        self, catalog_service: CatalogService, module: Module
    ) -> None:
        catalog_service.get_assessment = AsyncMock(return_value=None)
        with pytest.raises(NotFoundError):
            await catalog_service.create_item(
                module.class_id,
                module.id,
                ItemType.ASSESSMENT,
                "Quiz",
                assessment_id=uuid4(),
            )

    @pytest.mark.asyncio
    async def test_external_link_requires_url(
        self, catalog_service: CatalogService, module: Module
    ) -> None:
        with pytest.raises(ValidationError):
            await catalog_service.create_item(
                module.class_id, module.id, ItemType.EXTERNAL_LINK, "Video"
            )

    @pytest.mark.asyncio
    async def test_page_writes_lookup(
        self, catalog_service: CatalogService, mock_session: Mock, module: Module
    ) -> None:
        item = await catalog_service.create_item(
            module.class_id,
            module.id,
            ItemType.PAGE,
            " Reading ",
            content="Chapter 1",
            url="ignored",
        )

        assert item.title == "Reading"
        assert item.order_index == 0
        assert item.url is None
        assert item.content == "Chapter 1"
        assert mock_session.aexecute.call_count == 2


class TestUpdateItem:
    """Tests for update_item."""

    @pytest.fixture
    def page(self, catalog_service: CatalogService, class_id: UUID) -> ModuleItem:
        item = ModuleItem(
            class_id=class_id,
            module_id=uuid4(),
            item_type=ItemType.PAGE.value,
            title="Reading",
            content="Chapter 1",
        )
        catalog_service.get_module_item = AsyncMock(return_value=item)
        return item

    @pytest.mark.asyncio
    async def test_publish_and_make_optional(
        self, catalog_service: CatalogService, mock_session: Mock, page: ModuleItem
    ) -> None:
        updated = await catalog_service.update_item(
            page.class_id,
            page.module_id,
            page.id,
            {"is_published": True, "is_required": False},
        )

        assert updated.is_published is True
        assert updated.is_required is False
        assert updated.title == "Reading"
        assert updated.content == "Chapter 1"
        assert mock_session.aexecute.call_count == 1

    @pytest.mark.asyncio
    async def test_field_of_other_type_rejected(
        self, catalog_service: CatalogService, mock_session: Mock, page: ModuleItem
    ) -> None:
        with pytest.raises(ValidationError, match="url does not apply"):
            await catalog_service.update_item(
                page.class_id, page.module_id, page.id, {"url": "https://x.test"}
            )
        mock_session.aexecute.assert_not_called()

    @pytest.mark.asyncio
    async def test_link_url_cannot_be_cleared(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        link = ModuleItem(
            class_id=class_id,
            module_id=uuid4(),
            item_type=ItemType.EXTERNAL_LINK.value,
            title="Video",
            url="https://video.test/1",
        )
        catalog_service.get_module_item = AsyncMock(return_value=link)

        with pytest.raises(ValidationError, match="url is required"):
            await catalog_service.update_item(
                class_id, link.module_id, link.id, {"url": None}
            )

    @pytest.mark.asyncio
    async def test_new_assessment_must_be_in_class(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        item = ModuleItem(
            class_id=class_id,
            module_id=uuid4(),
            item_type=ItemType.ASSESSMENT.value,
            title="Quiz",
            assessment_id=uuid4(),
        )
        catalog_service.get_module_item = AsyncMock(return_value=item)
        catalog_service.get_assessment = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError, match="Assessment not found"):
            await catalog_service.update_item(
                class_id, item.module_id, item.id, {"assessment_id": uuid4()}
            )

    @pytest.mark.asyncio
    async def test_missing_item(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        catalog_service.get_module_item = AsyncMock(return_value=None)
        with pytest.raises(NotFoundError):
            await catalog_service.update_item(
                class_id, uuid4(), uuid4(), {"is_published": True}
            )

    def test_endpoint_passes_only_sent_fields(
        self, client: TestClient, professor_token: str, professor_id: UUID
    ) -> None:
        class_id, module_id = uuid4(), uuid4()
        item = ModuleItem(
            class_id=class_id,
            module_id=module_id,
            item_type=ItemType.PAGE.value,
            title="Reading",
            is_published=True,
        )
        service = Mock()
        service.require_managed_class = AsyncMock(return_value=Mock())
        service.update_item = AsyncMock(return_value=item)
        client.app.state.catalog_service = service

        response = client.patch(
            f"/v1/professor/classes/{class_id}/modules/{module_id}/items/{item.id}",
            headers={"Authorization": f"Bearer {professor_token}"},
            json={"is_published": True},
        )

        assert response.status_code == 200
        assert response.json()["is_published"] is True
        service.update_item.assert_awaited_once_with(
            class_id, module_id, item.id, {"is_published": True}
        )


class TestUpdateAssessment:
    """Tests for update_assessment."""

    @pytest.fixture
    def quiz(self, catalog_service: CatalogService, class_id: UUID) -> Assessment:
        assessment = Assessment(
            class_id=class_id, title="Quiz 1", type="QUIZ", max_points=Decimal(10)
        )
        catalog_service.get_assessment = AsyncMock(return_value=assessment)
        return assessment

    @pytest.mark.asyncio
    async def test_publish_with_due_date(
        self, catalog_service: CatalogService, mock_session: Mock, quiz: Assessment
    ) -> None:
        updated = await catalog_service.update_assessment(
            quiz.class_id,
            quiz.id,
            {"is_published": True, "due_at": datetime(2025, 11, 1, 23, 59)},
        )

        assert updated.is_published is True
        assert updated.due_at == datetime(2025, 11, 1, 23, 59, tzinfo=UTC)
        assert updated.max_points == Decimal(10)
        assert mock_session.aexecute.call_count == 1

    @pytest.mark.asyncio
    async def test_auto_complete_requires_discussion(
        self, catalog_service: CatalogService, mock_session: Mock, quiz: Assessment
    ) -> None:
        with pytest.raises(ValidationError, match="DISCUSSION"):
            await catalog_service.update_assessment(
                quiz.class_id, quiz.id, {"auto_complete_enabled": True}
            )
        mock_session.aexecute.assert_not_called()

    @pytest.mark.asyncio
    async def test_discussion_settings(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        discussion = Assessment(
            class_id=class_id,
            title="Forum",
            type="DISCUSSION",
            max_points=Decimal(10),
        )
        catalog_service.get_assessment = AsyncMock(return_value=discussion)

        updated = await catalog_service.update_assessment(
            class_id,
            discussion.id,
            {
                "auto_complete_enabled": True,
                "minimum_reply_count": 3,
                "allow_peer_replies": False,
            },
        )

        assert updated.auto_complete_enabled is True
        assert updated.minimum_reply_count == 3
        assert updated.allow_peer_replies is False

    @pytest.mark.asyncio
    async def test_missing_assessment(
        self, catalog_service: CatalogService, class_id: UUID
    ) -> None:
        catalog_service.get_assessment = AsyncMock(return_value=None)
        with pytest.raises(NotFoundError):
            await catalog_service.update_assessment(
                class_id, uuid4(), {"is_published": True}
            )

    def test_endpoint_maps_validation_error(
        self, client: TestClient, professor_token: str
    ) -> None:
        service = Mock()
        service.require_managed_class = AsyncMock(return_value=Mock())
        service.update_assessment = AsyncMock(
            side_effect=ValidationError(
                "auto_complete_enabled requires a DISCUSSION assessment"
            )
        )
        client.app.state.catalog_service = service

        response = client.patch(
            f"/v1/professor/classes/{uuid4()}/assessments/{uuid4()}",
            headers={"Authorization": f"Bearer {professor_token}"},
            json={"auto_complete_enabled": True},
        )

        assert response.status_code == 400

    def test_endpoint_rejects_non_positive_points(
        self, client: TestClient, professor_token: str
    ) -> None:
        service = Mock()
        service.require_managed_class = AsyncMock(return_value=Mock())
        client.app.state.catalog_service = service

        response = client.patch(
            f"/v1/professor/classes/{uuid4()}/assessments/{uuid4()}",
            headers={"Authorization": f"Bearer {professor_token}"},
            json={"max_points": 0},
        )

        assert response.status_code == 422


class TestCreateAssessmentRequest:
    """Tests for assessment request validation."""

    def test_auto_complete_requires_discussion(self) -> None:
        with pytest.raises(PydanticValidationError):
            CreateAssessmentRequest(
                title="Quiz",
                type="QUIZ",
                max_points=Decimal(10),
                auto_complete_enabled=True,
            )

    def test_discussion_with_auto_complete(self) -> None:
        request = CreateAssessmentRequest(
            title="Discussion",
            type="DISCUSSION",
            max_points=Decimal(10),
            auto_complete_enabled=True,
            minimum_reply_count=2,
        )
        assert request.auto_complete_enabled is True
