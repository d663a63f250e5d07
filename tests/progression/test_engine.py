"""Tests for lock state, visibility and progress rules."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from lms.catalog.models import Assessment, AssessmentType, ItemType, Module, ModuleItem
from lms.progression.engine import (
    build_module_views,
    compute_lock_state,
    is_item_visible,
    required_items_complete,
)


NOW = datetime(2025, 9, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def class_id() -> UUID:
    return uuid4()


def make_module(class_id: UUID, order_index: int = 0, **kwargs) -> Module:
    kwargs.setdefault("is_published", True)
    return Module(
        class_id=class_id,
        title=f"Module {order_index}",
        order_index=order_index,
        **kwargs,
    )


def make_page(module: Module, order_index: int = 0, **kwargs) -> ModuleItem:
    kwargs.setdefault("is_published", True)
    return ModuleItem(
        class_id=module.class_id,
        module_id=module.id,
        item_type=ItemType.PAGE.value,
        title=f"Page {order_index}",
        order_index=order_index,
        **kwargs,
    )


def make_assessment(class_id: UUID, **kwargs) -> Assessment:
    kwargs.setdefault("is_published", True)
    return Assessment(
        class_id=class_id,
        title="Quiz",
        type=AssessmentType.QUIZ.value,
        max_points=Decimal(10),
        **kwargs,
    )


def make_assessment_item(module: Module, assessment_id: UUID) -> ModuleItem:
    return ModuleItem(
        class_id=module.class_id,
        module_id=module.id,
        item_type=ItemType.ASSESSMENT.value,
        title="Quiz item",
        is_published=True,
        assessment_id=assessment_id,
    )


class TestIsItemVisible:
    """Tests for item visibility."""

    def test_unpublished_item_hidden(self, class_id: UUID) -> None:
        item = make_page(make_module(class_id), is_published=False)
        assert is_item_visible(item, {}) is False

    def test_published_page_visible(self, class_id: UUID) -> None:
        assert is_item_visible(make_page(make_module(class_id)), {}) is True

    def test_dangling_assessment_hidden(self, class_id: UUID) -> None:
        item = make_assessment_item(make_module(class_id), uuid4())
        assert is_item_visible(item, {}) is False

    def test_unpublished_assessment_hidden(self, class_id: UUID) -> None:
        assessment = make_assessment(class_id, is_published=False)
        item = make_assessment_item(make_module(class_id), assessment.id)
        assert is_item_visible(item, {assessment.id: assessment}) is False

    def test_published_assessment_visible(self, class_id: UUID) -> None:
        assessment = make_assessment(class_id)
        item = make_assessment_item(make_module(class_id), assessment.id)
        assert is_item_visible(item, {assessment.id: assessment}) is True


class TestComputeLockState:
    """Tests for time and prerequisite locks."""

    def test_unlocked_by_default(self, class_id: UUID) -> None:
        module = make_module(class_id)
        lock = compute_lock_state(module, {module.id}, set(), NOW)
        assert lock.is_locked is False

    def test_future_unlock_at_locks(self, class_id: UUID) -> None:
        module = make_module(class_id, unlock_at=NOW + timedelta(days=1))
        lock = compute_lock_state(module, {module.id}, set(), NOW)
        assert lock.is_time_locked is True
        assert lock.is_locked is True

    def test_past_unlock_at_unlocks(self, class_id: UUID) -> None:
        module = make_module(class_id, unlock_at=NOW - timedelta(minutes=1))
        lock = compute_lock_state(module, {module.id}, set(), NOW)
        assert lock.is_locked is False

    def test_all_prerequisites_required(self, class_id: UUID) -> None:
        first = make_module(class_id, 0)
        second = make_module(class_id, 1)
        third = make_module(class_id, 2, prerequisite_ids={first.id, second.id})
        ids = {first.id, second.id, third.id}

        assert compute_lock_state(third, ids, {first.id}, NOW).is_prerequisite_locked
        assert not compute_lock_state(
            third, ids, {first.id, second.id}, NOW
        ).is_prerequisite_locked

    def test_unknown_prerequisite_ignored(self, class_id: UUID) -> None:
        module = make_module(class_id, prerequisite_ids={uuid4()})
        lock = compute_lock_state(module, {module.id}, set(), NOW)
        assert lock.is_locked is False

    def test_cycle_locks_both_modules(self, class_id: UUID) -> None:
        first = make_module(class_id, 0)
        second = make_module(class_id, 1, prerequisite_ids={first.id})
        first.prerequisite_ids = {second.id}
        ids = {first.id, second.id}

        assert compute_lock_state(first, ids, set(), NOW).is_locked
        assert compute_lock_state(second, ids, set(), NOW).is_locked


class TestBuildModuleViews:
    """Tests for the student module view."""

    def test_module_without_items_has_zero_progress(self, class_id: UUID) -> None:
        module = make_module(class_id)
        views = build_module_views([module], [], {}, set(), set(), NOW)

        assert len(views) == 1
        assert views[0].progress == 0
        assert views[0].total_items == 0

    def test_unpublished_modules_excluded_and_sorted(self, class_id: UUID) -> None:
        later = make_module(class_id, 2)
        earlier = make_module(class_id, 1)
        hidden = make_module(class_id, 0, is_published=False)

        views = build_module_views([later, hidden, earlier], [], {}, set(), set(), NOW)
        assert [v.module.id for v in views] == [earlier.id, later.id]

    def test_dangling_item_excluded_from_progress(self, class_id: UUID) -> None:
        module = make_module(class_id)
        page = make_page(module)
        dangling = make_assessment_item(module, uuid4())

        views = build_module_views(
            [module], [page, dangling], {}, {page.id}, set(), NOW
        )
        assert views[0].total_items == 1
        assert views[0].progress == 100

    def test_partial_progress(self, class_id: UUID) -> None:
        module = make_module(class_id)
        pages = [make_page(module, i) for i in range(4)]

        views = build_module_views(
            [module], pages, {}, {pages[0].id}, set(), NOW
        )
        assert views[0].completed_items == 1
        assert views[0].progress == 25
        assert [i.item.id for i in views[0].items] == [p.id for p in pages]

    def test_unpublished_prerequisite_ignored(self, class_id: UUID) -> None:
        draft = make_module(class_id, 0, is_published=False)
        module = make_module(class_id, 1, prerequisite_ids={draft.id})

        views = build_module_views([draft, module], [], {}, set(), set(), NOW)
        assert views[0].lock.is_locked is False

    def test_is_completed_reflects_stored_completion(self, class_id: UUID) -> None:
        module = make_module(class_id)
        page = make_page(module)

        views = build_module_views([module], [page], {}, {page.id}, set(), NOW)
        assert views[0].progress == 100
        assert views[0].is_completed is False

        views = build_module_views([module], [page], {}, {page.id}, {module.id}, NOW)
        assert views[0].is_completed is True


class TestRequiredItemsComplete:
    """Tests for the module completion check."""

    def test_empty_module_is_complete(self) -> None:
        assert required_items_complete([], set()) is True

    def test_optional_items_ignored(self, class_id: UUID) -> None:
        module = make_module(class_id)
        required = make_page(module, 0)
        optional = make_page(module, 1, is_required=False)
        assert required_items_complete([required, optional], {required.id}) is True

    def test_missing_required_item(self, class_id: UUID) -> None:
        module = make_module(class_id)
        first, second = make_page(module, 0), make_page(module, 1)
        assert required_items_complete([first, second], {first.id}) is False

    def test_dangling_item_blocks_without_filter(self, class_id: UUID) -> None:
        module = make_module(class_id)
        page = make_page(module)
        dangling = make_assessment_item(module, uuid4())
        assert required_items_complete([page, dangling], {page.id}) is False

    def test_dangling_item_ignored_with_filter(self, class_id: UUID) -> None:
        module = make_module(class_id)
        page = make_page(module)
        dangling = make_assessment_item(module, uuid4())
        assert required_items_complete([page, dangling], {page.id}, {}) is True
