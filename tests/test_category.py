"""Tests for CategoryService."""

import pytest

from pennywise.domain.category import DEFAULT_CATEGORIES
from pennywise.domain.entities import CategoryType
from pennywise.domain.errors import ConflictError, NotFoundError, ValidationError


def test_create_category(category_service, user_id):
    category = category_service.create_category(user_id, "  Hobbies ")

    assert category.name == "Hobbies"
    assert category.category_type == CategoryType.EXPENSE
    assert category.parent_id is None


def test_create_child_category(category_service, user_id):
    parent = category_service.create_category(user_id, "Travel")
    child = category_service.create_category(user_id, "Flights", parent_id=parent.id)

    assert child.parent_id == parent.id


def test_sibling_names_are_unique(category_service, user_id):
    parent = category_service.create_category(user_id, "Travel")
    category_service.create_category(user_id, "Other", parent_id=parent.id)

    with pytest.raises(ConflictError):
        category_service.create_category(user_id, "Other", parent_id=parent.id)
    # The same name under a different parent is allowed.
    category_service.create_category(user_id, "Other")


def test_create_category_validation(category_service, user_id):
    with pytest.raises(ValidationError):
        category_service.create_category(user_id, "   ")
    with pytest.raises(ValidationError):
        category_service.create_category(user_id, "Gifts", category_type="transfer")


def test_foreign_parent_is_not_found(category_service, user_id, other_user_id):
    parent = category_service.create_category(other_user_id, "Theirs")

    with pytest.raises(NotFoundError):
        category_service.create_category(user_id, "Mine", parent_id=parent.id)


def test_init_default_categories(category_service, user_id, other_user_id):
    created = category_service.init_default_categories(user_id)

    assert created == len(DEFAULT_CATEGORIES)
    by_name = {c.name: c for c in category_service.list_categories(user_id)}
    assert by_name["Rent"].parent_id == by_name["Housing"].id
    assert by_name["Salary"].category_type == CategoryType.INCOME
    assert category_service.list_categories(other_user_id) == []


def test_init_default_categories_adds_only_missing(category_service, user_id):
    category_service.create_category(user_id, "Housing")

    created = category_service.init_default_categories(user_id)

    assert created == len(DEFAULT_CATEGORIES) - 1
    assert category_service.init_default_categories(user_id) == 0


def test_list_by_type(category_service, user_id):
    category_service.init_default_categories(user_id)

    income = category_service.list_categories(user_id, category_type="income")

    assert {c.name for c in income} == {"Income", "Salary", "Investment Income", "Other Income"}
