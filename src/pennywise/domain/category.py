"""Category domain service."""

from typing import Optional

from pennywise.database.base import Database
from pennywise.domain.entities import Category as CategoryEntity, CategoryType
from pennywise.domain.errors import ConflictError, NotFoundError, ValidationError, category_not_found

# (name, type, parent name)
DEFAULT_CATEGORIES = [
    ("Income", CategoryType.INCOME, None),
    ("Salary", CategoryType.INCOME, "Income"),
    ("Investment Income", CategoryType.INCOME, "Income"),
    ("Other Income", CategoryType.INCOME, "Income"),
    ("Housing", CategoryType.EXPENSE, None),
    ("Rent", CategoryType.EXPENSE, "Housing"),
    ("Bills & Utilities", CategoryType.EXPENSE, None),
    ("Electricity", CategoryType.EXPENSE, "Bills & Utilities"),
    ("Internet", CategoryType.EXPENSE, "Bills & Utilities"),
    ("Phone", CategoryType.EXPENSE, "Bills & Utilities"),
    ("Food & Dining", CategoryType.EXPENSE, None),
    ("Groceries", CategoryType.EXPENSE, "Food & Dining"),
    ("Restaurants", CategoryType.EXPENSE, "Food & Dining"),
    ("Transportation", CategoryType.EXPENSE, None),
    ("Entertainment", CategoryType.EXPENSE, None),
    ("Subscriptions", CategoryType.EXPENSE, "Entertainment"),
    ("Health & Fitness", CategoryType.EXPENSE, None),
    ("Insurance", CategoryType.EXPENSE, None),
    ("Shopping", CategoryType.EXPENSE, None),
    ("Other", CategoryType.EXPENSE, None),
]


class CategoryService:
    """Service for managing a user's categories."""

    def __init__(self, db: Database):
        """Initialize category service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_category(
        self,
        user_id: str,
        name: str,
        category_type: str | CategoryType = CategoryType.EXPENSE,
        parent_id: Optional[int] = None,
    ) -> CategoryEntity:
        """Create a category.

        Args:
            user_id: Owner of the category
            name: Category name, unique among its siblings
            category_type: income or expense
            parent_id: Optional parent category (must be the user's)

        Returns:
            The created category

        Raises:
            ValidationError: If the name is blank or the type unknown
            NotFoundError: If the parent does not exist
            ConflictError: If a sibling with the same name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required")
        try:
            category_type = CategoryType(category_type)
        except ValueError:
            raise ValidationError(f"Invalid category type '{category_type}'")

        if parent_id is not None:
            self.get_category(parent_id, user_id)

        for existing in self.db.list_categories(user_id):
            if existing.name == name and existing.parent_id == parent_id:
                raise ConflictError(f"Category '{name}' already exists")

        category_id = self.db.create_category(
            user_id=user_id, name=name, category_type=category_type, parent_id=parent_id
        )
        return self.db.get_category(category_id)

    def get_category(self, category_id: int, user_id: str) -> CategoryEntity:
        """Get one of the user's categories.

        Raises:
            NotFoundError: If the category is missing or foreign
        """
        category = self.db.get_category(category_id, user_id)
        if category is None:
            raise NotFoundError(category_not_found(category_id))
        return category

    def list_categories(
        self, user_id: str, category_type: Optional[str | CategoryType] = None
    ) -> list[CategoryEntity]:
        return self.db.list_categories(user_id, category_type=category_type)

    def init_default_categories(self, user_id: str) -> int:
        """Seed the default category tree, skipping names that exist.

        Returns:
            Number of categories created
        """
        existing = {(c.name, c.parent_id): c.id for c in self.db.list_categories(user_id)}
        ids_by_name: dict[str, int] = {}
        created = 0

        with self.db.atomic():
            for name, category_type, parent_name in DEFAULT_CATEGORIES:
                parent_id = ids_by_name.get(parent_name) if parent_name else None
                key = (name, parent_id)
                if key in existing:
                    ids_by_name[name] = existing[key]
                    continue
                ids_by_name[name] = self.db.create_category(
                    user_id=user_id, name=name, category_type=category_type, parent_id=parent_id
                )
                created += 1
        return created
