import pytest

from import_engine.errors import ImportFileError
from import_engine.plan import DuplicatePolicy
from import_engine.resolvers import (
    NEW, SKIP, UPDATE, CategoryResolver, DuplicateResolver, normalize_unit,
)
from factories import CategoryFactory, ProductFactory


# ── Categories ─────────────────────────────────────────────────────────

def test_category_match_is_case_insensitive(db_session):
    cat = CategoryFactory(name="Peripherals")
    resolver = CategoryResolver(db_session)
    assert resolver.resolve("peripherals") == cat.id
    assert resolver.resolve("  PERIPHERALS ") == cat.id


def test_unknown_category_uses_default(db_session):
    CategoryFactory(name="Peripherals")
    fallback = CategoryFactory(name="General")
    resolver = CategoryResolver(db_session, default_category_id=fallback.id)
    assert resolver.resolve("Furniture") == fallback.id
    assert resolver.resolve("") == fallback.id


def test_unknown_category_without_default_is_none(db_session):
    CategoryFactory(name="Peripherals")
    assert CategoryResolver(db_session).resolve("Furniture") is None


def test_inactive_categories_are_not_matched(db_session):
    CategoryFactory(name="Archived", active=False)
    assert CategoryResolver(db_session).resolve("Archived") is None


def test_missing_default_category_is_fatal(db_session):
    with pytest.raises(ImportFileError):
        CategoryResolver(db_session, default_category_id=999)


# ── Duplicates ─────────────────────────────────────────────────────────

def test_unknown_name_is_new_under_every_policy(db_session):
    for policy in DuplicatePolicy:
        res = DuplicateResolver(db_session, policy).resolve("Widget", 1)
        assert (res.action, res.name) == (NEW, "Widget")


def test_skip_policy(db_session):
    ProductFactory(name="Widget")
    res = DuplicateResolver(db_session, DuplicatePolicy.SKIP).resolve("Widget", 1)
    assert res.action == SKIP
    assert res.warning is None


def test_match_is_case_sensitive(db_session):
    ProductFactory(name="Widget")
    res = DuplicateResolver(db_session, DuplicatePolicy.SKIP).resolve("widget", 1)
    assert res.action == NEW


def test_deleted_products_do_not_count(db_session):
    from datetime import datetime, timezone
    ProductFactory(name="Widget", deleted_at=datetime.now(timezone.utc))
    res = DuplicateResolver(db_session, DuplicatePolicy.SKIP).resolve("Widget", 1)
    assert res.action == NEW


def test_update_policy_targets_existing_product(db_session):
    product = ProductFactory(name="Widget")
    res = DuplicateResolver(db_session, DuplicatePolicy.UPDATE).resolve("Widget", 1)
    assert (res.action, res.product_id) == (UPDATE, product.id)


def test_create_policy_numbers_names_within_a_batch(db_session):
    ProductFactory(name="Widget")
    resolver = DuplicateResolver(db_session, DuplicatePolicy.CREATE)
    assert resolver.resolve("Widget", 1).name == "Widget (1)"
    assert resolver.resolve("Widget", 2).name == "Widget (2)"


def test_create_policy_skips_taken_suffixes(db_session):
    ProductFactory(name="Widget")
    ProductFactory(name="Widget (1)")
    res = DuplicateResolver(db_session, DuplicatePolicy.CREATE).resolve("Widget", 1)
    assert (res.action, res.name) == (NEW, "Widget (2)")


def test_repeat_within_batch_is_detected(db_session):
    resolver = DuplicateResolver(db_session, DuplicatePolicy.SKIP)
    assert resolver.resolve("Mouse", 1).action == NEW
    res = resolver.resolve("Mouse", 2)
    assert res.action == SKIP
    assert "repeats line 1" in res.warning


def test_repeat_within_batch_under_update_is_skipped(db_session):
    resolver = DuplicateResolver(db_session, DuplicatePolicy.UPDATE)
    assert resolver.resolve("Mouse", 1).action == NEW
    res = resolver.resolve("Mouse", 2)
    assert res.action == SKIP
    assert res.warning


# ── Units ──────────────────────────────────────────────────────────────

@pytest.mark.parametrize("value,expected", [
    ("kg", "kg"), ("KG", "kg"), (" box ", "box"), ("package", "package"),
])
def test_valid_units(value, expected):
    assert normalize_unit(value, 1) == (expected, None)


@pytest.mark.parametrize("value", ["", "   ", "pounds", "dozen"])
def test_invalid_units_fall_back_with_warning(value):
    unit, warning = normalize_unit(value, 7)
    assert unit == "unit"
    assert warning.startswith("Line 7:")


def test_inactive_default_category_is_fatal(db_session):
    archived = CategoryFactory(name="Archived", active=False)
    with pytest.raises(ImportFileError):
        CategoryResolver(db_session, default_category_id=archived.id)
