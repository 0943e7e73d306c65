from __future__ import annotations

import datetime as dt

import pytest

from rowgraph.errors import CoreError, NotFoundError, ValidationError
from rowgraph.orm import EntityState
from rowgraph.schema import ValidationReason
from rowgraph.utils import entities_match
from tests.helpers.blog import Post, Tag, User


def test_insert_writes_back_generated_key(db):
    user = User(name="Ann", email="ann@example.com")
    assert user.state == EntityState.UNSAVED
    user.insert(db)
    assert user.id == 1
    assert user.state == EntityState.PERSISTED
    assert db.statements[-1] == (
        "INSERT INTO `users` (`name`, `email`, `active`, `created_at`) VALUES (?, ?, ?, ?);"
    )


def test_insert_keeps_explicit_primary_key(db):
    Tag(id=40, label="go").insert(db)
    assert Tag.find_one_or_fail(db, {"id": 40}).label == "go"


def test_missing_required_field_raises_before_any_write(db):
    user = User(email="nobody@example.com")
    with pytest.raises(ValidationError) as excinfo:
        user.insert(db)
    assert excinfo.value.errors == {"name": ValidationReason.REQUIRED}
    assert all(sql.startswith("SELECT") for sql in db.statements)
    assert user.state == EntityState.UNSAVED


def test_unique_columns_are_checked(db):
    User(name="Ann", email="ann@example.com").insert(db)
    with pytest.raises(ValidationError) as excinfo:
        User(name="Other", email="ann@example.com").insert(db)
    assert excinfo.value.errors == {"email": ValidationReason.UNIQUE}
    assert User.count(db) == 1


def test_column_and_unique_failures_are_reported_together(db):
    User(name="Ann", email="ann@example.com").insert(db)
    with pytest.raises(ValidationError) as excinfo:
        User(email="ann@example.com").insert(db)
    assert excinfo.value.errors == {"name": ValidationReason.REQUIRED, "email": ValidationReason.UNIQUE}
    assert User.count(db) == 1


def test_compile_only_insert_checks_column_rules_without_a_connection():
    with pytest.raises(ValidationError) as excinfo:
        User(email="ann@example.com").insert_query()
    assert excinfo.value.errors == {"name": ValidationReason.REQUIRED}


def test_update_excludes_own_row_from_unique_check(db):
    user = User(name="Ann", email="ann@example.com").insert(db)
    user.name = "Anna"
    user.update(db)
    assert db.statements[-1] == (
        "UPDATE `users` SET `name` = ?, `email` = ?, `active` = ?, `created_at` = ? WHERE `id` = ?;"
    )
    reloaded = User.find_one(db, {"id": user.id})
    assert reloaded.name == "Anna"
    assert reloaded.active is True
    assert isinstance(reloaded.created_at, dt.datetime)


def test_update_requires_primary_key():
    with pytest.raises(ValidationError) as excinfo:
        User(name="Ann").update_query()
    assert excinfo.value.errors == {"id": ValidationReason.REQUIRED}


def test_remove_makes_instance_inert(db):
    user = User(name="Ann").insert(db)
    user.remove(db)
    assert db.statements[-1] == "DELETE FROM `users` WHERE `id` = ?;"
    assert user.state == EntityState.DELETED
    assert User.count(db) == 0
    with pytest.raises(CoreError):
        user.name = "ghost"
    with pytest.raises(CoreError):
        user.update(db)
    with pytest.raises(CoreError):
        user.remove(db)


def test_remove_without_primary_key():
    with pytest.raises(ValidationError) as excinfo:
        User(name="Ann").remove_query()
    assert excinfo.value.errors == {"id": ValidationReason.REQUIRED}


def test_compile_only_mutations():
    user = User(id=3, name="Ann", active=False, created_at=dt.datetime(2024, 1, 1))
    insert = user.insert_query()
    assert insert.sql == "INSERT INTO `users` (`id`, `name`, `email`, `active`, `created_at`) VALUES (?, ?, ?, ?, ?);"
    assert insert.params == [3, "Ann", None, False, dt.datetime(2024, 1, 1)]
    assert user.remove_query().params == [3]
    assert user.update_query().params[-1] == 3


def test_validation_failure_reports_every_field():
    user = User(name="x" * 51, active="yes")
    with pytest.raises(ValidationError) as excinfo:
        user.insert_query()
    assert excinfo.value.errors == {
        "name": ValidationReason.MAX_LENGTH,
        "active": ValidationReason.INVALID_TYPE,
    }


def test_find_filters_order_and_pages(blog_db):
    titles = [post.title for post in Post.find(blog_db, {"user_id": 2}, {"order_by": [{"column": "title", "order": "DESC"}]})]
    assert titles == ["b3", "b2", "b1"]

    page = Post.find(blog_db, None, {"order_by": [{"column": "id"}], "limit": {"page": 2, "per": 2}})
    assert [post.title for post in page] == ["b1", "b2"]


def test_field_names_map_to_storage_columns(blog_db):
    tags = Tag.find(blog_db, {"label": {"$in": ["sql", "rust"]}})
    assert [tag.label for tag in tags] == ["sql"]
    assert "`tags`.`tag_label` IN (?, ?)" in blog_db.statements[-1]


def test_find_one_and_or_fail(blog_db):
    assert User.find_one(blog_db, {"name": "Bob"}).email == "bob@example.com"
    assert User.find_one(blog_db, {"name": "Zed"}) is None
    with pytest.raises(NotFoundError) as excinfo:
        User.find_one_or_fail(blog_db, {"name": "Zed"})
    assert excinfo.value.entity == "User"
    assert excinfo.value.primary_key == "id"
    assert excinfo.value.where == {"name": "Zed"}


def test_count_update_all_remove_all(blog_db):
    assert Post.count(blog_db) == 5
    assert Post.count(blog_db, {"user_id": 1}) == 2
    assert User.update_all(blog_db, {"active": False}, {"name": "Ann"}) == 1
    assert User.count(blog_db, {"active": False}) == 1
    assert Tag.update_all(blog_db, {"label": "postgres"}, {"label": "sql"}) == 1
    assert Tag.find_one(blog_db, {"id": 2}).label == "postgres"
    assert Post.remove_all(blog_db, {"user_id": 2}) == 3
    assert Post.count(blog_db) == 2


def test_entities_match(blog_db):
    first = User.find_one(blog_db, {"id": 1})
    again = User.find_one(blog_db, {"id": 1})
    other = User.find_one(blog_db, {"id": 2})
    assert first is not again
    assert entities_match(first, again)
    assert not entities_match(first, other)
    assert not entities_match(first, Tag(id=1))
    assert entities_match(None, None)
