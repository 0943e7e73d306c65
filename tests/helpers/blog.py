from __future__ import annotations

from typing import Any, List, Optional, Sequence

from rowgraph.connection import DBAPIConnector, ExecResult
from rowgraph.orm import Entity
from rowgraph.schema import Column, DataType, DefaultValue


class User(Entity):
    pass


class Profile(Entity):
    pass


class Post(Entity):
    pass


class Comment(Entity):
    pass


class Tag(Entity):
    pass


class PostTag(Entity):
    pass


class Employee(Entity):
    pass


class Person(Entity):
    pass


class Friendship(Entity):
    pass


User.define_schema(
    "users",
    {
        "id": Column(DataType.INT, primary_key=True),
        "name": Column(DataType.VARCHAR, required=True, max_length=50),
        "email": Column(DataType.VARCHAR, unique=True),
        "active": Column(DataType.BOOLEAN, default=True),
        "created_at": Column(DataType.DATETIME, default=DefaultValue.NOW),
    },
)
Profile.define_schema(
    "profiles",
    {
        "id": Column(DataType.INT, primary_key=True),
        "user_id": Column(DataType.INT, required=True),
        "bio": Column(DataType.TEXT),
    },
)
Post.define_schema(
    "posts",
    {
        "id": Column(DataType.INT, primary_key=True),
        "user_id": Column(DataType.INT, required=True),
        "title": Column(DataType.VARCHAR, required=True),
        "published_on": Column(DataType.DATE),
    },
)
Comment.define_schema(
    "comments",
    {
        "id": Column(DataType.INT, primary_key=True),
        "post_id": Column(DataType.INT, required=True),
        "body": Column(DataType.TEXT),
    },
)
Tag.define_schema(
    "tags",
    {
        "id": Column(DataType.INT, primary_key=True),
        "label": Column(DataType.VARCHAR, column="tag_label", required=True),
    },
)
PostTag.define_schema(
    "post_tags",
    {
        "id": Column(DataType.INT, primary_key=True),
        "post_id": Column(DataType.INT, required=True),
        "tag_id": Column(DataType.INT, required=True),
    },
)
Employee.define_schema(
    "employees",
    {
        "id": Column(DataType.INT, primary_key=True),
        "name": Column(DataType.VARCHAR),
        "manager_id": Column(DataType.INT),
    },
)
Person.define_schema(
    "people",
    {
        "id": Column(DataType.INT, primary_key=True),
        "name": Column(DataType.VARCHAR, required=True),
    },
)
Friendship.define_schema(
    "friendships",
    {
        "id": Column(DataType.INT, primary_key=True),
        "person_id": Column(DataType.INT, required=True),
        "friend_id": Column(DataType.INT, required=True),
    },
)

User.has_one(Profile, "user_id")
User.has_many(Post, "user_id")
Post.belongs_to(User, "user_id")
Post.has_many(Comment, "post_id")
PostTag.belongs_to(Post, "post_id")
PostTag.belongs_to(Tag, "tag_id")
Post.belongs_to_many(Tag, PostTag)
Employee.belongs_to(Employee, "manager_id", name="manager")
Friendship.belongs_to(Person, "person_id", name="person")
Friendship.belongs_to(Person, "friend_id", name="friend")
Person.belongs_to_many(Person, Friendship, name="friends")


TABLES = [
    """CREATE TABLE `users` (
        `id` INTEGER PRIMARY KEY AUTOINCREMENT,
        `name` VARCHAR(50) NOT NULL,
        `email` VARCHAR(255),
        `active` BOOLEAN,
        `created_at` DATETIME
    )""",
    "CREATE TABLE `profiles` (`id` INTEGER PRIMARY KEY AUTOINCREMENT, `user_id` INTEGER, `bio` TEXT)",
    """CREATE TABLE `posts` (
        `id` INTEGER PRIMARY KEY AUTOINCREMENT,
        `user_id` INTEGER,
        `title` VARCHAR(255),
        `published_on` DATE
    )""",
    "CREATE TABLE `comments` (`id` INTEGER PRIMARY KEY AUTOINCREMENT, `post_id` INTEGER, `body` TEXT)",
    "CREATE TABLE `tags` (`id` INTEGER PRIMARY KEY AUTOINCREMENT, `tag_label` VARCHAR(255))",
    "CREATE TABLE `post_tags` (`id` INTEGER PRIMARY KEY AUTOINCREMENT, `post_id` INTEGER, `tag_id` INTEGER)",
    "CREATE TABLE `employees` (`id` INTEGER PRIMARY KEY AUTOINCREMENT, `name` VARCHAR(255), `manager_id` INTEGER)",
    "CREATE TABLE `people` (`id` INTEGER PRIMARY KEY AUTOINCREMENT, `name` VARCHAR(255))",
    "CREATE TABLE `friendships` (`id` INTEGER PRIMARY KEY AUTOINCREMENT, `person_id` INTEGER, `friend_id` INTEGER)",
]


class RecordingConnector(DBAPIConnector):
    """SQLite connector that remembers every statement it ran."""

    def __init__(self, connection: Any, name: str = "recording"):
        super().__init__(connection, name=name)
        self.statements: List[str] = []

    def execute(self, sql: str, params: Optional[Sequence[Any]] = None, nested: bool = False) -> ExecResult:
        self.statements.append(sql)
        return super().execute(sql, params, nested)


def make_db() -> RecordingConnector:
    base = DBAPIConnector.sqlite(":memory:")
    db = RecordingConnector(base.connection)
    for ddl in TABLES:
        db.execute(ddl)
    db.statements.clear()
    return db


def seed_blog(db: DBAPIConnector) -> None:
    """Two authors: Ann with 2 posts, Bob with 3; tags and comments on the first post."""
    ann = User(name="Ann", email="ann@example.com").insert(db)
    bob = User(name="Bob", email="bob@example.com").insert(db)
    Profile(user_id=ann.id, bio="writes about sql").insert(db)
    for title in ("a1", "a2"):
        Post(user_id=ann.id, title=title).insert(db)
    for title in ("b1", "b2", "b3"):
        Post(user_id=bob.id, title=title).insert(db)
    python = Tag(label="python").insert(db)
    sql = Tag(label="sql").insert(db)
    PostTag(post_id=1, tag_id=python.id).insert(db)
    PostTag(post_id=1, tag_id=sql.id).insert(db)
    PostTag(post_id=2, tag_id=sql.id).insert(db)
    for body in ("first", "second", "third"):
        Comment(post_id=1, body=body).insert(db)


__all__ = [
    "User",
    "Profile",
    "Post",
    "Comment",
    "Tag",
    "PostTag",
    "Employee",
    "Person",
    "Friendship",
    "TABLES",
    "RecordingConnector",
    "make_db",
    "seed_blog",
]
