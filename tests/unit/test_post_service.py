"""Unit tests for PostService."""

import pytest

from src.api.middleware.error_handler import AuthorizationError, BackendError, NotFoundError, ValidationError
from src.models.post import FeedFilter
from src.schemas.post import CommentCreate, PostCreate
from src.services.post_service import PostService
from tests.fakes import OTHER_USER_ID, UNIVERSITY_ID, USER_ID, FakeSupabase


@pytest.fixture
def feed_db(fake_supabase: FakeSupabase) -> FakeSupabase:
    fake_supabase.tables["posts"] = [
        {"id": "p1", "user_id": OTHER_USER_ID, "university_id": UNIVERSITY_ID, "content": "Exam tips",
         "is_anonymous": False, "image_url": None, "created_at": "2024-01-01T10:00:00+00:00"},
        {"id": "p2", "user_id": OTHER_USER_ID, "university_id": UNIVERSITY_ID, "content": "Confession",
         "is_anonymous": True, "image_url": None, "created_at": "2024-01-02T10:00:00+00:00"},
        {"id": "p3", "user_id": USER_ID, "university_id": UNIVERSITY_ID, "content": "Graduation!",
         "is_anonymous": False, "image_url": "https://img.example/grad.jpg", "created_at": "2024-01-03T10:00:00+00:00"},
        {"id": "p4", "user_id": USER_ID, "university_id": "elsewhere", "content": "Not ours",
         "is_anonymous": False, "image_url": None, "created_at": "2024-01-04T10:00:00+00:00"},
    ]
    fake_supabase.tables["post_likes"] = [{"id": "l1", "post_id": "p1", "user_id": USER_ID}]
    return fake_supabase


class TestGetFeed:
    """Tests for the university feed."""

    @pytest.mark.asyncio
    async def test_university_posts_newest_first(self, feed_db: FakeSupabase) -> None:
        posts = await PostService(client=feed_db).get_feed(USER_ID, UNIVERSITY_ID)

        assert [p["id"] for p in posts] == ["p3", "p2", "p1"]

    @pytest.mark.asyncio
    async def test_anonymous_posts_hide_author(self, feed_db: FakeSupabase) -> None:
        posts = {p["id"]: p for p in await PostService(client=feed_db).get_feed(USER_ID, UNIVERSITY_ID)}

        assert posts["p2"]["author"] is None
        assert posts["p1"]["author"]["full_name"] == "Ben Okafor"

    @pytest.mark.asyncio
    async def test_liked_flag(self, feed_db: FakeSupabase) -> None:
        posts = {p["id"]: p for p in await PostService(client=feed_db).get_feed(USER_ID, UNIVERSITY_ID)}

        assert posts["p1"]["liked_by_me"] is True
        assert posts["p3"]["liked_by_me"] is False

    @pytest.mark.asyncio
    async def test_offrecord_feed(self, feed_db: FakeSupabase) -> None:
        posts = await PostService(client=feed_db).get_feed(USER_ID, UNIVERSITY_ID, FeedFilter.OFFRECORD)

        assert [p["id"] for p in posts] == ["p2"]

    @pytest.mark.asyncio
    async def test_flexu_feed(self, feed_db: FakeSupabase) -> None:
        posts = await PostService(client=feed_db).get_feed(USER_ID, UNIVERSITY_ID, FeedFilter.FLEXU)

        assert [p["id"] for p in posts] == ["p3"]

    @pytest.mark.asyncio
    async def test_trending_ranks_named_photo_posts_by_likes(self, feed_db: FakeSupabase) -> None:
        feed_db.tables["posts"][2]["likes_count"] = 3
        feed_db.tables["posts"] += [
            {"id": "p5", "user_id": OTHER_USER_ID, "university_id": UNIVERSITY_ID, "content": "Fest night",
             "is_anonymous": False, "image_url": "https://img.example/fest.jpg", "likes_count": 12,
             "created_at": "2023-12-01T10:00:00+00:00"},
            {"id": "p6", "user_id": OTHER_USER_ID, "university_id": UNIVERSITY_ID, "content": "Who is this",
             "is_anonymous": True, "image_url": "https://img.example/anon.jpg", "likes_count": 99,
             "created_at": "2024-01-05T10:00:00+00:00"},
        ]
        feed_db.tables["post_likes"].append({"id": "l2", "post_id": "p5", "user_id": USER_ID})

        posts = await PostService(client=feed_db).get_feed(USER_ID, UNIVERSITY_ID, FeedFilter.TRENDING)

        assert [p["id"] for p in posts] == ["p5", "p3"]
        assert posts[0]["author"]["full_name"] == "Ben Okafor"
        assert posts[0]["liked_by_me"] is True
        assert feed_db.executed("posts", "select")[0]._limit == PostService.TRENDING_LIMIT

    @pytest.mark.asyncio
    async def test_no_university(self, feed_db: FakeSupabase) -> None:
        assert await PostService(client=feed_db).get_feed(USER_ID, None) == []
        assert feed_db.calls == []

    @pytest.mark.asyncio
    async def test_read_failure(self, feed_db: FakeSupabase) -> None:
        feed_db.fail("posts", "select")

        assert await PostService(client=feed_db).get_feed(USER_ID, UNIVERSITY_ID) == []


class TestCreatePost:
    @pytest.mark.asyncio
    async def test_creates_post_with_clean_tags(self, fake_supabase: FakeSupabase) -> None:
        data = PostCreate(content="  Library open late ", tags=["#exams", " ", "library"])

        row = await PostService(client=fake_supabase).create_post(USER_ID, UNIVERSITY_ID, data)

        assert row["content"] == "Library open late"
        assert row["tags"] == ["exams", "library"]
        assert row["university_id"] == UNIVERSITY_ID
        assert row["is_anonymous"] is False

    @pytest.mark.asyncio
    async def test_blank_content(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await PostService(client=fake_supabase).create_post(USER_ID, UNIVERSITY_ID, PostCreate(content="   "))

        assert fake_supabase.calls == []

    @pytest.mark.asyncio
    async def test_requires_university(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await PostService(client=fake_supabase).create_post(USER_ID, None, PostCreate(content="Hello"))

    @pytest.mark.asyncio
    async def test_backend_rejection(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.fail("posts", "insert", message="permission denied")

        with pytest.raises(BackendError, match="permission denied"):
            await PostService(client=fake_supabase).create_post(USER_ID, UNIVERSITY_ID, PostCreate(content="Hello"))


class TestDeletePost:
    @pytest.mark.asyncio
    async def test_author_deletes(self, feed_db: FakeSupabase) -> None:
        await PostService(client=feed_db).delete_post("p3", USER_ID)

        assert "p3" not in {p["id"] for p in feed_db.tables["posts"]}

    @pytest.mark.asyncio
    async def test_other_users_post(self, feed_db: FakeSupabase) -> None:
        with pytest.raises(AuthorizationError):
            await PostService(client=feed_db).delete_post("p1", USER_ID)

        assert feed_db.executed("posts", "delete") == []

    @pytest.mark.asyncio
    async def test_missing_post(self, feed_db: FakeSupabase) -> None:
        with pytest.raises(NotFoundError):
            await PostService(client=feed_db).delete_post("missing", USER_ID)


class TestLikes:
    @pytest.mark.asyncio
    async def test_toggle_adds_then_removes(self, feed_db: FakeSupabase) -> None:
        service = PostService(client=feed_db)

        assert await service.toggle_like("p2", USER_ID) is True
        assert len([l for l in feed_db.tables["post_likes"] if l["post_id"] == "p2"]) == 1

        assert await service.toggle_like("p2", USER_ID) is False
        assert [l for l in feed_db.tables["post_likes"] if l["post_id"] == "p2"] == []

    @pytest.mark.asyncio
    async def test_unlike_existing(self, feed_db: FakeSupabase) -> None:
        assert await PostService(client=feed_db).toggle_like("p1", USER_ID) is False
        assert feed_db.tables["post_likes"] == []


class TestComments:
    @pytest.mark.asyncio
    async def test_comments_oldest_first_with_hidden_anonymous_authors(self, feed_db: FakeSupabase) -> None:
        feed_db.tables["post_comments"] = [
            {"id": "c2", "post_id": "p1", "user_id": USER_ID, "content": "Agreed", "is_anonymous": True,
             "created_at": "2024-01-01T12:00:00+00:00"},
            {"id": "c1", "post_id": "p1", "user_id": OTHER_USER_ID, "content": "Thanks", "is_anonymous": False,
             "created_at": "2024-01-01T11:00:00+00:00"},
        ]

        comments = await PostService(client=feed_db).list_comments("p1")

        assert [c["id"] for c in comments] == ["c1", "c2"]
        assert comments[0]["author"]["full_name"] == "Ben Okafor"
        assert comments[1]["author"] is None

    @pytest.mark.asyncio
    async def test_add_comment(self, feed_db: FakeSupabase) -> None:
        row = await PostService(client=feed_db).add_comment("p1", USER_ID, CommentCreate(content=" Nice "))

        assert row["content"] == "Nice"
        assert row["post_id"] == "p1"

    @pytest.mark.asyncio
    async def test_blank_comment(self, feed_db: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await PostService(client=feed_db).add_comment("p1", USER_ID, CommentCreate(content=" "))
