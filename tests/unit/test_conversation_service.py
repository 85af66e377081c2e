"""Unit tests for ConversationService."""

from typing import Any

import pytest

from src.api.middleware.error_handler import BackendError, ValidationError
from src.core.config import get_settings
from src.models.conversation import direct_pair_key
from src.services.conversation_service import ConversationService, find_direct_conversation
from tests.fakes import OTHER_USER_ID, THIRD_USER_ID, UNIVERSITY_ID, USER_ID, FakeSupabase


def _service(db: FakeSupabase, **overrides: Any) -> ConversationService:
    settings = get_settings().model_copy(update=overrides) if overrides else get_settings()
    return ConversationService(client=db, settings=settings)


def _seed_direct(db: FakeSupabase, conversation_id: str, *users: str, updated_at: str = "2024-01-01T00:00:00+00:00") -> None:
    db.tables.setdefault("conversations", []).append(
        {
            "id": conversation_id,
            "is_group": False,
            "university_id": UNIVERSITY_ID,
            "created_by": users[0],
            "updated_at": updated_at,
        }
    )
    for user in users:
        db.tables.setdefault("conversation_participants", []).append(
            {"id": f"p-{conversation_id}-{user}", "conversation_id": conversation_id, "user_id": user}
        )


class TestListConversations:
    """Tests for list_conversations method."""

    @pytest.mark.asyncio
    async def test_no_participations_skips_conversation_fetch(self, fake_supabase: FakeSupabase) -> None:
        result = await _service(fake_supabase).list_conversations(USER_ID)

        assert result == []
        assert fake_supabase.executed("conversation_participants", "select")
        assert fake_supabase.executed("conversations") == []

    @pytest.mark.asyncio
    async def test_missing_user_issues_no_reads(self, fake_supabase: FakeSupabase) -> None:
        assert await _service(fake_supabase).list_conversations(None) == []
        assert fake_supabase.calls == []

    @pytest.mark.asyncio
    async def test_attaches_counterpart_not_self(self, fake_supabase: FakeSupabase) -> None:
        _seed_direct(fake_supabase, "c1", USER_ID, OTHER_USER_ID)

        result = await _service(fake_supabase).list_conversations(USER_ID)

        assert len(result) == 1
        assert result[0]["other_participant"]["id"] == OTHER_USER_ID
        assert result[0]["other_participant"]["full_name"] == "Ben Okafor"

    @pytest.mark.asyncio
    async def test_orders_by_last_activity(self, fake_supabase: FakeSupabase) -> None:
        _seed_direct(fake_supabase, "old", USER_ID, OTHER_USER_ID, updated_at="2024-01-01T00:00:00+00:00")
        _seed_direct(fake_supabase, "new", USER_ID, THIRD_USER_ID, updated_at="2024-03-01T00:00:00+00:00")

        result = await _service(fake_supabase).list_conversations(USER_ID)

        assert [c["id"] for c in result] == ["new", "old"]

    @pytest.mark.asyncio
    async def test_group_conversations_have_no_counterpart(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["conversations"] = [{"id": "g1", "is_group": True, "name": "Study group"}]
        fake_supabase.tables["conversation_participants"] = [
            {"id": "p1", "conversation_id": "g1", "user_id": USER_ID},
            {"id": "p2", "conversation_id": "g1", "user_id": OTHER_USER_ID},
        ]

        result = await _service(fake_supabase).list_conversations(USER_ID)

        assert "other_participant" not in result[0]

    @pytest.mark.asyncio
    async def test_read_failure_degrades_to_empty(self, fake_supabase: FakeSupabase) -> None:
        _seed_direct(fake_supabase, "c1", USER_ID, OTHER_USER_ID)
        fake_supabase.fail("conversations", "select")

        assert await _service(fake_supabase).list_conversations(USER_ID) == []


class TestStartDirectConversation:
    """Tests for find-or-create of one-to-one conversations."""

    @pytest.mark.asyncio
    async def test_existing_conversation_performs_no_writes(self, fake_supabase: FakeSupabase) -> None:
        _seed_direct(fake_supabase, "c1", USER_ID, OTHER_USER_ID)
        service = _service(fake_supabase)
        loaded = await service.list_conversations(USER_ID)
        fake_supabase.calls.clear()

        result = await service.start_direct_conversation(USER_ID, OTHER_USER_ID, UNIVERSITY_ID, loaded)

        assert result is not None
        conversation, created = result
        assert conversation["id"] == "c1"
        assert created is False
        assert [q for q in fake_supabase.calls if q.operation != "select"] == []

    @pytest.mark.asyncio
    async def test_new_target_inserts_conversation_then_two_participants(self, fake_supabase: FakeSupabase) -> None:
        result = await _service(fake_supabase).start_direct_conversation(USER_ID, OTHER_USER_ID, UNIVERSITY_ID, [])

        assert result is not None
        conversation, created = result
        assert created is True
        assert conversation["is_group"] is False
        assert conversation["university_id"] == UNIVERSITY_ID
        assert conversation["other_participant"]["id"] == OTHER_USER_ID

        writes = [(q.table_name, q.operation) for q in fake_supabase.calls if q.operation != "select"]
        assert writes == [
            ("conversations", "insert"),
            ("conversation_participants", "insert"),
            ("conversation_participants", "insert"),
        ]
        participants = fake_supabase.executed("conversation_participants", "insert")
        assert [q.payload["user_id"] for q in participants] == [USER_ID, OTHER_USER_ID]

    @pytest.mark.asyncio
    async def test_conversation_insert_failure_aborts(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.fail("conversations", "insert", message="permission denied")

        result = await _service(fake_supabase).start_direct_conversation(USER_ID, OTHER_USER_ID, UNIVERSITY_ID, [])

        assert result is None
        assert fake_supabase.executed("conversation_participants", "insert") == []

    @pytest.mark.asyncio
    async def test_participant_insert_failure_aborts(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.fail("conversation_participants", "insert")

        result = await _service(fake_supabase).start_direct_conversation(USER_ID, OTHER_USER_ID, UNIVERSITY_ID, [])

        assert result is None
        assert len(fake_supabase.executed("conversation_participants", "insert")) == 1

    @pytest.mark.asyncio
    async def test_rejects_self(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await _service(fake_supabase).start_direct_conversation(USER_ID, USER_ID, UNIVERSITY_ID, [])

    @pytest.mark.asyncio
    async def test_requires_university(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await _service(fake_supabase).start_direct_conversation(USER_ID, OTHER_USER_ID, None, [])

    @pytest.mark.asyncio
    async def test_pair_key_violation_returns_existing(self, fake_supabase: FakeSupabase) -> None:
        key = direct_pair_key(USER_ID, OTHER_USER_ID)
        fake_supabase.unique["conversations"] = ("direct_key",)
        fake_supabase.tables["conversations"] = [{"id": "c-existing", "is_group": False, "direct_key": key}]

        result = await _service(fake_supabase, direct_conversation_key_enabled=True).start_direct_conversation(
            OTHER_USER_ID, USER_ID, UNIVERSITY_ID, []
        )

        assert result is not None
        conversation, created = result
        assert conversation["id"] == "c-existing"
        assert created is False
        assert conversation["other_participant"]["id"] == USER_ID
        assert fake_supabase.executed("conversation_participants", "insert") == []


class TestFindDirectConversation:
    def test_skips_groups(self) -> None:
        conversations = [
            {"id": "g1", "is_group": True, "other_participant": {"id": OTHER_USER_ID}},
            {"id": "c1", "is_group": False, "other_participant": {"id": OTHER_USER_ID}},
        ]

        assert find_direct_conversation(conversations, OTHER_USER_ID)["id"] == "c1"  # type: ignore[index]
        assert find_direct_conversation(conversations, THIRD_USER_ID) is None  # type: ignore[arg-type]


class TestGetMessages:
    @pytest.mark.asyncio
    async def test_history_in_creation_order_with_batched_senders(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.tables["messages"] = [
            {"id": "m2", "conversation_id": "c1", "sender_id": OTHER_USER_ID, "content": "hey", "created_at": "2024-01-01T00:02:00+00:00"},
            {"id": "m1", "conversation_id": "c1", "sender_id": USER_ID, "content": "hi", "created_at": "2024-01-01T00:01:00+00:00"},
            {"id": "m3", "conversation_id": "c1", "sender_id": USER_ID, "content": "ok", "created_at": "2024-01-01T00:03:00+00:00"},
            {"id": "x1", "conversation_id": "c2", "sender_id": USER_ID, "content": "other", "created_at": "2024-01-01T00:00:00+00:00"},
        ]

        messages, profiles = await _service(fake_supabase).get_messages("c1")

        assert [m["id"] for m in messages] == ["m1", "m2", "m3"]
        assert messages[1]["sender"]["full_name"] == "Ben Okafor"
        assert set(profiles) == {USER_ID, OTHER_USER_ID}
        assert len(fake_supabase.executed("profiles")) == 1


class TestSendMessage:
    """Tests for send_message method."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", ["", "   ", "\n\t"])
    async def test_blank_content_performs_no_writes(self, fake_supabase: FakeSupabase, content: str) -> None:
        result = await _service(fake_supabase).send_message("c1", USER_ID, content)

        assert result is None
        assert fake_supabase.calls == []

    @pytest.mark.asyncio
    async def test_insert_then_single_update(self, fake_supabase: FakeSupabase) -> None:
        _seed_direct(fake_supabase, "c1", USER_ID, OTHER_USER_ID)

        stored = await _service(fake_supabase).send_message("c1", USER_ID, "  hello  ")

        assert stored is not None
        assert stored["content"] == "hello"
        writes = [(q.table_name, q.operation) for q in fake_supabase.calls]
        assert writes == [("messages", "insert"), ("conversations", "update")]
        assert fake_supabase.tables["conversations"][0]["updated_at"] != "2024-01-01T00:00:00+00:00"

    @pytest.mark.asyncio
    async def test_insert_failure_skips_update(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.fail("messages", "insert", message="new row violates row-level security policy")

        with pytest.raises(BackendError) as exc_info:
            await _service(fake_supabase).send_message("c1", USER_ID, "hello")

        assert exc_info.value.message == "new row violates row-level security policy"
        assert fake_supabase.executed("conversations") == []

    @pytest.mark.asyncio
    async def test_update_failure_keeps_message(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.fail("conversations", "update")

        stored = await _service(fake_supabase).send_message("c1", USER_ID, "hello")

        assert stored is not None
        assert len(fake_supabase.tables["messages"]) == 1

    @pytest.mark.asyncio
    async def test_too_long_is_rejected(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await _service(fake_supabase, max_message_length=5).send_message("c1", USER_ID, "too long")

        assert fake_supabase.calls == []

    @pytest.mark.asyncio
    async def test_atomic_send_uses_database_function(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.rpc_handlers["send_message"] = lambda params: [{"id": "m1", **params}]

        stored = await _service(fake_supabase, atomic_message_send=True).send_message("c1", USER_ID, "hi")

        assert stored is not None and stored["id"] == "m1"
        assert fake_supabase.rpc_calls == [
            ("send_message", {"_conversation_id": "c1", "_sender_id": USER_ID, "_content": "hi"})
        ]
        assert fake_supabase.executed("messages") == []


class TestIsParticipant:
    @pytest.mark.asyncio
    async def test_uses_participant_function(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.rpc_handlers["is_conversation_participant"] = lambda params: params["_user_id"] == USER_ID
        service = _service(fake_supabase)

        assert await service.is_participant("c1", USER_ID) is True
        assert await service.is_participant("c1", THIRD_USER_ID) is False
