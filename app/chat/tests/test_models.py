"""
Tests for chat models.

This module tests the chat models:
- Chat: Membership helpers, ordering, defaults
- Message: Defaults, ordering, string representation, cascade delete

Test Organization:
    - Each model has its own test class
    - Each test validates ONE specific behavior
"""

from authentication.tests.factories import UserFactory
from chat.models import Chat, Message
from chat.tests.factories import ChatFactory, MessageFactory


# =============================================================================
# TestChat
# =============================================================================


class TestChat:
    """
    Tests for Chat model.

    Verifies:
    - Membership helpers
    - Counter defaults
    """

    def test_new_chat_has_no_unread_messages(self, db):
        """A fresh chat starts with a zero unread counter and no last message."""
        chat = ChatFactory()

        assert chat.unread_messages == 0
        assert chat.last_message is None

    def test_factory_creates_two_members(self, db):
        chat = ChatFactory()

        assert chat.members.count() == 2

    def test_has_member_true_for_member(self, db, chat, alice):
        assert chat.has_member(alice)

    def test_has_member_false_for_outsider(self, db, chat, outsider):
        assert not chat.has_member(outsider)

    def test_member_ids_sorted(self, db, alice, bob):
        chat = ChatFactory(members=[bob, alice])

        assert chat.member_ids() == sorted([alice.pk, bob.pk])

    def test_str_contains_pk(self, db, chat):
        assert str(chat) == f"Chat({chat.pk})"


# =============================================================================
# TestMessage
# =============================================================================


class TestMessage:
    """
    Tests for Message model.

    Verifies:
    - Defaults (unread, empty image)
    - Ordering (oldest first)
    - Cascade deletion with the chat
    """

    def test_new_message_is_unread(self, db, chat, alice):
        message = MessageFactory(chat=chat, sender=alice)

        assert message.read is False
        assert message.image == ""

    def test_default_ordering_is_oldest_first(self, db, chat, alice, bob):
        first = MessageFactory(chat=chat, sender=alice, text="first")
        second = MessageFactory(chat=chat, sender=bob, text="second")

        assert list(Message.objects.filter(chat=chat)) == [first, second]

    def test_factory_sender_defaults_to_chat_member(self, db, chat):
        message = MessageFactory(chat=chat)

        assert chat.has_member(message.sender)

    def test_str_truncates_long_text(self, db, chat, alice):
        message = MessageFactory(chat=chat, sender=alice, text="x" * 80)

        assert str(message) == f"User {alice.pk}: {'x' * 50}..."

    def test_str_for_image_only_message(self, db, chat, alice):
        message = MessageFactory(
            chat=chat, sender=alice, text="", image="https://cdn.example.com/cat.png"
        )

        assert str(message) == f"User {alice.pk}: [image]"

    def test_deleting_chat_deletes_messages(self, db, chat, alice):
        MessageFactory(chat=chat, sender=alice)

        chat.delete()

        assert Message.objects.count() == 0

    def test_deleting_last_message_clears_pointer(self, db, chat, alice):
        message = MessageFactory(chat=chat, sender=alice)
        chat.last_message = message
        chat.save()

        message.delete()
        chat.refresh_from_db()

        assert chat.last_message is None
        assert Chat.objects.filter(pk=chat.pk).exists()

    def test_user_can_be_in_several_chats(self, db, alice):
        ChatFactory(members=[alice, UserFactory()])
        ChatFactory(members=[alice, UserFactory()])

        assert alice.chats.count() == 2
