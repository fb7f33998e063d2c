from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from collab_chat.domain.value_objects.enums import ConnectionStatus, MessageType
from collab_chat.services.formatting import (
    connection_status_color,
    connection_status_text,
    extract_mentions,
    format_chat_time,
    format_message_time,
    generate_conversation_key,
    generate_notification_text,
    group_messages,
    truncate_message,
)
from tests.conftest import T0, FixedClock, make_message


@pytest.mark.parametrize(
    ("ago", "expected"),
    [
        (timedelta(seconds=0), "Just now"),
        (timedelta(seconds=59), "Just now"),
        (timedelta(minutes=1), "1m ago"),
        (timedelta(minutes=59, seconds=59), "59m ago"),
        (timedelta(minutes=60), "1h ago"),
        (timedelta(hours=23, minutes=59), "23h ago"),
        (timedelta(hours=24), "Yesterday"),
        (timedelta(hours=47), "Yesterday"),
        (timedelta(hours=48), "2 days ago"),
        (timedelta(days=6, hours=23), "6 days ago"),
    ],
)
def test_chat_time_buckets(ago, expected):
    assert format_chat_time(T0 - ago, clock=FixedClock()) == expected


def test_chat_time_older_than_a_week_uses_the_date():
    then = T0 - timedelta(days=8)

    assert format_chat_time(then, clock=FixedClock()) == then.astimezone().strftime("%x")


def test_chat_time_accepts_iso_strings_and_epoch_millis():
    clock = FixedClock()
    five_minutes_ago = int((T0 - timedelta(minutes=5)).timestamp() * 1000)

    assert format_chat_time("2024-05-10T11:00:00Z", clock=clock) == "1h ago"
    assert format_chat_time(five_minutes_ago, clock=clock) == "5m ago"


def test_message_time_is_twelve_hour_clock():
    assert format_message_time(datetime(2024, 5, 10, 9, 5)) == "09:05 AM"
    assert format_message_time(datetime(2024, 5, 10, 21, 30)) == "09:30 PM"


def test_truncate_message():
    assert truncate_message("short") == "short"
    assert truncate_message("x" * 50) == "x" * 50
    assert truncate_message("x" * 51) == "x" * 50 + "..."
    assert truncate_message("hello world", 5) == "hello..."


def test_truncate_is_idempotent_below_the_limit():
    once = truncate_message("y" * 20, 30)

    assert truncate_message(once, 30) == once


def test_conversation_key_ignores_argument_order():
    assert generate_conversation_key("b-user", "a-user") == "a-user_b-user"
    assert generate_conversation_key("a-user", "b-user") == "a-user_b-user"


def test_extract_mentions():
    assert extract_mentions("hey @alice and @bob_2, see @") == ["alice", "bob_2"]
    assert extract_mentions("no mentions here") == []


@pytest.mark.parametrize(
    ("message_type", "expected"),
    [
        (MessageType.IMAGE, "Ana sent a photo"),
        (MessageType.FILE, "Ana sent a file"),
        (MessageType.AUDIO, "Ana sent an audio message"),
        (MessageType.VIDEO, "Ana sent a video"),
    ],
)
def test_notification_text_for_attachments(message_type, expected):
    assert generate_notification_text("Ana", "ignored", message_type) == expected


def test_notification_text_truncates_text_messages():
    text = generate_notification_text("Ana", "z" * 40)

    assert text == "Ana: " + "z" * 30 + "..."


def test_group_messages_by_sender_and_gap():
    a1 = make_message(sender_id="A", created_at=T0)
    a2 = make_message(sender_id="A", created_at=T0 + timedelta(minutes=2))
    b1 = make_message(sender_id="B", created_at=T0 + timedelta(minutes=3))
    b2 = make_message(sender_id="B", created_at=T0 + timedelta(minutes=9))

    assert group_messages([a1, a2, b1]) == [[a1, a2], [b1]]
    assert group_messages([a1, a2, b1, b2]) == [[a1, a2], [b1], [b2]]
    assert group_messages([]) == []


def test_group_messages_gap_exactly_at_limit_stays_grouped():
    a1 = make_message(sender_id="A", created_at=T0)
    a2 = make_message(sender_id="A", created_at=T0 + timedelta(minutes=5))

    assert group_messages([a1, a2]) == [[a1, a2]]


def test_connection_status_labels():
    assert connection_status_text(ConnectionStatus.CONNECTED) == "Connected"
    assert connection_status_text(ConnectionStatus.CONNECTING) == "Reconnecting..."
    assert connection_status_text(ConnectionStatus.DISCONNECTED) == "Offline"
    assert connection_status_text(ConnectionStatus.GAVE_UP) == "Connection lost"
    assert connection_status_color(ConnectionStatus.CONNECTED) == "green"
    assert connection_status_color(ConnectionStatus.CONNECTING) == "yellow"
    assert connection_status_color(ConnectionStatus.GAVE_UP) == "red"
