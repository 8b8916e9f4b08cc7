"""Interaction statistics over a persona's AI chat messages."""

from datetime import datetime


def _parse_ts(value) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


def compute_interaction_stats(messages: list[dict]) -> dict | None:
    """Summarize message volume by sender and per active day.

    Args:
        messages: Dicts with at least ``sender`` ("user" | "ai") and ``timestamp``.

    Returns:
        None when there are no messages, else {total_messages, user_messages_count,
        ai_messages_count, average_messages_per_day, first_message_date, last_message_date}.
    """
    if not messages:
        return None

    user_count = sum(1 for m in messages if m.get("sender") == "user")
    ai_count = sum(1 for m in messages if m.get("sender") == "ai")
    stamps = sorted(ts for ts in (_parse_ts(m.get("timestamp")) for m in messages) if ts)

    first = stamps[0] if stamps else None
    last = stamps[-1] if stamps else None
    # Inclusive day span; a single-day conversation counts as one day
    days = (last.date() - first.date()).days + 1 if first and last else 1

    return {
        "total_messages": len(messages),
        "user_messages_count": user_count,
        "ai_messages_count": ai_count,
        "average_messages_per_day": round(len(messages) / days, 2),
        "first_message_date": first.isoformat() if first else None,
        "last_message_date": last.isoformat() if last else None,
    }
