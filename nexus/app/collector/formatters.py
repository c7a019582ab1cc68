"""
Message formatting for slot notifications.

MarkdownV2 parse_mode for Telegram: every piece of center or slot text is
quoted, only the link markup is left raw.
"""

from datetime import datetime

from aiogram.utils.text_decorations import markdown_decoration

from nexus.app.centers import Center


def format_slot_time(dt: datetime) -> str:
    """'8:30 AM on Thursday January 12'"""
    hour = dt.hour % 12 or 12
    return f"{hour}:{dt:%M %p} on {dt:%A %B} {dt.day}"


def format_link(text: str, url: str) -> str:
    url = url.replace("\\", "\\\\").replace(")", "\\)")
    return f"[{markdown_decoration.quote(text)}]({url})"


def format_slot_available(center: Center, starts_at: datetime, schedule_url: str) -> str:
    lines = [
        markdown_decoration.quote(f"Appointment Available for {center.full_name}"),
        markdown_decoration.quote(format_slot_time(starts_at)),
        format_link("Schedule Appointment", schedule_url),
    ]
    return "\n".join(lines)
