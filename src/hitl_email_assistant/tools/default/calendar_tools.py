from datetime import date

from langchain_core.tools import tool


@tool
def schedule_meeting(
    attendees: list[str], subject: str, duration_minutes: int, preferred_day: date, start_time: int
) -> str:
    """Schedule a calendar meeting.

    preferred_day is an ISO date (YYYY-MM-DD); start_time is 24h HHMM (e.g. 1400).
    """
    # Placeholder response - in real app would check calendar and schedule
    date_str = preferred_day.strftime("%A, %B %d, %Y")
    return (
        f"Meeting '{subject}' scheduled on {date_str} at {start_time}"
        f" for {duration_minutes} minutes with {len(attendees)} attendees"
    )


@tool
def check_calendar_availability(day: str) -> str:
    """Check calendar availability for a given day."""
    # Placeholder response - in real app would check actual calendar
    return f"Available times on {day}: 9:00 AM, 2:00 PM, 4:00 PM"
