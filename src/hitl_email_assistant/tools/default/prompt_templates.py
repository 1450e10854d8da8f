"""Tool prompt templates for the default (stub) tools."""

# Default tools prompt for insertion into the HITL agent system prompt
HITL_TOOLS_PROMPT = """
1. write_email(to, subject, content) - Send emails to specified recipients
2. schedule_meeting(attendees, subject, duration_minutes, preferred_day, start_time) - Schedule calendar meetings where preferred_day is an ISO date (YYYY-MM-DD) and start_time is 24h HHMM
3. check_calendar_availability(day) - Check available time slots for a given day
4. question(content) - Ask the user any follow up questions
5. done - E-mail has been sent
"""
