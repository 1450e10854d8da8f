from langchain_core.tools import tool


@tool
def write_email(to: str, subject: str, content: str) -> str:
    """Write and send an email."""
    # Placeholder response - in real app would send email
    return f"Email sent to {to} with subject '{subject}' and content: {content}"


@tool
def question(content: str) -> str:
    """Question to ask user."""
    return content


@tool
def done(done: bool = True) -> str:
    """E-mail has been sent."""
    return "Done"
