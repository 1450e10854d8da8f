#!/usr/bin/env python

import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
src_path = project_root / "src"
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(src_path))


@pytest.fixture(autouse=True)
def ensure_no_auto_accept(monkeypatch):
    # Disable global auto-accept unless a test sets it explicitly
    monkeypatch.setenv("HITL_AUTO_ACCEPT", "0")
    # build_email_assistant pins these; restore them after each test
    for name in ("LANGSMITH_PROJECT", "LANGCHAIN_PROJECT", "GRPC_VERBOSITY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def email_input():
    return {
        "author": "Alice Smith <alice.smith@company.com>",
        "to": "Lance Martin <lance@company.com>",
        "subject": "Quick question about API documentation",
        "email_thread": "Hi Lance, are the /auth endpoints documented anywhere? Thanks, Alice",
    }


@pytest.fixture
def config():
    from hitl_email_assistant.configuration import AssistantConfig

    return AssistantConfig()


@pytest.fixture
def registry():
    from hitl_email_assistant.tools import default_registry

    return default_registry()
