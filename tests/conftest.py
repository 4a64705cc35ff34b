from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from peerpath import config
from peerpath.models import UserRole
from peerpath.store import ForumStore


class TickingClock:
    """Each call is one second after the previous one."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now = self.now + timedelta(seconds=1)
        return self.now


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store(clock: TickingClock) -> ForumStore:
    return ForumStore(clock=clock)


@pytest.fixture
def junior(store: ForumStore):
    return store.create_user(email="junior@aot.edu.in", role=UserRole.JUNIOR,
                             display_name="Arjun Mehra", branch="CSE", batch="2026")


@pytest.fixture
def senior(store: ForumStore):
    return store.create_user(email="senior@aot.edu.in", role=UserRole.SENIOR,
                             display_name="Rahul Sharma", branch="IT", batch="2024")


@pytest.fixture
def alumni(store: ForumStore):
    return store.create_user(email="alumni@aot.edu.in", role=UserRole.ALUMNI,
                             display_name="Priya Das", branch="CSE", batch="2022")


@pytest.fixture
def question(store: ForumStore, junior):
    return store.create_question(
        title="How to approach GSoC?",
        original_text="I know basic C++ and some web dev. Where do I start?",
        category="GSoC",
        anonymous_display_name="26'th Batch CSE Student",
        user_id=junior.id,
        tags=["gsoc"],
    )


@pytest.fixture
def answer(store: ForumStore, question, senior):
    return store.create_answer(
        question_id=question.id,
        user_id=senior.id,
        user_role=senior.role,
        user_branch=senior.branch,
        short_answer="Pick one mid-sized org and fix small issues now.",
        pros=["Early exposure"],
        cons=["Eats exam time"],
        action_plan=["Week 1: pick orgs", "Week 2: first PR"],
    )


@pytest.fixture
def no_api_key(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(config, "XAI_API_KEY", None)


@pytest.fixture
def fake_llm(monkeypatch: pytest.MonkeyPatch):
    """
    Replace the OpenAI client with a fake that returns queued message contents.
    Append strings (or exceptions to raise) to `fake_llm.replies`.
    """
    from peerpath import llm_client

    monkeypatch.setattr(config, "XAI_API_KEY", "test-key")
    calls = []
    replies = []

    def create(**kwargs):
        calls.append(kwargs)
        reply = replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    fake_client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
    monkeypatch.setattr(llm_client, "get_client", lambda: fake_client)
    return SimpleNamespace(calls=calls, replies=replies)
