import json

import pytest

from peerpath import assist, forum
from peerpath.forum import ForumValidationError
from peerpath.models import BaselineAnswer, Clarification, UserRole, UserStats
from peerpath.seed import seed_demo
from peerpath.store import ForumStore


# ---- reputation ----

def test_reputation_score_formula():
    stats = UserStats(questions_asked=9, answers_given=3, helped_count=2, total_upvotes=4)
    assert forum.reputation_score(stats) == 3 * 10 + 2 * 20 + 4 * 5


@pytest.mark.parametrize("stats, expected", [
    (UserStats(), 0.0),
    (UserStats(answers_given=5, helped_count=5), 30.0),
    (UserStats(answers_given=12, helped_count=42, total_upvotes=120), 100.0),
])
def test_reputation_progress_is_clamped(stats, expected):
    assert forum.reputation_progress(stats) == expected


def test_reputation_follows_live_stats(store, question, answer, senior, junior):
    store.toggle_helped(answer.id, junior.id)
    assert forum.reputation_score(store.get_user(senior.id).stats) == 10 + 20

    store.toggle_helped(answer.id, junior.id)
    assert forum.reputation_score(store.get_user(senior.id).stats) == 10


# ---- accounts ----

def test_sign_up_requires_college_email(store):
    with pytest.raises(ForumValidationError):
        forum.sign_up(store, "someone@gmail.com")
    assert store.list_users() == []

    user = forum.sign_up(store, "someone@mit.edu", display_name="Sam", role="senior")
    assert user.role == UserRole.SENIOR


def test_sign_up_rejects_unknown_role(store):
    with pytest.raises(ForumValidationError):
        forum.sign_up(store, "someone@aot.edu.in", role="admin")
    assert store.list_users() == []


def test_log_in_finds_existing_user(store, junior):
    assert forum.log_in(store, "junior@aot.edu.in").id == junior.id
    assert forum.log_in(store, "nobody@aot.edu.in") is None


def test_update_profile_requires_fields(store, junior):
    with pytest.raises(ForumValidationError):
        forum.update_profile(store, junior.id, "  ", "CSE", "2026")

    updated = forum.update_profile(store, junior.id, "Arjun M", "ECE", "2027", ["ML"])
    assert (updated.display_name, updated.branch, updated.batch, updated.interests) == \
        ("Arjun M", "ECE", "2027", ["ML"])
    assert forum.update_profile(store, "ghost", "a", "b", "c") is None


def test_leaderboard_ranks_mentors_only(store, question, answer, senior, alumni, junior):
    store.toggle_upvote(answer.id, junior.id)

    rows = forum.leaderboard(store)

    assert [r["user_id"] for r in rows] == [senior.id, alumni.id]
    assert rows[0]["score"] == 15


def test_profile_view_shows_other_users_read_only(store, question, answer, senior, junior):
    store.toggle_helped(answer.id, junior.id)

    view = forum.profile_view(store, junior, senior.id)

    assert view.user.id == senior.id
    assert view.score == 30
    assert view.progress == pytest.approx(6.0)
    assert view.can_edit is False

    own = forum.profile_view(store, junior, junior.id)
    assert own.can_edit is True
    assert own.user.stats.questions_asked == 1

    assert forum.profile_view(store, junior, "missing") is None


# ---- asking ----

def test_anonymous_label(junior):
    assert forum.anonymous_label(junior) == "26'th Batch CSE Student"


def test_others_category_needs_custom_topic(store, junior):
    with pytest.raises(ForumValidationError):
        forum.post_question(store, junior, "Any advice?", "Others", custom_category="  ")
    assert store.list_questions() == []

    q = forum.post_question(store, junior, "Any advice?", "Others", custom_category="Hackathons")
    assert q.category == "Hackathons"


def test_post_question_directly(store, junior):
    text = "I am torn between preparing for placements and doing a research internship this summer."

    q = forum.post_question(store, junior, text, "Internships", tags=["Product"])

    assert q.title == text[:50] + "..."
    assert q.original_text == text
    assert q.tags == ["Product"]
    assert q.suggested_tags == []
    assert q.neutral_text is None
    assert q.anonymous_display_name == "26'th Batch CSE Student"
    assert store.get_user(junior.id).stats.questions_asked == 1


def test_post_question_with_clarification_merges_tags(store, junior):
    clarification = Clarification(
        neutral_question="Should I prioritise placements or research?",
        baseline_answer=BaselineAnswer(summary="Both work.", paths=["Placements", "Research"]),
        suggested_tags=["research", "Product"],
    )

    q = forum.post_question(store, junior, "placements or research??", "Internships",
                            title="Placements vs research", tags=["Product"],
                            clarification=clarification)

    assert q.title == "Placements vs research"
    assert q.neutral_text == "Should I prioritise placements or research?"
    assert q.baseline_answer.paths == ["Placements", "Research"]
    assert q.suggested_tags == ["research", "Product"]
    assert q.tags == ["Product", "research"]


def test_prepare_question_bounds_checks_similar_indices(store, question, monkeypatch):
    monkeypatch.setattr(assist, "clarify", lambda text: None)
    monkeypatch.setattr(assist, "find_similar", lambda text, titles: [0, 0, 5, -1])

    draft = forum.prepare_question(store, "GSoC tips?")

    assert draft.clarification is None
    assert [q.id for q in draft.similar_questions] == [question.id]


def test_prepare_question_without_ai_still_works(store, question, no_api_key):
    draft = forum.prepare_question(store, "GSoC tips?")
    assert draft.clarification is None
    assert draft.similar_questions == []


def test_prepare_question_rejects_blank_text(store):
    with pytest.raises(ForumValidationError):
        forum.prepare_question(store, "   ")


def test_filter_by_category(store, junior):
    gsoc = forum.post_question(store, junior, "a", "GSoC")
    custom = forum.post_question(store, junior, "b", "Others", custom_category="Hackathons")
    forum.post_question(store, junior, "c", "Internships")
    questions = store.list_questions()

    assert len(forum.filter_by_category(questions, "All")) == 3
    assert [q.id for q in forum.filter_by_category(questions, "GSoC")] == [gsoc.id]
    assert [q.id for q in forum.filter_by_category(questions, "Others")] == [custom.id]


# ---- answering & commenting ----

def test_juniors_cannot_answer(store, question, junior):
    with pytest.raises(ForumValidationError):
        forum.post_answer(store, junior, question.id, "My take")
    assert store.list_answers(question.id) == []


def test_post_answer_cleans_rows(store, question, alumni):
    a = forum.post_answer(
        store, alumni, question.id, "  Start with docs.  ",
        pros=["Low barrier", " "], cons=["", "Slow"],
        action_plan=["Days 1-10: Read the docs", "Days 11-20: ", "Days 21-30: "],
    )

    assert a.short_answer == "Start with docs."
    assert a.pros == ["Low barrier"]
    assert a.cons == ["Slow"]
    assert a.action_plan == ["Days 1-10: Read the docs"]
    assert a.user_role == UserRole.ALUMNI
    assert a.user_branch == "CSE"


def test_post_answer_rejects_blank_insight_and_unknown_question(store, question, senior):
    with pytest.raises(ForumValidationError):
        forum.post_answer(store, senior, question.id, "   ")
    with pytest.raises(ForumValidationError):
        forum.post_answer(store, senior, "missing", "Insight")


def test_post_comment(store, question, answer, junior, senior):
    with pytest.raises(ForumValidationError):
        forum.post_comment(store, junior, answer.id, question.id, "  ")

    comment = forum.post_comment(store, junior, answer.id, question.id,
                                 forum.reply_prefix("Rahul Sharma") + "thanks!")
    assert comment.text == "@Rahul Sharma thanks!"
    assert len(store.list_mentions(senior.id)) == 1


# ---- summaries ----

def test_summarize_needs_two_answers(store, question, answer, monkeypatch):
    def fail(*args):
        raise AssertionError("gateway should not be called")

    monkeypatch.setattr(assist, "summarize_thread", fail)
    assert forum.summarize(store, question.id) is None
    assert forum.summarize(store, "missing") is None


def test_summarize_calls_gateway(store, question, answer, alumni, fake_llm):
    forum.post_answer(store, alumni, question.id, "Apply to LFX first.")
    fake_llm.replies.append(json.dumps({"tldr": "t", "consensus": "c", "differences": "d"}))

    summary = forum.summarize(store, question.id)

    assert summary.tldr == "t"
    prompt = fake_llm.calls[0]["messages"][1]["content"]
    assert question.original_text in prompt


def test_summarize_gateway_failure_returns_none(store, question, answer, alumni, fake_llm):
    forum.post_answer(store, alumni, question.id, "Apply to LFX first.")
    fake_llm.replies.append("oops")
    assert forum.summarize(store, question.id) is None


# ---- seed ----

def test_seed_demo_populates_once():
    store = ForumStore()

    assert seed_demo(store) is True
    assert seed_demo(store) is False

    assert len(store.list_users()) == 3
    assert len(store.list_questions()) == 2
    alumni = store.find_user_by_email("alumni@aot.edu.in")
    senior = store.find_user_by_email("senior@aot.edu.in")
    junior = store.find_user_by_email("junior@aot.edu.in")
    assert alumni.stats.answers_given == 1
    assert junior.stats.questions_asked == 2
    # senior commented on alumni's answer, junior on senior's
    assert len(store.list_mentions(alumni.id)) == 1
    assert len(store.list_mentions(senior.id)) == 1
