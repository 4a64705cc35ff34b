"""
Forum flows — what happens when a student or mentor clicks a button.

The store only knows how to keep its records consistent. Everything a user
action needs on top of that lives here: input checks, anonymous labels,
who may answer, reputation, and wiring the AI assistant into posting.

Key design decisions:
    1. Bad input is rejected here with ForumValidationError, before the store
       is touched. The store itself never raises.
    2. Reputation is computed from stats on every call, never stored.
    3. AI output is optional. A None from the assistant means "post without it".
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from peerpath import assist
from peerpath.models import (
    CATEGORIES,
    OTHERS_CATEGORY,
    Clarification,
    Comment,
    Question,
    StructuredAnswer,
    ThreadSummary,
    User,
    UserRole,
    UserStats,
    can_answer,
    is_mentor,
)
from peerpath.store import ForumStore


class ForumValidationError(ValueError):
    """A user action was rejected before reaching the store."""


# ============================================================
# PART 1: Pure computations (no store, no LLM)
# ============================================================

NEXT_LEVEL_POINTS = 500
POINTS_PER_ANSWER = 10
POINTS_PER_HELPED = 20
POINTS_PER_UPVOTE = 5

COLLEGE_EMAIL_SUFFIXES = (".edu.in", ".edu")
TITLE_FALLBACK_LENGTH = 50
MIN_ANSWERS_FOR_SUMMARY = 2

# Pre-filled rows of the 30-day plan form; left untouched they mean "no step"
PLAN_PLACEHOLDERS = ("Days 1-10: ", "Days 11-20: ", "Days 21-30: ")


def reputation_score(stats: UserStats) -> int:
    """
    Campus reputation points.
    An answer is worth 10, each "helped" mark 20, each upvote 5.
    """
    return (
        stats.answers_given * POINTS_PER_ANSWER
        + stats.helped_count * POINTS_PER_HELPED
        + stats.total_upvotes * POINTS_PER_UPVOTE
    )


def reputation_progress(stats: UserStats) -> float:
    """Progress toward the next level, as a percentage clamped to [0, 100]."""
    percent = reputation_score(stats) / NEXT_LEVEL_POINTS * 100
    return max(0.0, min(100.0, percent))


def is_college_email(email: str) -> bool:
    return (email or "").strip().lower().endswith(COLLEGE_EMAIL_SUFFIXES)


def anonymous_label(user: User) -> str:
    """
    How a question's author is shown instead of their name.
    e.g., batch "2026", branch "CSE" -> "26'th Batch CSE Student"
    """
    return f"{user.batch[-2:]}'th Batch {user.branch} Student"


def resolve_category(category: str, custom_category: str = "") -> str:
    """Picking "Others" means the student must type their own topic."""
    if category == OTHERS_CATEGORY:
        topic = (custom_category or "").strip()
        if not topic:
            raise ForumValidationError("Please specify the topic for your question.")
        return topic
    return category


def fallback_title(text: str) -> str:
    """Headline for a question posted without one."""
    if len(text) > TITLE_FALLBACK_LENGTH:
        return text[:TITLE_FALLBACK_LENGTH] + "..."
    return text


def reply_prefix(user_name: str) -> str:
    return f"@{user_name} "


def filter_by_category(questions: Sequence[Question], category: str) -> list[Question]:
    """
    Feed filter. "All" keeps everything; "Others" keeps every question
    whose category isn't one of the standard ones (custom topics included).
    """
    if category == "All":
        return list(questions)
    if category == OTHERS_CATEGORY:
        standard = set(CATEGORIES) - {OTHERS_CATEGORY}
        return [q for q in questions if q.category not in standard]
    return [q for q in questions if q.category == category]


def _clean_lines(items: Iterable[str], skip: Iterable[str] = ()) -> list[str]:
    skip = set(skip)
    return [item for item in items if item.strip() and item not in skip]


# ============================================================
# PART 2: Accounts and profiles
# ============================================================

def sign_up(store: ForumStore, email: str, display_name: str = "", role=UserRole.JUNIOR,
            branch: str = "", batch: str = "", interests: Iterable[str] = ()) -> User:
    """Create an account. Only college addresses are accepted."""
    if not is_college_email(email):
        raise ForumValidationError("College email required (.edu.in)")
    if role not in [r.value for r in UserRole]:
        raise ForumValidationError("Role must be junior, senior or alumni.")
    return store.create_user(
        email=email.strip(),
        role=role,
        display_name=display_name.strip(),
        branch=branch.strip(),
        batch=batch.strip(),
        interests=interests,
    )


def log_in(store: ForumStore, email: str) -> Optional[User]:
    """Look up an existing account. None means "sign up first"."""
    if not is_college_email(email):
        raise ForumValidationError("College email required (.edu.in)")
    return store.find_user_by_email(email.strip())


def update_profile(store: ForumStore, user_id: str, display_name: str, branch: str,
                   batch: str, interests: Iterable[str] = ()) -> Optional[User]:
    if not display_name.strip() or not branch.strip() or not batch.strip():
        raise ForumValidationError("All fields are required.")
    return store.update_user(
        user_id,
        display_name=display_name.strip(),
        branch=branch.strip(),
        batch=batch.strip(),
        interests=list(interests),
    )


def leaderboard(store: ForumStore, limit: int = 10) -> list[dict]:
    """Mentors ranked by reputation score, highest first."""
    rows = []
    for user in store.list_users():
        if not is_mentor(user.role):
            continue
        rows.append({
            "user_id": user.id,
            "display_name": user.display_name,
            "role": user.role.value,
            "branch": user.branch,
            "answers_given": user.stats.answers_given,
            "helped_count": user.stats.helped_count,
            "total_upvotes": user.stats.total_upvotes,
            "score": reputation_score(user.stats),
        })
    rows.sort(key=lambda r: r["score"], reverse=True)
    return rows[:limit]


@dataclass
class ProfileView:
    """A user's profile as someone else (or they themselves) sees it."""
    user: User
    score: int
    progress: float
    can_edit: bool


def profile_view(store: ForumStore, viewer: User, user_id: str) -> Optional[ProfileView]:
    """
    Stats and reputation for any user. Only the owner gets to edit.
    None if the user doesn't exist.
    """
    user = store.get_user(user_id)
    if user is None:
        return None
    return ProfileView(
        user=user,
        score=reputation_score(user.stats),
        progress=reputation_progress(user.stats),
        can_edit=user.id == viewer.id,
    )


# ============================================================
# PART 3: Asking — the two-step flow with AI help
# ============================================================

@dataclass
class QuestionDraft:
    """What the assistant found before the student hits "post"."""
    clarification: Optional[Clarification] = None
    similar_questions: list[Question] = field(default_factory=list)


def prepare_question(store: ForumStore, text: str) -> QuestionDraft:
    """
    Step 1 of asking: get a clarification and look for duplicates.
    Either part may come back empty; the student can still post.
    """
    if not text.strip():
        raise ForumValidationError("Please describe your question.")

    existing = store.list_questions()
    clarification = assist.clarify(text)
    indices = assist.find_similar(text, [q.title for q in existing])

    # Model output: drop out-of-range and repeated indices
    similar = []
    seen = set()
    for i in indices:
        if 0 <= i < len(existing) and i not in seen:
            seen.add(i)
            similar.append(existing[i])

    print(f"Draft checked: clarification={'yes' if clarification else 'no'}, "
          f"{len(similar)} similar question(s)")
    return QuestionDraft(clarification=clarification, similar_questions=similar)


def post_question(store: ForumStore, user: User, text: str, category: str,
                  title: str = "", tags: Iterable[str] = (), custom_category: str = "",
                  clarification: Optional[Clarification] = None) -> Question:
    """
    Step 2 of asking: post the question anonymously.
    With a clarification, its neutral wording, baseline answer and tags are kept
    and the suggested tags are added after the student's own.
    """
    if not text.strip():
        raise ForumValidationError("Please describe your question.")
    final_category = resolve_category(category, custom_category)
    tags = list(tags)

    if clarification is None:
        return store.create_question(
            title=title.strip() or fallback_title(text),
            original_text=text,
            category=final_category,
            anonymous_display_name=anonymous_label(user),
            user_id=user.id,
            tags=tags,
            suggested_tags=[],
        )

    return store.create_question(
        title=title.strip() or fallback_title(clarification.neutral_question),
        original_text=text,
        category=final_category,
        anonymous_display_name=anonymous_label(user),
        user_id=user.id,
        tags=list(dict.fromkeys(tags + clarification.suggested_tags)),
        suggested_tags=clarification.suggested_tags,
        neutral_text=clarification.neutral_question,
        baseline_answer=clarification.baseline_answer,
    )


# ============================================================
# PART 4: Answering, commenting, summarizing
# ============================================================

def post_answer(store: ForumStore, user: User, question_id: str, short_answer: str,
                pros: Iterable[str] = (), cons: Iterable[str] = (),
                action_plan: Iterable[str] = ()) -> StructuredAnswer:
    """
    Publish a structured answer. Only seniors and alumni may answer.
    Blank rows and untouched plan placeholders are dropped.
    """
    if not can_answer(user):
        raise ForumValidationError("Only seniors and alumni can provide structured mentorship answers.")
    if not short_answer.strip():
        raise ForumValidationError("Please provide a core insight before publishing.")
    if store.get_question(question_id) is None:
        raise ForumValidationError("Question not found.")

    return store.create_answer(
        question_id=question_id,
        user_id=user.id,
        user_role=user.role,
        user_branch=user.branch,
        short_answer=short_answer.strip(),
        pros=_clean_lines(pros),
        cons=_clean_lines(cons),
        action_plan=_clean_lines(action_plan, skip=PLAN_PLACEHOLDERS),
    )


def post_comment(store: ForumStore, user: User, answer_id: str, question_id: str,
                 text: str) -> Optional[Comment]:
    """Comment on an answer. None if the answer or user no longer exists."""
    if not text.strip():
        raise ForumValidationError("Comment cannot be empty.")
    return store.add_comment(answer_id, user.id, text, question_id)


def summarize(store: ForumStore, question_id: str) -> Optional[ThreadSummary]:
    """
    AI summary of a thread. Needs at least two answers to compare;
    with fewer, returns None without calling the LLM.
    """
    question = store.get_question(question_id)
    if question is None:
        return None
    answers = store.list_answers(question_id)
    if len(answers) < MIN_ANSWERS_FOR_SUMMARY:
        return None
    return assist.summarize_thread(question.original_text, answers)
