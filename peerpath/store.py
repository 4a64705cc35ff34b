"""
Forum store — the single source of truth for one forum session.

Holds every user, question, answer and mention in plain Python dicts.
Nothing is written to disk: build a ForumStore when a session starts,
pass it to whatever needs it, and drop it when the session ends.

Key rules:
    - Reads never hand out live records. Every record leaving the store is a
      deep copy, so callers can't change store state behind its back.
    - Counters on a user's stats only move through store mutations
      (posting a question, posting an answer, upvote/helped toggles).
    - Unknown ids are never an error. Lookups return None, mutations do nothing.
    - Ordering ties are broken by insertion order, newest insert first.
"""

import copy
import uuid
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from peerpath.models import (
    BaselineAnswer,
    Comment,
    Mention,
    Question,
    StructuredAnswer,
    User,
    UserRole,
    UserStats,
)

# A mention carries this much of the comment, followed by MENTION_ELLIPSIS
MENTION_EXCERPT_LENGTH = 50
MENTION_ELLIPSIS = "..."

# Profile fields update_user is allowed to touch (never id or stats)
EDITABLE_USER_FIELDS = ("email", "role", "display_name", "branch", "batch", "interests")


def _new_id() -> str:
    return uuid.uuid4().hex[:9]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_role(value) -> Optional[UserRole]:
    """UserRole for a role value, or None if it isn't one of the three roles."""
    try:
        return UserRole(value)
    except ValueError:
        return None


def _unique(items: Optional[Iterable[str]]) -> list[str]:
    """Drop duplicates, keep first-seen order."""
    return list(dict.fromkeys(items or []))


def _newest_first(records: list, key: Callable) -> list:
    """
    Sort descending by key, with later inserts winning ties.
    `records` must be in insertion order (dicts preserve it).
    """
    ranked = sorted(enumerate(records), key=lambda pair: (key(pair[1]), pair[0]), reverse=True)
    return [copy.deepcopy(record) for _, record in ranked]


class ForumStore:
    """In-memory forum state with the mutation rules that keep it consistent."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or _utc_now
        self._users: dict[str, User] = {}
        self._questions: dict[str, Question] = {}
        self._answers: dict[str, StructuredAnswer] = {}
        self._mentions: dict[str, Mention] = {}

    # ============================================================
    # USERS
    # ============================================================

    def create_user(self, email: str = "", role=None, display_name: str = "",
                    branch: str = "", batch: str = "",
                    interests: Optional[Iterable[str]] = None) -> Optional[User]:
        """
        Sign up a new user. Blank fields fall back to the defaults
        (junior, "Anonymous User", CSE, 2026) and stats start at zero.
        Returns None, creating nothing, if the role is not a known one.

        Email is not checked for uniqueness: signing up twice with the
        same address creates two users.
        """
        user_role = _parse_role(role) if role else UserRole.JUNIOR
        if user_role is None:
            return None

        user = User(
            id=_new_id(),
            email=email or "",
            role=user_role,
            display_name=display_name or "Anonymous User",
            branch=branch or "CSE",
            batch=batch or "2026",
            interests=_unique(interests),
            stats=UserStats(),
        )
        self._users[user.id] = user
        return copy.deepcopy(user)

    def update_user(self, user_id: str, **fields) -> Optional[User]:
        """
        Merge profile fields into an existing user. Stats are left alone.
        Returns None, changing nothing, if the user is unknown or the role is invalid.
        """
        user = self._users.get(user_id)
        if user is None:
            return None

        # Every field is converted before any of them is applied
        changes = {}
        for name in EDITABLE_USER_FIELDS:
            if name not in fields:
                continue
            value = fields[name]
            if name == "role":
                value = _parse_role(value)
                if value is None:
                    return None
            elif name == "interests":
                value = _unique(value)
            changes[name] = value

        for name, value in changes.items():
            setattr(user, name, value)

        return copy.deepcopy(user)

    def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return copy.deepcopy(user) if user else None

    def find_user_by_email(self, email: str) -> Optional[User]:
        """First user who signed up with this email (used for log-in)."""
        for user in self._users.values():
            if user.email == email:
                return copy.deepcopy(user)
        return None

    def list_users(self) -> list[User]:
        return [copy.deepcopy(u) for u in self._users.values()]

    # ============================================================
    # QUESTIONS
    # ============================================================

    def create_question(self, title: str, original_text: str, category: str,
                        anonymous_display_name: str, user_id: str,
                        tags: Optional[Iterable[str]] = None,
                        suggested_tags: Optional[Iterable[str]] = None,
                        neutral_text: Optional[str] = None,
                        baseline_answer: Optional[BaselineAnswer] = None) -> Question:
        """
        Post a question. Also bumps the author's questions_asked,
        silently skipped if the author id is unknown.
        """
        question = Question(
            id=_new_id(),
            title=title,
            original_text=original_text,
            category=category,
            anonymous_display_name=anonymous_display_name,
            user_id=user_id,
            created_at=self._clock(),
            tags=list(tags or []),
            suggested_tags=list(suggested_tags or []),
            neutral_text=neutral_text,
            baseline_answer=copy.deepcopy(baseline_answer),
            upvotes=0,
            is_resolved=False,
        )
        self._questions[question.id] = question

        author = self._users.get(user_id)
        if author:
            author.stats.questions_asked += 1

        return copy.deepcopy(question)

    def get_question(self, question_id: str) -> Optional[Question]:
        question = self._questions.get(question_id)
        return copy.deepcopy(question) if question else None

    def list_questions(self) -> list[Question]:
        """All questions, newest first."""
        return _newest_first(list(self._questions.values()), key=lambda q: q.created_at)

    # ============================================================
    # ANSWERS
    # ============================================================

    def create_answer(self, question_id: str, user_id: str, user_role, user_branch: str,
                      short_answer: str,
                      pros: Optional[Iterable[str]] = None,
                      cons: Optional[Iterable[str]] = None,
                      action_plan: Optional[Iterable[str]] = None) -> Optional[StructuredAnswer]:
        """
        Post a structured answer and bump the author's answers_given.
        Returns None, creating nothing, if user_role is not a known role.
        """
        role = _parse_role(user_role)
        if role is None:
            return None

        answer = StructuredAnswer(
            id=_new_id(),
            question_id=question_id,
            user_id=user_id,
            user_role=role,
            user_branch=user_branch,
            short_answer=short_answer,
            created_at=self._clock(),
            pros=list(pros or []),
            cons=list(cons or []),
            action_plan=list(action_plan or []),
        )
        self._answers[answer.id] = answer

        author = self._users.get(user_id)
        if author:
            author.stats.answers_given += 1

        return copy.deepcopy(answer)

    def list_answers(self, question_id: str) -> list[StructuredAnswer]:
        """Answers on a question, most upvoted first."""
        matching = [a for a in self._answers.values() if a.question_id == question_id]
        return _newest_first(matching, key=lambda a: a.upvotes)

    def count_answers(self, question_id: str) -> int:
        return sum(1 for a in self._answers.values() if a.question_id == question_id)

    # ============================================================
    # COMMENTS & MENTIONS
    # ============================================================

    def add_comment(self, answer_id: str, user_id: str, text: str,
                    question_id: str) -> Optional[Comment]:
        """
        Append a comment to an answer.
        Returns None if either the answer or the commenter is unknown.

        If someone other than the answer's author comments, the author gets
        a Mention with the first 50 characters of the comment.
        Commenting on your own answer never mentions yourself.
        """
        answer = self._answers.get(answer_id)
        commenter = self._users.get(user_id)
        if answer is None or commenter is None:
            return None

        now = self._clock()
        comment = Comment(
            id=_new_id(),
            answer_id=answer_id,
            user_id=user_id,
            user_name=commenter.display_name,
            text=text,
            created_at=now,
        )
        answer.comments.append(comment)

        if answer.user_id != user_id:
            mention = Mention(
                id=_new_id(),
                target_user_id=answer.user_id,
                from_user_name=commenter.display_name,
                question_id=question_id,
                answer_id=answer_id,
                text=text[:MENTION_EXCERPT_LENGTH] + MENTION_ELLIPSIS,
                created_at=now,
            )
            self._mentions[mention.id] = mention

        return copy.deepcopy(comment)

    def list_mentions(self, user_id: str) -> list[Mention]:
        """Mentions addressed to a user, newest first."""
        matching = [m for m in self._mentions.values() if m.target_user_id == user_id]
        return _newest_first(matching, key=lambda m: m.created_at)

    def has_unread_mentions(self, user_id: str) -> bool:
        return any(
            m.target_user_id == user_id and not m.is_read
            for m in self._mentions.values()
        )

    def mark_mentions_read(self, user_id: str) -> int:
        """Mark every unread mention for the user as read. Returns how many flipped."""
        flipped = 0
        for mention in self._mentions.values():
            if mention.target_user_id == user_id and not mention.is_read:
                mention.is_read = True
                flipped += 1
        return flipped

    # ============================================================
    # VOTES
    # ============================================================

    def toggle_upvote(self, answer_id: str, user_id: str) -> None:
        """Upvote, or take back an earlier upvote. Moves the author's total_upvotes too."""
        self._toggle(answer_id, user_id, "upvoted_by", "upvotes", "total_upvotes")

    def toggle_helped(self, answer_id: str, user_id: str) -> None:
        """Same as toggle_upvote, for the separate "this helped me" signal."""
        self._toggle(answer_id, user_id, "helped_by", "helped_count", "helped_count")

    def _toggle(self, answer_id: str, user_id: str,
                voters_attr: str, count_attr: str, stat_attr: str) -> None:
        """
        Shared toggle: the voter set and its count always change together,
        so count == len(voters) holds after every call. Counts never go below 0.
        """
        answer = self._answers.get(answer_id)
        if answer is None:
            return

        voters: set[str] = getattr(answer, voters_attr)
        author = self._users.get(answer.user_id)
        step = -1 if user_id in voters else 1

        if step < 0:
            voters.discard(user_id)
        else:
            voters.add(user_id)
        setattr(answer, count_attr, max(0, getattr(answer, count_attr) + step))

        if author:
            setattr(author.stats, stat_attr, max(0, getattr(author.stats, stat_attr) + step))
