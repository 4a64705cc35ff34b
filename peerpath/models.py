"""
Data models — the structure of our data.
Every record the forum store holds, plus the shapes the AI assistant returns.
Records point at each other by id only, never by object reference.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    JUNIOR = "junior"
    SENIOR = "senior"
    ALUMNI = "alumni"


MENTOR_ROLES = (UserRole.SENIOR, UserRole.ALUMNI)

CATEGORIES = [
    "DSA vs Development",
    "Open Source",
    "GSoC",
    "Internships",
    "Higher Studies",
    "Balancing Clubs & Academics",
    "Others",
]
OTHERS_CATEGORY = "Others"

INTEREST_TAGS = [
    "GSoC",
    "ML",
    "Web",
    "Product",
    "Startups",
    "Govt Jobs",
    "Competitive Programming",
    "DevOps",
    "UI/UX",
    "Blockchain",
]


def is_mentor(role: UserRole) -> bool:
    """Seniors and alumni mentor; juniors only ask."""
    return UserRole(role) in MENTOR_ROLES


def can_answer(user: "User") -> bool:
    return is_mentor(user.role)


@dataclass
class UserStats:
    """Counters the store adjusts as a side effect of posting and voting."""
    questions_asked: int = 0
    answers_given: int = 0
    helped_count: int = 0
    total_upvotes: int = 0


@dataclass
class User:
    """A signed-up student, senior or alumnus."""
    id: str
    email: str
    role: UserRole = UserRole.JUNIOR
    display_name: str = "Anonymous User"
    branch: str = "CSE"
    batch: str = "2026"
    interests: list[str] = field(default_factory=list)
    stats: UserStats = field(default_factory=UserStats)


@dataclass
class BaselineAnswer:
    summary: str
    paths: list[str] = field(default_factory=list)


@dataclass
class Question:
    """An anonymously posted question."""
    id: str
    title: str
    original_text: str
    category: str               # one of CATEGORIES, or the custom topic typed for "Others"
    anonymous_display_name: str # e.g., "26'th Batch CSE Student"
    user_id: str
    created_at: datetime
    tags: list[str] = field(default_factory=list)
    suggested_tags: list[str] = field(default_factory=list)
    neutral_text: Optional[str] = None
    baseline_answer: Optional[BaselineAnswer] = None
    upvotes: int = 0
    is_resolved: bool = False


@dataclass
class Comment:
    id: str
    answer_id: str
    user_id: str
    user_name: str              # display name at the time of commenting
    text: str
    created_at: datetime


@dataclass
class StructuredAnswer:
    """A mentor's answer: core insight, pros, cons and a 30-day plan."""
    id: str
    question_id: str
    user_id: str
    user_role: UserRole
    user_branch: str
    short_answer: str
    created_at: datetime
    pros: list[str] = field(default_factory=list)
    cons: list[str] = field(default_factory=list)
    action_plan: list[str] = field(default_factory=list)
    upvotes: int = 0
    helped_count: int = 0
    upvoted_by: set[str] = field(default_factory=set)
    helped_by: set[str] = field(default_factory=set)
    comments: list[Comment] = field(default_factory=list)


@dataclass
class Mention:
    """Notification for an answer author when someone else comments."""
    id: str
    target_user_id: str
    from_user_name: str
    question_id: str
    answer_id: str
    text: str                   # excerpt of the comment
    created_at: datetime
    is_read: bool = False


@dataclass
class Clarification:
    """What the AI assistant suggests before a question is posted."""
    neutral_question: str
    baseline_answer: BaselineAnswer
    suggested_tags: list[str] = field(default_factory=list)


@dataclass
class ThreadSummary:
    tldr: str
    consensus: str
    differences: str
