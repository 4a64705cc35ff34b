"""
Demo data for a fresh forum: three users, two questions, two answers, two comments.
"""

from peerpath.models import UserRole
from peerpath.store import ForumStore


def seed_demo(store: ForumStore) -> bool:
    """
    Fill an empty store with the demo campus.
    Returns False (and changes nothing) if the store already has questions.
    """
    if store.list_questions():
        return False

    senior = store.create_user(
        email="senior@aot.edu.in",
        role=UserRole.SENIOR,
        display_name="Rahul Sharma",
        branch="IT",
        batch="2024",
        interests=["Web", "Product"],
    )
    alumni = store.create_user(
        email="alumni@aot.edu.in",
        role=UserRole.ALUMNI,
        display_name="Priya Das",
        branch="CSE",
        batch="2022",
        interests=["ML", "GSoC"],
    )
    junior = store.create_user(
        email="junior@aot.edu.in",
        role=UserRole.JUNIOR,
        display_name="Arjun Mehra",
        branch="CSE",
        batch="2026",
        interests=["Web"],
    )

    q1 = store.create_question(
        title="How to approach GSoC in 2025?",
        original_text="I am in 2nd year CSE. I know basic C++ and some Web Dev. "
                      "How should I start preparing for GSoC?",
        category="GSoC",
        tags=["gsoc", "open-source", "web-dev"],
        suggested_tags=["linux", "git", "collaboration"],
        anonymous_display_name="2nd Year CSE Student",
        user_id=junior.id,
    )
    q2 = store.create_question(
        title="Balancing Academics and GDGoC?",
        original_text="I recently joined the GDGoC team, but finding it hard to manage lab records "
                      "and projects. Any tips from seniors who were in the core team?",
        category="Balancing Clubs & Academics",
        tags=["productivity", "gdgoc", "academics"],
        suggested_tags=["time-management", "prioritization"],
        anonymous_display_name="2nd Year ECE Student",
        user_id=junior.id,
    )

    a1 = store.create_answer(
        question_id=q1.id,
        user_id=alumni.id,
        user_role=alumni.role,
        user_branch=alumni.branch,
        short_answer="Start contributing to small issues in mid-sized organizations now.",
        pros=["Early exposure to codebase", "Builds relationship with mentors"],
        cons=["Can be overwhelming initially", "Takes time away from semester exams"],
        action_plan=["Dec: Pick 3 orgs", "Jan: Solve 2 good-first-issues", "Feb: Draft proposal draft 1"],
    )
    a2 = store.create_answer(
        question_id=q2.id,
        user_id=senior.id,
        user_role=senior.role,
        user_branch=senior.branch,
        short_answer="Use your GDGoC projects as your college semester projects wherever possible.",
        pros=["Double impact for same effort", "Better quality project for resume"],
        cons=["Need professors approval", "Might not align 100% with syllabus"],
        action_plan=["Day 1: Map GDGoC tasks to Lab topics", "Day 7: Talk to Lab instructor",
                     "Day 30: Finalize integrated project"],
    )

    store.add_comment(a1.id, senior.id, "Does solving documentation issues help much for GSoC?", q1.id)
    store.add_comment(a2.id, junior.id,
                      "My professor is strict about sticking to the manual. What should I do?", q2.id)

    print("Seeded demo forum: 3 users, 2 questions, 2 answers, 2 comments")
    return True
