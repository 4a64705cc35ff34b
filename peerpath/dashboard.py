"""
PeerPath — campus Q&A and mentorship forum.
Run with: streamlit run peerpath/dashboard.py
"""

import streamlit as st
import pandas as pd

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from peerpath import forum
from peerpath.config import SEED_DEMO_DATA
from peerpath.forum import ForumValidationError
from peerpath.llm_client import is_configured
from peerpath.models import CATEGORIES, INTEREST_TAGS, OTHERS_CATEGORY, UserRole, is_mentor
from peerpath.seed import seed_demo
from peerpath.store import ForumStore

# ============================================================
# PAGE CONFIG
# ============================================================
st.set_page_config(
    page_title="PeerPath",
    page_icon="◆",
    layout="centered",
    initial_sidebar_state="expanded",
)


# ============================================================
# SESSION STATE HELPERS
# ============================================================

# One store per browser session; a page reload starts a fresh forum
def _get_store() -> ForumStore:
    if "store" not in st.session_state:
        store = ForumStore()
        if SEED_DEMO_DATA:
            seed_demo(store)
        st.session_state.store = store
    return st.session_state.store


def _current_user():
    """Re-read the signed-in user so stats are never stale."""
    user_id = st.session_state.get("user_id")
    if not user_id:
        return None
    return _get_store().get_user(user_id)


def _open_question(question_id: str):
    st.session_state.view = "thread"
    st.session_state.question_id = question_id
    st.session_state.pop("summary", None)


def _open_profile(user_id: str):
    st.session_state.view = "profile"
    st.session_state.profile_user_id = user_id


def _clear_ask_state():
    for k in ("draft", "draft_text", "draft_title", "draft_category", "draft_custom", "draft_tags"):
        st.session_state.pop(k, None)


# ============================================================
# LOGIN / SIGNUP
# ============================================================
def render_login(store: ForumStore):
    st.title("PeerPath")
    st.caption("Verify your campus identity to enter.")

    tab_login, tab_signup = st.tabs(["Log in", "Sign up"])

    with tab_login:
        with st.form("login_form"):
            email = st.text_input("College email", placeholder="you@college.edu.in")
            if st.form_submit_button("Log in", type="primary", use_container_width=True):
                try:
                    user = forum.log_in(store, email)
                except ForumValidationError as e:
                    st.error(str(e))
                else:
                    if user is None:
                        st.error("User not found. Please sign up first.")
                    else:
                        st.session_state.user_id = user.id
                        st.rerun()

    with tab_signup:
        with st.form("signup_form"):
            email = st.text_input("College email", key="su_email")
            display_name = st.text_input("Display name", key="su_name")
            role = st.selectbox("I am a", [r.value for r in UserRole], key="su_role")
            c1, c2 = st.columns(2)
            branch = c1.text_input("Branch", value="CSE", key="su_branch")
            batch = c2.text_input("Batch", value="2026", key="su_batch")
            if st.form_submit_button("Create account", type="primary", use_container_width=True):
                try:
                    user = forum.sign_up(store, email, display_name=display_name, role=role,
                                         branch=branch, batch=batch)
                except ForumValidationError as e:
                    st.error(str(e))
                else:
                    st.session_state.user_id = user.id
                    st.rerun()


# ============================================================
# SIDEBAR
# ============================================================
def render_sidebar(store: ForumStore, user):
    st.sidebar.markdown(f"**{user.display_name}** · {user.role.value} · {user.branch} {user.batch}")
    st.sidebar.markdown("---")

    mentions_label = "Mentions"
    if store.has_unread_mentions(user.id):
        mentions_label = "Mentions ●"

    views = [("Feed", "feed"), ("Ask a question", "ask"), (mentions_label, "mentions"),
             ("My profile", "profile"), ("Leaderboard", "leaderboard")]
    current = st.session_state.get("view", "feed")
    for label, view in views:
        if st.sidebar.button(label, key=f"nav_{view}", use_container_width=True,
                             type="primary" if view == current else "secondary"):
            st.session_state.view = view
            if view == "profile":
                st.session_state.profile_user_id = user.id
            st.rerun()

    if not is_configured():
        st.sidebar.info("AI assist is off (no XAI_API_KEY).")

    st.sidebar.markdown("---")
    if st.sidebar.button("Log out", use_container_width=True):
        for key in list(st.session_state.keys()):
            if key != "store":
                del st.session_state[key]
        st.rerun()


# ============================================================
# FEED
# ============================================================
def render_feed(store: ForumStore):
    st.markdown("### Campus feed")
    category = st.selectbox("Category", ["All"] + CATEGORIES, key="feed_category")
    questions = forum.filter_by_category(store.list_questions(), category)

    if not questions:
        st.caption("No questions here yet.")
    for q in questions:
        with st.container(border=True):
            st.markdown(f"**{q.title}**")
            st.caption(f"{q.category} · {q.anonymous_display_name} · "
                       f"{store.count_answers(q.id)} answers")
            if q.tags:
                st.caption(" ".join(f"#{t}" for t in q.tags))
            st.button("Open thread", key=f"open_{q.id}", on_click=_open_question, args=(q.id,))


# ============================================================
# ASK
# ============================================================
def render_ask(store: ForumStore, user):
    st.markdown("### Seeking clarity?")
    st.caption("Your question will be posted anonymously to the campus.")

    draft = st.session_state.get("draft")

    if draft is None:
        category = st.selectbox("Topic category", CATEGORIES, key="ask_category")
        custom = ""
        if category == OTHERS_CATEGORY:
            custom = st.text_input("Specific topic", key="ask_custom")
        title = st.text_input("Short headline", key="ask_title")
        text = st.text_area("Full context", height=150, key="ask_text")
        tags = st.multiselect("Tags", INTEREST_TAGS, key="ask_tags")

        c1, c2 = st.columns(2)
        with c1:
            if st.button("Continue with AI", type="primary", use_container_width=True,
                         disabled=not text.strip()):
                try:
                    forum.resolve_category(category, custom)
                    with st.spinner("Checking your question..."):
                        st.session_state.draft = forum.prepare_question(store, text)
                except ForumValidationError as e:
                    st.error(str(e))
                else:
                    st.session_state.update(draft_text=text, draft_title=title, draft_category=category,
                                            draft_custom=custom, draft_tags=tags)
                    st.rerun()
        with c2:
            if st.button("Post directly", use_container_width=True, disabled=not text.strip()):
                try:
                    q = forum.post_question(store, user, text, category, title=title, tags=tags,
                                            custom_category=custom)
                except ForumValidationError as e:
                    st.error(str(e))
                else:
                    _open_question(q.id)
                    st.rerun()
        return

    if draft.similar_questions:
        st.warning("Similar questions already exist:")
        for q in draft.similar_questions:
            st.button(q.title, key=f"similar_{q.id}", on_click=_open_question, args=(q.id,))

    clarification = draft.clarification
    if clarification:
        with st.container(border=True):
            st.markdown("**AI clarification**")
            st.markdown(clarification.neutral_question)
            st.markdown(clarification.baseline_answer.summary)
            for path in clarification.baseline_answer.paths:
                st.markdown(f"- {path}")
            st.caption(" ".join(f"#{t}" for t in clarification.suggested_tags))
    else:
        st.info("AI clarification unavailable. You can still post your question.")

    c1, c2 = st.columns(2)
    with c1:
        if st.button("Post question", type="primary", use_container_width=True):
            try:
                q = forum.post_question(
                    store, user, st.session_state.draft_text, st.session_state.draft_category,
                    title=st.session_state.draft_title, tags=st.session_state.draft_tags,
                    custom_category=st.session_state.draft_custom, clarification=clarification,
                )
            except ForumValidationError as e:
                st.error(str(e))
            else:
                _clear_ask_state()
                _open_question(q.id)
                st.rerun()
    with c2:
        if st.button("Edit question", use_container_width=True):
            st.session_state.pop("draft", None)
            st.rerun()


# ============================================================
# THREAD
# ============================================================
def render_answer(store: ForumStore, user, question_id, answer):
    with st.container(border=True):
        author = store.get_user(answer.user_id)
        name = author.display_name if author else "Mentor"
        if author:
            st.button(f"**{name}** · {answer.user_role.value} · {answer.user_branch}",
                      key=f"author_{answer.id}", type="tertiary",
                      on_click=_open_profile, args=(author.id,))
        else:
            st.markdown(f"**{name}** · {answer.user_role.value} · {answer.user_branch}")
        st.markdown(f"> {answer.short_answer}")

        c1, c2 = st.columns(2)
        with c1:
            st.markdown("**Pros**")
            for p in answer.pros:
                st.markdown(f"- {p}")
        with c2:
            st.markdown("**Cons**")
            for c in answer.cons:
                st.markdown(f"- {c}")
        if answer.action_plan:
            st.markdown("**30-day plan**")
            for i, step in enumerate(answer.action_plan, 1):
                st.markdown(f"{i}. {step}")

        b1, b2 = st.columns(2)
        upvoted = user.id in answer.upvoted_by
        helped = user.id in answer.helped_by
        if b1.button(f"{'▲' if upvoted else '△'} {answer.upvotes}", key=f"up_{answer.id}"):
            store.toggle_upvote(answer.id, user.id)
            st.rerun()
        if b2.button(f"{'✔ Helped' if helped else 'Helped me'} · {answer.helped_count}",
                     key=f"helped_{answer.id}"):
            store.toggle_helped(answer.id, user.id)
            st.rerun()

        for c in answer.comments:
            st.caption(f"**{c.user_name}**: {c.text}")

        with st.form(f"comment_{answer.id}", clear_on_submit=True):
            text = st.text_input("Comment", placeholder=forum.reply_prefix(name),
                                 label_visibility="collapsed")
            if st.form_submit_button("Comment"):
                try:
                    forum.post_comment(store, user, answer.id, question_id, text)
                except ForumValidationError as e:
                    st.error(str(e))
                else:
                    st.rerun()


def render_answer_form(store: ForumStore, user, question_id):
    with st.expander("Write a structured answer"):
        with st.form("answer_form", clear_on_submit=True):
            short_answer = st.text_area("Core insight", height=80)
            c1, c2 = st.columns(2)
            pros = [c1.text_input(f"Pro {i + 1}", key=f"pro_{i}") for i in range(2)]
            cons = [c2.text_input(f"Con {i + 1}", key=f"con_{i}") for i in range(2)]
            plan = [st.text_input(f"Plan step {i + 1}", value=p, key=f"plan_{i}")
                    for i, p in enumerate(forum.PLAN_PLACEHOLDERS)]
            if st.form_submit_button("Publish answer", type="primary"):
                try:
                    forum.post_answer(store, user, question_id, short_answer, pros, cons, plan)
                except ForumValidationError as e:
                    st.error(str(e))
                else:
                    st.rerun()


def render_thread(store: ForumStore, user):
    question_id = st.session_state.get("question_id")
    question = store.get_question(question_id) if question_id else None
    if question is None:
        st.caption("Question not found.")
        return

    st.caption(f"{question.category} · {question.anonymous_display_name}")
    st.markdown(f"## {question.title}")
    st.markdown(question.original_text)

    if question.neutral_text or question.baseline_answer:
        with st.container(border=True):
            st.markdown("**AI baseline**")
            if question.neutral_text:
                st.caption(question.neutral_text)
            if question.baseline_answer:
                st.markdown(question.baseline_answer.summary)
                for path in question.baseline_answer.paths:
                    st.markdown(f"- {path}")

    answers = store.list_answers(question.id)

    if len(answers) >= forum.MIN_ANSWERS_FOR_SUMMARY:
        if st.button("Synthesize thread with AI"):
            with st.spinner("Summarizing..."):
                st.session_state.summary = forum.summarize(store, question.id)
            if st.session_state.summary is None:
                st.warning("Thread summary is unavailable right now.")
        summary = st.session_state.get("summary")
        if summary:
            with st.container(border=True):
                st.markdown(f"**TL;DR** {summary.tldr}")
                st.markdown(f"**The consensus** {summary.consensus}")
                st.markdown(f"**Conflict points** {summary.differences}")

    st.markdown(f"#### {len(answers)} mentor answer{'s' if len(answers) != 1 else ''}")
    for answer in answers:
        render_answer(store, user, question.id, answer)

    if is_mentor(user.role):
        render_answer_form(store, user, question.id)
    else:
        st.caption("Only seniors and alumni can post structured answers.")


# ============================================================
# MENTIONS
# ============================================================
def render_mentions(store: ForumStore, user):
    st.markdown("### Mentions")
    mentions = store.list_mentions(user.id)
    if not mentions:
        st.caption("Nobody has commented on your answers yet.")
    for m in mentions:
        with st.container(border=True):
            st.markdown(f"{'● ' if not m.is_read else ''}**{m.from_user_name}** commented on your answer")
            st.caption(m.text)
            st.button("Open thread", key=f"mention_{m.id}", on_click=_open_question, args=(m.question_id,))
    store.mark_mentions_read(user.id)


# ============================================================
# PROFILE
# ============================================================
def render_profile(store: ForumStore, user):
    view = forum.profile_view(store, user, st.session_state.get("profile_user_id", user.id))
    if view is None:
        st.caption("User not found.")
        return
    shown = view.user

    # Set before the rerun that follows a save, shown once
    if view.can_edit and st.session_state.pop("profile_saved", False):
        st.success("Profile updated.")

    st.markdown(f"### {shown.display_name}")
    if view.can_edit:
        st.caption(f"{shown.email} · {shown.role.value}")
    else:
        st.caption(f"{shown.role.value} · {shown.branch} {shown.batch}")
        if shown.interests:
            st.caption(" ".join(f"#{t}" for t in shown.interests))

    st.progress(int(view.progress), text=f"Campus reputation: {view.score} / {forum.NEXT_LEVEL_POINTS}")

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Asked", shown.stats.questions_asked)
    m2.metric("Answered", shown.stats.answers_given)
    m3.metric("Helped", shown.stats.helped_count)
    m4.metric("Upvotes", shown.stats.total_upvotes)

    if not view.can_edit:
        return

    with st.form("profile_form"):
        display_name = st.text_input("Display name", value=shown.display_name)
        c1, c2 = st.columns(2)
        branch = c1.text_input("Branch", value=shown.branch)
        batch = c2.text_input("Batch", value=shown.batch)
        interests = st.multiselect("Interests", sorted(set(INTEREST_TAGS) | set(shown.interests)),
                                   default=shown.interests)
        if st.form_submit_button("Save profile", type="primary"):
            try:
                forum.update_profile(store, shown.id, display_name, branch, batch, interests)
            except ForumValidationError as e:
                st.error(str(e))
            else:
                st.session_state.profile_saved = True
                st.rerun()


# ============================================================
# LEADERBOARD
# ============================================================
def render_leaderboard(store: ForumStore):
    st.markdown("### Top mentors")
    rows = forum.leaderboard(store)
    if not rows:
        st.caption("No mentors yet.")
        return
    df = pd.DataFrame(rows).drop(columns=["user_id"])
    df.index = range(1, len(df) + 1)
    st.dataframe(df, use_container_width=True)


# ============================================================
# MAIN
# ============================================================
def main():
    store = _get_store()
    user = _current_user()

    if user is None:
        render_login(store)
        return

    render_sidebar(store, user)
    view = st.session_state.get("view", "feed")
    if view == "ask":
        render_ask(store, user)
    elif view == "thread":
        render_thread(store, user)
    elif view == "mentions":
        render_mentions(store, user)
    elif view == "profile":
        render_profile(store, user)
    elif view == "leaderboard":
        render_leaderboard(store)
    else:
        render_feed(store)

if __name__ == "__main__":
    main()
