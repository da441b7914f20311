import logging

import streamlit as st

from config import DEFAULT_DURATION, LOG_LEVEL, MAX_DURATION, MIN_DURATION
from graph.errors import PipelineError, PipelineTimeoutError
from graph.workflow import run_pipeline
from models.tutor import HARMFUL
from services.catalog import get_catalog

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

st.set_page_config(
    page_title="Placement Tutor",
    page_icon="🎓",
    layout="centered",
)

catalog = get_catalog()

# --- Sidebar: topic catalog ---
with st.sidebar:
    st.header("Topics")
    for topic in catalog.get_all_topics():
        with st.expander(topic.name):
            st.caption(topic.description)
            for subtopic in topic.subtopics:
                st.write(f"- {subtopic}")

    with st.form("add_topic", clear_on_submit=True):
        st.subheader("Add a topic")
        new_name = st.text_input("Name")
        new_description = st.text_input("Description (optional)")
        new_subtopics = st.text_input("Subtopics, comma separated (optional)")
        if st.form_submit_button("Add topic"):
            try:
                added = catalog.add_topic(
                    new_name,
                    new_description,
                    new_subtopics.split(","),
                )
                st.success(f"Added {added.name}")
            except ValueError as e:
                st.error(str(e))

    with st.form("add_subtopic", clear_on_submit=True):
        st.subheader("Add a subtopic")
        topics_by_name = {t.name: t.id for t in catalog.get_all_topics()}
        parent = st.selectbox("Topic", options=list(topics_by_name))
        subtopic = st.text_input("Subtopic")
        if st.form_submit_button("Add subtopic"):
            try:
                catalog.add_subtopic(topics_by_name[parent], subtopic)
                st.success(f"Added {subtopic} to {parent}")
            except (KeyError, ValueError) as e:
                st.error(f"Could not add subtopic: {e}")

# --- Main panel ---
st.title("Placement Tutor")
st.caption("Ask about any placement topic and get a walkthrough, an infographic and a narration script.")

st.divider()

query = st.text_input(
    "What do you want to learn?",
    placeholder="Explain REST APIs in MERN Stack",
)

duration = st.slider(
    "Duration (minutes)",
    min_value=MIN_DURATION,
    max_value=MAX_DURATION,
    value=DEFAULT_DURATION,
)

if st.button("Generate", type="primary", use_container_width=True):
    if not query.strip():
        st.error("Please type a question first.")
        st.stop()

    with st.spinner("Classifying, writing and illustrating..."):
        try:
            result = run_pipeline(query, duration)
        except PipelineTimeoutError:
            st.error("The tutor took too long to answer. Please try again.")
            st.stop()
        except PipelineError as e:
            st.error(f"Error: {e}")
            st.stop()

    if result.rejected:
        if result.classification == HARMFUL:
            st.error(result.rejection_reason)
        else:
            st.warning(result.rejection_reason)
        st.stop()

    st.subheader(result.topic or result.query)

    if result.media_failed:
        st.info("The walkthrough is ready, but some media could not be generated.", icon="ℹ️")

    if result.image_url:
        st.markdown(
            f'<img src="{result.image_url}" alt="Topic infographic" style="width:100%;border-radius:12px"/>',
            unsafe_allow_html=True,
        )

    st.markdown(result.markdown or "")

    if result.audio_text:
        with st.expander("Narration script"):
            st.write(result.audio_text)

    st.download_button(
        label="Download Markdown",
        data=result.markdown or "",
        file_name="walkthrough.md",
        mime="text/markdown",
        use_container_width=True,
    )
