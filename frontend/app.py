"""Streamlit frontend for the Greeting Message Generator.

Provides a UI for turning prompts into greeting messages, filling in
placeholders, saving edits and reviewing history and usage analytics.
"""

import json
import logging
import os
import re
from datetime import date, datetime, time, timezone
from typing import Any

import httpx
import streamlit as st

# Configuration
API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:8000")
PROMPT_MAX_LENGTH = int(os.getenv("PROMPT_MAX_LENGTH", "500"))

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")

# Page config
st.set_page_config(
    page_title="Greeting Message Generator",
    page_icon="💌",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


# =============================================================================
# API Client
# =============================================================================


class APIClient:
    """Simple synchronous API client for the Streamlit frontend."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def generate(self, prompt: str, user_id: str | None = None) -> dict[str, Any]:
        """Generate a message from a prompt.

        Args:
            prompt: The user's prompt.
            user_id: Optional user identifier.

        Returns:
            API response dict, empty on failure.
        """
        payload = {"prompt": prompt, "user_id": user_id or None}
        try:
            response = httpx.post(f"{self.base_url}/messages/generate", json=payload, timeout=10.0)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Generate failed: {e.response.status_code} - {e.response.text}")
            st.error(f"Generate failed: {e.response.status_code}")
            return {}
        except httpx.HTTPError as e:
            logger.error(f"Generate error: {e}")
            st.error(f"Generate error: {e}")
            return {}

    def edit(self, message_id: str, edited_message: str) -> bool:
        payload = {"message_id": message_id, "edited_message": edited_message}
        try:
            response = httpx.post(f"{self.base_url}/messages/edit", json=payload, timeout=10.0)
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.error(f"Edit failed: {e}")
            return False

    def delete(self, message_id: str) -> bool:
        try:
            response = httpx.delete(f"{self.base_url}/messages/{message_id}", timeout=10.0)
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.error(f"Delete failed: {e}")
            return False

    def history(
        self,
        user_id: str | None = None,
        category: str | None = None,
        query: str | None = None,
        limit: int = 50,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"limit": limit}
        if start:
            params["start"] = start.isoformat()
        if end:
            params["end"] = end.isoformat()
        if user_id:
            params["user_id"] = user_id
        if category:
            params["category"] = category
        if query:
            params["q"] = query

        try:
            response = httpx.get(f"{self.base_url}/messages/history", params=params, timeout=10.0)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.error(f"History fetch failed: {e}")
            return []

    def stats(self, user_id: str | None = None) -> dict[str, Any]:
        params = {"user_id": user_id} if user_id else {}
        try:
            response = httpx.get(f"{self.base_url}/messages/stats", params=params, timeout=10.0)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.error(f"Stats fetch failed: {e}")
            return {}

    def export(self, user_id: str | None = None) -> dict[str, Any]:
        params = {"user_id": user_id} if user_id else {}
        try:
            response = httpx.get(f"{self.base_url}/messages/export", params=params, timeout=30.0)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.error(f"Export failed: {e}")
            return {}

    def import_messages(self, messages: list[dict[str, Any]]) -> dict[str, Any]:
        """Upload previously exported messages.

        Returns:
            ``{"imported": n, "skipped": m}``, empty on failure.
        """
        try:
            response = httpx.post(
                f"{self.base_url}/messages/import",
                json={"messages": messages},
                timeout=30.0,
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.error(f"Import failed: {e.response.status_code} - {e.response.text}")
            st.error(f"Import failed: {e.response.status_code}")
            return {}
        except httpx.HTTPError as e:
            logger.error(f"Import error: {e}")
            st.error(f"Import error: {e}")
            return {}

    def clear(self, user_id: str | None = None) -> int | None:
        params = {"user_id": user_id} if user_id else {}
        try:
            response = httpx.delete(f"{self.base_url}/messages", params=params, timeout=30.0)
            response.raise_for_status()
            return response.json()["deleted"]
        except httpx.HTTPError as e:
            logger.error(f"Clear failed: {e}")
            return None

    def categories(self) -> list[dict[str, str]]:
        try:
            response = httpx.get(f"{self.base_url}/messages/categories", timeout=10.0)
            response.raise_for_status()
            return response.json().get("categories", [])
        except httpx.HTTPError as e:
            logger.error(f"Categories fetch failed: {e}")
            return []

    def templates(self) -> list[dict[str, Any]]:
        try:
            response = httpx.get(f"{self.base_url}/messages/templates", timeout=10.0)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as e:
            logger.error(f"Templates fetch failed: {e}")
            return []

    def health_check(self) -> bool:
        """Check if the API is healthy.

        Returns:
            True if API is healthy, False otherwise.
        """
        try:
            response = httpx.get(f"{self.base_url}/health", timeout=5.0)
            return response.status_code == 200
        except httpx.HTTPError:
            return False


# =============================================================================
# Helpers
# =============================================================================


def fill_placeholders(text: str, values: dict[str, str]) -> str:
    """Replace ``{name}`` tokens with the given values.

    Tokens without a non-empty value are left in place.
    """

    def replace(match: re.Match) -> str:
        value = values.get(match.group(1), "").strip()
        return value or match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, text)


def format_timestamp(value: str | None) -> str:
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).strftime("%Y-%m-%d %H:%M")
    except ValueError:
        return value


# =============================================================================
# UI Components
# =============================================================================


def render_sidebar(client: APIClient) -> str:
    """Render the sidebar and return the current user id."""
    with st.sidebar:
        st.title("💌 Message Generator")

        st.divider()

        if client.health_check():
            st.success("✅ API Connected")
        else:
            st.error("❌ API Disconnected")
            st.info(f"API URL: {API_BASE_URL}")

        st.divider()

        user_id = st.text_input(
            "User ID",
            value=st.session_state.get("user_id", ""),
            help="Optional. Scopes history and analytics to one user.",
        )
        st.session_state.user_id = user_id

        st.divider()

        st.subheader("Instructions")
        st.markdown("""
        1. **Describe** the message, e.g. *Send Diwali wishes to my customers*
        2. **Fill in** the placeholders such as `{name}`
        3. **Edit** the text and save it
        """)

        st.caption(f"API: `{API_BASE_URL}`")

    return user_id


def render_generator(client: APIClient, user_id: str) -> None:
    st.subheader("✍️ Generate Message")

    prompt = st.text_area(
        "What message do you need?",
        max_chars=PROMPT_MAX_LENGTH,
        placeholder="I want to send Diwali wishes to my customers",
    )

    if st.button("Generate", type="primary", disabled=not prompt.strip()):
        with st.spinner("Matching template..."):
            result = client.generate(prompt.strip(), user_id=user_id)
        if result:
            st.session_state.generated = result
            st.session_state.editable_message = result["generated_message"]
            if not result.get("saved"):
                st.warning("Message generated but could not be saved to history.")

    result = st.session_state.get("generated")
    if not result:
        return

    st.divider()

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Category", result["category"].replace("_", " ").title())
    with col2:
        st.metric("Template", result["template_used"])
    with col3:
        st.metric("Variables", len(result["variables_detected"]))

    variables = result["variables_detected"]
    if variables:
        st.write("**Fill in placeholders**")
        values = {
            name: st.text_input(f"{{{name}}}", key=f"var_{name}")
            for name in variables
        }
        if st.button("Apply values"):
            st.session_state.editable_message = fill_placeholders(
                result["generated_message"], values
            )

    edited = st.text_area(
        "Message",
        value=st.session_state.get("editable_message", result["generated_message"]),
        height=160,
    )
    st.session_state.editable_message = edited

    has_edits = edited != result["generated_message"]
    if st.button("Save edit", disabled=not (has_edits and result.get("id"))):
        if client.edit(result["id"], edited):
            st.success("Message edited and saved!")
        else:
            st.error("Failed to save edit")

    st.code(edited, language=None)


def day_bounds(first: date, last: date) -> tuple[datetime, datetime]:
    """Turn an inclusive UTC date range into start/end instants."""
    return (
        datetime.combine(first, time.min, tzinfo=timezone.utc),
        datetime.combine(last, time.max, tzinfo=timezone.utc),
    )


def render_history(client: APIClient, user_id: str) -> None:
    st.subheader("🕘 History")

    categories = client.categories()
    col1, col2, col3 = st.columns([3, 1, 2])
    with col1:
        query = st.text_input("Search", placeholder="Search prompts and messages")
    with col2:
        options = [""] + [c["name"] for c in categories]
        category = st.selectbox(
            "Category",
            options,
            format_func=lambda name: next(
                (c["display_name"] for c in categories if c["name"] == name), "All"
            ),
        )
    with col3:
        dates = st.date_input("Created between (UTC)", value=(), format="YYYY-MM-DD")

    start = end = None
    if len(dates) == 2:
        start, end = day_bounds(*dates)

    messages = client.history(
        user_id=user_id,
        category=category or None,
        query=query or None,
        start=start,
        end=end,
    )
    if not messages:
        st.info("No messages yet. Generate one to get started.")
    else:
        for message in messages:
            badge = " ✏️ Edited" if message.get("is_edited") else ""
            title = f"{format_timestamp(message.get('created_at'))} · {message['template_used']}{badge}"
            with st.expander(title):
                st.write("**Prompt:**", message["user_prompt"])
                st.write("**Message:**")
                st.write(message.get("final_message") or message["generated_message"])
                if st.button("Delete", key=f"delete_{message['id']}"):
                    if client.delete(message["id"]):
                        st.rerun()
                    else:
                        st.error("Failed to delete message")

    st.divider()
    render_data_management(client, user_id)


def render_data_management(client: APIClient, user_id: str) -> None:
    """Export, import and clear stored messages."""
    st.write("**Manage data**")
    scope = f"user `{user_id}`" if user_id else "all users"

    col1, col2, col3 = st.columns(3)
    with col1:
        if st.button("Prepare export"):
            st.session_state.export_payload = client.export(user_id=user_id)
        payload = st.session_state.get("export_payload")
        if payload:
            st.download_button(
                f"Download {payload['count']} messages",
                data=json.dumps(payload, indent=2),
                file_name=f"messages-{datetime.now(timezone.utc):%Y%m%d-%H%M%S}.json",
                mime="application/json",
            )

    with col2:
        uploaded = st.file_uploader("Import export file", type=["json"])
        if uploaded is not None and st.button("Import"):
            try:
                messages = json.loads(uploaded.getvalue())["messages"]
            except (ValueError, KeyError, TypeError):
                st.error("Not a message export file")
            else:
                result = client.import_messages(messages)
                if result:
                    st.success(f"Imported {result['imported']}, skipped {result['skipped']}")

    with col3:
        confirm = st.checkbox(f"Delete every message of {scope}")
        if st.button("Clear history", type="secondary", disabled=not confirm):
            deleted = client.clear(user_id=user_id)
            if deleted is None:
                st.error("Failed to clear history")
            else:
                st.session_state.pop("export_payload", None)
                st.success(f"Deleted {deleted} messages")


def render_analytics(client: APIClient, user_id: str) -> None:
    st.subheader("📊 Analytics")

    stats = client.stats(user_id=user_id)
    if not stats or not stats.get("total_messages"):
        st.info("No analytics yet.")
        return

    daily = stats.get("daily_usage", {})

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total Messages", stats["total_messages"])
    with col2:
        st.metric("Edited", stats["edited_messages"])
    with col3:
        average = sum(daily.values()) / len(daily) if daily else 0
        st.metric("Average per Day", f"{average:.1f}")

    st.write("**By category**")
    st.bar_chart(
        [{"Category": k, "Messages": v} for k, v in stats["category_counts"].items()],
        x="Category",
        y="Messages",
    )

    st.write("**Most used templates**")
    st.bar_chart(
        [{"Template": k, "Messages": v} for k, v in stats["template_counts"].items()],
        x="Template",
        y="Messages",
    )

    st.write("**Daily usage**")
    st.line_chart(
        [{"Day": k, "Messages": v} for k, v in daily.items()],
        x="Day",
        y="Messages",
    )


def render_templates(client: APIClient) -> None:
    st.subheader("📚 Templates")

    templates = client.templates()
    st.dataframe(
        [
            {
                "Category": t["category"],
                "Name": t["name"],
                "Variables": ", ".join(t["variables"]),
                "Content": t["content"],
            }
            for t in templates
        ],
        use_container_width=True,
        hide_index=True,
    )


# =============================================================================
# Main App
# =============================================================================


def main() -> None:
    """Main application entry point."""
    client = APIClient(API_BASE_URL)

    user_id = render_sidebar(client)

    st.title("Greeting Message Generator")

    tab1, tab2, tab3, tab4 = st.tabs(["Generate", "History", "Analytics", "Templates"])

    with tab1:
        render_generator(client, user_id)

    with tab2:
        render_history(client, user_id)

    with tab3:
        render_analytics(client, user_id)

    with tab4:
        render_templates(client)


if __name__ == "__main__":
    main()
