"""Plain-text rendering of a comment section."""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from .models import CommentNode, LoadState
from .permissions import CommentCapabilities


if TYPE_CHECKING:
    from .section import CommentSection


INDENT = "    "
SECONDS_PER_MINUTE = 60
MINUTES_PER_HOUR = 60
HOURS_PER_DAY = 24


def format_relative_time(timestamp: datetime, now: datetime | None = None) -> str:
    """Describe how long ago a timestamp was, at minute resolution.

    Examples:
        >>> from datetime import timedelta
        >>> now = datetime(2024, 1, 2, tzinfo=UTC)
        >>> format_relative_time(now - timedelta(minutes=5), now)
        '5 minutes ago'
        >>> format_relative_time(now - timedelta(hours=3), now)
        '3 hours ago'
    """
    now = now or datetime.now(UTC)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)

    elapsed = max((now - timestamp).total_seconds(), 0)
    minutes = int(elapsed // SECONDS_PER_MINUTE)
    hours = minutes // MINUTES_PER_HOUR
    days = hours // HOURS_PER_DAY

    if minutes < MINUTES_PER_HOUR:
        return f"{minutes} minutes ago"
    if hours < HOURS_PER_DAY:
        return f"{hours} hours ago"
    return f"{days} days ago"


def render_actions(node: CommentNode, capabilities: CommentCapabilities) -> str:
    """One line of the controls the viewer can use on this comment."""
    comment = node.comment
    actions = [f"+{comment.like_count}", f"-{comment.dislike_count}"]
    if capabilities.can_reply:
        actions.append("Reply")
    if capabilities.can_pin:
        actions.append("Unpin" if comment.is_pinned else "Pin")
    if capabilities.can_delete:
        actions.append("Delete")
    return "  ".join(f"[{a}]" for a in actions)


def render_node(
    node: CommentNode,
    capabilities: CommentCapabilities,
    now: datetime | None = None,
) -> list[str]:
    """Lines for one comment, indented by its depth (replies not included)."""
    comment = node.comment
    pad = INDENT * node.depth
    lines = []
    if comment.is_pinned:
        lines.append(f"{pad}* Pinned by author")

    header = comment.username or comment.author_user_id
    if capabilities.is_content_author:
        header += " (Author)"
    header += f" · {format_relative_time(comment.created_at, now)}"
    lines.append(f"{pad}{header}")
    lines.extend(f"{pad}{line}" for line in comment.content.splitlines() or [""])
    lines.append(f"{pad}{render_actions(node, capabilities)}")
    return lines


def render_section(section: "CommentSection", now: datetime | None = None) -> str:
    """Render a whole section the way a terminal user would read it."""
    if section.load_state in (LoadState.IDLE, LoadState.LOADING) and not section.has_loaded:
        return "Loading comments..."

    lines = [f"Comments ({section.comment_count})"]
    if section.load_state is LoadState.FAILED and section.error_message:
        lines.append(f"! {section.error_message}")

    if section.viewer.is_authenticated:
        composer = section.composer
        lines.append(f"> {composer.placeholder}")
        controls = [composer.submit_label]
        if composer.is_reply:
            controls.append("Cancel Reply")
        lines.append("  ".join(f"[{c}]" for c in controls))
    else:
        lines.append("Please log in to leave a comment.")
    lines.append("")

    for node in section.projection.walk():
        lines.extend(render_node(node, section.capabilities_for(node.comment), now))
        lines.append("")

    return "\n".join(lines).rstrip() + "\n"
