"""Link builders for notification records.

Links are stored relative to the frontend root; clients resolve them against
their own origin. absolute_url() is for channels that leave the app (push).
"""

from core.config import get_frontend_url


def build_course_link(course_id: int) -> str:
    return f"/courses/{course_id}"


def build_venue_link(venue_id: int) -> str:
    return f"/venues/{venue_id}"


def build_announcement_link(announcement_id: int) -> str:
    return f"/announcements/{announcement_id}"


def absolute_url(link: str | None) -> str | None:
    """Prefix a stored relative link with the frontend URL."""
    if not link:
        return None
    if link.startswith(("http://", "https://")):
        return link
    return f"{get_frontend_url()}{link}"
