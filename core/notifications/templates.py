"""Message template loading and rendering."""

from pathlib import Path

import yaml

from core.enums import NotificationType


_templates: dict | None = None


def load_templates() -> dict:
    """
    Load message templates from YAML file.

    Caches templates after first load.
    """
    global _templates
    if _templates is not None:
        return _templates

    yaml_path = Path(__file__).parent / "messages.yaml"
    with open(yaml_path) as f:
        _templates = yaml.safe_load(f)

    return _templates


def render_message(template: str, context: dict) -> str:
    """
    Render a message template with context variables.

    Raises:
        KeyError: If a required variable is missing from context
    """
    return template.format(**context)


def get_message(
    notification_type: NotificationType,
    context: dict,
    field: str = "message",
) -> str:
    """
    Get and render the text for a notification type.

    Args:
        notification_type: Which notification is being sent
        context: Variables to substitute
        field: "message" (stored text) or "push_title"
    """
    templates = load_templates()
    template = templates[NotificationType(notification_type).value][field]
    return render_message(template, context)


def get_push_title(notification_type: NotificationType) -> str:
    return load_templates()[NotificationType(notification_type).value]["push_title"]
