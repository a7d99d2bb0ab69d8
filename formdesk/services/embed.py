"""Embed snippet shown on the settings page."""

from __future__ import annotations

import json

SNIPPET_TEMPLATE = """<!-- Contact Form Widget -->
<div id="{container_id}"></div>
<script src="{script_url}"></script>
<script>
  ContactForm.init({{
    userId: {account_id},
    container: {container}
  }});
</script>"""


def build_embed_snippet(
    account_id: str,
    widget_base_url: str,
    *,
    container_id: str = "contact-form-widget",
) -> str:
    """Return the HTML an account holder pastes into their site."""

    script_url = f"{str(widget_base_url).rstrip('/')}/widget.js"
    return SNIPPET_TEMPLATE.format(
        container_id=container_id,
        script_url=script_url,
        account_id=json.dumps(account_id),
        container=json.dumps(f"#{container_id}"),
    )


__all__ = ["build_embed_snippet"]
