"""Messenger profile document: greeting, get-started button, persistent menu."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from src.messenger.composer import PAYLOAD_GET_STARTED, PAYLOAD_TRACKING

if TYPE_CHECKING:
    from src.messenger.send_api import SendApiClient
    from src.messenger.templates import MessageTemplates


def build_messenger_profile(templates: MessageTemplates) -> dict[str, Any]:
    return {
        "get_started": {"payload": PAYLOAD_GET_STARTED},
        "greeting": [
            {"locale": "default", "text": templates.greeting},
        ],
        "persistent_menu": [
            {
                "locale": "default",
                "composer_input_disabled": False,
                "call_to_actions": [
                    {
                        "type": "postback",
                        "title": templates.menu_tracking_title,
                        "payload": PAYLOAD_TRACKING,
                    },
                ],
            },
        ],
    }


async def setup_profile(send_api: SendApiClient, templates: MessageTemplates) -> bool:
    """Push the profile document. Repeated calls overwrite the previous one."""
    return await send_api.set_profile(build_messenger_profile(templates))
