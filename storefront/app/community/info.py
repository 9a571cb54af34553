"""Static community information served alongside the checkout hand-off."""
from __future__ import annotations

from typing import Any, Dict, Optional

DEFAULT_SERVER_INVITE = "https://discord.gg/bytebunny"

PURCHASE_STEPS = [
    "1. Join our Discord server using the invite link",
    "2. Go to the #purchases or #support channel",
    "3. Contact an admin or moderator",
    "4. Provide your product and license preferences",
    "5. Complete payment through Discord",
]

SUPPORT_STEPS = [
    "1. Join our Discord server using the invite link",
    "2. Go to the #support or #help channel",
    "3. Describe your issue to our support team",
    "4. Provide any relevant details",
    "5. Wait for assistance from our team",
]

COMMUNITY_FEATURES = [
    "Live Support",
    "Purchase Assistance",
    "Community Chat",
    "Product Updates",
    "User Guides",
    "Direct Admin Contact",
]


def purchase_info(product: Optional[str], license_type: Optional[str]) -> Dict[str, Any]:
    return {"product": product, "license": license_type, "instructions": list(PURCHASE_STEPS)}


def support_info(issue: Optional[str]) -> Dict[str, Any]:
    return {"issue": issue, "instructions": list(SUPPORT_STEPS)}


def contact_info(invite: str) -> Dict[str, Any]:
    return {
        "community": {
            "discord": invite,
            "name": "ByteBunny Community",
            "description": "Join our Discord server for support, purchases, updates, and community discussions!",
        },
        "services": {
            "support": "Available in Discord #support channel",
            "purchases": "Contact admins in Discord for purchases",
            "updates": "Latest updates posted in Discord #announcements",
            "community": "Chat with other users in Discord general channels",
        },
        "instructions": {
            "newUsers": [
                "Click the Discord invite link",
                "Join the ByteBunny server",
                "Read the rules and announcements",
                "Use appropriate channels for your needs",
            ],
            "purchases": [
                "Join Discord server",
                "Contact an admin or moderator",
                "Discuss product options and pricing",
                "Complete payment as instructed",
                "Receive your license and downloads",
            ],
            "support": [
                "Join Discord server",
                "Use #support channel",
                "Describe your issue clearly",
                "Wait for team assistance",
                "Follow provided solutions",
            ],
        },
    }


def community_status(invite: str) -> Dict[str, Any]:
    return {"platform": "Discord", "invite": invite, "features": list(COMMUNITY_FEATURES)}
