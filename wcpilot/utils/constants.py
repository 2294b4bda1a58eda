"""
utils/constants.py

Purpose: Centralized static content

- Subscription plan catalog
- Instance integrations, media types, webhook event names
- Event relay event types
- Validation limits

(Prevents hardcoding across the codebase)
"""

# ============================================================
# SUBSCRIPTION PLANS
# ============================================================

SUBSCRIPTION_PLANS = {
    "free": {
        "id": "free",
        "name": "Free",
        "price": 0,
        "currency": "USD",
        "interval": "month",
        "features": [
            "1 WhatsApp instance",
            "100 messages/month",
            "Basic support",
            "Standard templates",
        ],
        "max_instances": 1,
        "max_messages_per_month": 100,
        "webhooks_enabled": False,
        "api_access_enabled": False,
    },
    "basic": {
        "id": "basic",
        "name": "Basic",
        "price": 29,
        "currency": "USD",
        "interval": "month",
        "features": [
            "3 WhatsApp instances",
            "1,000 messages/month",
            "Priority support",
            "Custom templates",
            "Basic analytics",
        ],
        "max_instances": 3,
        "max_messages_per_month": 1000,
        "webhooks_enabled": True,
        "api_access_enabled": True,
    },
    "pro": {
        "id": "pro",
        "name": "Pro",
        "price": 99,
        "currency": "USD",
        "interval": "month",
        "features": [
            "10 WhatsApp instances",
            "10,000 messages/month",
            "24/7 support",
            "Advanced templates",
            "Advanced analytics",
            "Webhook management",
            "API access",
        ],
        "max_instances": 10,
        "max_messages_per_month": 10000,
        "webhooks_enabled": True,
        "api_access_enabled": True,
    },
    "enterprise": {
        "id": "enterprise",
        "name": "Enterprise",
        "price": 299,
        "currency": "USD",
        "interval": "month",
        "features": [
            "50 WhatsApp instances",
            "100,000 messages/month",
            "Dedicated support",
            "Custom integrations",
            "Advanced analytics",
            "Webhook management",
            "Full API access",
            "Custom branding",
        ],
        "max_instances": 50,
        "max_messages_per_month": 100000,
        "webhooks_enabled": True,
        "api_access_enabled": True,
    },
}

DEFAULT_PLAN = "free"
PLAN_STATUSES = ("active", "cancelled", "past_due")


# ============================================================
# INSTANCES
# ============================================================

INTEGRATIONS = ("WHATSAPP-BAILEYS", "WHATSAPP-WEBJS", "TELEGRAM")
DEFAULT_INTEGRATION = "WHATSAPP-BAILEYS"

INSTANCE_NAME_PATTERN = r"^[A-Za-z0-9_-]+$"
INSTANCE_NAME_MIN_LENGTH = 3
INSTANCE_NAME_MAX_LENGTH = 50

PROFILE_NAME_MAX_LENGTH = 100

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"


# ============================================================
# MESSAGES
# ============================================================

MEDIA_TYPES = ("image", "video", "audio", "document")

TEXT_MAX_LENGTH = 4096
CAPTION_MAX_LENGTH = 1024

DEFAULT_PAGE = 1
DEFAULT_CHATS_LIMIT = 20
DEFAULT_MESSAGES_LIMIT = 50
MAX_PAGE_LIMIT = 100


# ============================================================
# PROVIDER WEBHOOK EVENTS
# ============================================================

WEBHOOK_EVENTS = (
    "APPLICATION_STARTUP",
    "QRCODE_UPDATED",
    "CONNECTION_UPDATE",
    "MESSAGES_UPSERT",
    "MESSAGES_UPDATE",
    "MESSAGES_DELETE",
    "SEND_MESSAGE",
    "CONTACTS_SET",
    "CONTACTS_UPSERT",
    "CONTACTS_UPDATE",
    "PRESENCE_UPDATE",
    "CHATS_SET",
    "CHATS_UPSERT",
    "CHATS_UPDATE",
    "CHATS_DELETE",
    "GROUPS_UPSERT",
    "GROUP_UPDATE",
    "GROUP_PARTICIPANTS_UPDATE",
)


# ============================================================
# REAL-TIME EVENTS
# ============================================================

EVENT_INSTANCE_CREATED = "instance-created"
EVENT_INSTANCE_DELETED = "instance-deleted"
EVENT_INSTANCE_UPDATED = "instance-updated"
EVENT_MESSAGE_SENT = "message-sent"
EVENT_GROUP_CREATED = "group-created"

EVENT_TYPES = (
    EVENT_INSTANCE_CREATED,
    EVENT_INSTANCE_DELETED,
    EVENT_INSTANCE_UPDATED,
    EVENT_MESSAGE_SENT,
    EVENT_GROUP_CREATED,
)

# A connection slower than this is treated as dead
RELAY_SEND_TIMEOUT_SECONDS = 2.0
