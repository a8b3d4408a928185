"""Constants shared by the test modules."""

from datetime import datetime, timezone

WEB_SUBSCRIPTION = (
    '{"endpoint": "https://push.example.com/sub/abc", '
    '"keys": {"p256dh": "key", "auth": "secret"}}'
)
NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)
