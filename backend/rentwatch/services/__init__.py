"""Services for persistence, notifications and the watcher run.

Services hold the pipeline logic above the scrapers: deciding which
listings are new, storing them, telling Slack about them.
"""

from rentwatch.services.notification_service import SlackNotifier
from rentwatch.services.property_service import PropertyService
from rentwatch.services.watch_service import RunSummary, WatchService

__all__ = [
    "SlackNotifier",
    "PropertyService",
    "RunSummary",
    "WatchService",
]
