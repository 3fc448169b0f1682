"""
Services module - Cross-cutting capabilities

Contains:
- Telegram notifications
- Scheduling
"""

from polyarb.services.telegram import TelegramService, create_telegram_service
from polyarb.services.scheduler import SchedulerService, create_scheduler_service

__all__ = [
    "TelegramService",
    "create_telegram_service",
    "SchedulerService",
    "create_scheduler_service",
]
