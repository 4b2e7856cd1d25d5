"""Notifications package."""

from finance_dashboard.notifications.toaster import Toaster

__all__ = ["Toaster"]
