# reporting/apps.py
"""Reporting app configuration."""

from django.apps import AppConfig


class ReportingConfig(AppConfig):
    """Financial report engine. Reads the ledger; owns no tables."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "reporting"
    verbose_name = "Financial Reporting"
