# businesses/models.py
"""
Reference data for the ledger.

Models:
- Business: A bookkeeping entity with its own base currency and chart of accounts
- ExchangeRate: A persisted conversion rate between two currencies

Both are read-only from the point of view of the journal and reporting
engines. Rate sourcing/ingestion happens elsewhere; rows are assumed
to be present when a report is generated.
"""

from decimal import Decimal

from django.db import models


class Business(models.Model):
    name = models.CharField(max_length=200)
    base_currency = models.CharField(
        max_length=3,
        default="USD",
        help_text="Home currency; all ledger amounts are stored translated into it",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "Businesses"

    def __str__(self):
        return f"{self.name} ({self.base_currency})"


class ExchangeRate(models.Model):
    """
    Conversion rate from one currency to another, effective from a date.

    Several rows may share a currency pair and effective date; the most
    recently inserted one wins.
    """

    from_currency = models.CharField(max_length=3)
    to_currency = models.CharField(max_length=3)
    rate = models.DecimalField(max_digits=18, decimal_places=8)
    effective_date = models.DateField()
    expiry_date = models.DateField(null=True, blank=True)
    source = models.CharField(max_length=50, default="Manual")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["from_currency", "to_currency", "effective_date", "id"]
        indexes = [
            models.Index(fields=["to_currency", "from_currency", "effective_date"], name="idx_rate_pair_date"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(rate__gt=Decimal("0")),
                name="chk_exchange_rate_positive",
            ),
        ]

    def __str__(self):
        return f"{self.from_currency}->{self.to_currency} {self.rate} @ {self.effective_date}"
