from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("businesses", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("account_number", models.CharField(max_length=20)),
                ("name", models.CharField(max_length=200)),
                ("account_type", models.CharField(choices=[("ASSET", "Asset"), ("LIABILITY", "Liability"), ("EQUITY", "Equity"), ("REVENUE", "Revenue"), ("EXPENSE", "Expense")], max_length=20)),
                ("category", models.CharField(choices=[("CURRENT_ASSET", "Current Asset"), ("FIXED_ASSET", "Fixed Asset"), ("CONTRA_ASSET", "Contra Asset"), ("CURRENT_LIABILITY", "Current Liability"), ("LONG_TERM_LIABILITY", "Long-term Liability"), ("OWNERS_EQUITY", "Owner's Equity"), ("RETAINED_EARNINGS", "Retained Earnings"), ("OPERATING_REVENUE", "Operating Revenue"), ("OTHER_REVENUE", "Other Revenue"), ("COST_OF_GOODS_SOLD", "Cost of Goods Sold"), ("OPERATING_EXPENSE", "Operating Expense"), ("DEPRECIATION_EXPENSE", "Depreciation Expense"), ("TAX_EXPENSE", "Tax Expense"), ("INTEREST_EXPENSE", "Interest Expense"), ("OTHER_EXPENSE", "Other Expense")], max_length=30)),
                ("is_header", models.BooleanField(default=False, help_text="Header accounts group other accounts and cannot receive postings")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="accounts", to="businesses.business")),
                ("parent", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name="children", to="accounting.account")),
            ],
            options={
                "ordering": ["account_number"],
                "indexes": [
                    models.Index(fields=["business", "account_type"], name="idx_account_business_type"),
                ],
            },
        ),
        migrations.AddConstraint(
            model_name="account",
            constraint=models.UniqueConstraint(fields=("business", "account_number"), name="uniq_account_number_per_business"),
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entry_number", models.CharField(help_text="JE-{year}-{sequence}, unique per business", max_length=30)),
                ("fiscal_period", models.CharField(help_text="YYYY-MM", max_length=7)),
                ("transaction_date", models.DateField()),
                ("description", models.CharField(max_length=500)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("POSTED", "Posted"), ("REVERSED", "Reversed"), ("REVERSAL", "Reversal")], default="DRAFT", max_length=12)),
                ("source_type", models.CharField(default="Manual", max_length=50)),
                ("source_reference", models.CharField(blank=True, default="", max_length=200)),
                ("source_document_id", models.UUIDField(blank=True, null=True)),
                ("currency", models.CharField(default="USD", help_text="Transaction currency for this entry", max_length=3)),
                ("exchange_rate", models.DecimalField(decimal_places=8, default=Decimal("1"), help_text="Rate to convert entry currency to the business base currency", max_digits=18)),
                ("total_debits", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("total_credits", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("created_by", models.UUIDField()),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("posted_by", models.UUIDField(blank=True, null=True)),
                ("posted_at", models.DateTimeField(blank=True, null=True)),
                ("reversed_by_user", models.UUIDField(blank=True, null=True)),
                ("reversed_at", models.DateTimeField(blank=True, null=True)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="journal_entries", to="businesses.business")),
                ("reversal_of", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name="+", to="accounting.journalentry")),
                ("reversed_by_entry", models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.RESTRICT, related_name="+", to="accounting.journalentry")),
            ],
            options={
                "ordering": ["-transaction_date", "-created_at"],
                "verbose_name_plural": "Journal entries",
                "indexes": [
                    models.Index(fields=["business", "transaction_date"], name="idx_entry_business_date"),
                    models.Index(fields=["business", "status"], name="idx_entry_business_status"),
                    models.Index(fields=["business", "fiscal_period"], name="idx_entry_business_period"),
                ],
            },
        ),
        migrations.AddConstraint(
            model_name="journalentry",
            constraint=models.UniqueConstraint(fields=("business", "entry_number"), name="uniq_entry_number_per_business"),
        ),
        migrations.CreateModel(
            name="JournalLine",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("line_number", models.PositiveIntegerField()),
                ("debit_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("credit_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("debit_amount_base", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("credit_amount_base", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=18)),
                ("cost_center", models.CharField(blank=True, default="", max_length=50)),
                ("project_code", models.CharField(blank=True, default="", max_length=50)),
                ("description", models.CharField(blank=True, default="", max_length=300)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="journal_lines", to="accounting.account")),
                ("entry", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="lines", to="accounting.journalentry")),
            ],
            options={
                "ordering": ["entry", "line_number"],
            },
        ),
        migrations.AddConstraint(
            model_name="journalline",
            constraint=models.UniqueConstraint(fields=("entry", "line_number"), name="uniq_line_number_per_entry"),
        ),
        migrations.AddConstraint(
            model_name="journalline",
            constraint=models.CheckConstraint(condition=models.Q(models.Q(("debit_amount__gt", 0), ("credit_amount__gt", 0)), _negated=True), name="chk_line_not_both_debit_credit"),
        ),
        migrations.AddConstraint(
            model_name="journalline",
            constraint=models.CheckConstraint(condition=models.Q(("debit_amount__gte", 0), ("credit_amount__gte", 0)), name="chk_line_non_negative"),
        ),
        migrations.CreateModel(
            name="JournalEntryAuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("entry_number", models.CharField(max_length=30)),
                ("action", models.CharField(choices=[("CREATED", "Created"), ("UPDATED", "Updated"), ("POSTED", "Posted"), ("REVERSED", "Reversed"), ("DELETED", "Deleted")], max_length=10)),
                ("actor_id", models.UUIDField()),
                ("actor_display_name", models.CharField(blank=True, default="", max_length=256)),
                ("occurred_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("notes", models.CharField(blank=True, default="", max_length=500)),
                ("business", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="journal_audit_logs", to="businesses.business")),
                ("entry", models.ForeignKey(db_constraint=False, on_delete=django.db.models.deletion.DO_NOTHING, related_name="audit_logs", to="accounting.journalentry")),
            ],
            options={
                "ordering": ["occurred_at", "id"],
                "indexes": [
                    models.Index(fields=["entry", "occurred_at"], name="idx_audit_entry_time"),
                ],
            },
        ),
    ]
