# reporting/serializers.py
"""Input validation for report requests."""

from rest_framework import serializers

from accounting.serializers import CURRENCY_CODE_ERROR, CURRENCY_CODE_PATTERN
from reporting.types import ConsolidationLevel, TranslationMode


class ReportRequestSerializer(serializers.Serializer):
    """
    Parameters of generate_report().

    report_type is left as free text here; the engine reports unknown
    types as UNSUPPORTED rather than as a validation failure.
    """
    report_type = serializers.CharField()
    business_ids = serializers.ListField(child=serializers.IntegerField(), allow_empty=False)
    from_date = serializers.DateField()
    to_date = serializers.DateField()
    reporting_currency = serializers.RegexField(
        CURRENCY_CODE_PATTERN,
        error_messages={"invalid": CURRENCY_CODE_ERROR},
    )
    translation_mode = serializers.ChoiceField(choices=TranslationMode.choices)
    consolidation_level = serializers.ChoiceField(choices=ConsolidationLevel.choices)
    include_zero_balances = serializers.BooleanField(required=False, default=False)

    def validate_reporting_currency(self, value):
        return value.upper()

    def validate_business_ids(self, value):
        return list(dict.fromkeys(value))

    def validate(self, attrs):
        if attrs["from_date"] > attrs["to_date"]:
            raise serializers.ValidationError("from_date must be on or before to_date.")
        return attrs
