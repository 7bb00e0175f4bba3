import bleach
from rest_framework import serializers

from fulfillment_ledger.common.clients import is_known_client, known_clients


def clean_text(value):
    """Strip markup from operator-entered free text."""
    if not value:
        return value
    return bleach.clean(value.strip(), tags=[], strip=True)


class ClientField(serializers.CharField):
    """Client name restricted to the known companies and configured extras."""

    def to_internal_value(self, data):
        value = clean_text(super().to_internal_value(data))
        if not is_known_client(value):
            raise serializers.ValidationError(
                f"Unknown client. Must be one of: {', '.join(known_clients())}."
            )
        return value
