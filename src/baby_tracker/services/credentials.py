"""Record store credentials held at runtime."""

import logging
from dataclasses import dataclass

from baby_tracker.config import Settings, normalize_credentials

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordStoreCredentials:
    """Token and table coordinates for the record store."""

    token: str
    base_id: str
    table_name: str


@dataclass
class CredentialsService:
    """Holds the current credentials and the configuration prompt flag."""

    current: RecordStoreCredentials
    configuration_requested: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "CredentialsService":
        """Seed credentials from application settings."""
        token, base_id, table_name = normalize_credentials(
            settings.airtable_token,
            settings.airtable_base_id,
            settings.airtable_table_name,
        )
        return cls(RecordStoreCredentials(token, base_id, table_name))

    def is_configured(self) -> bool:
        """Return True when both token and base id are present."""
        return bool(self.current.token) and bool(self.current.base_id)

    def request_configuration(self) -> None:
        """Ask the presentation layer to show the credentials form."""
        logger.info("Record store credentials requested")
        self.configuration_requested = True

    def save(
        self, token: str, base_id: str, table_name: str | None
    ) -> RecordStoreCredentials:
        """Replace the credentials; token and base id are required."""
        cleaned = normalize_credentials(token, base_id, table_name)
        if not cleaned[0] or not cleaned[1]:
            raise ValueError("Token and Base ID are required")
        self.current = RecordStoreCredentials(*cleaned)
        self.configuration_requested = False
        return self.current
