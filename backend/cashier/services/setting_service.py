# Overview: Service-layer operations for store settings (key/value).

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..models import Setting
from ..repositories import SettingRepository
from cashier.time_utils import utcnow
from .concurrency import run_in_transaction

STORE_SETTING_KEYS = (
    "store_name",
    "store_address",
    "store_phone",
    "store_email",
    "tax_rate",
    "currency",
    "receipt_footer",
)

PAYMENT_SETTING_KEYS = (
    "payment_cash_enabled",
    "payment_card_enabled",
    "payment_qris_enabled",
)

DEFAULT_SETTINGS = {
    "store_name": "Kasir App",
    "store_address": "",
    "store_phone": "",
    "store_logo": "",
    "tax_rate": "11",
    "currency": "IDR",
    "payment_cash_enabled": "true",
    "payment_card_enabled": "true",
    "payment_qris_enabled": "true",
    "printer_type": "thermal",
    "receipt_footer": "Terima kasih atas kunjungan Anda!",
    "auto_print": "false",
    "print_logo": "true",
    "print_duplicate": "false",
    "enable_sound": "true",
    "enable_notifications": "true",
    "auto_logout": "30",
}

MAX_KEY_LENGTH = 100


def _normalize_item(key, value) -> tuple[str, str]:
    if not isinstance(key, str) or not key.strip():
        raise ValidationError("key is required")
    key = key.strip()
    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError(f"key exceeds max length {MAX_KEY_LENGTH}")
    if value is None:
        value = ""
    elif isinstance(value, bool):
        value = "true" if value else "false"
    elif not isinstance(value, str):
        value = str(value)
    return key, value


class SettingService:
    def __init__(self, session, settings: SettingRepository):
        self.session = session
        self.settings = settings

    def list(self) -> list[dict]:
        return [s.to_dict() for s in self.settings.list()]

    def get(self, key: str) -> dict:
        setting = self.settings.get(key)
        if setting is None:
            raise NotFoundError("setting not found", details={"key": key})
        return setting.to_dict()

    def _upsert(self, key: str, value: str) -> Setting:
        setting = self.settings.get(key)
        if setting is None:
            return self.settings.add(Setting(key=key, value=value))
        setting.value = value
        setting.updated_at = utcnow()
        return setting

    def upsert(self, key, value) -> dict:
        """Create the key if missing, otherwise overwrite its value."""
        key, value = _normalize_item(key, value)
        return run_in_transaction(self.session, lambda: self._upsert(key, value)).to_dict()

    def upsert_many(self, items: list) -> list[dict]:
        """
        Apply a batch of {"key", "value"} items in one transaction.

        Every item is validated before anything is written, so a bad entry
        leaves all settings untouched.
        """
        if not isinstance(items, list) or not items:
            raise ValidationError("settings batch must be a non-empty list")
        normalized = []
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise ValidationError(f"settings[{index}] must be an object")
            normalized.append(_normalize_item(item.get("key"), item.get("value")))

        def _work():
            return [self._upsert(key, value) for key, value in normalized]

        return [s.to_dict() for s in run_in_transaction(self.session, _work)]

    def _subset(self, keys) -> dict[str, str]:
        found = self.settings.get_many(keys)
        return {key: found[key].value or "" for key in keys if key in found}

    def store_settings(self) -> dict[str, str]:
        return self._subset(STORE_SETTING_KEYS)

    def payment_settings(self) -> dict[str, str]:
        return self._subset(PAYMENT_SETTING_KEYS)

    def seed_defaults(self) -> int:
        """Insert any default key that is missing. Existing values are kept. Returns count created."""
        def _work() -> int:
            existing = self.settings.get_many(DEFAULT_SETTINGS.keys())
            created = 0
            for key, value in DEFAULT_SETTINGS.items():
                if key not in existing:
                    self.settings.add(Setting(key=key, value=value))
                    created += 1
            return created

        return run_in_transaction(self.session, _work)
