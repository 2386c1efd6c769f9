"""Bitrix24 REST client used for the optional CRM integration.

Calls go to an inbound webhook (``<webhook_url><method>``) as JSON POSTs.
HTTP failures and ``error`` payloads both surface as ``Bitrix24Error``.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from tourcrm.utils.feature_flags import bitrix_sync_enabled
from tourcrm.utils.names import split_contact_name

logger = logging.getLogger(__name__)

_CONNECT_TIMEOUT = 3
_DEFAULT_READ_TIMEOUT = 30


class Bitrix24Error(RuntimeError):
    """Raised when a Bitrix24 call fails or returns an error payload."""


@dataclass
class Bitrix24Config:
    webhook_url: str
    route_field: Optional[str] = None
    read_timeout: float = _DEFAULT_READ_TIMEOUT

    @classmethod
    def from_env(cls) -> Optional["Bitrix24Config"]:
        webhook_url = (os.getenv("BITRIX24_WEBHOOK_URL") or "").strip()
        if not webhook_url:
            return None
        timeout = os.getenv("BITRIX24_TIMEOUT_SECONDS")
        try:
            read_timeout = float(timeout) if timeout else _DEFAULT_READ_TIMEOUT
        except ValueError:
            logger.warning("Invalid BITRIX24_TIMEOUT_SECONDS '%s'; using %s", timeout, _DEFAULT_READ_TIMEOUT)
            read_timeout = _DEFAULT_READ_TIMEOUT
        return cls(
            webhook_url=webhook_url,
            route_field=os.getenv("UF_CRM_TOUR_ROUTE") or None,
            read_timeout=read_timeout,
        )


def _multifield(value: Optional[str]) -> List[Dict[str, str]]:
    return [{"VALUE": value, "VALUE_TYPE": "WORK"}] if value else []


class Bitrix24Service:
    def __init__(self, config: Bitrix24Config) -> None:
        self.config = config
        self.webhook_url = config.webhook_url

    def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.webhook_url}{method}"
        try:
            response = requests.post(
                url,
                json=params or {},
                headers={"Content-Type": "application/json"},
                timeout=(_CONNECT_TIMEOUT, self.config.read_timeout),
            )
        except requests.RequestException as exc:
            logger.error("Bitrix24 API call failed (%s): %s", method, exc)
            raise Bitrix24Error(f"Bitrix24 API error: {exc}") from exc

        if not response.ok:
            logger.error("Bitrix24 API call failed (%s): HTTP %s", method, response.status_code)
            raise Bitrix24Error(f"Bitrix24 API error: {response.reason}")

        try:
            data = response.json()
        except ValueError as exc:
            raise Bitrix24Error(f"Bitrix24 API error: invalid JSON response ({exc})") from exc

        if isinstance(data, dict) and data.get("error"):
            message = data.get("error_description") or data.get("error")
            logger.error("Bitrix24 call %s returned error: %s", method, message)
            raise Bitrix24Error(f"Bitrix24 error: {message}")

        return data.get("result") if isinstance(data, dict) else data

    # Contacts

    def create_contact(self, name: str, email: Optional[str] = None, phone: Optional[str] = None) -> str:
        first, rest = split_contact_name(name)
        fields = {
            "NAME": first or name,
            "LAST_NAME": rest,
            "EMAIL": _multifield(email),
            "PHONE": _multifield(phone),
        }
        contact_id = self.call("crm.contact.add", {"fields": fields})
        return str(contact_id)

    def update_contact(self, contact_id: str, changes: Dict[str, Any]) -> None:
        """Update only the keys present in ``changes`` (name, email, phone).

        An explicit None clears the email or phone on the remote contact.
        """
        fields: Dict[str, Any] = {}
        if changes.get("name"):
            first, rest = split_contact_name(changes["name"])
            fields["NAME"] = first or changes["name"]
            fields["LAST_NAME"] = rest
        if "email" in changes:
            fields["EMAIL"] = _multifield(changes["email"])
        if "phone" in changes:
            fields["PHONE"] = _multifield(changes["phone"])
        self.call("crm.contact.update", {"id": contact_id, "fields": fields})

    def get_contact(self, contact_id: str) -> Any:
        return self.call("crm.contact.get", {"id": contact_id})

    def update_contact_user_fields(self, contact_id: str, user_fields: Dict[str, Any]) -> None:
        self.call("crm.contact.update", {"id": contact_id, "fields": user_fields})

    def delete_contact(self, contact_id: str) -> None:
        self.call("crm.contact.delete", {"id": contact_id})

    # Smart-process entities

    def link_contact_to_entity(self, entity_id: str, entity_type_id: str, contact_id: str) -> None:
        self.call(
            "crm.item.contact.add",
            {
                "entityTypeId": int(entity_type_id),
                "id": int(entity_id),
                "fields": {"CONTACT_ID": int(contact_id)},
            },
        )

    def update_entity_user_fields(self, entity_id: str, entity_type_id: str, route_data: Any) -> None:
        fields: Dict[str, Any] = {}
        if self.config.route_field:
            fields[self.config.route_field] = json.dumps(route_data, ensure_ascii=False)
        self.call(
            "crm.item.update",
            {"entityTypeId": int(entity_type_id), "id": int(entity_id), "fields": fields},
        )

    def get_entity(self, entity_id: str, entity_type_id: str) -> Any:
        return self.call("crm.item.get", {"entityTypeId": int(entity_type_id), "id": int(entity_id)})

    def get_entity_user_fields(self, entity_id: str, entity_type_id: str) -> Any:
        item = self.get_entity(entity_id, entity_type_id)
        # crm.item.get wraps the fields in {"item": {...}}
        if isinstance(item, dict) and isinstance(item.get("item"), dict):
            item = item["item"]
        field = self.config.route_field
        if not field or not isinstance(item, dict) or not item.get(field):
            return None
        try:
            return json.loads(item[field])
        except (TypeError, ValueError):
            logger.error("Error parsing tour route data for entity %s/%s", entity_type_id, entity_id)
            return None

    # Deals

    def get_deal(self, deal_id: str) -> Any:
        return self.call("crm.deal.get", {"id": deal_id})

    def list_deals(self, filter: Optional[Dict[str, Any]] = None) -> List[Any]:
        result = self.call("crm.deal.list", {"filter": filter or {}, "select": ["*", "UF_*"]})
        return result or []


_bitrix24_service: Optional[Bitrix24Service] = None


def get_bitrix24_service() -> Optional[Bitrix24Service]:
    """Return the shared client, or None when the integration is off."""
    global _bitrix24_service
    if not bitrix_sync_enabled():
        return None
    if _bitrix24_service is None:
        config = Bitrix24Config.from_env()
        if config is None:
            logger.info("Bitrix24 integration disabled - BITRIX24_WEBHOOK_URL not set")
            return None
        _bitrix24_service = Bitrix24Service(config)
    return _bitrix24_service


def reset_bitrix24_service() -> None:
    global _bitrix24_service
    _bitrix24_service = None
