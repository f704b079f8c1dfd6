"""HubSpot CRM integration -- contact upsert with retry for form submissions.

- CRMClient: abstract client interface; HubSpotClient is the HTTP implementation
- property_map: per-form field tables and the form-to-CRM property mapper
- with_retry: bounded exponential backoff, no retry on 400/409
- upsert_contact: find-by-email then update, or create + confirmation flag
- CRMSyncService: booking/calculator/career/partner syncs and generic sync_form
"""

from src.leadcapture.crm.adapter import CRMClient
from src.leadcapture.crm.contacts import add_note_to_contact, find_contact_by_email, upsert_contact
from src.leadcapture.crm.hubspot import HubSpotClient, hubspot_client_factory
from src.leadcapture.crm.property_map import (
    CONFIRMATION_PROPERTIES,
    EXCLUDED_FIELDS,
    FormType,
    get_required_custom_properties,
    map_to_crm_properties,
)
from src.leadcapture.crm.results import FormSyncResult, SideEffectResult, UpsertResult
from src.leadcapture.crm.retry import with_retry
from src.leadcapture.crm.sync import CRMSyncService

__all__ = [
    "CRMClient",
    "HubSpotClient",
    "hubspot_client_factory",
    "CRMSyncService",
    "FormType",
    "CONFIRMATION_PROPERTIES",
    "EXCLUDED_FIELDS",
    "map_to_crm_properties",
    "get_required_custom_properties",
    "upsert_contact",
    "find_contact_by_email",
    "add_note_to_contact",
    "with_retry",
    "SideEffectResult",
    "UpsertResult",
    "FormSyncResult",
]
