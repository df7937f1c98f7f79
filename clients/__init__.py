# Infrastructure clients
from clients.vault_client import (
    VaultClient,
    get_billing_api_config,
    get_card_processor_config,
)
from clients.billing_api_client import BillingAPIClient, BillingAPIError
from clients.card_processor_client import CardProcessorClient, CardProcessorError
