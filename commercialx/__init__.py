"""
CommercialX - listing enrichment for a commercial-vehicle marketplace

VIN decodes from NHTSA vPIC and EPA are merged, normalised and reconciled
into the dealer's listing wizard:
- Enumeration normalisation (drive type, fuel type, rear wheels)
- Derived roof-height category from overall height
- Provenance tracking of auto-filled fields
- Wizard step preservation across background decodes
"""

__version__ = '0.1.0'

from commercialx.core.config import CommercialXConfig, get_config, set_config
from commercialx.enrichment.reconciler import ReconciliationResult, reconcile
from commercialx.listing.wizard import EnrichmentSummary, ListingWizard

__all__ = [
    'CommercialXConfig',
    'get_config',
    'set_config',
    'ReconciliationResult',
    'reconcile',
    'EnrichmentSummary',
    'ListingWizard',
]
