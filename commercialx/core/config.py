"""
Configuration management for CommercialX.

Loads settings from YAML config file and provides typed access.
"""
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
import yaml

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()


def _project_root() -> Path:
    """Return project root (parent of commercialx package)."""
    return Path(__file__).resolve().parent.parent.parent


DEFAULT_CONFIG_PATH = _project_root() / "config" / "default.yaml"

DEFAULT_WIZARD_STEPS = [
    "Listing Type",
    "Vehicle Information",
    "Equipment Information",
    "Pricing & Details",
    "Photos",
    "Review & Submit",
]


@dataclass
class CommercialXConfig:
    """Configuration for the listing enrichment service."""

    # NHTSA vPIC
    nhtsa_base_url: str = "https://vpic.nhtsa.dot.gov/api/vehicles"
    nhtsa_timeout: float = 10.0

    # EPA fuel economy
    epa_base_url: str = "https://www.fueleconomy.gov/ws/rest"
    epa_timeout: float = 10.0
    epa_enabled: bool = True

    # Decode cache (VIN data does not change, so keep it for 60 days)
    decode_cache_ttl_minutes: int = 60 * 24 * 60
    decode_cache_cleanup_minutes: int = 10

    # Listing wizard
    vin_length: int = 17
    wizard_steps: List[str] = field(default_factory=lambda: list(DEFAULT_WIZARD_STEPS))

    @classmethod
    def from_yaml(cls, config_path: Optional[Path] = None) -> "CommercialXConfig":
        """Load configuration from YAML file."""
        path = config_path or DEFAULT_CONFIG_PATH
        if not path.exists():
            return cls()

        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}

        providers_config = data.get('providers', {})
        nhtsa_config = providers_config.get('nhtsa', {})
        epa_config = providers_config.get('epa', {})
        cache_config = data.get('cache', {})
        wizard_config = data.get('wizard', {})

        return cls(
            nhtsa_base_url=nhtsa_config.get('base_url', "https://vpic.nhtsa.dot.gov/api/vehicles"),
            nhtsa_timeout=nhtsa_config.get('timeout', 10.0),
            epa_base_url=epa_config.get('base_url', "https://www.fueleconomy.gov/ws/rest"),
            epa_timeout=epa_config.get('timeout', 10.0),
            epa_enabled=epa_config.get('enabled', True),
            decode_cache_ttl_minutes=cache_config.get('decode_ttl_minutes', 60 * 24 * 60),
            decode_cache_cleanup_minutes=cache_config.get('cleanup_minutes', 10),
            vin_length=wizard_config.get('vin_length', 17),
            wizard_steps=wizard_config.get('steps') or list(DEFAULT_WIZARD_STEPS),
        )


# Global config instance
_config: Optional[CommercialXConfig] = None


def get_config() -> CommercialXConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = CommercialXConfig.from_yaml()
    return _config


def set_config(config: CommercialXConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
