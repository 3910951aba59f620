"""Settings configuration loader module.

This module handles loading and parsing of the optional settings.conf file which
contains the chain endpoints, retry policy, tracked accounts and server options.

The settings file uses INI format with a [DEFAULT] section containing key-value pairs.
Every key may also be supplied through an environment variable of the same name in
upper case (e.g. NODE_URL, MAX_RETRIES, ALLOWED_ORIGINS), which takes precedence
over the file.

Example settings.conf:
    [DEFAULT]
    node_url = https://ardor.jelurida.com
    api_path = /nxt
    chain_id = 2
    request_timeout = 30
    max_retries = 3
    retry_delay = 2
    allowed_origins = http://localhost:3000,http://localhost:8080

Raises:
    SettingsError: If the settings file is invalid or a setting fails validation
"""
from configparser import ConfigParser
from pathlib import Path
from typing import Dict, Any, List, Mapping, Optional
import os

class ConfigValidationError:
    """Helper class to format configuration validation errors"""
    def __init__(self):
        self.missing: List[str] = []
        self.invalid_values: List[str] = []
        self.missing_sections: List[str] = []

    def has_errors(self) -> bool:
        """Check if any errors exist"""
        return bool(self.missing or self.invalid_values or self.missing_sections)

    def format_message(self) -> str:
        """Format error message in a clean, readable way"""
        messages = []

        if self.missing_sections:
            messages.append("Missing required sections:")
            messages.extend(f"  - {item}" for item in self.missing_sections)

        if self.missing:
            if messages:
                messages.append("")
            messages.append("Missing required settings:")
            messages.extend(f"  - {item}" for item in self.missing)

        if self.invalid_values:
            if messages:
                messages.append("")
            messages.append("Invalid values:")
            messages.extend(f"  - {item}" for item in self.invalid_values)

        return "\n".join(messages)

class SettingsError(Exception):
    """Raised when there are issues loading or parsing the settings configuration."""
    pass

# Default settings
DEFAULTS = {
    # Ardor node
    'node_url': 'https://ardor.jelurida.com',
    'api_path': '/nxt',
    'chain_id': '2',  # IGNIS child chain
    'request_timeout': '30',
    'max_retries': '3',
    'retry_delay': '2',

    # Polygon via Alchemy
    'alchemy_url': 'https://polygon-mainnet.g.alchemy.com',
    'alchemy_api_key': 'demo',
    'contract_address': '0xcf55f528492768330c0750a6527c1dfb50e2a7c3',

    # Tracked Ardor accounts and assets
    'burn_account': 'ARDOR-Q9KZ-74XD-WERK-CV6GB',
    'regular_cards_issuer': 'ARDOR-4V3B-TVQA-Q6LF-GMH3T',
    'special_cards_issuer': 'ARDOR-5NCL-DRBZ-XBWF-DDN5T',
    'craft_account': 'ARDOR-4V3B-TVQA-Q6LF-GMH3T',
    'morph_account': 'ARDOR-4V3B-TVQA-Q6LF-GMH3T',
    'giftz_token_id': '13993107092599641878',
    'giftz_distributor': 'ARDOR-8WCM-6LBD-3AC9-9F22P',
    'gem_asset_id': '10230963490193589789',
    'burn_start_date': '2022-01-01T00:00:00Z',

    # Cache and scheduling
    'storage_dir': 'storage',
    'refresh_interval': '300',  # Scheduled cache refresh every 5 minutes
    'poll_interval': '60',  # Dashboard polling interval

    # REST server
    'api_host': '0.0.0.0',
    'api_port': '8000',
    'allowed_origins': '*',
    'log_level': 'INFO'
}

INTEGER_SETTINGS = ['chain_id', 'max_retries', 'api_port']
FLOAT_SETTINGS = ['request_timeout', 'retry_delay', 'refresh_interval', 'poll_interval']

def load_settings_conf(settings_path: str = ".",
                       environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Load settings.conf (if present), apply environment overrides and validate

    Args:
        settings_path: Directory containing settings.conf
        environ: Environment mapping to read overrides from (defaults to os.environ)

    Returns:
        Dictionary containing parsed and validated settings

    Raises:
        SettingsError: If parsing or validation fails
    """
    config_path = Path(settings_path) / 'settings.conf'
    environ = os.environ if environ is None else environ
    settings = dict(DEFAULTS)

    if config_path.exists():
        try:
            parser = ConfigParser()
            parser.read(config_path)
        except Exception as e:
            raise SettingsError(f"Error parsing settings.conf: {str(e)}")
        settings.update(dict(parser['DEFAULT']))

    # Environment variables win over the file
    for key in DEFAULTS:
        value = environ.get(key.upper())
        if value is not None and value != '':
            settings[key] = value

    return validate_settings(settings)

def validate_settings(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Validate loaded settings.

    Args:
        settings: Dictionary of settings to validate

    Returns:
        Validated and processed settings

    Raises:
        SettingsError: If validation fails
    """
    errors = ConfigValidationError()

    missing = [key for key in ('node_url', 'api_path', 'storage_dir') if not settings.get(key)]
    errors.missing.extend(missing)

    # Convert numeric settings
    for key in INTEGER_SETTINGS:
        try:
            settings[key] = int(settings[key])
        except (TypeError, ValueError, KeyError):
            errors.invalid_values.append(f"{key}: expected an integer, got {settings.get(key)!r}")
    for key in FLOAT_SETTINGS:
        try:
            settings[key] = float(settings[key])
        except (TypeError, ValueError, KeyError):
            errors.invalid_values.append(f"{key}: expected a number, got {settings.get(key)!r}")

    # Validate numeric ranges
    if isinstance(settings.get('max_retries'), int) and settings['max_retries'] < 0:
        errors.invalid_values.append("max_retries must be at least 0")
    if isinstance(settings.get('retry_delay'), float) and settings['retry_delay'] < 0:
        errors.invalid_values.append("retry_delay must not be negative")
    if isinstance(settings.get('request_timeout'), float) and settings['request_timeout'] <= 0:
        errors.invalid_values.append("request_timeout must be positive")
    if isinstance(settings.get('refresh_interval'), float) and settings['refresh_interval'] <= 0:
        errors.invalid_values.append("refresh_interval must be positive")
    if isinstance(settings.get('poll_interval'), float) and settings['poll_interval'] <= 0:
        errors.invalid_values.append("poll_interval must be positive")

    if errors.has_errors():
        raise SettingsError(
            "Settings Configuration Validation Failed\n\n" +
            errors.format_message()
        )

    settings['api_path'] = '/' + str(settings['api_path']).lstrip('/')
    settings['node_url'] = str(settings['node_url']).rstrip('/')
    settings['allowed_origins'] = parse_origins(settings.get('allowed_origins', '*'))
    return settings

def parse_origins(value: Any) -> List[str]:
    """Split a comma separated origin list"""
    if isinstance(value, (list, tuple)):
        return [str(origin) for origin in value]
    origins = [origin.strip() for origin in str(value or '').split(',')]
    return [origin for origin in origins if origin] or ['*']
