"""
Configuration

Loads settings from the environment (and a local .env file) and builds the
configured action item store.
"""

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel

from .commands.extractor import DEFAULT_MAX_CANDIDATES, DEFAULT_MAX_TEXT_LENGTH
from .store import ActionItemStore, JsonActionItemStore, PostgrestActionItemStore

logger = logging.getLogger(__name__)

STORE_BACKENDS = ('json', 'postgrest')


class AppConfig(BaseModel):
    """Runtime settings."""
    anthropic_api_key: Optional[str] = None
    anthropic_model: str = "claude-sonnet-4-20250514"
    store_backend: str = "json"
    store_file: str = "./data/action_items.json"
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    store_timeout: float = 10.0
    log_level: str = "INFO"
    max_scan_chars: int = DEFAULT_MAX_TEXT_LENGTH
    max_candidates: int = DEFAULT_MAX_CANDIDATES
    max_history: int = 10


def load_config(require_api_key: bool = False) -> AppConfig:
    """
    Load and validate environment configuration.

    Args:
        require_api_key: Fail if ANTHROPIC_API_KEY is missing

    Returns:
        AppConfig with configuration values

    Raises:
        RuntimeError: If required environment variables are missing or invalid
    """
    load_dotenv()

    backend = os.getenv('SITELOG_STORE', 'json').lower()
    if backend not in STORE_BACKENDS:
        raise RuntimeError(
            f"Unknown SITELOG_STORE '{backend}' (expected one of: {', '.join(STORE_BACKENDS)})"
        )

    required_vars = []
    if require_api_key:
        required_vars.append('ANTHROPIC_API_KEY')
    if backend == 'postgrest':
        required_vars.extend(['SUPABASE_URL', 'SUPABASE_KEY'])

    missing = [var for var in required_vars if not os.getenv(var)]

    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}\n"
            f"Please copy .env.example to .env and fill in the values."
        )

    try:
        config = AppConfig(
            anthropic_api_key=os.getenv('ANTHROPIC_API_KEY'),
            anthropic_model=os.getenv('ANTHROPIC_MODEL', 'claude-sonnet-4-20250514'),
            store_backend=backend,
            store_file=os.getenv('SITELOG_STORE_FILE', './data/action_items.json'),
            supabase_url=os.getenv('SUPABASE_URL'),
            supabase_key=os.getenv('SUPABASE_KEY'),
            store_timeout=float(os.getenv('STORE_TIMEOUT_SECONDS', '10')),
            log_level=os.getenv('LOG_LEVEL', 'INFO').upper(),
            max_scan_chars=int(os.getenv('MAX_SCAN_CHARS', str(DEFAULT_MAX_TEXT_LENGTH))),
            max_candidates=int(os.getenv('MAX_CANDIDATES', str(DEFAULT_MAX_CANDIDATES))),
            max_history=int(os.getenv('MAX_HISTORY_TURNS', '10'))
        )
    except ValueError as e:
        raise RuntimeError(f"Invalid configuration value: {e}") from e

    return config


def build_store(config: AppConfig) -> ActionItemStore:
    """
    Build the action item store selected by the configuration.

    Args:
        config: Loaded configuration

    Returns:
        ActionItemStore instance
    """
    if config.store_backend == 'postgrest':
        logger.info("Using hosted database store")
        return PostgrestActionItemStore(
            base_url=config.supabase_url,
            api_key=config.supabase_key,
            timeout=config.store_timeout
        )

    logger.info(f"Using JSON store at {config.store_file}")
    return JsonActionItemStore(config.store_file)
