"""Configuration module for the listing search service."""

from .settings import (
    SERVICE_CONFIG,
    Settings,
    SolrConfig,
    CacheConfig,
    CatalogConfig,
    ConsumerConfig,
    RetryConfig,
    get_settings,
    load_service_config,
)

__all__ = [
    'SERVICE_CONFIG',
    'Settings',
    'SolrConfig',
    'CacheConfig',
    'CatalogConfig',
    'ConsumerConfig',
    'RetryConfig',
    'get_settings',
    'load_service_config',
]
