"""Chord-format retrieval via the external converter."""

from .service import ConverterConfig, FormatGateway, parse_tab_id, validate_worshipchords_url

__all__ = ["ConverterConfig", "FormatGateway", "parse_tab_id", "validate_worshipchords_url"]
