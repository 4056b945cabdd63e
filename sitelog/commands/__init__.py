"""
Commands Module

Locates the JSON action block inside an assistant reply and normalizes it
into a Command.
"""

from .models import Command, normalize_action, command_from_document
from .extractor import CommandExtractor, ExtractionMatch, extract_command

__all__ = [
    "Command",
    "CommandExtractor",
    "ExtractionMatch",
    "command_from_document",
    "extract_command",
    "normalize_action"
]
