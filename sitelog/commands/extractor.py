"""
Command Extractor

Finds the action block the assistant embeds in its reply. Replies look like

    Sure, I'll close that out.
    {"action":{"type":"update_status","data":{"id":"abc-1","status":"closed"}}}

with arbitrary prose (or a code fence) around the JSON. Absence of a command
is a normal outcome, so nothing here raises on bad input.
"""

import json
import logging
import re
from typing import Iterator, Optional, Tuple

from pydantic import BaseModel

from .models import Command, command_from_document

logger = logging.getLogger(__name__)

DEFAULT_MAX_TEXT_LENGTH = 50_000
DEFAULT_MAX_CANDIDATES = 64

# A candidate is any object that opens with a key; the decoded document
# decides whether it carries an action
CANDIDATE_START = re.compile(r'\{\s*"')


class ExtractionMatch(BaseModel):
    """A command together with where its JSON block sits in the text."""
    command: Command
    start: int
    end: int


def find_object_end(text: str, start: int) -> Optional[int]:
    """
    Find the end of the JSON object opening at `start`.

    Tracks nesting depth and ignores braces inside string literals.

    Args:
        text: Text to scan
        start: Index of an opening brace

    Returns:
        Index one past the matching closing brace, or None if unbalanced
    """
    depth = 0
    in_string = False
    escaped = False

    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == '{':
            depth += 1
        elif ch == '}':
            depth -= 1
            if depth == 0:
                return i + 1

    return None


class CommandExtractor:
    """
    Scans free text for the first well-formed action block.

    Candidates are tried left to right; the first one that decodes and has
    the action shape wins. Scanning is bounded by `max_text_length`
    characters and `max_candidates` candidate blocks.
    """

    def __init__(
        self,
        max_text_length: int = DEFAULT_MAX_TEXT_LENGTH,
        max_candidates: int = DEFAULT_MAX_CANDIDATES
    ):
        """
        Initialize the extractor.

        Args:
            max_text_length: Characters of input that are scanned at most
            max_candidates: Candidate blocks that are decoded at most
        """
        if max_text_length <= 0 or max_candidates <= 0:
            raise ValueError("Scan bounds must be positive")

        self.max_text_length = max_text_length
        self.max_candidates = max_candidates

    def iter_candidates(self, text: str) -> Iterator[Tuple[int, int]]:
        """
        Yield (start, end) spans of balanced candidate blocks, leftmost first.

        Args:
            text: Text to scan

        Yields:
            Candidate spans
        """
        scanned = text[:self.max_text_length]
        if len(text) > self.max_text_length:
            logger.warning(f"Reply truncated to {self.max_text_length} characters "
                           f"for command scanning (was {len(text)})")

        tried = 0
        for match in CANDIDATE_START.finditer(scanned):
            if tried >= self.max_candidates:
                logger.warning(f"Stopped after {tried} candidate blocks")
                return
            tried += 1

            start = match.start()
            end = find_object_end(scanned, start)
            if end is None:
                logger.debug(f"Unbalanced candidate at offset {start}")
                continue
            yield start, end

    def locate(self, text: Optional[str]) -> Optional[ExtractionMatch]:
        """
        Find the first command in the text and where it sits.

        Args:
            text: Assistant reply

        Returns:
            ExtractionMatch, or None if no command is present
        """
        if not text:
            return None

        for start, end in self.iter_candidates(text):
            fragment = text[start:end]
            try:
                document = json.loads(fragment)
            except (ValueError, RecursionError) as e:
                logger.debug(f"Malformed action JSON at offset {start}: {e}")
                continue

            command = command_from_document(document)
            if command is None:
                logger.debug(f"Candidate at offset {start} is not an action block")
                continue

            logger.info(f"Found '{command.kind}' command ({command.shape} shape) "
                        f"at offset {start}")
            return ExtractionMatch(command=command, start=start, end=end)

        logger.debug("No command found in reply")
        return None

    def extract(self, text: Optional[str]) -> Optional[Command]:
        """
        Extract the first command from the text.

        Args:
            text: Assistant reply

        Returns:
            Command, or None if no command is present
        """
        match = self.locate(text)
        return match.command if match else None


def extract_command(text: Optional[str]) -> Optional[Command]:
    """Extract a command using the default scan bounds."""
    return CommandExtractor().extract(text)
