"""
SMS Loader Module
Reads exported SMS inboxes (plain text or JSON) into message entries.

Plain text: messages separated by one or more blank lines.
JSON: a list of strings, or a list of objects with a "body" (or "message")
field and an optional "date"/"received_at" (ISO string or epoch milliseconds).
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# (text, received_at) pairs, ready for SmsExtractor
InboxEntry = tuple[str, Optional[datetime]]


class SmsLoadError(Exception):
    """Custom exception for inbox loading errors."""
    pass


def _parse_received_at(value) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        # Android exports store epoch milliseconds
        seconds = value / 1000 if value > 10_000_000_000 else value
        try:
            return datetime.fromtimestamp(seconds)
        except (OverflowError, OSError, ValueError):
            logger.warning(f"Unusable timestamp {value}, ignoring")
            return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            logger.warning(f"Unparseable received date '{value}', ignoring")
            return None
    return None


def parse_plain_text(content: str) -> list[InboxEntry]:
    """Split a plain-text dump on blank lines."""
    entries = []
    block: list[str] = []
    for line in content.splitlines():
        if line.strip():
            block.append(line.strip())
        elif block:
            entries.append((" ".join(block), None))
            block = []
    if block:
        entries.append((" ".join(block), None))
    return entries


def parse_json(content: str) -> list[InboxEntry]:
    """
    Parse a JSON inbox export.

    Raises:
        SmsLoadError: If the document is not a list of messages
    """
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise SmsLoadError(f"Invalid JSON inbox: {e}") from e

    if isinstance(data, dict) and isinstance(data.get("messages"), list):
        data = data["messages"]
    if not isinstance(data, list):
        raise SmsLoadError("JSON inbox must be a list of messages")

    entries = []
    skipped = 0
    for item in data:
        if isinstance(item, str):
            entries.append((item, None))
        elif isinstance(item, dict):
            body = item.get("body", item.get("message"))
            if not isinstance(body, str):
                skipped += 1
                continue
            received = item.get("received_at", item.get("date"))
            entries.append((body, _parse_received_at(received)))
        else:
            skipped += 1

    if skipped:
        logger.warning(f"Skipped {skipped} JSON entries without a message body")
    return entries


def load_inbox_text(content: str, fmt: str = "text") -> list[InboxEntry]:
    """Parse inbox content that is already in memory."""
    if fmt == "json":
        return parse_json(content)
    if fmt == "text":
        return parse_plain_text(content)
    raise SmsLoadError(f"Unsupported inbox format: {fmt}")


def load_inbox(file_path: str) -> list[InboxEntry]:
    """
    Load an exported inbox file.

    Args:
        file_path: Path to a .txt or .json export

    Returns:
        List of (text, received_at) entries

    Raises:
        SmsLoadError: If the file cannot be read or parsed
    """
    path = Path(file_path)
    if not path.exists():
        logger.error(f"Inbox file not found: {file_path}")
        raise SmsLoadError(f"Inbox file not found: {file_path}")

    suffix = path.suffix.lower()
    if suffix not in (".txt", ".json"):
        logger.error(f"Unsupported inbox file type: {file_path}")
        raise SmsLoadError(f"Unsupported inbox file type: {file_path}")

    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.error(f"Cannot read inbox {file_path}", exc_info=True)
        raise SmsLoadError(f"Cannot read inbox {file_path}: {e}") from e

    entries = load_inbox_text(content, "json" if suffix == ".json" else "text")
    if not entries:
        raise SmsLoadError(f"No messages found in inbox: {file_path}")

    logger.info(f"Loaded {len(entries)} messages from {file_path}")
    return entries


def load_multiple_inboxes(file_paths: list[str]) -> list[InboxEntry]:
    """
    Load and concatenate several inbox files.

    Raises:
        SmsLoadError: If no file could be loaded
    """
    if not file_paths:
        raise SmsLoadError("No inbox files provided")

    entries: list[InboxEntry] = []
    failed = []
    for idx, file_path in enumerate(file_paths, 1):
        try:
            logger.info(f"Processing inbox {idx}/{len(file_paths)}: {file_path}")
            entries.extend(load_inbox(file_path))
        except SmsLoadError as e:
            logger.error(f"Failed to load {file_path}: {e}")
            failed.append(file_path)

    if not entries:
        raise SmsLoadError(f"Failed to load any inboxes. All {len(file_paths)} files failed.")
    if failed:
        logger.warning(f"Loaded {len(file_paths) - len(failed)}/{len(file_paths)} inboxes. Failed: {', '.join(failed)}")

    return entries
