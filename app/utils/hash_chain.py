"""
Khet Mitra - Hash Chain Utility
Tamper-evident ledger of booking lifecycle events.
"""

import hashlib
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


def generate_hash(data: str) -> str:
    """Generate SHA-256 hash of a string."""
    return hashlib.sha256(data.encode()).hexdigest()


def _content_block(prev_hash: str, timestamp: str, action: str, actor: str, payload: Dict[str, Any]) -> str:
    # Sort keys to ensure consistent hashing
    payload_str = json.dumps(payload, sort_keys=True, default=str)
    # Format: [PREV_HASH]|[TIMESTAMP]|[ACTION]|[ACTOR]|[PAYLOAD]
    return f"{prev_hash}|{timestamp}|{action}|{actor}|{payload_str}"


def create_ledger_entry(
    payload: Dict[str, Any],
    prev_hash: str,
    action: str,
    actor: str,
    timestamp: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a cryptographically linked ledger entry.

    Structure:
    Hash = SHA256( previous_hash + timestamp + action + actor + json_payload )
    """
    if timestamp is None:
        timestamp = datetime.now(timezone.utc).isoformat()

    new_hash = generate_hash(_content_block(prev_hash, timestamp, action, actor, payload))

    return {
        "hash": new_hash,
        "prev_hash": prev_hash,
        "action": action,
        "payload": payload,
        "timestamp": timestamp,
        "actor": actor
    }


def verify_chain_integrity(entry: Dict[str, Any], prev_entry: Dict[str, Any]) -> bool:
    """
    Verify if an entry is valid and strictly linked to the previous one.
    """
    # 1. Check if prev_hash matches
    if entry["prev_hash"] != prev_entry["hash"]:
        return False
    return verify_entry_hash(entry)


def verify_entry_hash(entry: Dict[str, Any]) -> bool:
    """Re-calculate the hash to verify content hasn't been tampered with."""
    calculated = generate_hash(_content_block(
        entry["prev_hash"], entry["timestamp"], entry["action"], entry["actor"], entry["payload"]
    ))
    return calculated == entry["hash"]


def find_broken_link(entries: List[Dict[str, Any]], genesis_hash: str) -> Optional[int]:
    """
    Walk a chain in order. Returns the index of the first invalid entry,
    or None when the whole chain verifies.
    """
    prev = {"hash": genesis_hash}
    for index, entry in enumerate(entries):
        if not verify_chain_integrity(entry, prev):
            return index
        prev = entry
    return None
