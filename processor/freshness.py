"""ETag computation and conditional-response decisions."""
import hashlib
import json
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CACHE_MAX_AGE_SECONDS = 1


@dataclass
class FreshnessDecision:
    """Outcome of comparing a response model with the client's validator."""
    not_modified: bool
    etag: str
    max_age: int = CACHE_MAX_AGE_SECONDS


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if hasattr(value, 'to_dict'):
        return value.to_dict()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def serialize_model(model: Dict[str, Any]) -> str:
    """Encode the response model exactly as it is sent to the client."""
    return json.dumps(model, default=_json_default, separators=(',', ':'))


def compute_etag(model: Dict[str, Any]) -> str:
    """
    Fingerprint the response model.

    Key order is preserved, so reordering day buckets changes the tag.
    """
    return hashlib.md5(serialize_model(model).encode('utf-8')).hexdigest()


def normalize_etag(token: Optional[str]) -> Optional[str]:
    """Strip the weak prefix and quotes from an If-None-Match value."""
    if token is None:
        return None
    token = token.strip()
    if token.startswith('W/'):
        token = token[2:]
    token = token.strip('"')
    return token or None


def evaluate_freshness(
    model: Dict[str, Any],
    force_refresh: bool,
    client_token: Optional[str]
) -> FreshnessDecision:
    """
    Decide between a "not modified" short-circuit and a full response.

    Args:
        model: Response model that would be sent
        force_refresh: True to always send the full response
        client_token: Validator previously issued to the client, if any

    Returns:
        FreshnessDecision carrying the new ETag
    """
    etag = compute_etag(model)
    token = normalize_etag(client_token)
    not_modified = not force_refresh and token is not None and token == etag
    return FreshnessDecision(not_modified=not_modified, etag=etag)
