"""Redis helpers for short-lived JSON records.

Key pattern:
    {SESSION_KEY_PREFIX}{session_id}
"""

import json
import logging
from typing import Any, Dict, Optional

import redis
from redis import Redis


logger = logging.getLogger("caching")


def create_redis_client(redis_url) -> Redis:
    """
    Build a Redis client for the given URL

    Connections are opened lazily on first command

    Args:
        redis_url (str): redis:// URL

    Returns:
        redis.Redis client
    """
    return redis.Redis.from_url(redis_url)


def load_json(client, key) -> Optional[Dict[str, Any]]:
    """
    Read a JSON object stored under key

    Redis errors propagate; an undecodable entry is treated as missing

    Args:
        client: Redis client
        key (str): Cache key

    Returns:
        dict or None
    """
    raw = client.get(key)
    if not raw:
        return None

    payload_text = raw.decode("utf-8") if hasattr(raw, "decode") else str(raw)
    try:
        payload = json.loads(payload_text)
    except (TypeError, json.JSONDecodeError) as exc:
        logger.warning("load_json decode error key_prefix=%s error=%s", key.split(":")[0], type(exc).__name__)
        return None

    if not isinstance(payload, dict):
        logger.warning("load_json unexpected payload type=%s", type(payload).__name__)
        return None
    return payload


def store_json(client, key, ttl_seconds, payload) -> None:
    """
    Store a JSON object with a TTL

    Args:
        client: Redis client
        key (str): Cache key
        ttl_seconds (int): Expiry in seconds
        payload (dict): Serializable payload

    Returns:
        None
    """
    client.setex(key, int(ttl_seconds), json.dumps(payload, default=str))
