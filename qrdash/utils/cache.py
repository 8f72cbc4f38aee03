import datetime
import json
import logging

import redis

logger = logging.getLogger(__name__)


def cache_key(short_code: str) -> str:
    return f"qr:{short_code}"


def get_snapshot(client, short_code: str) -> dict | None:
    if not client:
        return None
    try:
        cached = client.get(cache_key(short_code))
    except redis.RedisError as e:
        logger.warning(f"Redis GET failed for {short_code}: {e}")
        return None
    if not cached:
        return None
    try:
        data = json.loads(cached)
    except ValueError:
        return None
    if data.get("expires_at"):
        data["expires_at"] = datetime.datetime.fromisoformat(data["expires_at"])
    return data


def set_snapshot(client, short_code: str, data: dict, ttl: int) -> None:
    if not client:
        return
    payload = dict(data)
    if payload.get("expires_at"):
        payload["expires_at"] = payload["expires_at"].isoformat()
    try:
        client.setex(cache_key(short_code), ttl, json.dumps(payload))
    except redis.RedisError as e:
        logger.warning(f"Redis SET failed for {short_code}: {e}")


def invalidate(client, *short_codes: str) -> None:
    if not client or not short_codes:
        return
    try:
        client.delete(*[cache_key(c) for c in short_codes])
    except redis.RedisError as e:
        logger.warning(f"Redis cleanup failed: {e}")
