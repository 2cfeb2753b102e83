import hashlib


def hash_parts(*parts: str) -> str:
    """Stable SHA-256 hash over ordered string parts."""
    payload = "||".join(parts).encode("utf-8")
    return hashlib.sha256(payload).hexdigest()


def stable_alert_id(correlation_key: str, prefix: str = "ALERT") -> str:
    """Deterministic alert id: same key in, same id out, across runs and processes."""
    return f"{prefix}-{hash_parts(correlation_key)[:12]}"
