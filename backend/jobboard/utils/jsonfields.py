import json


def load_str_list(raw: str | None) -> list[str]:
    """Decode a JSON array column, tolerating NULL and malformed values."""
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return []
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, str) and v.strip()]


def dump_str_list(values: list[str] | None) -> str:
    return json.dumps([v.strip() for v in values or [] if v and v.strip()])
