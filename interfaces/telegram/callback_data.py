from __future__ import annotations

PREFIX = "bet"

# Telegram rejects callback data longer than this many bytes.
MAX_CALLBACK_BYTES = 64


def encode_stake_choice(line_id: str, symbol: str) -> str:
    """
    Encode an option button press.

    Format: bet:{line_id}:{symbol}
    """

    data = f"{PREFIX}:{line_id}:{symbol}"
    if len(data.encode("utf-8")) > MAX_CALLBACK_BYTES:
        raise ValueError(f"Callback data too long for line {line_id}")
    return data


def parse_stake_choice(data: str) -> tuple[str, str]:
    parts = data.split(":", 2)
    if len(parts) != 3 or parts[0] != PREFIX or not parts[1] or not parts[2]:
        raise ValueError(f"Invalid stake choice callback data: {data}")

    return parts[1], parts[2]


def is_stake_choice(data: str | None) -> bool:
    return bool(data) and data.startswith(f"{PREFIX}:")
