from __future__ import annotations

from typing import Dict, List, Optional, Sequence

# Regional indicator letters A-J.
DEFAULT_PALETTE: tuple[str, ...] = tuple(chr(0x1F1E6 + i) for i in range(10))

# Canonical option words get a symbol that reads naturally.
OVERRIDES: Dict[str, str] = {
    "yes": "\u2705",  # white heavy check mark
    "no": "\u274c",  # cross mark
    "over": "\U0001f4c8",  # chart increasing
    "under": "\U0001f4c9",  # chart decreasing
    "win": "\U0001f3c6",  # trophy
    "lose": "\U0001f494",  # broken heart
    "tie": "\U0001f91d",  # handshake
}

_VARIATION_SELECTOR = "\ufe0f"


def _normalize(symbol: str) -> str:
    return symbol.strip().replace(_VARIATION_SELECTOR, "")


class EmojiCodec:
    """
    Bidirectional mapping between a line's options and their signal symbols.

    `encode` runs once when a line is created and its result is stored on
    the line. Decoding always works against that stored list, so changing
    the palette never re-labels existing lines.
    """

    def __init__(
        self,
        palette: Sequence[str] = DEFAULT_PALETTE,
        overrides: Optional[Dict[str, str]] = None,
    ) -> None:
        self._palette = tuple(palette)
        self._overrides = {
            k.lower(): v for k, v in (OVERRIDES if overrides is None else overrides).items()
        }

    def encode(self, options: Sequence[str]) -> List[str]:
        symbols: List[str] = []
        for index, option in enumerate(options):
            symbol = self._overrides.get(option.strip().lower())
            if symbol is None or symbol in symbols:
                symbol = self._palette_symbol(index)
            if symbol in symbols:
                symbol = self._placeholder(index)
            symbols.append(symbol)
        return symbols

    def decode(self, symbol: str, symbols: Sequence[str]) -> Optional[int]:
        """Return the option index for `symbol`, or None for unrelated signals."""

        if not symbol:
            return None
        wanted = _normalize(symbol)
        for index, candidate in enumerate(symbols):
            if _normalize(candidate) == wanted:
                return index
        return None

    def _palette_symbol(self, index: int) -> str:
        if index < len(self._palette):
            return self._palette[index]
        return self._placeholder(index)

    @staticmethod
    def _placeholder(index: int) -> str:
        return f"[{index + 1}]"
