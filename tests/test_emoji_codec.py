import unittest

from domain.emoji_codec import DEFAULT_PALETTE, EmojiCodec


class EmojiCodecTests(unittest.TestCase):
    def setUp(self) -> None:
        self.codec = EmojiCodec()

    def test_generic_options_use_palette_by_position(self):
        symbols = self.codec.encode(["Red", "Blue", "Green"])
        self.assertEqual(symbols, list(DEFAULT_PALETTE[:3]))

    def test_canonical_words_use_overrides_case_insensitively(self):
        symbols = self.codec.encode(["YES", "No"])
        self.assertEqual(symbols, ["\u2705", "\u274c"])

    def test_mixed_options_keep_index_alignment(self):
        symbols = self.codec.encode(["Maybe", "win", "tie"])
        self.assertEqual(symbols, [DEFAULT_PALETTE[0], "\U0001f3c6", "\U0001f91d"])

    def test_exhausted_palette_falls_back_to_numbered_placeholder(self):
        options = [f"option {i}" for i in range(12)]
        symbols = self.codec.encode(options)
        self.assertEqual(len(symbols), 12)
        self.assertEqual(symbols[10], "[11]")
        self.assertEqual(symbols[11], "[12]")
        self.assertEqual(len(set(symbols)), 12)

    def test_decode_returns_option_index(self):
        symbols = self.codec.encode(["over", "under"])
        self.assertEqual(self.codec.decode("\U0001f4c9", symbols), 1)

    def test_decode_ignores_variation_selector(self):
        symbols = ["\u2705", "\u274c"]
        self.assertEqual(self.codec.decode("\u2705\ufe0f", symbols), 0)

    def test_decode_unknown_symbol_returns_none(self):
        symbols = self.codec.encode(["over", "under"])
        self.assertIsNone(self.codec.decode("\U0001f600", symbols))
        self.assertIsNone(self.codec.decode("", symbols))


if __name__ == "__main__":
    unittest.main()
