import os
import tempfile
import textwrap
import unittest
from datetime import date

from hedgescan.config import ConfigError, EngineConfig
from hedgescan.markets import OutcomeTokens, load_markets


MARKETS_YAML = """
settings:
  go_threshold: 0.01
  hot_threshold: 0.03
markets:
  - id: arena
    name: Arena Winner
    type: AI
    settlement_date: 2026-01-31
    outcomes: [Claude, Grok]
    outcome_settings:
      Grok:
        settlement_date: "2026-01-15"
    opinion:
      topic_id: 912
      type: multi
      token_ids:
        Claude: {yes: "111", no: "112"}
    polymarket:
      slug: arena-winner
  - id: box
    type: Box Office
    outcomes: ["<$5m", ">$8m"]
    poly:
      slug: opening-weekend
"""


class LoadMarketsTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)

    def _write(self, text: str) -> str:
        path = os.path.join(self._tmp.name, "markets.yaml")
        with open(path, "w", encoding="utf-8") as handle:
            handle.write(textwrap.dedent(text))
        return path

    def test_parses_markets(self) -> None:
        markets_file = load_markets(self._write(MARKETS_YAML))
        arena, box = markets_file.markets
        self.assertEqual(arena.market_id, "arena")
        self.assertEqual(arena.outcomes, ["Claude", "Grok"])
        self.assertEqual(arena.settlement_for("Claude"), date(2026, 1, 31))
        self.assertEqual(arena.settlement_for("Grok"), date(2026, 1, 15))
        self.assertEqual(arena.opinion_topic_id, "912")
        self.assertEqual(arena.opinion_type, "multi")
        self.assertEqual(arena.opinion_tokens["Claude"], OutcomeTokens(yes="111", no="112"))
        self.assertEqual(arena.polymarket_slug, "arena-winner")
        self.assertEqual(box.name, "box")
        self.assertIsNone(box.settlement_date)
        self.assertEqual(box.polymarket_slug, "opening-weekend")
        self.assertEqual(markets_file.market_types(), ["ALL", "AI", "Box Office"])

    def test_settings_override_config(self) -> None:
        markets_file = load_markets(self._write(MARKETS_YAML))
        config = markets_file.apply_settings(EngineConfig())
        self.assertEqual(config.go_threshold, 0.01)
        self.assertEqual(config.hot_threshold, 0.03)
        self.assertEqual(config.exit_threshold, 0.98)

    def test_settings_are_validated(self) -> None:
        path = self._write(
            """
            settings:
              go_threshold: 0.2
            markets:
              - id: arena
                outcomes: [Claude]
            """
        )
        with self.assertRaises(ConfigError):
            load_markets(path).apply_settings(EngineConfig())

    def test_rejects_invalid_files(self) -> None:
        cases = {
            "missing markets": "settings: {}\n",
            "duplicate id": "markets:\n  - {id: a, outcomes: [x]}\n  - {id: a, outcomes: [y]}\n",
            "missing id": "markets:\n  - {outcomes: [x]}\n",
            "no outcomes": "markets:\n  - {id: a}\n",
            "unknown token outcome": "markets:\n  - {id: a, outcomes: [x], opinion: {token_ids: {y: {yes: '1'}}}}\n",
            "bad date": "markets:\n  - {id: a, outcomes: [x], settlement_date: soon}\n",
            "unknown setting": "settings: {fee: 1}\nmarkets:\n  - {id: a, outcomes: [x]}\n",
        }
        for label, text in cases.items():
            with self.subTest(label):
                with self.assertRaises(ValueError):
                    load_markets(self._write(text))


if __name__ == "__main__":
    unittest.main()
