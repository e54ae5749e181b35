import io
import json
import os
import tempfile
import unittest
from unittest.mock import patch

from hedgescan.main import main


MARKETS_YAML = """\
markets:
  - id: arena
    name: Arena Winner
    type: AI
    settlement_date: 2026-01-31
    outcomes: [Claude, Grok]
    opinion:
      token_ids:
        Claude: {"yes": "op-claude-yes", "no": "op-claude-no"}
    polymarket:
      slug: arena-winner
"""

BOOKS = {
    "books": [
        {"venue": "opinion", "event_id": "arena", "outcome": "Claude", "side": "YES",
         "bids": [[0.50, 100]], "asks": [[0.45, 100]]},
        {"venue": "opinion", "event_id": "arena", "outcome": "Claude", "side": "NO",
         "bids": [[0.40, 100]], "asks": [[0.60, 100]]},
        {"venue": "polymarket", "event_id": "arena", "outcome": "Claude", "side": "YES",
         "bids": [[0.48, 100]], "asks": [[0.50, 100]]},
        {"venue": "polymarket", "event_id": "arena", "outcome": "Claude", "side": "NO",
         "bids": [[0.49, 100]], "asks": [[0.52, 100]]},
    ]
}

POSITIONS = {
    "opinion": [{"token_id": "op-claude-yes", "shares_owned": 100, "avg_entry_price": 0.45}],
    "polymarket": [
        {"outcome": "No", "size": 100, "avgPrice": 0.49, "title": "Will Claude win?", "eventSlug": "arena-winner"}
    ],
}


@patch("hedgescan.config.load_dotenv")
@patch.dict(os.environ, {}, clear=True)
class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.markets = os.path.join(tmp.name, "markets.yaml")
        self.books = os.path.join(tmp.name, "books.json")
        self.positions = os.path.join(tmp.name, "positions.json")
        with open(self.markets, "w", encoding="utf-8") as handle:
            handle.write(MARKETS_YAML)
        with open(self.books, "w", encoding="utf-8") as handle:
            json.dump(BOOKS, handle)
        with open(self.positions, "w", encoding="utf-8") as handle:
            json.dump(POSITIONS, handle)

    def _run(self, *argv: str):
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = main(list(argv))
        return code, stdout.getvalue()

    def test_scan_prints_opportunities(self, _load_dotenv) -> None:
        code, output = self._run("scan", "--markets", self.markets, "--books", self.books, "--today", "2026-01-01")
        self.assertEqual(code, 0)
        payload = json.loads(output)
        self.assertEqual(len(payload["opportunities"]), 1)
        opportunity = payload["opportunities"][0]
        self.assertEqual(opportunity["outcome"], "Claude")
        self.assertEqual(opportunity["signal"], "GO")
        self.assertEqual(opportunity["days_to_settlement"], 30)
        self.assertAlmostEqual(opportunity["strategy"]["fee"], 0.891, places=9)
        self.assertEqual(payload["stats"]["total_markets"], 1)
        self.assertEqual(payload["stats"]["go_count"], 1)

    def test_scan_type_filter(self, _load_dotenv) -> None:
        code, output = self._run(
            "scan", "--markets", self.markets, "--books", self.books, "--type", "Sports", "--today", "2026-01-01"
        )
        self.assertEqual(code, 0)
        payload = json.loads(output)
        self.assertEqual(payload["opportunities"], [])
        self.assertEqual(payload["stats"]["opportunities"], 1)

    def test_exits_prints_records(self, _load_dotenv) -> None:
        code, output = self._run(
            "exits", "--markets", self.markets, "--books", self.books, "--positions", self.positions
        )
        self.assertEqual(code, 0)
        records = json.loads(output)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]["outcome"], "Claude")
        self.assertAlmostEqual(records[0]["net_profit"], 3.109, places=9)
        self.assertTrue(records[0]["can_exit"])

    def test_validate_markets(self, _load_dotenv) -> None:
        code, _ = self._run("validate-markets", "--markets", self.markets)
        self.assertEqual(code, 0)

    def test_bad_markets_file_exits_with_error(self, _load_dotenv) -> None:
        with open(self.markets, "w", encoding="utf-8") as handle:
            handle.write("markets: []\nsettings: {fee: 1}\n")
        code, output = self._run("validate-markets", "--markets", self.markets)
        self.assertEqual(code, 2)
        self.assertEqual(output, "")
        code, _ = self._run("scan", "--markets", os.path.join(os.path.dirname(self.markets), "missing.yaml"),
                            "--books", self.books)
        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main()
