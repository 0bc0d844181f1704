import random
import unittest

from crawl.dice import DiceEngine, RollSpecifier, SequenceSource
from crawl.errors import DefinitionError


class TestRollSpecifier(unittest.TestCase):
    def test_parse_notation(self) -> None:
        self.assertEqual(RollSpecifier.parse("2d6"), RollSpecifier(2, 6, 0))
        self.assertEqual(RollSpecifier.parse("3d10+2"), RollSpecifier(3, 10, 2))
        self.assertEqual(RollSpecifier.parse("1d20 - 1"), RollSpecifier(1, 20, -1))

    def test_display(self) -> None:
        self.assertEqual(str(RollSpecifier(2, 6)), "2d6")
        self.assertEqual(str(RollSpecifier(2, 6, 3)), "2d6 + 3")
        self.assertEqual(str(RollSpecifier(1, 8, -2)), "1d8 - 2")

    def test_rejects_invalid_bounds(self) -> None:
        with self.assertRaises(DefinitionError):
            RollSpecifier(0, 6)
        with self.assertRaises(DefinitionError):
            RollSpecifier(1, 1)
        with self.assertRaises(DefinitionError):
            RollSpecifier.parse("1d1")
        with self.assertRaises(DefinitionError):
            RollSpecifier.parse("d6")


class TestDiceEngine(unittest.TestCase):
    def test_injected_faces_sum_plus_modifier(self) -> None:
        cases = [
            (RollSpecifier(1, 6), [4], 4),
            (RollSpecifier(3, 6, 2), [1, 6, 3], 12),
            (RollSpecifier(2, 10, -5), [1, 1], -3),
        ]
        for spec, faces, expected in cases:
            with self.subTest(spec=str(spec)):
                result = DiceEngine(SequenceSource(faces)).roll(spec)
                self.assertEqual(result.total, expected)
                self.assertEqual(result.faces, tuple(faces))
                self.assertEqual(result.total, sum(faces) + spec.modifier)

    def test_totals_stay_within_bounds(self) -> None:
        engine = DiceEngine(random.Random(1234))
        for spec in (RollSpecifier(1, 2), RollSpecifier(4, 6, -3), RollSpecifier(2, 20, 5)):
            for _ in range(200):
                total = engine.roll_total(spec)
                self.assertGreaterEqual(total, spec.minimum)
                self.assertLessEqual(total, spec.maximum)

    def test_seeded_engines_agree(self) -> None:
        spec = RollSpecifier(3, 6)
        first, second = DiceEngine(seed=7), DiceEngine(seed=7)
        a = [first.roll_total(spec) for _ in range(5)]
        b = [second.roll_total(spec) for _ in range(5)]
        self.assertEqual(a, b)

    def test_sequence_source_consumes_in_order(self) -> None:
        source = SequenceSource([2, 5, 1])
        engine = DiceEngine(source)
        self.assertEqual(engine.roll(RollSpecifier(2, 6)).faces, (2, 5))
        self.assertEqual(source.remaining, 1)

    def test_sequence_source_guards(self) -> None:
        source = SequenceSource([7])
        with self.assertRaisesRegex(ValueError, "outside die range"):
            DiceEngine(source).roll(RollSpecifier(1, 6))
        self.assertEqual(source.remaining, 1)
        empty = SequenceSource([])
        with self.assertRaisesRegex(ValueError, "exhausted"):
            DiceEngine(empty).roll(RollSpecifier(1, 6))

    def test_source_and_seed_are_exclusive(self) -> None:
        with self.assertRaises(DefinitionError):
            DiceEngine(SequenceSource([1]), seed=3)


if __name__ == "__main__":
    unittest.main()
