import unittest

from limitup_pager.category import (
    display_width,
    normalize_reason_category,
    trim_category_cells,
    trim_reason_category,
    try_trim_cell,
)
from limitup_pager.columns import CanonicalRow


SAMPLES = [
    "",
    "   ",
    "算力",
    "算力+",
    "a +",
    "a+ +",
    "abc+++",
    "  人形机器人 +  减速器  ",
    "算力+数据中心+液冷服务器+光模块+交换机+铜连接+CPO",
    "低空经济+无人机+通用航空+飞行汽车+空管系统+eVTOL+航空发动机",
    "ab+cd+efghij" * 5,
    "+" * 50,
    "x" * 80,
    "中" * 30,
]


def make_row(category, reason="算力"):
    return CanonicalRow(
        final_limit_time="09:30:00",
        consecutive_limit_days=1,
        limit_reason=reason,
        limit_reason_category=category,
        extras={"股票代码": "600001.SH"},
    )


class DisplayWidthTests(unittest.TestCase):
    def test_cjk_counts_double(self):
        self.assertEqual(display_width("中文"), 4)
        self.assertEqual(display_width("abc"), 3)
        self.assertEqual(display_width("中a"), 3)

    def test_range_edges_and_empty(self):
        self.assertEqual(display_width("\u4e00\u9fff"), 4)
        self.assertEqual(display_width("\u3400"), 1)
        self.assertEqual(display_width("，"), 1)
        self.assertEqual(display_width(None), 0)
        self.assertEqual(display_width(""), 0)


class NormalizeTests(unittest.TestCase):
    def test_collapses_and_strips_whitespace(self):
        self.assertEqual(normalize_reason_category("  a \t\n b  "), "a b")

    def test_coerces_non_strings(self):
        self.assertEqual(normalize_reason_category(None), "")
        self.assertEqual(normalize_reason_category(12), "12")


class TrimTests(unittest.TestCase):
    def test_short_text_only_loses_trailing_plus(self):
        self.assertEqual(trim_reason_category("abc+++"), "abc")
        self.assertEqual(trim_reason_category("算力+数据中心"), "算力+数据中心")

    def test_cuts_back_to_last_separator(self):
        self.assertEqual(trim_reason_category("ab+cd+efghij", max_width=10), "ab+cd")

    def test_cjk_width_decides_the_cut(self):
        # 算力+数据中 is 11 columns wide; the cut then moves back to the "+".
        self.assertEqual(trim_reason_category("算力+数据中心+液冷服务器", max_width=12), "算力")

    def test_prefix_ending_in_separator_keeps_the_prefix(self):
        self.assertEqual(trim_reason_category("abcd+efgh", max_width=5), "abcd")

    def test_spaces_between_trailing_separators_go_too(self):
        self.assertEqual(trim_reason_category("a +"), "a")
        self.assertEqual(trim_reason_category("算力 + + "), "算力")
        self.assertEqual(trim_reason_category("a + b"), "a + b")

    def test_prefix_without_separator_is_plain_truncation(self):
        self.assertEqual(trim_reason_category("abcdefgh", max_width=5), "abcde")

    def test_nothing_fits_returns_empty(self):
        self.assertEqual(trim_reason_category("中", max_width=1), "")

    def test_default_budget_is_36(self):
        text = "算力+数据中心+液冷服务器+光模块+交换机+铜连接+CPO"
        result = trim_reason_category(text)
        self.assertLessEqual(display_width(result), 36)
        self.assertEqual(result, "算力+数据中心+液冷服务器+光模块")

    def test_never_ends_with_plus_and_fits_budget(self):
        for width in (1, 5, 12, 36):
            for sample in SAMPLES:
                with self.subTest(sample=sample, width=width):
                    result = trim_reason_category(sample, width)
                    self.assertFalse(result.endswith("+"))
                    self.assertLessEqual(display_width(result), width)

    def test_trimming_twice_changes_nothing(self):
        for sample in SAMPLES:
            with self.subTest(sample=sample):
                once = trim_reason_category(sample)
                self.assertEqual(trim_reason_category(once), once)


class _Unprintable:
    def __str__(self):
        raise RuntimeError("cannot render cell")


class TrimCellsTests(unittest.TestCase):
    def test_failed_cell_degrades_to_empty(self):
        outcome = try_trim_cell(3, _Unprintable())
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.value, "")
        self.assertEqual(outcome.error.row_index, 3)

    def test_bad_row_is_reported_and_the_rest_continue(self):
        rows = [make_row("算力+"), make_row(_Unprintable()), make_row("  人形机器人  ")]
        with self.assertLogs("limitup_pager.category", level="WARNING") as logs:
            trimmed, diagnostics = trim_category_cells(rows)

        self.assertEqual([row.limit_reason_category for row in trimmed], ["算力", "", "人形机器人"])
        self.assertEqual(len(diagnostics), 1)
        self.assertEqual(diagnostics[0].row_index, 1)
        self.assertEqual(diagnostics[0].column, "涨停原因类别")
        self.assertIn("cannot render cell", diagnostics[0].error)
        self.assertTrue(any("cannot render cell" in line for line in logs.output))

    def test_source_rows_are_not_mutated(self):
        rows = [make_row("算力+")]
        trimmed, _ = trim_category_cells(rows)
        self.assertEqual(rows[0].limit_reason_category, "算力+")
        self.assertIsNot(trimmed[0].extras, rows[0].extras)

    def test_custom_width_is_applied(self):
        trimmed, _ = trim_category_cells([make_row("ab+cd+efghij")], max_width=10)
        self.assertEqual(trimmed[0].limit_reason_category, "ab+cd")


if __name__ == "__main__":
    unittest.main()
