import random
import unittest

from limitup_pager.paging import (
    SENTINEL_GROUP,
    CategoryStat,
    category_stats,
    coerce_days,
    group_order,
    paginate,
    reorder_by_group_priority,
    sort_rows,
)

DAYS = "连续涨停天数(天)"
TIME = "最终涨停时间"
REASON = "涨停原因"


def row(ident, reason="算力", days=1, at="09:30:00"):
    return {"id": ident, REASON: reason, DAYS: days, TIME: at}


def ids(rows):
    return [r["id"] for r in rows]


def groups_on(page):
    return {r[REASON] for r in page}


class CoerceDaysTests(unittest.TestCase):
    def test_numeric_views(self):
        self.assertEqual(coerce_days(3), 3.0)
        self.assertEqual(coerce_days(2.5), 2.5)
        self.assertEqual(coerce_days(" 10 "), 10.0)

    def test_unusable_values_count_as_zero(self):
        for value in ("", "  ", "abc", float("nan"), None):
            with self.subTest(value=value):
                self.assertEqual(coerce_days(value), 0.0)


class SortTests(unittest.TestCase):
    def test_days_descending_then_time_ascending(self):
        rows = [
            row("a", days=2, at="09:30:00"),
            row("b", days=5, at="09:25:00"),
            row("c", days=2, at="09:15:00"),
        ]
        self.assertEqual(ids(sort_rows(rows)), ["b", "c", "a"])

    def test_text_days_compare_numerically(self):
        rows = [row("nine", days=9), row("ten", days="10")]
        self.assertEqual(ids(sort_rows(rows)), ["ten", "nine"])

    def test_blank_and_bad_days_sort_as_zero_and_keep_order(self):
        rows = [row("blank", days=""), row("bad", days="abc"), row("one", days=1)]
        self.assertEqual(ids(sort_rows(rows)), ["one", "blank", "bad"])

    def test_equal_keys_are_stable(self):
        rows = [row(i) for i in range(10)]
        self.assertEqual(ids(sort_rows(rows)), list(range(10)))

    def test_input_not_modified(self):
        rows = [row("a", days=1), row("b", days=2)]
        sort_rows(rows)
        self.assertEqual(ids(rows), ["a", "b"])


class GroupOrderTests(unittest.TestCase):
    def setUp(self):
        reasons = ["A", "B", SENTINEL_GROUP, "C", "B", "C", SENTINEL_GROUP, "B", "C",
                   SENTINEL_GROUP, SENTINEL_GROUP, SENTINEL_GROUP]
        self.rows = [row(i, reason=reason) for i, reason in enumerate(reasons)]

    def test_count_descending_ties_by_first_appearance_sentinel_last(self):
        self.assertEqual(group_order(self.rows), ["B", "C", "A", SENTINEL_GROUP])

    def test_reorder_keeps_rows_within_group_in_order(self):
        reordered = reorder_by_group_priority(self.rows)
        self.assertEqual(ids(reordered), [1, 4, 7, 3, 5, 8, 0, 2, 6, 9, 10, 11])


class PaginateTests(unittest.TestCase):
    def test_worked_example(self):
        rows = sort_rows([
            row("A", reason="A", days=2, at="09:30:00"),
            row("B", reason="B", days=5, at="09:25:00"),
        ])
        pages = paginate(rows, REASON, 33)
        self.assertEqual([ids(page) for page in pages], [["B", "A"]])

    def test_single_group_fills_to_budget(self):
        rows = [row(i) for i in range(10)]
        pages = paginate(rows, REASON, 7)
        self.assertEqual([len(page) for page in pages], [5, 5])

    def test_new_group_costs_two_lines(self):
        rows = [row(f"x{i}", reason="X") for i in range(3)] + [row(f"y{i}", reason="Y") for i in range(3)]
        pages = paginate(rows, REASON, 8)
        self.assertEqual([ids(page) for page in pages], [["x0", "x1", "x2", "y0"], ["y1", "y2"]])

    def test_default_budget(self):
        pages = paginate([row(i) for i in range(40)])
        self.assertEqual([len(page) for page in pages], [31, 9])

    def test_row_over_budget_gets_its_own_page(self):
        pages = paginate([row(i) for i in range(3)], REASON, 2)
        self.assertEqual([ids(page) for page in pages], [[0], [1], [2]])

    def test_empty_input(self):
        self.assertEqual(paginate([], REASON, 33), [])

    def test_sentinel_rows_come_last(self):
        rows = [row(1, reason=SENTINEL_GROUP), row(2, reason=SENTINEL_GROUP), row(3, reason="A")]
        pages = paginate(rows, REASON, 33)
        self.assertEqual(ids(pages[0]), [3, 1, 2])

    def test_budget_and_completeness_on_mixed_data(self):
        rng = random.Random(20240315)
        reasons = ["算力", "机器人", "低空经济", "固态电池", "医药", SENTINEL_GROUP]
        rows = [
            row(i, reason=rng.choice(reasons), days=rng.choice(["", 1, 2, 3, "4"]), at=f"09:{rng.randint(25, 59)}:00")
            for i in range(200)
        ]
        ordered = sort_rows(rows)
        for budget in (1, 3, 5, 12, 33, 500):
            with self.subTest(budget=budget):
                pages = paginate(ordered, REASON, budget)
                for page in pages:
                    self.assertTrue(page)
                    self.assertTrue(
                        len(page) == 1 or 2 * len(groups_on(page)) + len(page) <= budget
                    )
                flat = [r for page in pages for r in page]
                self.assertEqual(ids(flat), ids(reorder_by_group_priority(ordered)))
                self.assertEqual(sorted(ids(flat)), list(range(200)))

                first_sentinel = next(i for i, r in enumerate(flat) if r[REASON] == SENTINEL_GROUP)
                self.assertTrue(all(r[REASON] == SENTINEL_GROUP for r in flat[first_sentinel:]))


class CategoryStatsTests(unittest.TestCase):
    def test_counts_descending(self):
        rows = [row(1, reason="A"), row(2, reason="B"), row(3, reason="A")]
        self.assertEqual(category_stats(rows), [CategoryStat("A", 2), CategoryStat("B", 1)])

    def test_ties_keep_first_appearance(self):
        rows = [row(1, reason="B"), row(2, reason="A")]
        self.assertEqual([stat.category for stat in category_stats(rows)], ["B", "A"])

    def test_sentinel_is_not_moved(self):
        rows = [row(1, reason=SENTINEL_GROUP), row(2, reason=SENTINEL_GROUP), row(3, reason="A")]
        self.assertEqual(category_stats(rows)[0].as_dict(), {"category": SENTINEL_GROUP, "count": 2})

    def test_empty(self):
        self.assertEqual(category_stats([]), [])


if __name__ == "__main__":
    unittest.main()
