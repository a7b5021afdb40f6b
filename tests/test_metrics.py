"""
Unit tests for the schedule-health metric calculator.
"""
import unittest
from datetime import datetime, timedelta, timezone

from errors import MissingProductError
from normalize.models import CustomProperty, IssueRecord
from scoring.metrics import compute_metrics, find_product
from scoring.utils import DATE_UNKNOWN

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _day(offset_days: int) -> str:
    return (NOW + timedelta(days=offset_days)).date().isoformat()


def make_issue(number=1, labels=('product/altinn',), closed_at=None, props=None):
    props = props or {}
    return IssueRecord(
        number=number,
        title=f"Issue {number}",
        closed_at=closed_at,
        labels=tuple(labels),
        custom_properties=tuple(CustomProperty(k, v) for k, v in props.items()),
    )


class TestComputeMetrics(unittest.TestCase):
    def test_closed_late_scenario(self):
        issue = make_issue(
            closed_at=NOW + timedelta(days=5),
            props={'Progresjon (%)': '80', 'Start': _day(-40), 'Sluttdato': _day(-10)},
        )
        m = compute_metrics(issue, NOW)
        self.assertEqual(m.total_days, 30)
        self.assertEqual(m.days_overdue, 15)
        self.assertEqual(m.percentage_overdue, 50)
        self.assertEqual(m.success_indicator, 0)
        self.assertEqual(m.expected_linear_progression, 100)
        self.assertEqual(m.progression, 80)
        self.assertEqual(m.closed_date, NOW + timedelta(days=5))

    def test_missing_progression_closed_is_complete(self):
        issue = make_issue(closed_at=NOW - timedelta(days=1), props={'Start': _day(-10), 'Sluttdato': _day(10)})
        self.assertEqual(compute_metrics(issue, NOW).progression, 100)

    def test_missing_progression_open_is_zero(self):
        issue = make_issue(props={'Start': _day(-10), 'Sluttdato': _day(10)})
        self.assertEqual(compute_metrics(issue, NOW).progression, 0)

    def test_unparseable_progression_falls_back(self):
        issue = make_issue(props={'Progresjon (%)': '80%', 'Start': _day(-10), 'Sluttdato': _day(10)})
        self.assertEqual(compute_metrics(issue, NOW).progression, 0)

    def test_future_start_has_no_success_indicator(self):
        issue = make_issue(props={'Progresjon (%)': '10', 'Start': _day(3), 'Sluttdato': _day(30)})
        m = compute_metrics(issue, NOW)
        self.assertIsNone(m.success_indicator)
        self.assertEqual(m.expected_linear_progression, 0)

    def test_open_issue_within_window(self):
        issue = make_issue(props={'Progresjon (%)': '40', 'Start': _day(-10), 'Sluttdato': _day(10)})
        m = compute_metrics(issue, NOW)
        self.assertEqual(m.total_days, 20)
        self.assertEqual(m.days_overdue, 0)
        self.assertEqual(m.percentage_overdue, 0)
        self.assertEqual(m.success_indicator, 40)
        self.assertEqual(m.expected_linear_progression, 50)

    def test_open_issue_past_end_is_penalized(self):
        issue = make_issue(props={'Progresjon (%)': '50', 'Start': _day(-105), 'Sluttdato': _day(-5)})
        m = compute_metrics(issue, NOW)
        self.assertEqual(m.total_days, 100)
        self.assertEqual(m.days_overdue, 5)
        self.assertEqual(m.percentage_overdue, 5)
        self.assertEqual(m.success_indicator, 35)
        self.assertEqual(m.expected_linear_progression, 100)

    def test_closed_before_end_is_not_overdue(self):
        issue = make_issue(closed_at=NOW - timedelta(days=20), props={'Start': _day(-40), 'Sluttdato': _day(-10)})
        m = compute_metrics(issue, NOW)
        self.assertEqual(m.days_overdue, 0)
        self.assertEqual(m.success_indicator, 100)

    def test_estimated_man_weeks_decimal_comma(self):
        issue = make_issue(props={'Estimerte ukesverk': '2,5'})
        self.assertEqual(compute_metrics(issue, NOW).estimated_man_weeks, 2.5)

    def test_estimated_man_weeks_unparseable(self):
        issue = make_issue(props={'Estimerte ukesverk': 'a few'})
        self.assertEqual(compute_metrics(issue, NOW).estimated_man_weeks, 0.0)

    def test_unknown_dates_use_sentinel(self):
        m = compute_metrics(make_issue(props={'Progresjon (%)': '30'}), NOW)
        self.assertEqual(m.start_date, DATE_UNKNOWN)
        self.assertEqual(m.end_date, DATE_UNKNOWN)
        self.assertEqual(m.total_days, 0)
        self.assertGreater(m.days_overdue, 700000)
        # zero span: no overdue percentage, expected progression complete once started
        self.assertEqual(m.percentage_overdue, 0)
        self.assertEqual(m.expected_linear_progression, 100)
        self.assertEqual(m.success_indicator, 30)

    def test_unknown_end_date_only(self):
        m = compute_metrics(make_issue(props={'Progresjon (%)': '30', 'Start': _day(-10)}), NOW)
        self.assertEqual(m.end_date, DATE_UNKNOWN)
        self.assertLess(m.total_days, 0)
        self.assertEqual(m.percentage_overdue, 0)
        self.assertEqual(m.expected_linear_progression, 0)

    def test_zero_span_before_start(self):
        issue = make_issue(props={'Start': _day(5), 'Sluttdato': _day(5)})
        m = compute_metrics(issue, NOW)
        self.assertEqual(m.total_days, 0)
        self.assertEqual(m.expected_linear_progression, 0)
        self.assertIsNone(m.success_indicator)

    def test_datetime_property_values(self):
        issue = make_issue(props={'Start': '2025-05-22T00:00:00Z', 'Sluttdato': '2025-06-11T00:00:00+00:00'})
        m = compute_metrics(issue, NOW)
        self.assertEqual(m.total_days, 20)
        self.assertEqual(m.expected_linear_progression, 50)

    def test_compute_is_idempotent(self):
        issue = make_issue(closed_at=NOW, props={'Progresjon (%)': '70', 'Start': _day(-30), 'Sluttdato': _day(-3)})
        self.assertEqual(compute_metrics(issue, NOW), compute_metrics(issue, NOW))

    def test_bounds_hold_across_inputs(self):
        cases = [
            {},
            {'Progresjon (%)': '250', 'Start': _day(-10), 'Sluttdato': _day(-9)},
            {'Progresjon (%)': '-20', 'Start': _day(-1), 'Sluttdato': _day(100)},
            {'Start': _day(50), 'Sluttdato': _day(10)},
            {'Start': _day(-50), 'Sluttdato': _day(-60)},
            {'Sluttdato': _day(3)},
        ]
        for closed in (None, NOW - timedelta(days=2)):
            for props in cases:
                m = compute_metrics(make_issue(closed_at=closed, props=props), NOW)
                if m.success_indicator is not None:
                    self.assertGreaterEqual(m.success_indicator, 0)
                    self.assertLessEqual(m.success_indicator, 100)
                self.assertGreaterEqual(m.expected_linear_progression, 0)
                self.assertLessEqual(m.expected_linear_progression, 100)
                self.assertGreaterEqual(m.percentage_overdue, 0)


class TestProduct(unittest.TestCase):
    def test_prefix_is_stripped_from_first_match(self):
        issue = make_issue(labels=('bug', 'product/studio', 'product/other'))
        self.assertEqual(find_product(issue), 'studio')

    def test_custom_prefix(self):
        issue = make_issue(labels=('team/platform',))
        self.assertEqual(compute_metrics(issue, NOW, product_prefix='team/').product, 'platform')

    def test_missing_product_raises(self):
        issue = make_issue(number=42, labels=('bug',))
        with self.assertRaises(MissingProductError) as ctx:
            compute_metrics(issue, NOW)
        self.assertEqual(ctx.exception.issue_number, 42)


class TestMetricRecordSerialization(unittest.TestCase):
    def test_to_dict_uses_camel_case(self):
        issue = make_issue(props={'Start': _day(-1), 'Sluttdato': _day(1)})
        data = compute_metrics(issue, NOW).to_dict()
        self.assertEqual(data['issueNumber'], 1)
        self.assertEqual(data['product'], 'altinn')
        self.assertEqual(data['startDate'], '2025-05-31T00:00:00+00:00')
        self.assertIsNone(data['closedDate'])
        self.assertIn('expectedLinearProgression', data)


if __name__ == '__main__':
    unittest.main()
