import json
import unittest
from decimal import Decimal

from care_schedule import CareScheduleNormalizer
from holiday_oracle import StaticHolidayOracle
from pricing_engine import (
    PackagePricingEngine,
    StaySummaryEngine,
    normalize_rate_type,
    serialize_package,
)
from stay_calendar import StayCalendar

STAY = "10/01/2025 - 12/01/2025"

RAW_CARE = {
    "careData": [],
    "defaultValues": {
        "morning": {"carers": "1", "duration": "2 hours"},
        "afternoon": {"carers": "1", "duration": ""},
        "evening": {"carers": "1", "duration": "3 hours"},
    },
    "careVaries": False,
}


def line_item(line_item_type, price, **extra):
    item = {
        "line_item_type": line_item_type,
        "price_per_night": price,
        "line_item": f"{line_item_type.upper()}_CODE",
        "sta_package": f"{line_item_type} item",
    }
    item.update(extra)
    return item


class PackagePricingEngineTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = PackagePricingEngine()
        self.stay_days = StayCalendar.generate_stay_dates(STAY, 2)
        self.care = CareScheduleNormalizer().normalize(RAW_CARE, STAY, 2)
        self.no_course = {"has_course": False}

    def price_one(self, item, care=None, course=None, **kwargs):
        rows = self.engine.price(
            [item],
            self.stay_days,
            self.care if care is None else care,
            course or self.no_course,
            kwargs.pop("is_custom_quote_package", False),
            **kwargs
        )
        return rows[0] if rows else None

    def test_room_quantity_is_night_count(self) -> None:
        row = self.price_one(line_item("room", 500, rate_category="night"))

        self.assertEqual(row["quantity"], Decimal("2"))
        self.assertEqual(row["total"], Decimal("1000.00"))
        self.assertEqual(row["rate_category_label"], "/night")
        self.assertEqual(row["unit_label"], "nights")

    def test_room_is_dropped_for_custom_quote_and_holiday_support(self) -> None:
        item = line_item("room", 500)
        self.assertIsNone(self.price_one(item, is_custom_quote_package=True))
        self.assertIsNone(self.price_one(item, is_holiday_support_package=True))

    def test_care_by_care_time(self) -> None:
        evening = self.price_one(line_item("care", "55.00", rate_category="hour", care_time="evening"))
        all_periods = self.price_one(line_item("care", "55.00", rate_category="hour"))
        daytime = self.price_one(line_item("care", "55.00", rate_category="hour", care_time="daytime"))

        self.assertEqual(evening["quantity"], Decimal("6"))
        self.assertEqual(evening["total"], Decimal("330.00"))
        self.assertEqual(all_periods["quantity"], Decimal("10"))
        self.assertEqual(all_periods["unit_label"], "hrs")
        self.assertIsNone(daytime)

    def test_care_filtered_by_rate_type(self) -> None:
        saturday_morning = self.price_one(
            line_item("care", 60, rate_category="hour", care_time="morning", rate_type="saturday")
        )
        self.assertEqual(saturday_morning["quantity"], Decimal("2"))
        self.assertEqual(saturday_morning["rate_type"], "saturday")

    def test_care_needs_required_care(self) -> None:
        no_care = CareScheduleNormalizer().normalize(None, STAY, 2)
        self.assertIsNone(self.price_one(line_item("care", 60, rate_category="hour"), care=no_care))

    def test_course_depends_on_course_flag(self) -> None:
        item = line_item("course", 80, rate_category="hour")
        self.assertIsNone(self.price_one(item))

        row = self.price_one(item, course={"has_course": True})
        self.assertEqual(row["quantity"], Decimal("6"))
        self.assertEqual(row["total"], Decimal("480.00"))

    def test_group_activities_hours(self) -> None:
        item = line_item("group_activities", 10, rate_category="hour")
        self.assertEqual(self.price_one(item)["quantity"], Decimal("24"))
        self.assertEqual(self.price_one(item, course={"hasCourse": True})["quantity"], Decimal("18"))

        saturday_only = line_item("group_activities", 10, rate_category="hour", rate_type="saturday")
        self.assertEqual(self.price_one(saturday_only)["quantity"], Decimal("12"))

    def test_sleep_over_quantity(self) -> None:
        row = self.price_one(line_item("sleep_over", "210.50", rate_category="night"))
        self.assertEqual(row["total"], Decimal("421.00"))

    def test_default_rules_by_rate_category(self) -> None:
        any_day = self.price_one(line_item("activity", 100, rate_category="day", rate_type="BLANK"))
        weekday = self.price_one(line_item("activity", 100, rate_category="day", rate_type="weekday"))
        saturday_hours = self.price_one(line_item("activity", 10, rate_category="hour", rate_type="saturday"))
        per_night = self.price_one(line_item("activity", 100, rate_category="night"))

        self.assertEqual(any_day["quantity"], Decimal("2"))
        self.assertEqual(any_day["rate_category_label"], "/day")
        self.assertEqual(weekday["quantity"], Decimal("1"))
        self.assertEqual(saturday_hours["quantity"], Decimal("12"))
        self.assertIsNone(per_night)

    def test_public_holiday_alias(self) -> None:
        self.stay_days = StayCalendar.generate_stay_dates(STAY, 2, holidays=["2025-01-11"])
        row = self.price_one(line_item("activity", 100, rate_category="day", rate_type="publicHoliday"))
        self.assertEqual(row["quantity"], Decimal("1"))
        self.assertEqual(row["rate_type"], "public_holiday")

    def test_funding_labels_for_holiday_plus(self) -> None:
        rows = self.engine.price(
            [line_item("room", 500), line_item("care", 60, rate_category="hour")],
            self.stay_days,
            self.care,
            self.no_course,
            False,
            package_type="holiday-plus",
        )
        self.assertEqual([r["funding_label"] for r in rows], ["Self/Foundation", "NDIS"])

    def test_line_item_fallback_fields(self) -> None:
        item = {
            "line_item_type": "sleep_over",
            "price_per_unit": "100",
            "code": "04_104_0125_6_1",
            "description": "Overnight support",
        }
        row = self.price_one(item)
        self.assertEqual(row["code"], "04_104_0125_6_1")
        self.assertEqual(row["description"], "Overnight support")
        self.assertEqual(row["total"], Decimal("200.00"))

    def test_non_finite_price_counts_as_zero(self) -> None:
        row = self.price_one(line_item("sleep_over", "NaN", rate_category="night"))
        self.assertEqual(row["rate"], Decimal("0"))
        self.assertEqual(row["total"], Decimal("0.00"))

    def test_json_stored_care_analysis(self) -> None:
        stored = json.loads(json.dumps(self.care, default=float))
        rows = StaySummaryEngine().calculate_stay_summary({
            "dates_of_stay": STAY,
            "nights": 2,
            "care_analysis": stored,
            "package": {"ndis_line_items": [line_item("care", 50, rate_category="hour", care_time="evening")]},
        })["line_items"]
        self.assertEqual(rows[0]["quantity"], Decimal("6"))
        self.assertEqual(rows[0]["total"], Decimal("300.00"))

    def test_pricing_is_repeatable(self) -> None:
        items = [
            line_item("room", 500),
            line_item("care", 60, rate_category="hour", care_time="evening"),
            line_item("group_activities", 10, rate_category="hour"),
        ]
        first = self.engine.price(items, self.stay_days, self.care, self.no_course, False)
        second = self.engine.price(items, self.stay_days, self.care, self.no_course, False)
        self.assertEqual(first, second)

    def test_static_package(self) -> None:
        rows = self.engine.price_static("SP", self.stay_days)

        self.assertEqual([r["rate_type"] for r in rows], ["weekday", "saturday"])
        self.assertEqual([r["quantity"] for r in rows], [Decimal("24"), Decimal("24")])
        self.assertEqual(rows[0]["total"], Decimal("949.92"))
        self.assertEqual(rows[1]["total"], Decimal("1099.92"))
        self.assertEqual(rows[0]["code"], "01_200_0115_1_1")

    def test_static_package_aliases_and_unknown_codes(self) -> None:
        self.assertEqual(len(self.engine.price_static("NDIS_CSP", self.stay_days)), 2)
        self.assertEqual(self.engine.price_static("XYZ", self.stay_days), [])
        self.assertEqual(self.engine.price_static("HCSP", []), [])

    def test_wellness_package(self) -> None:
        rows = self.engine.price_wellness("WHS", 3)
        self.assertEqual(rows[0]["total"], Decimal("4095.00"))
        self.assertEqual(rows[0]["description"], "Wellness Package - 3 nights")

        override = self.engine.price_wellness("WS", 3, package_cost="1000")
        self.assertEqual(override[0]["total"], Decimal("3000.00"))

        self.assertEqual(self.engine.price_wellness("SP", 3), [])
        self.assertEqual(self.engine.price_wellness("WS", 0), [])

    def test_serialize_package(self) -> None:
        self.assertEqual(serialize_package("Wellness & Very High Support Package"), "WVHS")
        self.assertEqual(serialize_package("Wellness & High Support Package"), "WHS")
        self.assertEqual(serialize_package("Wellness & Support Package"), "WS")
        self.assertEqual(
            serialize_package("NDIS Care Support Package - includes up to 6 hours of 1:1 assistance with self-care"),
            "CSP",
        )
        self.assertEqual(serialize_package("Something else"), "")
        self.assertEqual(serialize_package(None), "")

    def test_normalize_rate_type(self) -> None:
        self.assertIsNone(normalize_rate_type("BLANK"))
        self.assertIsNone(normalize_rate_type(""))
        self.assertEqual(normalize_rate_type("publicHoliday"), "public_holiday")
        self.assertEqual(normalize_rate_type("Saturday"), "saturday")


class StaySummaryEngineTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.engine = StaySummaryEngine()
        self.package = {
            "name": "NDIS Care Support Package",
            "package_code": "CSP_DYNAMIC",
            "ndis_package_type": "sta",
            "ndis_line_items": [
                line_item("room", 500, rate_category="night"),
                line_item("care", 50, rate_category="hour", care_time="evening"),
            ],
        }

    def test_full_summary(self) -> None:
        summary = self.engine.calculate_stay_summary({
            "dates_of_stay": STAY,
            "nights": 2,
            "package": self.package,
            "raw_care": RAW_CARE,
            "rooms": [{"type": "deluxe", "price": 100}],
            "funder": "NDIS",
            "holidays": [],
        })

        self.assertEqual(summary["pricing_mode"], "dynamic")
        self.assertEqual([r["total"] for r in summary["line_items"]], [Decimal("1000.00"), Decimal("300.00")])
        self.assertEqual(summary["care_analysis"]["total_care_hours"], Decimal("10"))
        self.assertEqual(summary["cost_summary"]["package_total"], Decimal("1300.00"))
        self.assertEqual(summary["cost_summary"]["out_of_pocket_total"], Decimal("200.00"))
        self.assertEqual(summary["cost_summary"]["grand_total"], Decimal("1500.00"))

    def test_check_in_and_check_out_answers(self) -> None:
        summary = self.engine.calculate_stay_summary({
            "check_in": "2025-01-10",
            "check_out": "2025-01-12",
            "package": json.dumps(self.package),
        })
        self.assertEqual(summary["dates_of_stay"], STAY)
        self.assertEqual(summary["nights"], 2)
        self.assertEqual([r["line_item_type"] for r in summary["line_items"]], ["room"])
        self.assertIsNone(summary["care_analysis"])

    def test_holidays_from_oracle(self) -> None:
        engine = StaySummaryEngine(holiday_oracle=StaticHolidayOracle(["2025-01-11", "2025-02-01"]))
        summary = engine.calculate_stay_summary({"dates_of_stay": STAY, "nights": 2, "package_type": "SP"})

        self.assertEqual(summary["holidays"], ["2025-01-11"])
        self.assertEqual(summary["stay_days"][1]["rate_type"], "public_holiday")
        self.assertEqual(summary["pricing_mode"], "static")
        self.assertEqual([r["rate_type"] for r in summary["line_items"]], ["weekday", "public_holiday"])
        self.assertEqual(summary["line_items"][1]["total"], Decimal("1500.00"))

    def test_payload_holidays_override_oracle(self) -> None:
        engine = StaySummaryEngine(holiday_oracle=StaticHolidayOracle(["2025-01-11"]))
        summary = engine.calculate_stay_summary({"dates_of_stay": STAY, "nights": 2, "holidays": []})
        self.assertEqual(summary["stay_days"][1]["rate_type"], "saturday")

    def test_holiday_support_plus_is_quote_only(self) -> None:
        package = dict(self.package, name="Holiday Support Plus", ndis_package_type="holiday-plus")
        summary = self.engine.calculate_stay_summary({
            "dates_of_stay": STAY,
            "nights": 2,
            "package": package,
            "raw_care": RAW_CARE,
            "rooms": [{"type": "studio", "hsp_pricing": 300}, {"type": "deluxe", "price": 100}],
        })

        self.assertEqual([r["line_item_type"] for r in summary["line_items"]], ["care"])
        self.assertEqual(summary["line_items"][0]["funding_label"], "NDIS")
        self.assertTrue(summary["cost_summary"]["is_quote_only"])
        self.assertEqual(summary["cost_summary"]["package_total"], Decimal("0.00"))
        self.assertEqual(summary["cost_summary"]["out_of_pocket_total"], Decimal("800.00"))
        self.assertEqual(summary["cost_summary"]["grand_total"], Decimal("800.00"))

    def test_wellness_from_package_name(self) -> None:
        summary = self.engine.calculate_stay_summary({
            "dates_of_stay": STAY,
            "nights": 2,
            "package_name": "Wellness & Very High Support Package",
        })
        self.assertEqual(summary["pricing_mode"], "wellness")
        self.assertEqual(summary["cost_summary"]["package_total"], Decimal("3480.00"))

    def test_course_from_booking(self) -> None:
        package = dict(self.package, ndis_line_items=[line_item("course", 80, rate_category="hour")])
        booking = {"Sections": [{"QaPairs": [{
            "Question": {"question_key": "have-you-been-offered-a-place-in-a-course-for-this-stay"},
            "answer": "Yes",
        }]}]}
        summary = self.engine.calculate_stay_summary({
            "dates_of_stay": STAY, "nights": 2, "package": package, "booking": booking,
        })
        self.assertTrue(summary["course_analysis"]["has_course"])
        self.assertEqual(summary["line_items"][0]["quantity"], Decimal("6"))

    def test_course_from_summary_data(self) -> None:
        package = dict(self.package, ndis_line_items=[line_item("course", 80, rate_category="hour")])
        booking = {"Sections": [{"QaPairs": [{
            "Question": {"question_key": "have-you-been-offered-a-place-in-a-course-for-this-stay"},
            "answer": "No",
        }]}]}
        summary = self.engine.calculate_stay_summary({
            "dates_of_stay": STAY,
            "nights": 2,
            "package": package,
            "summary": {"data": {"courseAnalysis": {"hasCourse": True}}},
            "booking": booking,
        })
        self.assertTrue(summary["course_analysis"]["has_course"])
        self.assertEqual(summary["line_items"][0]["quantity"], Decimal("6"))

    def test_stay_beyond_calendar_range_gives_empty_summary(self) -> None:
        engines = (self.engine, StaySummaryEngine(holiday_oracle=StaticHolidayOracle(["2025-01-11"])))
        for engine in engines:
            summary = engine.calculate_stay_summary({
                "dates_of_stay": STAY, "nights": 3000000, "package": self.package, "raw_care": RAW_CARE,
            })
            self.assertEqual(summary["stay_days"], [])
            self.assertEqual(summary["line_items"], [])
            self.assertIsNone(summary["care_analysis"])

    def test_non_finite_room_price_does_not_raise(self) -> None:
        summary = self.engine.calculate_stay_summary({
            "dates_of_stay": STAY,
            "nights": 2,
            "rooms": [{"type": "deluxe", "price": "NaN"}, {"type": "standard", "price": "Infinity"}],
        })
        self.assertEqual(summary["cost_summary"]["out_of_pocket_total"], Decimal("0.00"))
        self.assertEqual(summary["cost_summary"]["grand_total"], Decimal("0.00"))

    def test_unknown_package_gives_empty_table(self) -> None:
        summary = self.engine.calculate_stay_summary({"dates_of_stay": STAY, "nights": 2})
        self.assertEqual(summary["pricing_mode"], "none")
        self.assertEqual(summary["line_items"], [])
        self.assertEqual(summary["cost_summary"]["grand_total"], Decimal("0.00"))

    def test_degenerate_payloads_never_raise(self) -> None:
        for payload in (None, {}, {"dates_of_stay": "garbage"}, {"check_in": "2025-01-12", "check_out": "2025-01-10"}):
            summary = self.engine.calculate_stay_summary(payload)
            self.assertEqual(summary["line_items"], [])
            self.assertEqual(summary["stay_days"], [])
            self.assertIsNone(summary["care_analysis"])

        summary = self.engine.calculate_stay_summary({
            "dates_of_stay": STAY, "nights": 2, "package": "{not json", "raw_care": "{not json",
        })
        self.assertEqual(summary["pricing_mode"], "none")
        self.assertIsNone(summary["care_analysis"])

    def test_summary_is_repeatable(self) -> None:
        payload = {
            "dates_of_stay": STAY,
            "nights": 2,
            "package": self.package,
            "raw_care": RAW_CARE,
            "holidays": ["2025-01-11"],
        }
        self.assertEqual(
            self.engine.calculate_stay_summary(payload),
            self.engine.calculate_stay_summary(payload),
        )


if __name__ == "__main__":
    unittest.main()
