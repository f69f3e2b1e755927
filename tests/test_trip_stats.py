import unittest
from datetime import datetime, timedelta, timezone

from hike_atlas.data_ingestion.gpx_processor import TrackPoint
from hike_atlas.errors import EmptyTrackError
from hike_atlas.feature_engineering.geodesic import haversine_km
from hike_atlas.feature_engineering.trip_stats import (
    TripShape,
    TripStatsCalculator,
    calculate_stats,
    format_duration,
)

T0 = datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc)


def line(lons, eles=None, lat=0.0, step_seconds=None):
    """Points along a parallel; optional elevations and regular timestamps."""
    eles = eles if eles is not None else [0.0] * len(lons)
    return [
        TrackPoint(
            lat=lat,
            lon=lon,
            ele=ele,
            time=T0 + timedelta(seconds=i * step_seconds) if step_seconds is not None else None,
        )
        for i, (lon, ele) in enumerate(zip(lons, eles))
    ]


class TestTripStatsCalculator(unittest.TestCase):
    def setUp(self):
        self.calculator = TripStatsCalculator()

    def test_empty_track_raises(self):
        with self.assertRaises(EmptyTrackError):
            self.calculator.calculate([])

    def test_single_point(self):
        stats = self.calculator.calculate([TrackPoint(45.0, 6.0, 1234.4)])

        self.assertEqual(stats.distance_km, "0.00")
        self.assertEqual(stats.gain_m, 0)
        self.assertEqual(stats.loss_m, 0)
        self.assertEqual(stats.max_ele_m, 1234)
        self.assertEqual(stats.min_ele_m, 1234)
        self.assertEqual(stats.total_time, timedelta(0))
        self.assertEqual(stats.shape, TripShape.LOOP)

    def test_three_point_track(self):
        points = [
            TrackPoint(0.0, 0.0, 0.0, T0),
            TrackPoint(0.0, 0.001, 10.0, T0 + timedelta(seconds=60)),
            TrackPoint(0.0, 0.002, 5.0, T0 + timedelta(seconds=120)),
        ]
        stats = self.calculator.calculate(points)

        expected_km = 2 * haversine_km(points[0], points[1])
        self.assertEqual(stats.distance_km, f"{expected_km:.2f}")
        self.assertGreater(float(stats.distance_km), 0)
        # A 5-sample window spans the whole track, so the profile is flattened.
        self.assertEqual(stats.gain_m, 0)
        self.assertEqual(stats.loss_m, 0)
        self.assertEqual(stats.max_ele_m, 10)
        self.assertEqual(stats.min_ele_m, 0)
        self.assertEqual(stats.total_time, timedelta(seconds=120))
        # ~1.85 m/s walking pace
        self.assertEqual(stats.moving_time, timedelta(seconds=120))

    def test_rise_and_drop_without_smoothing(self):
        calculator = TripStatsCalculator(smoothing_window=1)
        stats = calculator.calculate(line([0.0, 0.001, 0.002], eles=[0.0, 10.0, 5.0]))

        self.assertEqual(stats.gain_m, 10)
        self.assertEqual(stats.loss_m, 5)

    def test_flat_noise_gives_no_gain_or_loss(self):
        eles = [100.0 + (1.0 if i % 2 == 0 else -1.0) for i in range(40)]
        stats = self.calculator.calculate(line([i * 0.0001 for i in range(40)], eles=eles))

        self.assertEqual(stats.gain_m, 0)
        self.assertEqual(stats.loss_m, 0)
        self.assertEqual(stats.max_ele_m, 101)
        self.assertEqual(stats.min_ele_m, 99)

    def test_monotonic_climb(self):
        eles = [0.0, 0.0, 0.0] + [10.0 * i for i in range(1, 11)] + [100.0, 100.0]
        stats = self.calculator.calculate(line([i * 0.001 for i in range(len(eles))], eles=eles))

        self.assertEqual(stats.gain_m, 100)
        self.assertEqual(stats.loss_m, 0)

    def test_moving_time_excludes_stops_and_spikes(self):
        points = [
            TrackPoint(0.0, 0.0, 0.0, T0),
            # ~1.85 m/s: moving
            TrackPoint(0.0, 0.001, 0.0, T0 + timedelta(seconds=60)),
            # stationary for 10 minutes
            TrackPoint(0.0, 0.001, 0.0, T0 + timedelta(seconds=660)),
            # ~111 m/s GPS jump
            TrackPoint(0.0, 0.1, 0.0, T0 + timedelta(seconds=760)),
            # missing timestamp
            TrackPoint(0.0, 0.101, 0.0, None),
        ]
        stats = self.calculator.calculate(points)

        self.assertEqual(stats.moving_time, timedelta(seconds=60))
        self.assertEqual(stats.total_time, timedelta(0))

    def test_duplicate_points_do_not_crash(self):
        points = [TrackPoint(45.0, 6.0, 100.0, T0)] * 4
        stats = self.calculator.calculate(points)

        self.assertEqual(stats.distance_km, "0.00")
        self.assertEqual(stats.moving_time, timedelta(0))

    def test_closed_track_is_loop(self):
        lons = [0.0, 0.01, 0.02, 0.01, 0.0]
        stats = self.calculator.calculate(line(lons))
        self.assertEqual(stats.shape, TripShape.LOOP)

    def test_out_and_back_returning_near_start_is_loop(self):
        out = [i * 0.01 for i in range(10)]  # ~10 km east
        back = list(reversed(out[1:-1])) + [0.0009]  # ends ~100 m from the start
        stats = self.calculator.calculate(line(out + back))
        self.assertEqual(stats.shape, TripShape.LOOP)

    def test_straight_line_is_out_and_back(self):
        stats = self.calculator.calculate(line([i * 0.01 for i in range(10)]))
        self.assertEqual(stats.shape, TripShape.OUT_AND_BACK)

    def test_long_route_ending_within_five_percent_is_loop(self):
        # ~20 km route whose end is ~0.67 km from the start
        out = [i * 0.01 for i in range(11)]
        back = list(reversed(out[:-1]))[:-1] + [0.006]
        stats = self.calculator.calculate(line(out + back))

        self.assertGreater(haversine_km(TrackPoint(0, 0), TrackPoint(0, 0.006)), 0.5)
        self.assertEqual(stats.shape, TripShape.LOOP)

    def test_front_matter_keys(self):
        stats = self.calculator.calculate(line([0.0, 0.001, 0.002], step_seconds=60))
        data = stats.to_front_matter()

        self.assertEqual(
            list(data),
            ["distance", "gain", "loss", "maxEle", "minEle", "type", "movingTime", "totalTime"],
        )
        self.assertEqual(data["type"], "Loop")
        self.assertEqual(data["totalTime"], "0h 2m")

    def test_calculate_stats_uses_settings(self):
        stats = calculate_stats(line([0.0, 0.001]))
        self.assertEqual(stats.shape, TripShape.LOOP)


class TestFormatDuration(unittest.TestCase):
    def test_hours_and_minutes(self):
        self.assertEqual(format_duration(timedelta(hours=3, minutes=12, seconds=59)), "3h 12m")

    def test_not_positive_is_not_available(self):
        self.assertEqual(format_duration(timedelta(0)), "N/A")
        self.assertEqual(format_duration(timedelta(seconds=-5)), "N/A")


if __name__ == "__main__":
    unittest.main()
