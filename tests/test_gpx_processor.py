import unittest

import polars as pl

from hike_atlas.data_ingestion.gpx_processor import GPXProcessor, TrackPoint
from hike_atlas.errors import MalformedTrackError


def make_gpx(trkpts: str) -> str:
    return (
        '<gpx version="1.1" creator="HikeAtlasTest">\n'
        "    <trk>\n"
        "        <name>Test Track</name>\n"
        "        <trkseg>\n"
        f"{trkpts}"
        "        </trkseg>\n"
        "    </trk>\n"
        "</gpx>"
    )


class TestGPXProcessor(unittest.TestCase):
    def setUp(self):
        self.processor = GPXProcessor()
        self.mock_gpx = make_gpx(
            '            <trkpt lat="45.0" lon="6.0"><ele>100.0</ele>'
            "<time>2023-01-01T10:00:00Z</time></trkpt>\n"
            '            <trkpt lat="45.001" lon="6.0"><ele>105.0</ele>'
            "<time>2023-01-01T10:01:00Z</time></trkpt>\n"
            '            <trkpt lat="45.002" lon="6.0"><ele>102.0</ele>'
            "<time>2023-01-01T10:02:00Z</time></trkpt>\n"
            '            <trkpt lat="45.003" lon="6.0"><ele>110.0</ele>'
            "<time>2023-01-01T10:03:00Z</time></trkpt>\n"
        )

    def test_to_points_preserves_order(self):
        self.processor.load_from_string(self.mock_gpx)
        points = self.processor.to_points()

        self.assertEqual(len(points), 4)
        self.assertIsInstance(points[0], TrackPoint)
        self.assertEqual([p.lat for p in points], [45.0, 45.001, 45.002, 45.003])
        self.assertEqual([p.ele for p in points], [100.0, 105.0, 102.0, 110.0])
        self.assertEqual((points[1].time - points[0].time).total_seconds(), 60)

    def test_missing_elevation_and_time_default(self):
        self.processor.load_from_string(make_gpx('<trkpt lat="45.0" lon="6.0"></trkpt>\n'))
        (point,) = self.processor.to_points()

        self.assertEqual(point.ele, 0.0)
        self.assertIsNone(point.time)

    def test_empty_track_returns_empty_list(self):
        self.processor.load_from_string(make_gpx(""))
        self.assertEqual(self.processor.to_points(), [])
        self.assertTrue(self.processor.to_dataframe().is_empty())

    def test_non_finite_coordinates_are_skipped(self):
        self.processor.load_from_string(
            make_gpx(
                '<trkpt lat="45.0" lon="6.0"><ele>1</ele></trkpt>\n'
                '<trkpt lat="NaN" lon="6.0"><ele>2</ele></trkpt>\n'
                '<trkpt lat="45.1" lon="6.1"><ele>3</ele></trkpt>\n'
            )
        )
        points = self.processor.to_points()
        self.assertEqual([p.ele for p in points], [1.0, 3.0])

    def test_non_numeric_coordinates_are_skipped(self):
        self.processor.load_from_string(
            make_gpx(
                '<trkpt lat="45.0" lon="6.0"><ele>1</ele></trkpt>\n'
                '<trkpt lat="abc" lon="6.0"><ele>2</ele></trkpt>\n'
                '<trkpt lat="45.05" lon=""/>\n'
                '<trkpt lon="6.05"><ele>4</ele></trkpt>\n'
                '<trkpt lat="45.1" lon="6.1"><ele>3</ele></trkpt>\n'
            )
        )
        points = self.processor.to_points()
        self.assertEqual([(p.lat, p.ele) for p in points], [(45.0, 1.0), (45.1, 3.0)])

    def test_unparsable_document_raises(self):
        with self.assertRaises(MalformedTrackError):
            self.processor.load_from_string("<gpx><trk><trkseg><trkpt")

    def test_points_before_load_raises(self):
        with self.assertRaises(ValueError):
            self.processor.to_points()

    def test_to_dataframe_structure(self):
        self.processor.load_from_string(self.mock_gpx)
        df = self.processor.to_dataframe()

        self.assertIsInstance(df, pl.DataFrame)
        self.assertEqual(len(df), 4)
        for col in ["time", "latitude", "longitude", "elevation", "segment_dist", "distance"]:
            self.assertIn(col, df.columns)

    def test_distance_calculation(self):
        self.processor.load_from_string(self.mock_gpx)
        df = self.processor.to_dataframe()

        distances = df["distance"].to_list()
        self.assertEqual(distances[0], 0.0)
        self.assertTrue(distances[-1] > distances[1] > 0)

        # Roughly 111m per 0.001 degree lat
        self.assertTrue(100 < distances[1] < 120)


if __name__ == "__main__":
    unittest.main()
