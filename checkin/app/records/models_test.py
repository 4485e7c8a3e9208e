"""Unit tests for the CheckInRecord model."""

import datetime
import struct
import unittest

import sqlalchemy
import sqlalchemy.pool
import sqlmodel

from checkin.app.errors import CorruptEncoding, InvalidCoordinates
from checkin.app.photos import codec
from checkin.app.records import models


def make_in_memory_engine() -> sqlalchemy.Engine:
    """Create an in-memory SQLite engine for testing."""
    engine = sqlmodel.create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=sqlalchemy.pool.StaticPool,
    )
    sqlmodel.SQLModel.metadata.create_all(engine)
    return engine


class TestCheckInRecordModel(unittest.TestCase):
    """Tests for CheckInRecord persistence."""

    def setUp(self) -> None:
        """Set up test database."""
        self.engine = make_in_memory_engine()

    def test_record_creation(self) -> None:
        """Test creating a CheckInRecord row."""
        with sqlmodel.Session(self.engine) as session:
            record = models.CheckInRecord(
                timestamp=datetime.datetime(2025, 6, 1, 9, 30, tzinfo=datetime.UTC),
                latitude=31.23,
                longitude=121.47,
                location_name='Office',
                notes='met client',
                photo_blob=codec.encode([b'one']),
            )
            session.add(record)
            session.commit()
            session.refresh(record)

            self.assertIsNotNone(record.id)
            self.assertEqual(record.location_name, 'Office')
            self.assertEqual(record.photos, [b'one'])

    def test_optional_fields_default_none(self) -> None:
        """Optional fields default to None."""
        with sqlmodel.Session(self.engine) as session:
            record = models.CheckInRecord(
                timestamp=datetime.datetime(2025, 6, 2, tzinfo=datetime.UTC),
                latitude=0.0,
                longitude=0.0,
            )
            session.add(record)
            session.commit()
            session.refresh(record)

            self.assertIsNone(record.location_name)
            self.assertIsNone(record.notes)
            self.assertIsNone(record.photo_blob)

    def test_photo_blob_survives_round_trip(self) -> None:
        """Binary photo data is stored and read back byte-for-byte."""
        blob = codec.encode([b'\x00\xff' * 50, b''])
        with sqlmodel.Session(self.engine) as session:
            record = models.CheckInRecord(
                timestamp=datetime.datetime(2025, 6, 3, tzinfo=datetime.UTC),
                latitude=1.0,
                longitude=2.0,
                photo_blob=blob,
            )
            session.add(record)
            session.commit()
            record_id = record.id

        with sqlmodel.Session(self.engine) as session:
            fetched = session.get(models.CheckInRecord, record_id)
            assert fetched is not None
            self.assertEqual(fetched.photo_blob, blob)


class TestPhotoProperties(unittest.TestCase):
    """Tests for the decoded photo accessors."""

    def _record(self, photo_blob: bytes | None) -> models.CheckInRecord:
        return models.CheckInRecord(
            timestamp=datetime.datetime(2025, 1, 1, tzinfo=datetime.UTC),
            latitude=0.0,
            longitude=0.0,
            photo_blob=photo_blob,
        )

    def test_absent_photos_are_none(self) -> None:
        """A record without a blob has no photo data at all."""
        record = self._record(None)
        self.assertIsNone(record.photos)
        self.assertEqual(record.photo_count, 0)

    def test_empty_photos_are_empty_list(self) -> None:
        """An encoded empty sequence is distinct from absent photos."""
        record = self._record(codec.encode([]))
        self.assertEqual(record.photos, [])
        self.assertEqual(record.photo_count, 0)

    def test_photo_count(self) -> None:
        """photo_count reflects the encoded photos."""
        record = self._record(codec.encode([b'a', b'b']))
        self.assertEqual(record.photo_count, 2)

    def test_photo_count_ignores_overstated_header(self) -> None:
        """A header claiming more photos than the blob holds is corrupt, not counted."""
        blob = struct.pack('<I', 3) + struct.pack('<I', 1) + b'a'
        with self.assertRaises(CorruptEncoding):
            _ = self._record(blob).photo_count


class TestDisplayName(unittest.TestCase):
    """Tests for CheckInRecord.display_name."""

    def test_uses_location_name(self) -> None:
        """The resolved place name is preferred."""
        record = models.CheckInRecord(
            timestamp=datetime.datetime(2025, 1, 1, tzinfo=datetime.UTC),
            latitude=0.0,
            longitude=0.0,
            location_name='Cafe',
        )
        self.assertEqual(record.display_name('Unknown location'), 'Cafe')

    def test_falls_back_to_label(self) -> None:
        """Missing or empty names fall back to the given label."""
        for name in (None, ''):
            record = models.CheckInRecord(
                timestamp=datetime.datetime(2025, 1, 1, tzinfo=datetime.UTC),
                latitude=0.0,
                longitude=0.0,
                location_name=name,
            )
            self.assertEqual(record.display_name('Unknown location'), 'Unknown location')


class TestValidateCoordinates(unittest.TestCase):
    """Tests for validate_coordinates."""

    def test_bounds_are_inclusive(self) -> None:
        """The extreme valid values are accepted."""
        for lat, lon in [(90.0, 180.0), (-90.0, -180.0), (0.0, 0.0)]:
            models.validate_coordinates(lat, lon)

    def test_out_of_range_rejected(self) -> None:
        """Values outside the valid ranges are rejected."""
        for lat, lon in [(90.1, 0.0), (-91.0, 0.0), (0.0, 180.5), (0.0, -181.0)]:
            with self.subTest(lat=lat, lon=lon):
                with self.assertRaises(InvalidCoordinates):
                    models.validate_coordinates(lat, lon)

    def test_nan_rejected(self) -> None:
        """NaN is not a coordinate."""
        with self.assertRaises(InvalidCoordinates):
            models.validate_coordinates(float('nan'), 0.0)


class TestToUtc(unittest.TestCase):
    """Tests for to_utc."""

    def test_naive_taken_as_utc(self) -> None:
        """Naive timestamps get the UTC zone attached."""
        result = models.to_utc(datetime.datetime(2025, 1, 1, 12, 0))
        self.assertEqual(result.tzinfo, datetime.UTC)
        self.assertEqual(result, datetime.datetime(2025, 1, 1, 12, 0, tzinfo=datetime.UTC))

    def test_aware_converted(self) -> None:
        """Aware timestamps are converted to UTC."""
        shanghai = datetime.timezone(datetime.timedelta(hours=8))
        result = models.to_utc(datetime.datetime(2025, 1, 1, 20, 0, tzinfo=shanghai))
        self.assertEqual(result.utcoffset(), datetime.timedelta(0))
        self.assertEqual(result, datetime.datetime(2025, 1, 1, 12, 0, tzinfo=datetime.UTC))


if __name__ == '__main__':
    unittest.main()
