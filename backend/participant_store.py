import json
import logging
import os
import threading

logger = logging.getLogger(__name__)

RECORD_FIELDS = (
    'p_no', 'mobile_no', 'name', 'trade', 'gender', 'attendance_day1', 'attendance_day2', 'created_at',
)


def _is_record(value):
    return isinstance(value, dict) and all(field in value for field in RECORD_FIELDS)


class PersistenceError(Exception):
    """Raised when the participant snapshot cannot be written."""


class ParticipantStore:
    """Participants in insertion order, mirrored to a JSON file.

    p_no and mobile_no are kept in two separate indexes so that a P.No equal to
    some other participant's mobile number is not mistaken for a duplicate.
    """

    def __init__(self, data_file):
        self.data_file = data_file
        self.lock = threading.RLock()
        self._records = []
        self._by_p_no = {}
        self._mobile_nos = set()
        # set while the in-memory records are ahead of the data file
        self.unsaved = False

    def __len__(self):
        return len(self._records)

    def load(self):
        """Replace the in-memory records with the snapshot on disk.

        A missing or unreadable snapshot leaves the store empty.
        """
        with self.lock:
            self._reset([])
            try:
                with open(self.data_file, 'r', encoding='utf-8') as fh:
                    data = json.load(fh)
            except FileNotFoundError:
                logger.info("No existing data file found at %s, starting fresh", self.data_file)
                return
            except (OSError, ValueError) as e:
                logger.warning("Could not read data file %s, starting fresh: %s", self.data_file, e)
                return

            if not isinstance(data, list) or not all(_is_record(r) for r in data):
                logger.warning("Data file %s does not hold a participant list, starting fresh", self.data_file)
                return

            self._reset(data)
            logger.info("Loaded %d participants from %s", len(self._records), self.data_file)

    def save(self):
        """Rewrite the whole snapshot. Raises PersistenceError on failure."""
        tmp_path = f"{self.data_file}.tmp"
        with self.lock:
            try:
                with open(tmp_path, 'w', encoding='utf-8') as fh:
                    json.dump(self._records, fh, indent=2)
                os.replace(tmp_path, self.data_file)
            except OSError as e:
                raise PersistenceError(f"Error saving data to {self.data_file}: {e}") from e
            self.unsaved = False
        logger.info("Data saved to %s", self.data_file)

    def append(self, records) -> bool:
        """Add records and persist the snapshot.

        Returns False when the snapshot write failed. The records stay in
        memory either way, so the file may lag behind until the next save.
        """
        with self.lock:
            for record in records:
                self._index(record)
            self.unsaved = True
            try:
                self.save()
            except PersistenceError:
                logger.exception("Participants kept in memory but not persisted")
                return False
        return True

    def all(self):
        return tuple(self._records)

    def find_by_p_no(self, p_no):
        return self._by_p_no.get(p_no)

    def exists_by_key(self, p_no=None, mobile_no=None) -> bool:
        if p_no is not None and p_no in self._by_p_no:
            return True
        return mobile_no is not None and mobile_no in self._mobile_nos

    def _reset(self, records):
        self._records = []
        self._by_p_no = {}
        self._mobile_nos = set()
        for record in records:
            self._index(record)

    def _index(self, record):
        self._records.append(record)
        self._by_p_no.setdefault(record['p_no'], record)
        self._mobile_nos.add(record['mobile_no'])
