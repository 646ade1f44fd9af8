import io

import openpyxl
import pytest
import xlwt

from app import create_app
from config import Config
from ingest import REQUIRED_COLUMNS
from participant_store import ParticipantStore


@pytest.fixture
def data_file(tmp_path):
    return str(tmp_path / 'participants-data.json')


@pytest.fixture
def store(data_file):
    s = ParticipantStore(data_file)
    s.load()
    return s


@pytest.fixture
def make_workbook():
    """Build an in-memory .xlsx from a header list and row value lists."""
    def _make(rows, header=None):
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(list(header or REQUIRED_COLUMNS))
        for row in rows:
            ws.append(list(row))
        buf = io.BytesIO()
        wb.save(buf)
        buf.seek(0)
        return buf
    return _make


@pytest.fixture
def make_xls():
    """Build an in-memory legacy .xls from a header list and row value lists."""
    def _make(rows, header=None):
        book = xlwt.Workbook()
        sheet = book.add_sheet('Participants')
        for r, values in enumerate([list(header or REQUIRED_COLUMNS)] + [list(row) for row in rows]):
            for c, value in enumerate(values):
                if value is not None:
                    sheet.write(r, c, value)
        buf = io.BytesIO()
        book.save(buf)
        buf.seek(0)
        return buf
    return _make


@pytest.fixture
def config(tmp_path, data_file):
    return Config(data_file=data_file, upload_folder=str(tmp_path / 'uploads'), max_upload_mb=1)


@pytest.fixture
def app(config, store):
    app = create_app(config, store)
    app.config['TESTING'] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
