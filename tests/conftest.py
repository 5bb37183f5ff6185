"""
Test Configuration and Fixtures
"""
import io
import os
import zipfile

import pytest
from docx import Document

from docbatch import create_app


@pytest.fixture(scope='session')
def app():
    """Create application for testing"""
    os.environ['SECRET_KEY'] = 'test-secret-key'

    app = create_app('testing')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False

    with app.app_context():
        yield app


@pytest.fixture(scope='function')
def client(app):
    """Create test client"""
    return app.test_client()


def build_docx(*paragraphs, table=None):
    """Return .docx bytes holding the given paragraphs (and optional table rows)."""
    doc = Document()
    for text in paragraphs:
        doc.add_paragraph(text)
    if table:
        t = doc.add_table(rows=len(table), cols=len(table[0]))
        for r, row in enumerate(table):
            for c, value in enumerate(row):
                t.cell(r, c).text = value
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def make_docx():
    return build_docx


@pytest.fixture
def corrupt_bytes():
    return b"this is not a word document at all"


def read_zip(data):
    """Map of entry name -> bytes for a ZIP payload."""
    with zipfile.ZipFile(io.BytesIO(data)) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


@pytest.fixture
def unzip():
    return read_zip
