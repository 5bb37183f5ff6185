"""
Conversion Pipeline Tests
"""
import io
import subprocess

import pytest
from PyPDF2 import PdfReader

from docbatch.models import (
    ConversionOutcome,
    EmptyBatchError,
    FileState,
    NativeConversionError,
    RenderError,
    UploadFile,
)
from docbatch.services import native_service
from docbatch.services.archive_service import ARCHIVE_FOLDER, ArchiveWriter, pdf_name_for
from docbatch.services.batch import convert_batch
from docbatch.services.layout import PageGeometry, layout_text
from docbatch.services.pdf_service import font_width_fn, render_pdf
from docbatch.services.pipeline import PipelineSettings, convert_file, is_word_file


def pdf_pages(data):
    reader = PdfReader(io.BytesIO(data))
    return [page.extract_text() or "" for page in reader.pages]


class TestRenderPdf:
    """reportlab serialization"""

    def test_text_lands_on_page(self):
        width = font_width_fn("Helvetica")
        pages = layout_text("Hello world", width, 11)
        data = render_pdf(pages, title="greeting")
        assert data.startswith(b"%PDF")
        texts = pdf_pages(data)
        assert len(texts) == 1
        assert "Hello world" in texts[0]

    def test_empty_text_single_blank_page(self):
        width = font_width_fn("Helvetica")
        data = render_pdf(layout_text("", width, 11))
        assert [t.strip() for t in pdf_pages(data)] == [""]

    def test_long_text_spans_pages(self):
        width = font_width_fn("Helvetica")
        text = "\n".join(f"line {i}" for i in range(200))
        pages = layout_text(text, width, 11)
        data = render_pdf(pages)
        assert len(pdf_pages(data)) == len(pages) > 1

    def test_unknown_font(self):
        with pytest.raises(RenderError):
            font_width_fn("NoSuchFont-Regular")


class TestConvertFile:
    """Per-file isolation"""

    def test_success(self, make_docx):
        outcome = convert_file(UploadFile("a.docx", make_docx("Hello world")))
        assert outcome.ok
        assert outcome.state is FileState.SUCCESS
        assert "Hello world" in pdf_pages(outcome.pdf)[0]

    def test_unicode_is_sanitized(self, make_docx):
        outcome = convert_file(UploadFile("u.docx", make_docx("A—B “C” 中")))
        assert outcome.ok
        text = pdf_pages(outcome.pdf)[0]
        assert "A-B" in text
        assert "[CJK]" in text

    def test_corrupt_bytes_become_failure(self, corrupt_bytes):
        outcome = convert_file(UploadFile("b.docx", corrupt_bytes))
        assert not outcome.ok
        assert outcome.state is FileState.ERROR
        assert outcome.pdf is None
        assert outcome.manifest_line().startswith("b.docx: ")

    def test_empty_document_is_not_an_error(self, make_docx):
        outcome = convert_file(UploadFile("empty.docx", make_docx()))
        assert outcome.ok
        assert len(pdf_pages(outcome.pdf)) == 1

    def test_unsupported_extension(self):
        outcome = convert_file(UploadFile("notes.txt", b"hello"))
        assert outcome.error == "Unsupported file type"

    def test_unknown_backend(self, make_docx):
        outcome = convert_file(UploadFile("a.docx", make_docx("x")), PipelineSettings(backend="magic"))
        assert not outcome.ok
        assert "magic" in outcome.error

    def test_unexpected_exception_is_contained(self, make_docx, monkeypatch):
        from docbatch.services import pipeline

        def boom(*args, **kwargs):
            raise RuntimeError("layout exploded")

        monkeypatch.setattr(pipeline, "layout_text", boom)
        outcome = convert_file(UploadFile("a.docx", make_docx("x")))
        assert outcome == ConversionOutcome.failure("a.docx", "layout exploded")

    @pytest.mark.parametrize("name,expected", [
        ("a.docx", True), ("B.DOC", True), ("c.Docx", True), ("d.pdf", False), ("docx", False),
    ])
    def test_is_word_file(self, name, expected):
        assert is_word_file(name) is expected


class TestLibreOfficeBackend:
    """Native converter wiring (subprocess mocked)"""

    def settings(self):
        return PipelineSettings(backend="libreoffice", soffice_binary="soffice-test", timeout=5)

    def test_pdf_returned(self, monkeypatch):
        calls = {}

        def fake_run(cmd, capture_output, text, timeout):
            calls["cmd"] = cmd
            calls["timeout"] = timeout
            outdir = cmd[cmd.index("--outdir") + 1]
            with open(f"{outdir}/input.pdf", "wb") as f:
                f.write(b"%PDF-native")
            return subprocess.CompletedProcess(cmd, 0, "", "")

        monkeypatch.setattr(native_service.subprocess, "run", fake_run)
        outcome = convert_file(UploadFile("r.doc", b"\xd0\xcf"), self.settings())
        assert outcome.ok
        assert outcome.pdf == b"%PDF-native"
        assert calls["cmd"][0] == "soffice-test"
        assert calls["cmd"][-1].endswith("input.doc")
        assert calls["timeout"] == 5

    def test_non_zero_exit(self, monkeypatch):
        monkeypatch.setattr(
            native_service.subprocess, "run",
            lambda cmd, **kw: subprocess.CompletedProcess(cmd, 1, "", "source file could not be loaded"),
        )
        outcome = convert_file(UploadFile("r.docx", b"x"), self.settings())
        assert "could not be loaded" in outcome.error

    def test_timeout(self, monkeypatch):
        def fake_run(cmd, **kw):
            raise subprocess.TimeoutExpired(cmd, kw["timeout"])

        monkeypatch.setattr(native_service.subprocess, "run", fake_run)
        with pytest.raises(NativeConversionError, match="timed out"):
            native_service.convert_with_libreoffice("r.docx", b"x", binary="soffice", timeout=1)

    def test_missing_binary(self):
        with pytest.raises(NativeConversionError, match="not available"):
            native_service.convert_with_libreoffice("r.docx", b"x", binary="definitely-not-soffice-xyz")

    def test_no_output(self, monkeypatch):
        monkeypatch.setattr(
            native_service.subprocess, "run",
            lambda cmd, **kw: subprocess.CompletedProcess(cmd, 0, "", ""),
        )
        with pytest.raises(NativeConversionError, match="no PDF"):
            native_service.convert_with_libreoffice("r.docx", b"x")


class TestArchive:
    @pytest.mark.parametrize("name,expected", [
        ("report.docx", "report.pdf"),
        ("Report.DOCX", "Report.pdf"),
        ("old.Doc", "old.pdf"),
        ("dir/sub/file.docx", "file.pdf"),
        ("C:\\Users\\me\\x.doc", "x.pdf"),
        ("my.docx.docx", "my.docx.pdf"),
    ])
    def test_pdf_name_for(self, name, expected):
        assert pdf_name_for(name) == expected

    def test_duplicate_names_are_suffixed(self, unzip):
        with ArchiveWriter() as writer:
            writer.add("a.pdf", b"1")
            writer.add("a.pdf", b"2")
            writer.add("A.pdf", b"3")
            data = writer.getvalue()
        entries = unzip(data)
        assert entries[f"{ARCHIVE_FOLDER}/a.pdf"] == b"1"
        assert entries[f"{ARCHIVE_FOLDER}/a (2).pdf"] == b"2"
        assert entries[f"{ARCHIVE_FOLDER}/A (3).pdf"] == b"3"

    def test_folder_entry_present(self, unzip):
        with ArchiveWriter() as writer:
            data = writer.getvalue()
        assert list(unzip(data)) == [f"{ARCHIVE_FOLDER}/"]


class TestBatch:
    """Orchestration over several files"""

    def test_mixed_batch(self, make_docx, corrupt_bytes, unzip):
        result = convert_batch([
            UploadFile("a.docx", make_docx("Hello world")),
            UploadFile("b.docx", corrupt_bytes),
        ])
        entries = unzip(result.archive)
        assert f"{ARCHIVE_FOLDER}/a.pdf" in entries
        assert f"{ARCHIVE_FOLDER}/b.pdf" not in entries
        pages = pdf_pages(entries[f"{ARCHIVE_FOLDER}/a.pdf"])
        assert len(pages) == 1
        assert pages[0].strip() == "Hello world"
        assert len(result.errors) == 1
        assert result.errors[0].startswith("b.docx: ")
        assert (result.succeeded, result.failed) == (1, 1)

    def test_order_preserved(self, make_docx, corrupt_bytes):
        names = ["3.docx", "1.docx", "bad.docx", "2.doc"]
        files = [
            UploadFile(names[0], make_docx("three")),
            UploadFile(names[1], make_docx("one")),
            UploadFile(names[2], corrupt_bytes),
            UploadFile(names[3], make_docx("two")),
        ]
        result = convert_batch(files)
        assert [o.name for o in result.outcomes] == names
        assert [o.ok for o in result.outcomes] == [True, True, False, True]

    def test_all_failed_still_archives(self, corrupt_bytes, unzip):
        result = convert_batch([UploadFile("x.docx", corrupt_bytes), UploadFile("y.doc", corrupt_bytes)])
        assert list(unzip(result.archive)) == [f"{ARCHIVE_FOLDER}/"]
        assert len(result.errors) == 2

    def test_empty_batch_rejected(self):
        with pytest.raises(EmptyBatchError):
            convert_batch([])

    def test_successful_outcomes_release_pdf_bytes(self, make_docx):
        result = convert_batch([UploadFile("a.docx", make_docx("x"))])
        assert result.outcomes[0].ok
        assert result.outcomes[0].pdf is None

    def test_custom_geometry_settings(self, make_docx, unzip):
        settings = PipelineSettings(font_size=20, margin=100)
        assert settings.geometry == PageGeometry(margin=100)
        result = convert_batch([UploadFile("a.docx", make_docx("word " * 400))], settings)
        pdf = unzip(result.archive)[f"{ARCHIVE_FOLDER}/a.pdf"]
        assert len(pdf_pages(pdf)) > 1
