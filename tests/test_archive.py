"""ZIP packaging tests"""

import io
import zipfile

from core.archive import build_zip, unique_names


class TestUniqueNames:
    def test_distinct_names_are_untouched(self):
        assert list(unique_names(["5.pdf", "6.pdf"])) == ["5.pdf", "6.pdf"]

    def test_repeats_are_numbered_from_two(self):
        names = list(unique_names(["a.pdf", "a.pdf", "b.pdf", "a.pdf"]))

        assert names == ["a.pdf", "a_2.pdf", "b.pdf", "a_3.pdf"]


class TestBuildZip:
    def test_archive_contents(self):
        data = build_zip([("5.pdf", b"%PDF-5"), ("Ayşe Yılmaz.pdf", b"%PDF-a")])

        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.namelist() == ["5.pdf", "Ayşe Yılmaz.pdf"]
            assert zf.read("Ayşe Yılmaz.pdf") == b"%PDF-a"

    def test_colliding_names_are_kept_apart(self):
        data = build_zip([("5.pdf", b"one"), ("5.pdf", b"two")])

        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            assert zf.read("5.pdf") == b"one"
            assert zf.read("5_2.pdf") == b"two"
