# core/pdf_pages.py
import asyncio
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar
import fitz
from util.errors import DocumentLoadError, PageExtractionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PageSplitter:
    """
    Thin PyMuPDF wrapper: open an upload, read a page's text, cut a page out
    as its own document.

    MuPDF keeps its warnings in an internal store instead of raising; they are
    drained after every call and logged at `mupdf_log_level`, so noisy fonts
    ("TT: undefined function" and friends) never reach stdout.
    """

    def __init__(self, mupdf_log_level: int = logging.DEBUG) -> None:
        self._mupdf_level = mupdf_log_level

    def _drain_mupdf(self, where: str) -> None:
        messages = fitz.TOOLS.mupdf_warnings(reset=True)
        if messages and logger.isEnabledFor(self._mupdf_level):
            for line in messages.splitlines():
                logger.log(self._mupdf_level, "mupdf.%s %s", where, line)

    def load(self, data: bytes) -> fitz.Document:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as e:
            self._drain_mupdf("open")
            logger.warning("pdf.open.error err=%s", type(e).__name__)
            raise DocumentLoadError("could not open PDF") from e
        self._drain_mupdf("open")

        if doc.needs_pass:
            doc.close()
            raise DocumentLoadError("PDF is password protected")
        if doc.page_count == 0:
            doc.close()
            raise DocumentLoadError("PDF has no pages")
        logger.info("pdf.open bytes=%d pages=%d", len(data), doc.page_count)
        return doc

    @staticmethod
    def page_count(doc: fitz.Document) -> int:
        return doc.page_count

    def extract_text(self, doc: fitz.Document, page_index: int) -> str:
        try:
            page = doc.load_page(page_index)
            return page.get_text("text") or ""
        except Exception as e:
            raise PageExtractionError(page_index, type(e).__name__) from e
        finally:
            self._drain_mupdf("text")

    def extract_single_page(self, doc: fitz.Document, page_index: int) -> bytes:
        """Serialize page `page_index` as a standalone one-page PDF."""
        with fitz.open() as out:
            out.insert_pdf(doc, from_page=page_index, to_page=page_index)
            data = out.tobytes(garbage=3, deflate=True)
        self._drain_mupdf("split")
        return data


class OpenDocument:
    """
    A loaded PDF plus the one worker thread allowed to touch it.

    MuPDF documents are not thread-safe. Every call goes through the same
    single-thread executor, so close() queues behind a page that is still
    being read when the awaiting coroutine was cancelled. close() may be
    called more than once; only the first call does anything.
    """

    def __init__(self, doc: fitz.Document) -> None:
        self.doc = doc
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="pdf")
        self._close_lock = threading.Lock()
        self.closed = False

    @property
    def page_count(self) -> int:
        return self.doc.page_count

    async def run(self, fn: Callable[..., T], *args: Any) -> T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, fn, self.doc, *args)

    def close(self) -> None:
        with self._close_lock:
            if self.closed:
                return
            self.closed = True
        self._executor.submit(self.doc.close)
        self._executor.shutdown(wait=False)
