import io
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..core.config import settings
from ..core.errors import CVNotReady, FileNotFound, InvalidFilename, RenderError
from ..services.pdf_renderer import render_pdf
from ..services.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class PdfResult:
    filename: str
    pdf_url: Optional[str] = None
    content: Optional[bytes] = None

    @property
    def inline(self) -> bool:
        return self.content is not None


class PdfService:
    """
    Renders a session's CV. In "url" mode the file lands in the uploads
    directory and is served from /uploads; in "inline" mode (ephemeral
    filesystems) the bytes go straight back to the caller.
    """

    def __init__(
        self,
        store: SessionStore,
        delivery: Optional[str] = None,
        uploads_dir: Optional[str] = None,
    ):
        self.store = store
        self.delivery = delivery or settings.pdf_delivery
        self.uploads_dir = Path(uploads_dir or settings.uploads_dir)

    def generate(self, session_id: str) -> PdfResult:
        session = self.store.require_session(session_id)
        if not session.cv_data:
            raise CVNotReady(f"Session {session_id} has no CV data")

        filename = f"cv_{session_id}_{int(time.time() * 1000)}.pdf"

        if self.delivery == "inline":
            buffer = io.BytesIO()
            render_pdf(session.cv_data, buffer)
            logger.info(f"[PDF] Rendered {filename} inline ({buffer.tell()} bytes)")
            return PdfResult(filename=filename, content=buffer.getvalue())

        self._write(session.cv_data, self.uploads_dir / filename)
        return PdfResult(filename=filename, pdf_url=f"/uploads/{filename}")

    def write_session_pdf(self, session_id: str) -> Path:
        """
        Render into one fixed file per session, overwritten on every call.
        Used by the chat UI, which hands the path to its download widget.
        """
        session = self.store.require_session(session_id)
        if not session.cv_data:
            raise CVNotReady(f"Session {session_id} has no CV data")

        path = self.uploads_dir / f"cv_{session_id}.pdf"
        self._write(session.cv_data, path)
        return path

    def _write(self, cv_data, path: Path) -> None:
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, "wb") as f:
                render_pdf(cv_data, f)
        except (RenderError, OSError) as e:
            if path.exists():
                path.unlink()
            if isinstance(e, OSError):
                raise RenderError(f"Could not write {path}: {e}") from e
            raise

        logger.info(f"[PDF] Created {path} ({path.stat().st_size} bytes)")

    def resolve_upload(self, filename: str) -> Path:
        # Prevent directory traversal
        if ".." in filename or "/" in filename or "\\" in filename:
            raise InvalidFilename(f"Rejected filename {filename!r}")

        path = self.uploads_dir / filename
        if not os.path.isfile(path):
            raise FileNotFound(f"{path} does not exist")
        return path
