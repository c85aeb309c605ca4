import uuid
from domain.errors import ResourceNotFoundError
from infra.db.session import SessionLocal
from infra.db.models import FileRecord

class FilesRepository:
    def __init__(self, session_factory=SessionLocal):
        self._session = session_factory

    def save(self, ftype: str, path: str, name: str, text: str = "", page_count: int = 0) -> str:
        fid = f"file_{uuid.uuid4().hex}"
        with self._session() as s:
            s.add(FileRecord(id=fid, type=ftype, path=path, name=name,
                             extracted_text=text, page_count=page_count))
            s.commit()
        return fid

    def exists(self, file_id: str) -> bool:
        with self._session() as s:
            return s.get(FileRecord, file_id) is not None

    def get_text(self, file_id: str) -> str:
        with self._session() as s:
            rec = s.get(FileRecord, file_id)
            if not rec:
                raise ResourceNotFoundError("File", file_id)
            return rec.extracted_text or ""
