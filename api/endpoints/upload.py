import os
import uuid
from fastapi import APIRouter, Depends, UploadFile, File, HTTPException
from typing import Optional
from app.container import get_files_repository
from app.settings import settings
from domain.schemas import UploadedFile, UploadResponse
from infra.pdf.parser import parse_pdf
from infra.repositories.files_repository import FilesRepository

router = APIRouter()


@router.post("/upload", response_model=UploadResponse)
async def upload(cv: Optional[UploadFile] = File(default=None),
                 report: Optional[UploadFile] = File(default=None),
                 files_repo: FilesRepository = Depends(get_files_repository)) -> UploadResponse:
    if not cv and not report:
        raise HTTPException(
            status_code=400, detail="Upload at least one file: 'cv' or 'report'")
    os.makedirs(settings.STORAGE_DIR, exist_ok=True)
    resp = UploadResponse()

    async def save_one(f: UploadFile, ftype: str) -> UploadedFile:
        name = f.filename or "uploaded.pdf"
        if not name.lower().endswith(".pdf"):
            raise HTTPException(status_code=400, detail=f"{name} is not a PDF")
        content = await f.read(settings.MAX_FILE_SIZE + 1)
        if len(content) > settings.MAX_FILE_SIZE:
            raise HTTPException(
                status_code=400, detail=f"{name} exceeds the {settings.MAX_FILE_SIZE} byte upload limit")
        path = os.path.join(settings.STORAGE_DIR, f"{uuid.uuid4().hex}_{name.replace(' ', '_')}")
        with open(path, "wb") as out:
            out.write(content)
        try:
            text, pages = parse_pdf(path)
        except Exception as exc:
            os.remove(path)
            raise HTTPException(status_code=400, detail=f"Failed to parse PDF {name}: {exc}")
        fid = files_repo.save(ftype=ftype, path=path, name=name, text=text, page_count=pages)
        return UploadedFile(id=fid, filename=name, page_count=pages)

    if cv:
        resp.cv = await save_one(cv, "CV")
    if report:
        resp.report = await save_one(report, "PROJECT_REPORT")
    return resp
