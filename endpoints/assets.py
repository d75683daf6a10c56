from fastapi import APIRouter, File, HTTPException, UploadFile
from config import settings
import logging
import os
import uuid

router = APIRouter(prefix="/assets", tags=["assets"])
logger = logging.getLogger(__name__)

UPLOAD_URL_PREFIX = "/uploads"

@router.post("/", status_code=201)
def upload_model(file: UploadFile = File(...)):
    """Store a model file and return the reference clients pass to `modelUploaded`."""
    ext = os.path.splitext(file.filename or "")[1].lower()
    if ext not in settings.allowed_model_extensions:
        raise HTTPException(status_code=400, detail=f"Unsupported model file type '{ext or file.filename}'")

    contents = file.file.read(settings.MAX_UPLOAD_BYTES + 1)
    if len(contents) > settings.MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="Model file too large")

    name = f"{uuid.uuid4().hex}{ext}"
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    with open(os.path.join(settings.UPLOAD_DIR, name), "wb") as out:
        out.write(contents)
    logger.info("Stored model asset %s (%d bytes) as %s", file.filename, len(contents), name)

    return {
        "modelRef": f"{UPLOAD_URL_PREFIX}/{name}",
        "filename": file.filename,
        "size": len(contents),
    }
