"""
File scan API route
Implements POST /scan: upload one file, get the aggregated report back.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Union

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import PlainTextResponse, Response
from pydantic import BaseModel, Field

from ..config.settings import WEB_SCAN_TIMEOUT_SECONDS, Settings
from ..scanner.deadline import ScanScope
from ..scanner.errors import MandatoryToolError, ScanCancelledError
from .dependencies import Scanner, get_scanner, get_settings

logger = logging.getLogger(__name__)
router = APIRouter(tags=["scan"])

UPLOAD_FIELD = "malware"
MISSING_FILE_MESSAGE = "Please supply a valid file to scan."
JSON_MEDIA_TYPE = "application/json; charset=UTF-8"


class MagicModel(BaseModel):
    mime: str
    description: str


class ScanReportModel(BaseModel):
    """JSON body returned by POST /scan"""
    magic: MagicModel
    ssdeep: str
    trid: List[str] = Field(default_factory=list)
    exiftool: Dict[str, str] = Field(default_factory=dict)
    markdown: Optional[str] = None
    apk_file: str


def _store_upload(content: bytes, upload_dir: str) -> Path:
    directory = upload_dir if os.path.isdir(upload_dir) else None
    with tempfile.NamedTemporaryFile(dir=directory, prefix="web_", delete=False) as handle:
        handle.write(content)
    return Path(handle.name)


@router.post("/scan")
async def scan_upload(
    malware: Union[UploadFile, str, None] = File(None, description="File to scan"),
    settings: Settings = Depends(get_settings),
    scanner: Scanner = Depends(get_scanner),
):
    """
    Scan an uploaded file

    - 400 plain text when the multipart field is missing or not a file
    - 504 when the scan runs past its deadline
    - 502 when the archive metadata tool fails
    - 200 with the JSON report otherwise, including degraded tool fields
    """
    if malware is None or isinstance(malware, str) or not malware.filename:
        logger.error("Scan request without a valid %r file field", UPLOAD_FIELD)
        return PlainTextResponse(MISSING_FILE_MESSAGE + "\n", status_code=status.HTTP_400_BAD_REQUEST)

    logger.debug("Uploaded fileName: %s", malware.filename)
    content = await malware.read()
    upload_path = _store_upload(content, settings.upload_dir)

    try:
        with ScanScope(WEB_SCAN_TIMEOUT_SECONDS) as scope:
            try:
                report = await asyncio.to_thread(scanner, scope, upload_path)
            except asyncio.CancelledError:
                scope.cancel("client disconnected")
                raise
    except ScanCancelledError as exc:
        logger.warning("Scan of %s cancelled: %s", malware.filename, exc)
        return PlainTextResponse(str(exc) + "\n", status_code=status.HTTP_504_GATEWAY_TIMEOUT)
    except MandatoryToolError as exc:
        logger.error("Scan of %s failed: %s", malware.filename, exc)
        return PlainTextResponse(str(exc) + "\n", status_code=status.HTTP_502_BAD_GATEWAY)
    finally:
        upload_path.unlink(missing_ok=True)

    body = ScanReportModel.model_validate(report.to_dict())
    return Response(
        content=body.model_dump_json(exclude_none=True),
        status_code=status.HTTP_200_OK,
        media_type=JSON_MEDIA_TYPE,
    )
