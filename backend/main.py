"""gedline - GEDCOM 5.5 validation and export backend.

FastAPI server that decodes uploaded GEDCOM files, validates them (with
optional auto-repair) and re-encodes them.
"""

import logging
from enum import Enum

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel
from dotenv import load_dotenv

from config import get_settings

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("gedline")

from gedcom_errors import GedcomReaderError, GedcomValidationError, GedcomWriterError
from gedcom_model import Gedcom
from gedcom_reader import parse_gedcom_content
from gedcom_writer import GedcomWriter
from validation import (
    AUTO_REPAIR_ALL,
    AUTO_REPAIR_NONE,
    AutoRepairPolicy,
    Severity,
    Validator,
    repair_at_or_above,
)


# Create FastAPI app
app = FastAPI(
    title="gedline",
    description="GEDCOM 5.5 encoder, decoder and validator with policy-gated auto-repair",
    version="1.0.0",
)

# Configure CORS for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class AutoRepairMode(str, Enum):
    """Which findings the validator may repair."""
    none = "none"
    all = "all"
    error = "error"
    warning = "warning"
    info = "info"


def policy_for(mode: AutoRepairMode) -> AutoRepairPolicy:
    if mode == AutoRepairMode.none:
        return AUTO_REPAIR_NONE
    if mode == AutoRepairMode.all:
        return AUTO_REPAIR_ALL
    return repair_at_or_above(Severity[mode.value.upper()])


# Request/Response models
class FindingResponse(BaseModel):
    """One validation finding."""
    severity: str
    problemCode: int
    problemDescription: str | None
    recordType: str
    xref: str | None = None
    field: str | None = None
    relatedItemCount: int = 0
    repairCount: int = 0


class ValidationResponse(BaseModel):
    """Response after validating a GEDCOM file."""
    message: str
    finding_count: int
    error_count: int
    repaired_count: int
    findings: list[FindingResponse]


# Endpoints

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    logger.debug("Health check requested")
    return {"status": "healthy"}


async def read_upload(file: UploadFile) -> Gedcom:
    """Decode an uploaded GEDCOM file into a record graph, or fail with HTTP 400."""
    logger.info(f"Received GEDCOM file upload: {file.filename}")

    if not file.filename or not file.filename.lower().endswith((".ged", ".gedcom")):
        logger.warning(f"Invalid file type: {file.filename}")
        raise HTTPException(status_code=400, detail="File must be a GEDCOM file (.ged or .gedcom)")

    content = await file.read()
    logger.debug(f"Read {len(content)} bytes from file")
    try:
        content_str = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.info("UTF-8 decode failed, trying latin-1 encoding")
        content_str = content.decode("latin-1")

    try:
        return parse_gedcom_content(content_str)
    except GedcomReaderError as e:
        logger.error(f"Failed to parse GEDCOM file: {str(e)}")
        raise HTTPException(status_code=400, detail=f"Failed to parse GEDCOM file: {str(e)}")


@app.post("/validate", response_model=ValidationResponse)
async def validate_gedcom(
    file: UploadFile = File(...),
    auto_repair: AutoRepairMode = Query(AutoRepairMode.none),
):
    """Validate an uploaded GEDCOM file and report the findings."""
    gedcom = await read_upload(file)
    results = Validator(gedcom, policy_for(auto_repair)).validate()

    findings = [FindingResponse(**f.to_dict()) for f in results]
    error_count = len(results.by_severity(Severity.ERROR))
    repaired_count = sum(1 for f in results if f.repaired)
    logger.info(f"Validated {file.filename}: {len(findings)} findings, {error_count} errors")
    return ValidationResponse(
        message=f"Validated GEDCOM file: {file.filename}",
        finding_count=len(findings),
        error_count=error_count,
        repaired_count=repaired_count,
        findings=findings,
    )


@app.post("/export", response_class=PlainTextResponse)
async def export_gedcom(
    file: UploadFile = File(...),
    auto_repair: AutoRepairMode = Query(AutoRepairMode.none),
):
    """Validate (and optionally repair) an uploaded GEDCOM file, then re-encode it."""
    gedcom = await read_upload(file)
    if auto_repair != AutoRepairMode.none:
        Validator(gedcom, policy_for(auto_repair)).validate()

    try:
        content = GedcomWriter(gedcom).write_to_string()
    except GedcomValidationError as e:
        logger.warning(f"Export of {file.filename} blocked: {str(e)}")
        raise HTTPException(
            status_code=422,
            detail={"message": str(e), "findings": [f.to_dict() for f in e.findings]},
        )
    except GedcomWriterError as e:
        logger.error(f"Failed to encode GEDCOM file: {str(e)}")
        raise HTTPException(status_code=422, detail=f"Failed to encode GEDCOM file: {str(e)}")

    return PlainTextResponse(
        content,
        media_type="text/plain; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{file.filename}"'},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
