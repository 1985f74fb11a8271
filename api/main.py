"""
FastAPI Backend for the M-Pesa SMS Transaction Parser
RESTful API endpoints for parsing notifications and scanning inbox exports
"""

from fastapi import FastAPI, File, UploadFile, Form, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import List, Optional
from pathlib import Path
from datetime import datetime
import logging
import sys

# Add backend to path
backend_path = Path(__file__).parent.parent / 'backend'
sys.path.insert(0, str(backend_path))

# Import backend modules
from config import config
from logging_config import setup_logging
from extractors.sms_extractor import parse_sms, SmsExtractor
from loaders.sms_loader import load_inbox_text, SmsLoadError
from validators.financial_validator import TransactionValidator
from pipeline import SmsScanPipeline, TransactionGrouper

setup_logging(log_file="api.log")
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="M-Pesa SMS Parser API",
    description="Turn M-Pesa notification text into structured transactions",
    version=config.VERSION
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ParseRequest(BaseModel):
    message: str = Field(..., description="Raw SMS body")
    received_at: Optional[datetime] = Field(None, description="When the SMS arrived")


class BatchParseRequest(BaseModel):
    messages: List[str] = Field(..., description="Raw SMS bodies")
    received_at: Optional[datetime] = Field(None, description="Fallback arrival time for every message")


def _check_message(message: str):
    if not message.strip():
        raise HTTPException(status_code=400, detail="message must not be empty")
    if len(message.strip()) > config.MAX_MESSAGE_LENGTH:
        raise HTTPException(
            status_code=400,
            detail=f"message too long (max {config.MAX_MESSAGE_LENGTH} characters)"
        )


@app.get("/")
async def root():
    """Root endpoint - API information"""
    return {
        "message": config.APP_NAME,
        "version": config.VERSION,
        "endpoints": {
            "POST /parse": "Parse a single M-Pesa SMS",
            "POST /parse/batch": "Parse a list of SMS bodies",
            "POST /scan": "Scan an uploaded inbox export (.txt or .json)",
            "GET /config": "Active configuration",
            "GET /health": "Health check"
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat()
    }


@app.get("/config")
async def get_config():
    """Active configuration"""
    return config.to_dict()


@app.post("/parse")
async def parse_message(request: ParseRequest):
    """
    Parse one SMS.

    - **message**: raw SMS body
    - **received_at**: optional arrival time, used when the text carries no date/time
    """
    _check_message(request.message)

    transaction = parse_sms(request.message, request.received_at)
    if transaction is None:
        return {
            "status": "unrecognized",
            "message": "Not a recognized M-Pesa transaction message"
        }

    return {
        "status": "parsed",
        "transaction": transaction.to_dict(),
        "storage_row": transaction.to_storage_row()
    }


@app.post("/parse/batch")
async def parse_batch(request: BatchParseRequest):
    """
    Parse many SMS bodies at once. Invalid transactions are dropped.
    """
    if not request.messages:
        raise HTTPException(status_code=400, detail="At least one message is required")

    try:
        extractor = SmsExtractor()
        transactions = extractor.extract_transactions(
            [(message, request.received_at) for message in request.messages]
        )
        validator = TransactionValidator(allow_zero_amounts=config.ALLOW_ZERO_AMOUNTS)
        valid = validator.validate_transactions(transactions)

        return {
            "status": "success",
            "transactions": [txn.to_dict() for txn in valid],
            "summary": TransactionGrouper.summarize(valid),
            "stats": extractor.get_stats()
        }
    except Exception as e:
        logger.error(f"Error parsing batch: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


@app.post("/scan")
async def scan_inbox(
    file: UploadFile = File(..., description="Inbox export (.txt or .json)"),
    keywords: str = Form("", description="Comma-separated counterparty keywords"),
    start_month: Optional[str] = Form(None, description="Start month (YYYY-MM)"),
    end_month: Optional[str] = Form(None, description="End month (YYYY-MM)")
):
    """
    Scan an exported SMS inbox.

    Returns the transactions found plus monthly and overall summaries.
    """
    content = await file.read()
    is_valid, error = config.validate_file(file.filename or "", len(content))
    if not is_valid:
        raise HTTPException(status_code=400, detail=error)

    keyword_list = [k.strip() for k in keywords.split(',') if k.strip()]

    for month in (start_month, end_month):
        if month:
            try:
                datetime.strptime(month, "%Y-%m")
            except ValueError:
                raise HTTPException(status_code=400, detail="Invalid date format. Use YYYY-MM")

    try:
        fmt = "json" if file.filename.lower().endswith(".json") else "text"
        entries = load_inbox_text(content.decode("utf-8"), fmt)
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Inbox must be UTF-8 text")
    except SmsLoadError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        pipeline = SmsScanPipeline(strict_mode=False)
        transactions = pipeline.run(entries, keyword_list, start_month or None, end_month or None)
        logger.info(f"Scanned {file.filename}: {len(transactions)} transactions")

        return {
            "status": "success" if transactions else "no_transactions",
            "filename": file.filename,
            "transactions": [txn.to_dict() for txn in transactions],
            "summary": TransactionGrouper.summarize(transactions),
            "monthly_summary": TransactionGrouper.summarize_by_month(transactions),
            "stats": {**pipeline.stats, "extraction": pipeline.extraction_stats}
        }
    except Exception as e:
        logger.error(f"Error scanning inbox: {str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"Internal server error: {str(e)}")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
