from __future__ import annotations
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel
from typing import Optional
import io
import logging
import os
import threading

# Internal imports
from recruitscraper.hrmos.errors import LaunchError, MissingCredentials, ScraperError
from recruitscraper.hrmos.exporter import Exporter, FILE_NAMES
from recruitscraper.hrmos.logging_config import setup_logging
from recruitscraper.hrmos.progress import ProgressTracker
from recruitscraper.hrmos.runner import run_scrape
from recruitscraper.hrmos.session import BrowserSession
from recruitscraper.hrmos.settings import SETTINGS, load_credentials

logger = logging.getLogger('web')

app = FastAPI(title="HRMOS Scraper")

origins = [
    "http://127.0.0.1:3000",
    "http://localhost:3000",
    "http://127.0.0.1:8000",
    "http://localhost:8000",
]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

PROGRESS = ProgressTracker()

# One browser at a time; a second trigger while scraping is refused
SCRAPE_LOCK = threading.Lock()

# Overridable by tests to swap in a fake browser
SESSION_FACTORY = BrowserSession

# A failed listing scrape answers 200 with success:false; these kinds answer 500
SERVER_ERROR_KINDS = ('details', 'candidates')


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


def _error(status: int, message: str, error: Optional[str] = None) -> JSONResponse:
    body = {"success": False, "message": message, "data": [], "count": 0}
    if error:
        body["error"] = error
    return JSONResponse(body, status_code=status)


def _run(kind: str, email: Optional[str] = None, password: Optional[str] = None) -> JSONResponse:
    try:
        credentials = load_credentials(email, password)
    except MissingCredentials as e:
        logger.error("Login credentials are not configured")
        return _error(500, str(e))
    if not SCRAPE_LOCK.acquire(blocking=False):
        return _error(409, 'スクレイピングが既に実行中です')
    try:
        result = run_scrape(
            kind,
            credentials=credentials,
            settings=SETTINGS,
            progress=PROGRESS,
            exporter=Exporter(SETTINGS.output_dir),
            session_factory=SESSION_FACTORY,
        )
    except LaunchError as e:
        return _error(500, 'ブラウザの起動に失敗しました', str(e))
    except ScraperError as e:
        return _error(500, 'スクレイピング中にエラーが発生しました', str(e))
    except Exception as e:
        logger.exception(f"Unhandled error during {kind} scrape")
        return _error(500, 'スクレイピング中にエラーが発生しました', str(e) or type(e).__name__)
    finally:
        SCRAPE_LOCK.release()
    if not result.success and kind in SERVER_ERROR_KINDS:
        return _error(500, result.message, result.error)
    return JSONResponse(result.model_dump(by_alias=True, exclude_none=True))


@app.post("/api/scrape-harmos")
def scrape_jobs():
    return _run('jobs')


@app.post("/api/scrape-job-details")
def scrape_job_details():
    return _run('details')


@app.post("/api/scrape-candidates")
def scrape_candidates():
    return _run('candidates')


@app.post("/api/scrape")
def scrape_with_login(body: LoginRequest):
    return _run('jobs', email=body.email, password=body.password)


@app.get("/api/progress")
def progress():
    snap = PROGRESS.snapshot()
    data = snap.model_dump(by_alias=True)
    data["percent"] = round(snap.percent, 1)
    return data


@app.get("/api/download/{kind}")
def download(kind: str):
    if kind not in FILE_NAMES:
        raise HTTPException(status_code=404, detail="Unknown export")
    path = Exporter(SETTINGS.output_dir).path_for(kind)
    if not path.exists():
        raise HTTPException(status_code=404, detail="Not found; run the scrape first")
    blob = path.read_bytes()
    return StreamingResponse(io.BytesIO(blob), media_type="text/csv", headers={
        "Content-Disposition": f"attachment; filename={FILE_NAMES[kind]}"
    })


@app.get("/health")
def health():
    return {"status": "ok", "scraping": SCRAPE_LOCK.locked(), "progress_status": PROGRESS.snapshot().status}


if __name__ == "__main__":
    import uvicorn
    setup_logging(debug=bool(os.getenv("SCRAPER_DEBUG")))
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run(app, host="127.0.0.1", port=port)
