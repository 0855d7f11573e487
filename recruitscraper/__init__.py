"""HRMOS recruiting console scraper public API."""
from importlib import metadata as _metadata

try:
    __version__ = _metadata.version("recruitscraper")
except Exception:  # fallback when not installed
    __version__ = "0.1.0"

from .hrmos.models import CandidateInfo, JobDetail, JobListing  # re-export
from .hrmos.session import BrowserSession  # re-export

__all__ = ["__version__", "BrowserSession", "CandidateInfo", "JobDetail", "JobListing"]
