from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import Settings
from .errors import UpstreamError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["elections"])

VALID_OFFICES = ("house", "senate", "president")


@dataclass(frozen=True)
class FecConfig:
    base_url: str
    api_key: str
    timeout_s: float = 25.0
    user_agent: str = "civicwatch/1.0"

    @classmethod
    def from_settings(cls, cfg: Settings) -> "FecConfig":
        return cls(
            base_url=cfg.fec_api_url.rstrip("/"),
            api_key=cfg.fec_api_key,
            timeout_s=cfg.request_timeout,
            user_agent=cfg.user_agent,
        )


def validate_election_query(office: str, state: Optional[str], district: Optional[str]) -> Optional[str]:
    """Return an error message for an invalid query, or None."""
    if office not in VALID_OFFICES:
        return "Invalid office type. Use 'house', 'senate', or 'president'."
    if office == "senate" and not state:
        return "Must include 'state' parameter for Senate elections."
    if office == "house" and (not state or not district):
        return "Must include both 'state' and 'district' parameters for House elections."
    return None


class FecClient:
    """Thin client for the OpenFEC elections endpoint."""

    def __init__(self, cfg: FecConfig, client: Optional[httpx.Client] = None):
        self.cfg = cfg
        self._client = client or httpx.Client(
            base_url=cfg.base_url,
            timeout=httpx.Timeout(cfg.timeout_s, connect=cfg.timeout_s),
            headers={"User-Agent": cfg.user_agent},
        )

    def close(self) -> None:
        self._client.close()

    @retry(
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4.0),
        reraise=True,
    )
    def _get(self, path: str, params: Dict[str, Any]) -> httpx.Response:
        return self._client.get(path, params=params)

    def elections(self, year: str, office: str, state: Optional[str] = None, district: Optional[str] = None) -> Dict[str, Any]:
        params: Dict[str, Any] = {"cycle": year, "office": office, "api_key": self.cfg.api_key}
        if state:
            params["state"] = state
        if district:
            params["district"] = district

        try:
            resp = self._get("/elections/", params)
        except httpx.HTTPError as e:
            raise UpstreamError(f"FEC request failed: {e}") from e

        if not resp.is_success:
            raise UpstreamError(
                f"FEC error {resp.status_code}",
                status_code=resp.status_code,
                detail=(resp.text or "").strip()[:500],
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise UpstreamError(f"FEC returned non-JSON response: {e}") from e
        if not isinstance(data, dict):
            raise UpstreamError("FEC returned unexpected JSON shape")
        return data


def _election_results(request: Request, year: str, office: str, state: Optional[str], district: Optional[str]):
    err = validate_election_query(office, state, district)
    if err:
        return JSONResponse(status_code=400, content={"error": err})
    client: FecClient = request.app.state.fec_client
    try:
        return client.elections(year, office, state=state, district=district)
    except UpstreamError as e:
        logger.error("election results failed year=%s office=%s state=%s district=%s: %s (%s)",
                     year, office, state, district, e, e.detail)
        return JSONResponse(status_code=500, content={"error": "Failed to fetch election results."})


@router.get("/election-results/{year}/{office}")
def election_results(year: str, office: str, request: Request):
    return _election_results(request, year, office, None, None)


@router.get("/election-results/{year}/{office}/{state}")
def election_results_state(year: str, office: str, state: str, request: Request):
    return _election_results(request, year, office, state, None)


@router.get("/election-results/{year}/{office}/{state}/{district}")
def election_results_district(year: str, office: str, state: str, district: str, request: Request):
    return _election_results(request, year, office, state, district)
