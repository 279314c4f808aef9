"""
Crime Profiler REST client.

Thin wrapper over the catalog, choropleth, search and export endpoints the
viewer talks to. Every call is a plain GET; transport faults and non-2xx
responses are raised as ApiRequestError so the caller can log them and fall
back to whatever it already has.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import pandas as pd
import requests

from .scale import GlobalRange
from .utils.exceptions import ApiRequestError
from .utils.logger_config import setup_logger

logger = setup_logger(__name__)

# Whole of South Africa, lon/lat: west,south,east,north
FULL_BBOX = '16.45,-34.85,32.89,-22.13'

MEASURE_KINDS = ('indicator', 'sub_index', 'index')


@dataclass
class ChoroplethResult:
    """Normalised /choropleth payload."""

    items: pd.DataFrame
    label: str = ''
    unit: Optional[str] = None
    description: str = ''
    source_name: str = ''
    source_url: str = ''
    global_range: GlobalRange = field(default_factory=GlobalRange)

    @classmethod
    def from_payload(cls, payload: Dict[str, Any], indicator: str = '') -> "ChoroplethResult":
        raw_items = payload.get('items')
        items = pd.DataFrame(raw_items if isinstance(raw_items, list) else [], columns=['code', 'value'])
        items['code'] = items['code'].astype(str)
        items['value'] = pd.to_numeric(items['value'], errors='coerce')
        return cls(
            items=items,
            label=payload.get('label') or indicator,
            unit=payload.get('unit'),
            description=payload.get('description') or '',
            source_name=payload.get('source_name') or '',
            source_url=payload.get('source_url') or '',
            global_range=GlobalRange.from_payload(payload),
        )


class CrimeProfilerClient:
    """
    Client for the crime profiler API.

    Attributes:
        base_url (str): API root, e.g. http://host/crime-profiler/api
        timeout (float): Seconds to wait for each request
        retries (int): Attempts for rate-limited or dropped requests

    Example:
        >>> client = CrimeProfilerClient('http://localhost:8000/crime-profiler/api')
        >>> client.get_periods()
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        retries: int = 3,
        backoff: float = 0.5,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.retries = max(1, retries)
        self.backoff = backoff
        self.session = session or requests.Session()

    @staticmethod
    def _clean_params(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
        if not params:
            return {}
        return {k: str(v) for k, v in params.items() if v is not None and v != ''}

    def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        GET a path relative to base_url with retry on 429 / network errors.

        Raises:
            ApiRequestError: Non-2xx status, or the network failed on every attempt
        """
        url = f"{self.base_url}/{path.lstrip('/')}"
        query = self._clean_params(params)

        for attempt in range(self.retries):
            try:
                logger.debug(f'Requesting: {url} {query}')
                response = self.session.get(url, params=query, timeout=self.timeout)
            except requests.exceptions.RequestException as e:
                logger.error(f'Network error (attempt {attempt + 1}): {str(e)}')
                if attempt == self.retries - 1:
                    raise ApiRequestError(f'Network error after {self.retries} attempts: {str(e)}')
                time.sleep(self.backoff * (attempt + 1))
                continue

            if response.status_code == 429 and attempt < self.retries - 1:
                wait_time = self.backoff * (attempt + 1) * 2
                logger.warning(f'Rate Limit Exceeded, waiting for {wait_time}s')
                time.sleep(wait_time)
                continue

            if not response.ok:
                detail = response.text or response.reason
                logger.error(f'Request to {url} failed with status {response.status_code}: {detail}')
                raise ApiRequestError(detail, status_code=response.status_code)
            return response

        raise ApiRequestError(f'Rate limited on every attempt for {url}', status_code=429)

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = self._request(path, params)
        try:
            return response.json()
        except ValueError as e:
            raise ApiRequestError(f'Malformed JSON from {path}: {str(e)}', status_code=response.status_code)

    # === Catalog ===

    def get_periods(self) -> List[Dict[str, Any]]:
        """[{period, label}], latest first"""
        periods = self._get_json('catalog/periods') or []
        return sorted(periods, key=lambda p: str(p.get('label') or p.get('period')), reverse=True)

    def get_themes(self, kind: str, period: Optional[str] = None) -> List[str]:
        if kind not in MEASURE_KINDS:
            raise ValueError(f'Unsupported measure kind: {kind}')
        themes = self._get_json('catalog/themes', {'kind': kind, 'period': period}) or []
        return sorted(themes, key=lambda t: str(t).casefold())

    def get_indicators(self, kind: str, theme: str, period: Optional[str] = None) -> List[Dict[str, Any]]:
        """[{key, label, ...}] sorted by label"""
        indicators = self._get_json('catalog/indicators', {'kind': kind, 'theme': theme, 'period': period}) or []
        return sorted(indicators, key=lambda x: str(x.get('label') or x.get('key')).casefold())

    def get_municipalities(self) -> List[Dict[str, Any]]:
        return self._get_json('catalog/municipalities') or []

    # === Choropleth ===

    def get_choropleth(
        self,
        indicator: str,
        period: Optional[str] = None,
        bbox: Optional[str] = None,
        scenario: Optional[str] = None,
        extent: Optional[str] = None,
    ) -> ChoroplethResult:
        payload = self._get_json(
            f'choropleth/indicator/{quote(indicator, safe="")}',
            {'period': period, 'bbox': bbox, 'scenario': scenario, 'extent': extent},
        )
        if not isinstance(payload, dict):
            raise ApiRequestError(f'Unexpected choropleth payload for {indicator}')
        return ChoroplethResult.from_payload(payload, indicator)

    # === Search / export ===

    def search_municipalities(self, q: str) -> List[Dict[str, Any]]:
        if not q or not q.strip():
            return []
        return self._get_json('search/municipalities', {'q': q.strip()}) or []

    def download_shapefile(self, indicator: str, period: str, scenario: Optional[str] = None) -> bytes:
        """Zipped shapefile bytes for the indicator/period"""
        response = self._request('export/shapefile', {'indicator': indicator, 'period': period, 'scenario': scenario})
        return response.content


__all__ = ["FULL_BBOX", "MEASURE_KINDS", "ChoroplethResult", "CrimeProfilerClient"]
