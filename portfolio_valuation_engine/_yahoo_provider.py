"""Default chart provider over the Yahoo Finance v8 chart endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)


class YahooChartProvider:
    """
    Fetch chart ``result`` objects, trying the direct endpoint first and then
    each configured relay URL in order. Returns None when every route fails.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()

    def _routes(self, symbol: str, range: str, interval: str) -> list[str]:
        from portfolio_valuation_engine.config import FETCH_DEFAULTS

        base = FETCH_DEFAULTS["chart_url"].format(symbol=quote(symbol, safe="^=.-"))
        raw_url = f"{base}?interval={interval}&range={range}"
        encoded = quote(raw_url, safe="")
        return [raw_url] + [tpl.format(url=encoded) for tpl in FETCH_DEFAULTS["proxy_templates"]]

    def fetch_chart(
        self, symbol: str, range: str, interval: str, timeout: Optional[float] = None
    ) -> Optional[Dict[str, Any]]:
        from portfolio_valuation_engine.config import FETCH_DEFAULTS

        timeout = timeout if timeout is not None else float(FETCH_DEFAULTS["timeout_seconds"])
        headers = {"User-Agent": FETCH_DEFAULTS["user_agent"]}
        for url in self._routes(symbol, range, interval):
            try:
                response = self.session.get(url, timeout=timeout, headers=headers)
                if not response.ok:
                    logger.debug("%s: HTTP %s from %s", symbol, response.status_code, url)
                    continue
                data = response.json()
            except (requests.RequestException, ValueError) as exc:
                logger.debug("%s: route failed (%s: %s)", symbol, type(exc).__name__, exc)
                continue
            results = ((data or {}).get("chart") or {}).get("result")
            if results:
                return results[0]
        logger.warning("%s: all chart routes failed (range=%s, interval=%s)", symbol, range, interval)
        return None
