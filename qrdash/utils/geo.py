import logging

import requests

logger = logging.getLogger(__name__)

UNKNOWN_LOCATION = {"country": None, "city": None}


def get_location_from_ip(ip: str | None, url_template: str, timeout: float = 2) -> dict:
    """Look up country/city for ``ip`` through a JSON geo-IP endpoint.

    ``url_template`` contains an ``{ip}`` placeholder, e.g.
    ``https://ipwho.is/{ip}``. Lookups never raise.
    """
    if not url_template or not ip or ip == "unknown":
        return dict(UNKNOWN_LOCATION)

    try:
        resp = requests.get(url_template.format(ip=ip), timeout=timeout)
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"GeoIP lookup failed: {e}")
        return dict(UNKNOWN_LOCATION)

    if data.get("success") is False:
        return dict(UNKNOWN_LOCATION)

    return {
        "country": data.get("country") or data.get("country_name"),
        "city": data.get("city"),
    }
