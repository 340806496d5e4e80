"""Shared HTTP helpers used by the registry and runtime clients.

Encapsulates request/timeout/retry handling so callers only deal with
``RegistryError``. Connection failures are retried; HTTP error statuses are
returned to the caller on the first answer.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional

import requests

from constants import Constants
from errors import RegistryError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)


def robust_get(
    url: str,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> requests.Response:
    """Perform a GET request with timeout and retries, with DEBUG traces.

    Raises:
        RegistryError: If every attempt failed to get an answer.
    """
    safe_target = safe_url(url)
    last_exception = None

    for attempt in range(Constants.HTTP_RETRY_MAX):
        if attempt:
            time.sleep(Constants.HTTP_RETRY_BASE_DELAY_SEC * (2 ** (attempt - 1)))
        with Timer() as t:
            try:
                if is_debug_enabled(logger):
                    logger.debug(
                        "HTTP request",
                        extra=extra_context(
                            event="http_request",
                            component="http_client",
                            action="GET",
                            target=safe_target,
                            context=context,
                            attempt=attempt + 1
                        )
                    )
                response = requests.get(
                    url,
                    timeout=Constants.REQUEST_TIMEOUT,
                    headers=headers,
                    **kwargs
                )
            except requests.Timeout:
                last_exception = f"timed out after {Constants.REQUEST_TIMEOUT} seconds"
                logger.debug("%s request timed out (attempt %d)", context, attempt + 1)
                continue
            except requests.RequestException as exc:  # includes ConnectionError
                last_exception = str(exc)
                logger.debug("%s connection error (attempt %d): %s", context, attempt + 1, exc)
                continue

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    status_code=response.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context
                )
            )
        return response

    logger.warning("%s request failed after %d attempts: %s", context, Constants.HTTP_RETRY_MAX, last_exception)
    raise RegistryError(
        f"{context} request failed after {Constants.HTTP_RETRY_MAX} attempts: {last_exception}"
    )


def get_json(
    url: str,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    **kwargs: Any
) -> Any:
    """Perform a GET request and parse the JSON body.

    Args:
        url: Target URL
        context: Human-readable source tag for logs (e.g., "npm", "node").
        headers: Optional request headers
        **kwargs: Additional requests.get parameters

    Returns:
        The decoded JSON document.

    Raises:
        RegistryError: On transport failure, non-2xx status or undecodable body.
    """
    res = robust_get(url, context=context, headers=headers, **kwargs)

    if not 200 <= res.status_code < 300:
        logger.info(
            "HTTP non-2xx handled",
            extra=extra_context(
                event="http_response",
                outcome="handled_non_2xx",
                status_code=res.status_code,
                target=safe_url(url),
                context=context
            )
        )
        raise RegistryError(f"Response isn't ok! status = {res.status_code}", res.status_code)

    try:
        return json.loads(res.text)
    except json.JSONDecodeError as exc:
        logger.debug("%s JSON decode error: %s", context, exc)
        raise RegistryError(f"{context} returned a response that is not valid JSON") from exc
