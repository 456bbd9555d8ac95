# integrations/http.py
#
# HTTP helper shared by the board sinks.
#
# fetch_with_retry: wraps requests.request with exponential backoff on
# transient failures (5xx responses and network-level errors). Client errors
# (4xx) come straight back so the sink can map them to ApiError subclasses.

import time
from typing import Any

import requests


def fetch_with_retry(
  method: str,
  url: str,
  *,
  retries: int = 3,
  backoff: float = 1.0,
  **kwargs: Any,
) -> requests.Response:
  """Send an HTTP request, retrying on transient failures.

  Retries on 5xx HTTP responses and network-level errors (Timeout,
  ConnectionError). Each retry is announced on stdout. After the final
  attempt a 5xx response is returned to the caller, and a network error
  is re-raised.

  Args:
    method:  HTTP method string ('GET', 'POST', etc.).
    url:     Request URL.
    retries: Maximum number of attempts (default 3: one initial + two retries).
    backoff: Base delay in seconds; the delay before attempt n (n >= 1) is
             backoff * 2**(n - 1).
    **kwargs: Passed through to requests.request (e.g. json, headers, timeout).
  """
  if retries < 1:
    raise ValueError(f'retries must be at least 1, got {retries}')

  for attempt in range(retries):
    last_attempt = attempt == retries - 1
    try:
      r = requests.request(method, url, **kwargs)
    except (requests.Timeout, requests.ConnectionError) as e:
      if last_attempt:
        raise
      reason = type(e).__name__
    else:
      if r.status_code < 500 or last_attempt:
        return r
      reason = f'HTTP {r.status_code} {r.reason}'
    delay = backoff * 2**attempt
    print(f'{method} {url} failed ({reason}); retrying in {delay:g}s')
    time.sleep(delay)

  raise AssertionError('unreachable')
