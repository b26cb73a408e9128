"""
HR backend HTTP client

Uniform JSON calls against the HR REST backend.
"""

import asyncio
import json
import logging
from typing import Dict, Any, Optional

import aiohttp

from config import ConsoleConfig
from exceptions import ConnectionException, HTTPStatusException, RequestTimeoutException
from adapters.response_unwrapper import extract_message

IDEMPOTENT_METHODS = {'GET', 'HEAD'}


class HttpClient:
    """HTTP client for the HR backend"""

    def __init__(self, config: ConsoleConfig, session: Optional[aiohttp.ClientSession] = None):
        """
        Args:
            config: console configuration
            session: pre-built client session, mainly for tests
        """
        self.config = config
        self.logger = logging.getLogger(__name__)
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None
        self._base_url = config.backend.api_base_url.rstrip('/')

        self._request_count = 0
        self._success_count = 0
        self._error_count = 0

    @property
    def base_url(self) -> str:
        return self._base_url

    async def start(self):
        if self._session:
            return

        timeout = aiohttp.ClientTimeout(
            total=self.config.backend.request_timeout,
            connect=self.config.backend.connection_timeout
        )
        connector = aiohttp.TCPConnector(
            limit=self.config.backend.pool_size,
            limit_per_host=self.config.backend.pool_size
        )

        self._session = aiohttp.ClientSession(
            timeout=timeout,
            connector=connector,
            headers={'Accept': 'application/json'}
        )
        self._owns_session = True

        self.logger.info(f"HTTP client for {self._base_url} started")

    async def stop(self):
        if self._session and self._owns_session:
            await self._session.close()
        self._session = None

        self.logger.info(f"HTTP client for {self._base_url} stopped")

    async def get(self, endpoint: str, params: Dict[str, Any] = None,
                  token: Optional[str] = None) -> Any:
        return await self._request('GET', endpoint, token=token, params=params)

    async def post(self, endpoint: str, data: Any = None,
                   token: Optional[str] = None) -> Any:
        return await self._request('POST', endpoint, token=token, json=data if data is not None else {})

    async def put(self, endpoint: str, data: Any = None,
                  token: Optional[str] = None) -> Any:
        return await self._request('PUT', endpoint, token=token, json=data if data is not None else {})

    async def patch(self, endpoint: str, data: Any = None,
                    token: Optional[str] = None) -> Any:
        return await self._request('PATCH', endpoint, token=token, json=data if data is not None else {})

    async def delete(self, endpoint: str, token: Optional[str] = None) -> Any:
        return await self._request('DELETE', endpoint, token=token)

    async def request(self, method: str, endpoint: str, data: Any = None,
                      token: Optional[str] = None) -> Any:
        """Dispatch by method name, used for declared sub-resource calls."""
        method = method.upper()
        if method == 'GET':
            return await self.get(endpoint, token=token)
        if method == 'DELETE':
            return await self.delete(endpoint, token=token)
        return await self._request(method, endpoint, token=token, json=data if data is not None else {})

    def _build_url(self, endpoint: str) -> str:
        if endpoint.startswith('http://') or endpoint.startswith('https://'):
            return endpoint
        return f"{self._base_url}/{endpoint.lstrip('/')}"

    @staticmethod
    def _decode_body(text: str) -> Any:
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return {'raw': text}

    async def _request(self, method: str, endpoint: str, token: Optional[str] = None, **kwargs) -> Any:
        """Run one request with retries for idempotent methods.

        Args:
            method: HTTP method
            endpoint: path relative to the backend base URL
            token: bearer token of the caller, if any
            **kwargs: forwarded to ``ClientSession.request``

        Returns:
            Any: decoded JSON body, None for empty bodies

        Raises:
            ConnectionException: backend unreachable
            RequestTimeoutException: no answer within the request timeout
            HTTPStatusException: non-2xx answer
        """
        if not self._session:
            await self.start()

        url = self._build_url(endpoint)
        headers = {}
        if token:
            headers['Authorization'] = f"Bearer {token}"

        max_retries = self.config.backend.max_retries if method in IDEMPOTENT_METHODS else 0
        self._request_count += 1

        for attempt in range(max_retries + 1):
            try:
                self.logger.debug(f"{method} {url} (attempt {attempt + 1})")

                async with self._session.request(method, url, headers=headers, **kwargs) as response:
                    body = self._decode_body(await response.text())

                    if 200 <= response.status < 300:
                        self._success_count += 1
                        return body

                    if response.status >= 500 and attempt < max_retries:
                        await asyncio.sleep(self.config.backend.retry_delay * (attempt + 1))
                        continue

                    self._error_count += 1
                    raise HTTPStatusException(
                        method, endpoint, response.status,
                        payload=body,
                        message=extract_message(body)
                    )

            except asyncio.TimeoutError:
                if attempt < max_retries:
                    self.logger.warning(f"{method} {endpoint} timed out (attempt {attempt + 1})")
                    continue
                self._error_count += 1
                raise RequestTimeoutException(method, endpoint, self.config.backend.request_timeout)

            except aiohttp.ClientError as e:
                if attempt < max_retries:
                    self.logger.warning(f"Request failed (attempt {attempt + 1}): {e}")
                    await asyncio.sleep(self.config.backend.retry_delay * (attempt + 1))
                    continue
                self._error_count += 1
                raise ConnectionException(self._base_url, str(e))

        self._error_count += 1
        raise ConnectionException(self._base_url, "Max retries exceeded")

    def get_statistics(self) -> Dict[str, Any]:
        return {
            'base_url': self._base_url,
            'request_count': self._request_count,
            'success_count': self._success_count,
            'error_count': self._error_count,
            'success_rate': self._success_count / max(self._request_count, 1)
        }
