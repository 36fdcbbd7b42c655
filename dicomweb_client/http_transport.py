# Copyright 2024 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================
"""HTTP transport used by the DICOMweb client to exchange messages."""
from __future__ import annotations

import abc
import dataclasses
import io
import json
from typing import Any, Callable, Mapping, Optional

from dicomweb_client import dicomweb_errors
import requests
from requests import structures

# Chunk size (in bytes) for streaming responses to a progress callback.
_STREAMING_CHUNKSIZE = 102400
_DEFAULT_TIMEOUT_SEC = 3600

# Called with the number of bytes received so far and the total number of
# bytes expected, if the server declared a Content-Length.
ProgressCallback = Callable[[int, Optional[int]], None]


@dataclasses.dataclass(frozen=True)
class HttpResponse:
  """Response returned by a transport.

  Attributes:
    status_code: HTTP status code.
    headers: Response headers; lookup is case insensitive.
    content: Raw response body.
  """

  status_code: int
  headers: Mapping[str, str]
  content: bytes

  def __post_init__(self):
    object.__setattr__(
        self, 'headers', structures.CaseInsensitiveDict(self.headers)
    )

  @property
  def content_type(self) -> str:
    return self.headers.get('Content-Type', '')

  def json(self) -> Any:
    return json.loads(self.content)


class AbstractHttpTransport(metaclass=abc.ABCMeta):
  """Performs HTTP requests on behalf of the DICOMweb client."""

  @abc.abstractmethod
  def request(
      self,
      method: str,
      url: str,
      headers: Mapping[str, str],
      body: Optional[bytes] = None,
      progress_callback: Optional[ProgressCallback] = None,
  ) -> HttpResponse:
    """Performs a HTTP request.

    Args:
      method: HTTP method.
      url: URL of the request.
      headers: Request headers.
      body: Request body.
      progress_callback: Optional callback notified as the response body is
        received.

    Returns:
      Response to a successful request.

    Raises:
      HttpError: Server responded with an error status.
    """

  def close(self) -> None:
    """Releases resources held by the transport."""


class RequestsHttpTransport(AbstractHttpTransport):
  """Reference transport implementation using requests."""

  def __init__(
      self,
      session: Optional[requests.Session] = None,
      timeout: Optional[int] = _DEFAULT_TIMEOUT_SEC,
      chunk_size: int = _STREAMING_CHUNKSIZE,
  ):
    """Constructor.

    Args:
      session: Session used to send requests; a new session, closed by
        close(), is created if None. A provided session is not closed.
      timeout: Http timeout in seconds.
      chunk_size: Streaming chunk size used when a progress callback is
        defined.
    """
    self._owns_session = session is None
    self._session = session if session is not None else requests.Session()
    self._timeout = timeout
    self._chunk_size = max(1, chunk_size)

  def __enter__(self) -> RequestsHttpTransport:
    return self

  def __exit__(self, *args) -> None:
    self.close()

  def close(self) -> None:
    if self._owns_session:
      self._session.close()

  def _read_content(
      self,
      response: requests.Response,
      progress_callback: ProgressCallback,
  ) -> bytes:
    content_length = response.headers.get('Content-Length')
    total = int(content_length) if content_length is not None else None
    received = 0
    with io.BytesIO() as output_stream:
      for chunk in response.iter_content(chunk_size=self._chunk_size):
        output_stream.write(chunk)
        received += len(chunk)
        progress_callback(received, total)
      return output_stream.getvalue()

  def request(
      self,
      method: str,
      url: str,
      headers: Mapping[str, str],
      body: Optional[bytes] = None,
      progress_callback: Optional[ProgressCallback] = None,
  ) -> HttpResponse:
    stream = progress_callback is not None
    with self._session.request(
        method,
        url,
        headers=dict(headers),
        data=body,
        timeout=self._timeout,
        stream=stream,
    ) as response:
      try:
        response.raise_for_status()
      except requests.exceptions.HTTPError as exp:
        dicomweb_errors.raise_dicomweb_http_exception(
            f'{method} error. Response Status: {response.status_code},\nURL:'
            f' {url},\nContent: {response.text}.',
            exp,
        )
      if stream:
        content = self._read_content(response, progress_callback)
      else:
        content = response.content
      return HttpResponse(response.status_code, response.headers, content)
