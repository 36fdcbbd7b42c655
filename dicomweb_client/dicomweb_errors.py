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
"""Error classes for the DICOMweb client."""
import http.client
from typing import NoReturn

import requests


class DicomWebClientError(Exception):
  pass


class DicomPathError(DicomWebClientError):
  pass


class MultipartEncodeError(DicomWebClientError):
  pass


class BoundaryCollisionError(MultipartEncodeError):
  pass


class MalformedMessageError(DicomWebClientError):
  pass


class InvalidMediaTypeError(DicomWebClientError):

  def __init__(self, media_type: str):
    super().__init__(f'Not a valid media type: {media_type!r}')
    self._media_type = media_type

  @property
  def media_type(self) -> str:
    return self._media_type


class MediaTypeNegotiationError(DicomWebClientError):
  """Base class for errors raised while building an Accept header."""


class UnsupportedMediaTypeError(MediaTypeNegotiationError):

  def __init__(self, media_type: str):
    super().__init__(
        f'Media type {media_type} is not supported for requested resource.'
    )
    self._media_type = media_type

  @property
  def media_type(self) -> str:
    return self._media_type


class UnsupportedTransferSyntaxError(MediaTypeNegotiationError):

  def __init__(self, transfer_syntax_uid: str, media_type: str = ''):
    msg = (
        f'Transfer syntax {transfer_syntax_uid} is not supported for requested'
        ' resource'
    )
    if media_type:
      msg = f'{msg} with media type {media_type}'
    super().__init__(f'{msg}.')
    self._transfer_syntax_uid = transfer_syntax_uid

  @property
  def transfer_syntax_uid(self) -> str:
    return self._transfer_syntax_uid


class NoAcceptableMediaTypeError(MediaTypeNegotiationError):
  pass


class NoMediaTypesProvidedError(MediaTypeNegotiationError):

  def __init__(self):
    super().__init__('No acceptable media types provided.')


class NoCommonMediaTypeError(MediaTypeNegotiationError):

  def __init__(self):
    super().__init__('No common acceptable media type could be identified.')


class MixedMediaTypesError(MediaTypeNegotiationError):
  pass


class HttpError(DicomWebClientError):
  """Base class for HTTP errors."""

  def __init__(
      self,
      message: str = '',
      status_code: int = http.client.INTERNAL_SERVER_ERROR,
      reason: str = '',
  ):
    super().__init__(message)
    self._status_code = status_code
    self._reason = reason

  @property
  def status_code(self) -> int:
    return self._status_code

  @property
  def reason(self) -> str:
    return self._reason


class HttpBadRequestError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.BAD_REQUEST, reason)


class HttpUnauthorizedError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.UNAUTHORIZED, reason)


class HttpForbiddenError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.FORBIDDEN, reason)


class HttpNotFoundError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.NOT_FOUND, reason)


class HttpNotAcceptableError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.NOT_ACCEPTABLE, reason)


class HttpRequestTimeoutError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.REQUEST_TIMEOUT, reason)


class HttpConflictError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.CONFLICT, reason)


class HttpUnsupportedMediaTypeError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.UNSUPPORTED_MEDIA_TYPE, reason)


class HttpTooManyRequestsError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.TOO_MANY_REQUESTS, reason)


class HttpInternalServerError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.INTERNAL_SERVER_ERROR, reason)


class HttpServiceUnavailableError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.SERVICE_UNAVAILABLE, reason)


class HttpGatewayTimeoutError(HttpError):

  def __init__(self, message: str = '', reason: str = ''):
    super().__init__(message, http.client.GATEWAY_TIMEOUT, reason)


class HttpUnexpectedResponseError(HttpError):
  pass


_HTTP_ERROR_CODE_EXCEPTION = {
    http.client.BAD_REQUEST: HttpBadRequestError,
    http.client.UNAUTHORIZED: HttpUnauthorizedError,
    http.client.FORBIDDEN: HttpForbiddenError,
    http.client.NOT_FOUND: HttpNotFoundError,
    http.client.NOT_ACCEPTABLE: HttpNotAcceptableError,
    http.client.REQUEST_TIMEOUT: HttpRequestTimeoutError,
    http.client.CONFLICT: HttpConflictError,
    http.client.UNSUPPORTED_MEDIA_TYPE: HttpUnsupportedMediaTypeError,
    http.client.TOO_MANY_REQUESTS: HttpTooManyRequestsError,
    http.client.INTERNAL_SERVER_ERROR: HttpInternalServerError,
    http.client.SERVICE_UNAVAILABLE: HttpServiceUnavailableError,
    http.client.GATEWAY_TIMEOUT: HttpGatewayTimeoutError,
}


def raise_dicomweb_http_exception(
    message: str,
    trigger_exception: requests.exceptions.HTTPError,
) -> NoReturn:
  """Raises a DICOMweb HttpError from a requests.HTTPError."""
  try:
    status_code = trigger_exception.response.status_code
    reason = trigger_exception.response.reason
  except AttributeError:
    status_code = http.client.INTERNAL_SERVER_ERROR
    reason = ''
  exception_class = _HTTP_ERROR_CODE_EXCEPTION.get(status_code)
  if exception_class is not None:
    raise exception_class(message, reason) from trigger_exception
  raise HttpUnexpectedResponseError(message, status_code, reason) from (
      trigger_exception
  )
