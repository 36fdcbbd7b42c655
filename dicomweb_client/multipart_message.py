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
"""Encoder and decoder for multipart/related DICOMweb message bodies.

Payloads are arbitrary binary data (DICOM Part 10 files, frames, bulk data)
and are handled as bytes end to end. Only the message and part headers are
ever decoded as text.
"""
from __future__ import annotations

import dataclasses
import re
from typing import List, Optional, Sequence, Union
import uuid

from dicomweb_client import dicomweb_errors

BytesLike = Union[bytes, bytearray, memoryview]

DEFAULT_PART_CONTENT_TYPE = 'application/dicom'

_CRLF = b'\r\n'
_HEADER_SEPARATOR = b'\r\n\r\n'
_DASHES = b'--'
# Headers are short; bounds the search for a header/body separator so a
# missing separator does not scan the whole binary body.
_MAX_HEADER_SEARCH_LENGTH = 1000
_HEADER_ENCODING = 'latin-1'

_CONTENT_TYPE_BOUNDARY_REGEX = re.compile(
    r';\s*boundary\s*=\s*(?:"([^"]+)"|([^\s;]+))', re.IGNORECASE
)


@dataclasses.dataclass(frozen=True)
class MultipartEncodedData:
  """Multipart encoded message body.

  Attributes:
    data: Encoded multipart/related message body.
    boundary: Boundary that separates the parts of the message. Must be echoed
      in the Content-Type header of the request transmitting the body.
    part_content_type: Content type of each encoded part.
  """

  data: bytes
  boundary: str
  part_content_type: str = DEFAULT_PART_CONTENT_TYPE

  @property
  def content_type(self) -> str:
    """Returns Content-Type header value describing the message body."""
    return (
        f'multipart/related; type="{self.part_content_type}";'
        f' boundary={self.boundary}'
    )


def generate_boundary() -> str:
  """Returns a random boundary token."""
  return str(uuid.uuid4())


def contains_token(message: BytesLike, token: BytesLike, offset: int) -> bool:
  """Returns True if message contains token starting at offset.

  Args:
    message: Message to search.
    token: Token to test for.
    offset: Offset in message at which the token is expected to start.

  Returns:
    True if token is present in message at offset.
  """
  token_length = len(token)
  if offset < 0 or offset + token_length > len(message):
    return False
  return message[offset : offset + token_length] == token


def find_token(
    message: BytesLike,
    token: BytesLike,
    offset: int = 0,
    max_search_length: Optional[int] = None,
) -> int:
  """Returns index of first occurrence of token in message at or after offset.

  Args:
    message: Message to search.
    token: Token to find.
    offset: Offset in message where the search starts.
    max_search_length: If defined, number of bytes following offset in which
      the token must start.

  Returns:
    Index of the token in message or -1 if the token was not found.
  """
  if not token:
    return -1
  offset = max(0, offset)
  search_end = None
  if max_search_length is not None:
    search_end = offset + max_search_length + len(token) - 1
  return bytes(message).find(bytes(token), offset, search_end)


def identify_boundary(header: str) -> Optional[str]:
  """Returns the boundary token declared in a multipart message header.

  Args:
    header: Text of the message header block, lines separated by CRLF.

  Returns:
    Boundary token with its leading '--' removed or None if header does not
    contain a boundary line.
  """
  for line in header.split('\r\n'):
    if line.startswith('--'):
      boundary = line[2:].rstrip()
      if boundary:
        return boundary
  return None


def get_boundary_from_content_type(content_type: str) -> Optional[str]:
  """Returns boundary parameter of a Content-Type header value or None."""
  match = _CONTENT_TYPE_BOUNDARY_REGEX.search(content_type)
  if match is None:
    return None
  return match.group(1) if match.group(1) is not None else match.group(2)


def _delimiter(boundary: str) -> bytes:
  return _DASHES + boundary.encode(_HEADER_ENCODING)


def encode(
    datasets: Sequence[BytesLike],
    boundary: Optional[str] = None,
    content_type: str = DEFAULT_PART_CONTENT_TYPE,
    check_boundary_collision: bool = False,
) -> MultipartEncodedData:
  """Encodes datasets into a single multipart/related message body.

  Args:
    datasets: Binary payloads, one per part, in message order.
    boundary: Boundary to separate parts; a random boundary is generated if
      None.
    content_type: Content type written in the header of each part.
    check_boundary_collision: Test that no dataset contains the boundary
      delimiter.

  Returns:
    MultipartEncodedData holding the message body and the boundary used.

  Raises:
    MultipartEncodeError: No datasets provided or boundary is empty.
    BoundaryCollisionError: Dataset contains the boundary delimiter.
  """
  if not datasets:
    raise dicomweb_errors.MultipartEncodeError(
        'At least one dataset is required to encode a multipart message.'
    )
  if boundary is None:
    boundary = generate_boundary()
  elif not boundary:
    raise dicomweb_errors.MultipartEncodeError('Boundary cannot be empty.')
  delimiter = _delimiter(boundary)
  part_header = b''.join([
      _CRLF,
      delimiter,
      _CRLF,
      f'Content-Type: {content_type}'.encode(_HEADER_ENCODING),
      _HEADER_SEPARATOR,
  ])
  body = bytearray()
  for index, dataset in enumerate(datasets):
    if check_boundary_collision and find_token(dataset, delimiter) != -1:
      raise dicomweb_errors.BoundaryCollisionError(
          f'Dataset {index} contains multipart boundary {boundary}.'
      )
    body.extend(part_header)
    body.extend(dataset)
  body.extend(_CRLF)
  body.extend(delimiter)
  body.extend(_DASHES)
  return MultipartEncodedData(bytes(body), boundary, content_type)


def _find_first_delimiter(message: bytes, delimiter: bytes) -> int:
  """Returns index of first delimiter starting a line or -1."""
  if contains_token(message, delimiter, 0):
    return 0
  index = find_token(message, _CRLF + delimiter)
  if index == -1:
    return -1
  return index + len(_CRLF)


def decode(
    message: BytesLike, expected_boundary: Optional[str] = None
) -> List[bytes]:
  """Decodes a multipart/related message body into its parts.

  Args:
    message: Complete multipart/related message body.
    expected_boundary: Boundary declared by the Content-Type header that
      accompanied the message, if known.

  Returns:
    Binary content of each part in message order.

  Raises:
    MalformedMessageError: Message has no header, does not declare a boundary,
      declares a boundary other than expected_boundary, or is truncated.
  """
  message = bytes(message)
  header_index = find_token(
      message, _HEADER_SEPARATOR, 0, _MAX_HEADER_SEARCH_LENGTH
  )
  if header_index == -1:
    raise dicomweb_errors.MalformedMessageError(
        'Response message has no multipart mime header.'
    )
  header = bytes(message[:header_index]).decode(_HEADER_ENCODING)
  boundary = identify_boundary(header)
  if boundary is None:
    raise dicomweb_errors.MalformedMessageError(
        'Header of response message does not specify boundary.'
    )
  if expected_boundary is not None and boundary != expected_boundary:
    raise dicomweb_errors.MalformedMessageError(
        f'Response message boundary {boundary} does not match boundary'
        f' {expected_boundary} declared by its Content-Type.'
    )
  delimiter = _delimiter(boundary)
  offset = _find_first_delimiter(message, delimiter)
  if offset == -1:
    raise dicomweb_errors.MalformedMessageError(
        f'Boundary {boundary} not found in response message.'
    )
  offset += len(delimiter)
  message_length = len(message)
  parts = []
  while not contains_token(message, _DASHES, offset):
    if offset >= message_length:
      raise dicomweb_errors.MalformedMessageError(
          'Response message is missing closing boundary delimiter.'
      )
    # Parts without headers still carry the blank line, so the separator is
    # searched from the CRLF that ends the delimiter line.
    header_index = find_token(
        message, _HEADER_SEPARATOR, offset, _MAX_HEADER_SEARCH_LENGTH
    )
    if header_index == -1:
      raise dicomweb_errors.MalformedMessageError(
          f'Part {len(parts)} of response message has no header separator.'
      )
    body_start = header_index + len(_HEADER_SEPARATOR)
    boundary_index = find_token(message, _CRLF + delimiter, body_start)
    if boundary_index == -1:
      raise dicomweb_errors.MalformedMessageError(
          f'Part {len(parts)} of response message is truncated; no boundary'
          ' follows its content.'
      )
    parts.append(bytes(message[body_start:boundary_index]))
    offset = boundary_index + len(_CRLF) + len(delimiter)
  return parts
