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
"""Utilities for DICOMweb path manipulation."""
from __future__ import annotations

import dataclasses
import enum
import re
from typing import Any, List, Match, Optional
import urllib.parse

from dicomweb_client import dicomweb_errors


class Type(enum.Enum):
  """Type of a resource the path points to."""

  STORE = 'store'
  STUDY = 'study'
  SERIES = 'series'
  INSTANCE = 'instance'


# Used for DICOM UIDs validation
# '/' is not allowed because the parsing logic in the class uses '/' to
# tokenize the path.
# '@' is not allowed due to security concerns: theoretically it could lead
# to the part before '@' being interpreted as the username, and the part
# after - as the server address, which is a potential vulnerability.
_REGEX_UID_TXT = r'[^/@]+'

_REGEX_BASE_ADDRESS = re.compile(r'https?://[^/]+')
_REGEX_UID = re.compile(_REGEX_UID_TXT)
_REGEX_STUDIES = re.compile(r'((.*)/)?studies/(%s)(.*)' % _REGEX_UID_TXT)
_REGEX_SERIES = re.compile(r'series/(%s)(.*)' % _REGEX_UID_TXT)
_REGEX_INSTANCE = re.compile(r'instances/(%s)/?$' % _REGEX_UID_TXT)
# Resource suffixes a retrieve URI may carry after the identified resource.
_RESOURCE_SUFFIXES = ('metadata', 'rendered', 'thumbnail', 'bulkdata')


def DicomPathJoin(*args: str) -> str:
  return '/'.join([arg.strip('/') for arg in args if arg])


@dataclasses.dataclass(frozen=True)
class Path:
  """Represents a path to a DICOMweb service or a resource it serves.

  Attributes:
    base_address: scheme and network location of the service.
    study_prefix: path of the service root below base_address.
    study_uid: DICOM Study UID.
    series_uid: DICOM Series UID.
    instance_uid: DICOM Instance UID.
  """

  base_address: str
  study_prefix: str
  study_uid: str
  series_uid: str
  instance_uid: str

  def __post_init__(self) -> None:
    """Validates path configuration.

    Returns:
      None

    Raises:
      ValueError: Invalid configuration.
    """
    if _REGEX_BASE_ADDRESS.fullmatch(self.base_address) is None:
      raise ValueError('Invalid base_address')
    if '@' in self.study_prefix:
      raise ValueError('Invalid study_prefix')
    if self.study_uid and _REGEX_UID.fullmatch(self.study_uid) is None:
      raise ValueError('Invalid study_uid')
    if self.series_uid and _REGEX_UID.fullmatch(self.series_uid) is None:
      raise ValueError('Invalid series_uid')
    if self.instance_uid and _REGEX_UID.fullmatch(self.instance_uid) is None:
      raise ValueError('Invalid instance_uid')
    self._StudyUidMissing(self.study_uid)
    self._SeriesUidMissing(self.series_uid)

  def _StudyUidMissing(self, value: str) -> None:
    if not value:
      if self.series_uid or self.instance_uid:
        raise ValueError(
            'study_uid missing with non-empty series_uid or instance_uid.'
            f' series_uid: {self.series_uid}, instance_uid: {self.instance_uid}'
        )

  def _SeriesUidMissing(self, value: str) -> None:
    if not value:
      if self.instance_uid:
        raise ValueError(
            'series_uid missing with non-empty instance_uid. instance_uid:'
            f' {self.instance_uid}'
        )

  def _BuildUidPath(self) -> str:
    """Returns UID component of path to a resource of the service."""
    if not self.study_uid:
      return self.study_prefix

    study_path_str = DicomPathJoin(self.study_prefix, 'studies', self.study_uid)
    if not self.series_uid:
      return study_path_str

    series_path_str = DicomPathJoin(study_path_str, 'series', self.series_uid)
    if not self.instance_uid:
      return series_path_str
    return DicomPathJoin(series_path_str, 'instances', self.instance_uid)

  @property
  def complete_url(self) -> str:
    """Returns the complete url of the path."""
    return DicomPathJoin(self.base_address, self._BuildUidPath())

  def __eq__(self, other: Any) -> bool:
    if isinstance(other, Path):
      return self.complete_url == other.complete_url
    return False

  def __hash__(self) -> int:
    return hash(self.complete_url)

  def __str__(self):
    """Returns the text representation of the path."""
    return self.complete_url

  @property
  def type(self) -> Type:
    """Type of the DICOM resource corresponding to the path."""
    if not self.study_uid:
      return Type.STORE
    elif not self.series_uid:
      return Type.STUDY
    elif not self.instance_uid:
      return Type.SERIES
    return Type.INSTANCE


def _MatchRegex(regex: re.Pattern[str], text_str: str, error_str) -> Match[str]:
  """Matches the regex and returns the match or raises ValueError if failed."""
  match = regex.match(text_str)
  if match is None:
    raise ValueError(error_str)
  return match


def _FromString(path_str: str) -> Path:
  """Parses the string and returns the Path object or raises ValueError if failed."""
  match_err_str = f'Error parsing the path. Path: {path_str}'
  parsed_url = urllib.parse.urlparse(path_str)
  if parsed_url.scheme.lower() not in ('http', 'https'):
    raise ValueError(match_err_str)
  if not parsed_url.netloc:
    raise ValueError(match_err_str)
  base_address = f'{parsed_url.scheme}://{parsed_url.netloc}'
  store_path_suffix = parsed_url.path.strip('/')
  try:
    studies_match = _MatchRegex(
        _REGEX_STUDIES, store_path_suffix, match_err_str
    )
  except ValueError:
    return Path(base_address, store_path_suffix, '', '', '')
  study_prefix = studies_match.group(2)
  if study_prefix is None:
    study_prefix = ''
  study_prefix = study_prefix.strip('/')
  study_uid = studies_match.group(3)
  study_path_suffix = studies_match.group(4).strip('/')
  if not study_path_suffix:
    return Path(base_address, study_prefix, study_uid, '', '')

  series_match = _MatchRegex(_REGEX_SERIES, study_path_suffix, match_err_str)
  series_uid = series_match.group(1)
  series_path_suffix = series_match.group(2).strip('/')
  if not series_path_suffix:
    return Path(base_address, study_prefix, study_uid, series_uid, '')

  instance_match = _MatchRegex(
      _REGEX_INSTANCE, series_path_suffix, match_err_str
  )
  return Path(
      base_address,
      study_prefix,
      study_uid,
      series_uid,
      instance_match.group(1),
  )


def FromString(path_str: str, path_type: Optional[Type] = None) -> Path:
  """Parses the string and returns the Path object or raises ValueError if failed.

  Args:
    path_str: The string containing the path.
    path_type: The expected type of the path or None if no specific type is
      expected.

  Returns:
    The newly constructed Path object.
  Raises:
    ValueError if the path cannot be parsed or the actual path type doesn't
      match the specified expected type.
  """
  path = _FromString(path_str)

  # Validate that the path is of the right type of the type is specified.
  if path_type is not None and path.type != path_type:
    raise ValueError(
        f'Unexpected path type. Expected: {path_type}, actual: {path.type}.'
        f' Path: {path_str}'
    )

  return path


def FromPath(
    base_path: Path,
    study_uid: Optional[str] = None,
    series_uid: Optional[str] = None,
    instance_uid: Optional[str] = None,
) -> Path:
  """Creates a new Path object based on the provided one.

  Replaces the specified path components in the base path to create the new one.

  Args:
    base_path: The base path to use.
    study_uid: The study UID to use in the new path or None if the study UID
      from the base path should be used.
    series_uid: The series UID to use in the new path or None if the series UID
      from the base path should be used.
    instance_uid: The instance UID to use in the new path or None if the
      instance UID from the base path should be used.

  Returns:
    The newly constructed Path object.
  Raises:
    ValueError if the new path is invalid (e.g. if the instance UID is
      specified, but the series UID is None).
  """
  default_series_uid = base_path.series_uid
  default_instance_uid = base_path.instance_uid
  if study_uid is None:
    study_uid = base_path.study_uid
  else:
    default_series_uid = ''
    default_instance_uid = ''
  if series_uid is None:
    series_uid = default_series_uid
  else:
    default_instance_uid = ''
  if instance_uid is None:
    instance_uid = default_instance_uid
  return Path(
      base_path.base_address,
      base_path.study_prefix,
      study_uid,
      series_uid,
      instance_uid,
  )


def _FindSubstring(text: str, before: str, after: Optional[str] = None) -> str:
  """Returns text between last occurrences of before and after or ''."""
  before_index = text.rfind(before)
  if before_index == -1:
    return ''
  start = before_index + len(before)
  if after is None:
    return text[start:]
  after_index = text.rfind(after)
  if after_index < start:
    return ''
  return text[start:after_index]


def _GetUidFromUri(uri: str, name: str, before: str, *afters: str) -> str:
  path_str = urllib.parse.urlparse(uri).path.rstrip('/')
  for resource_suffix in _RESOURCE_SUFFIXES:
    if path_str.endswith(f'/{resource_suffix}'):
      path_str = path_str[: -len(resource_suffix) - 1]
      break
  for after in afters:
    uid = _FindSubstring(path_str, before, after)
    if uid:
      return uid
  uid = _FindSubstring(path_str, before)
  if not uid or '/' in uid:
    raise dicomweb_errors.DicomPathError(
        f'{name} could not be determined from URI "{uri}".'
    )
  return uid


def GetStudyInstanceUidFromUri(uri: str) -> str:
  """Returns Study Instance UID referenced by a DICOMweb URI."""
  return _GetUidFromUri(uri, 'Study Instance UID', 'studies/', '/series')


def GetSeriesInstanceUidFromUri(uri: str) -> str:
  """Returns Series Instance UID referenced by a DICOMweb URI."""
  return _GetUidFromUri(uri, 'Series Instance UID', 'series/', '/instances')


def GetSopInstanceUidFromUri(uri: str) -> str:
  """Returns SOP Instance UID referenced by a DICOMweb URI."""
  return _GetUidFromUri(uri, 'SOP Instance UID', '/instances/', '/frames')


def GetFrameNumbersFromUri(uri: str) -> List[int]:
  """Returns frame numbers referenced by a DICOMweb frames URI.

  Args:
    uri: URI of the form .../instances/{uid}/frames/{n}[,{n}...][/rendered].

  Returns:
    One-based frame numbers in URI order.

  Raises:
    DicomPathError: URI does not reference frames.
  """
  path_str = urllib.parse.urlparse(uri).path.rstrip('/')
  if path_str.endswith('/rendered'):
    path_str = path_str[: -len('/rendered')]
  numbers = _FindSubstring(path_str, '/frames/')
  try:
    frame_numbers = [int(number) for number in numbers.split(',')]
  except ValueError as exp:
    raise dicomweb_errors.DicomPathError(
        f'Frame numbers could not be determined from URI "{uri}".'
    ) from exp
  if any(number < 1 for number in frame_numbers):
    raise dicomweb_errors.DicomPathError(
        f'Frame numbers must be one-based; found URI "{uri}".'
    )
  return frame_numbers
