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
"""Logging interfaces injected into the DICOMweb client and negotiator.

Messages carry optional structure elements: mappings of values describing the
request (URL, media types, UIDs) and an exception. Credential bearing header
values are redacted before a message is formatted.
"""
from __future__ import annotations

import abc
import logging
from typing import Any, Dict, Mapping, Optional, Union


StructureElement = Union[Exception, Mapping[str, Any], None]
DEFAULT_DICOMWEB_CLIENT_PYTHON_LOGGER_NAME = 'dicomweb-client'

# Header names compared case insensitively.
_REDACTED_KEYS = frozenset(
    ('authorization', 'cookie', 'proxy-authorization', 'set-cookie')
)
_REDACTED_VALUE = '<redacted>'


class AbstractLoggingInterface(metaclass=abc.ABCMeta):
  """Logging interface used by the client and media type negotiator."""

  @abc.abstractmethod
  def debug(self, msg: str, *args: StructureElement) -> None:
    """Logs per request tracing, e.g. URL and negotiated Accept header."""

  @abc.abstractmethod
  def info(self, msg: str, *args: StructureElement) -> None:
    """Logs notable but expected outcomes, e.g. an empty search result."""

  @abc.abstractmethod
  def warning(self, msg: str, *args: StructureElement) -> None:
    """Logs recoverable problems, e.g. a skipped requested media type."""


class AbstractLoggingInterfaceFactory(metaclass=abc.ABCMeta):

  @abc.abstractmethod
  def create_logger(
      self, signature: Optional[Mapping[str, Any]] = None
  ) -> AbstractLoggingInterface:
    """Creates an instance of the logger.

    Args:
      signature: Optional structure element included in all logs, e.g. the
        DICOMweb service URL of the client.
    """


def _redact(key: str, value: Any) -> Any:
  if str(key).lower() in _REDACTED_KEYS:
    return _REDACTED_VALUE
  return value


def format_message(
    msg: str,
    signature: Optional[Mapping[str, Any]],
    *args: StructureElement,
) -> str:
  """Returns msg followed by 'key: value' pairs of the structure elements.

  Keys of each mapping are sorted; mappings are appended in argument order
  followed by the signature, and a found exception is appended last.

  Args:
    msg: Message to log.
    signature: Structure element included in all logs of a logger.
    *args: Mappings and exception describing the message.

  Returns:
    Formatted message.
  """
  structure: Dict[str, Any] = {}
  exception = None
  for element in (*args, signature):
    if not element:
      continue
    if isinstance(element, Exception):
      exception = element
      continue
    for key in sorted(element):
      structure[key] = _redact(key, element[key])
  if exception is not None:
    structure['EXCEPTION'] = exception
  if not structure:
    return msg
  pairs = '; '.join(f'{key}: {value}' for key, value in structure.items())
  return f'{msg}; {pairs}'


class _PythonLogger(AbstractLoggingInterface):
  """Logs to a python logger; messages are only formatted when enabled."""

  def __init__(
      self,
      pylogger: logging.Logger,
      signature: Optional[Mapping[str, Any]] = None,
  ):
    self._logger = pylogger
    self._signature = dict(signature) if signature else {}

  def _log(self, level: int, msg: str, *args: StructureElement) -> None:
    if self._logger.isEnabledFor(level):
      self._logger.log(level, format_message(msg, self._signature, *args))

  def debug(self, msg: str, *args: StructureElement) -> None:
    self._log(logging.DEBUG, msg, *args)

  def info(self, msg: str, *args: StructureElement) -> None:
    self._log(logging.INFO, msg, *args)

  def warning(self, msg: str, *args: StructureElement) -> None:
    self._log(logging.WARNING, msg, *args)


class BasePythonLoggerFactory(AbstractLoggingInterfaceFactory):
  """Creates loggers writing to a named python logger."""

  def __init__(self, name: str = DEFAULT_DICOMWEB_CLIENT_PYTHON_LOGGER_NAME):
    self._name = name

  def create_logger(
      self, signature: Optional[Mapping[str, Any]] = None
  ) -> AbstractLoggingInterface:
    return _PythonLogger(logging.getLogger(self._name), signature)


def create_default_logger(
    signature: Optional[Mapping[str, Any]] = None,
) -> AbstractLoggingInterface:
  """Returns logger used when no logging factory is injected."""
  return BasePythonLoggerFactory().create_logger(signature)
