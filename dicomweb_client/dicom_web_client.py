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
"""DICOMweb API client.

Wraps QIDO-RS, WADO-RS and STOW-RS requests of a DICOMweb service. Accept
headers are negotiated against the media types a resource supports before a
request is sent, and multipart/related bodies are encoded and decoded with
the multipart_message codec.
"""
from __future__ import annotations

import http.client
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Union
import urllib.parse

from dicomweb_client import dicomweb_errors
from dicomweb_client import dicomweb_logging_factory
from dicomweb_client import dicomweb_path
from dicomweb_client import http_transport
from dicomweb_client import media_types as media_types_lib
from dicomweb_client import multipart_message

MediaType = media_types_lib.MediaType
QueryParameters = Mapping[str, Union[str, int, bool, Sequence[str]]]

_DEFAULT_DICOM_MEDIA_TYPES = (
    MediaType(
        media_types_lib.APPLICATION_DICOM, media_types_lib.ANY_TRANSFER_SYNTAX
    ),
)
_DEFAULT_OCTET_STREAM_MEDIA_TYPES = (
    MediaType(
        media_types_lib.APPLICATION_OCTET_STREAM,
        media_types_lib.ANY_TRANSFER_SYNTAX,
    ),
)
_DEFAULT_RENDERED_MEDIA_TYPES = (MediaType(media_types_lib.IMAGE_JPEG),)
_LOGGED_HEADERS = ('Accept', 'Content-Type')

# Bulk data is served without a known transfer syntax.
_BULK_DATA_MEDIA_TYPES = media_types_lib.FlatMediaTypeSet(
    media_types_lib.OCTET_STREAM_MEDIA_TYPES.all_media_types
    | media_types_lib.IMAGE_MEDIA_TYPES.all_media_types
    | media_types_lib.VIDEO_MEDIA_TYPES.all_media_types
)


class _IntToStringConverter:
  """Utility to convert int to string and count number of vals processed."""

  def __init__(self):
    self._count = 0

  def convert(
      self, values: Union[Sequence[int], Iterator[int]]
  ) -> Iterator[str]:
    for value in values:
      if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise dicomweb_errors.DicomPathError(
            f'Frame numbers must be positive integers; found: {value!r}.'
        )
      self._count += 1
      yield str(value)

  @property
  def count(self) -> int:
    return self._count


def _get_query_suffix(query_params: Optional[QueryParameters]) -> str:
  """Returns url encoded query string including leading '?' or ''."""
  if not query_params:
    return ''
  return f'?{urllib.parse.urlencode(query_params, doseq=True)}'


class DicomWebClient:
  """A Python client of a DICOMweb service.

  Retrieves, searches and stores studies, series, instances, frames and bulk
  data of a DICOMweb service.
  """

  def __init__(
      self,
      url: str,
      transport: Optional[http_transport.AbstractHttpTransport] = None,
      headers: Optional[Mapping[str, str]] = None,
      logger_factory: Optional[
          dicomweb_logging_factory.AbstractLoggingInterfaceFactory
      ] = None,
      strict_media_type_negotiation: bool = False,
  ):
    """Constructor.

    Args:
      url: Base URL of the DICOMweb service (service root).
      transport: Transport used to perform HTTP requests; requests based
        transport used if None.
      headers: Headers added to every request.
      logger_factory: Factory creating the client logger; logs to the python
        logger 'dicomweb-client' if None.
      strict_media_type_negotiation: Raise rather than skip requested media
        types a resource does not support.

    Raises:
      DicomPathError: URL is not a valid DICOMweb service root.
    """
    try:
      self._store_path = dicomweb_path.FromString(
          url, dicomweb_path.Type.STORE
      )
    except ValueError as exp:
      raise dicomweb_errors.DicomPathError(
          f'Invalid DICOMweb service URL: {url}'
      ) from exp
    self._owns_transport = transport is None
    self._transport = (
        transport
        if transport is not None
        else http_transport.RequestsHttpTransport()
    )
    self._headers = dict(headers) if headers else {}
    if logger_factory is None:
      logger_factory = dicomweb_logging_factory.BasePythonLoggerFactory()
    self._logger = logger_factory.create_logger(
        {'dicomweb_url': self._store_path.complete_url}
    )
    self._strict_media_type_negotiation = strict_media_type_negotiation

  @property
  def base_url(self) -> str:
    return self._store_path.complete_url

  @property
  def transport(self) -> http_transport.AbstractHttpTransport:
    return self._transport

  def __enter__(self) -> DicomWebClient:
    return self

  def __exit__(self, *args) -> None:
    self.close()

  def close(self) -> None:
    """Closes the transport created by the client; injected ones stay open."""
    if self._owns_transport:
      self._transport.close()

  def _path(
      self,
      study_uid: Optional[str] = None,
      series_uid: Optional[str] = None,
      instance_uid: Optional[str] = None,
  ) -> dicomweb_path.Path:
    """Returns path to resource; raises DicomPathError if invalid."""
    try:
      return dicomweb_path.FromPath(
          self._store_path,
          study_uid=study_uid if study_uid else '',
          series_uid=series_uid if series_uid else '',
          instance_uid=instance_uid if instance_uid else '',
      )
    except ValueError as exp:
      raise dicomweb_errors.DicomPathError(str(exp)) from exp

  def _require_path(
      self,
      path_type: dicomweb_path.Type,
      study_uid: Optional[str],
      series_uid: Optional[str] = None,
      instance_uid: Optional[str] = None,
  ) -> dicomweb_path.Path:
    """Returns path to resource of path_type; raises if UIDs are missing."""
    required = {
        dicomweb_path.Type.STUDY: ('Study Instance UID',),
        dicomweb_path.Type.SERIES: (
            'Study Instance UID',
            'Series Instance UID',
        ),
        dicomweb_path.Type.INSTANCE: (
            'Study Instance UID',
            'Series Instance UID',
            'SOP Instance UID',
        ),
    }[path_type]
    for name, uid in zip(required, (study_uid, series_uid, instance_uid)):
      if not uid:
        raise dicomweb_errors.DicomPathError(
            f'{name} is required for {path_type.value} level request.'
        )
    return self._path(study_uid, series_uid, instance_uid)

  def _request(
      self,
      method: str,
      url: str,
      headers: Mapping[str, str],
      body: Optional[bytes] = None,
      progress_callback: Optional[http_transport.ProgressCallback] = None,
  ) -> http_transport.HttpResponse:
    request_headers = dict(self._headers)
    request_headers.update(headers)
    # Only content negotiation headers are logged.
    logged = {'method': method, 'url': url}
    for name in _LOGGED_HEADERS:
      if name in headers:
        logged[name] = headers[name]
    self._logger.debug('DICOMweb request.', logged)
    return self._transport.request(
        method, url, request_headers, body, progress_callback
    )

  def _http_get_application_json(
      self,
      url: str,
      query_params: Optional[QueryParameters] = None,
  ) -> Any:
    """Performs a QIDO-RS or metadata request and returns parsed JSON."""
    response = self._request(
        'GET',
        f'{url}{_get_query_suffix(query_params)}',
        {'Accept': media_types_lib.APPLICATION_DICOM_JSON},
    )
    if response.status_code == http.client.NO_CONTENT or not response.content:
      self._logger.info('Empty response.', {'url': url})
      return []
    return response.json()

  def _http_get_multipart(
      self,
      url: str,
      media_types: Sequence[MediaType],
      supported_media_types: media_types_lib.SupportedMediaTypes,
      query_params: Optional[QueryParameters] = None,
      progress_callback: Optional[http_transport.ProgressCallback] = None,
  ) -> List[bytes]:
    """Performs a WADO-RS request and returns decoded multipart body parts."""
    accept = media_types_lib.build_multipart_accept_header_field_value(
        media_types,
        supported_media_types,
        strict=self._strict_media_type_negotiation,
        logger=self._logger,
    )
    response = self._request(
        'GET',
        f'{url}{_get_query_suffix(query_params)}',
        {'Accept': accept},
        progress_callback=progress_callback,
    )
    content_type = response.content_type
    if not content_type.lower().startswith(media_types_lib.MULTIPART_RELATED):
      raise dicomweb_errors.MalformedMessageError(
          f'Expected a {media_types_lib.MULTIPART_RELATED} response; received'
          f' Content-Type: "{content_type}".\nURL: {url}'
      )
    return multipart_message.decode(
        response.content,
        multipart_message.get_boundary_from_content_type(content_type),
    )

  def _http_get_single_part(
      self,
      url: str,
      media_types: Sequence[MediaType],
      supported_media_types: media_types_lib.FlatMediaTypeSet,
      query_params: Optional[QueryParameters] = None,
  ) -> bytes:
    """Performs a rendered WADO-RS request and returns response body."""
    accept = media_types_lib.build_accept_header_field_value(
        media_types, supported_media_types
    )
    response = self._request(
        'GET', f'{url}{_get_query_suffix(query_params)}', {'Accept': accept}
    )
    return response.content

  def _get_pixel_data_media_types(
      self, media_types: Sequence[MediaType]
  ) -> media_types_lib.SupportedMediaTypes:
    supported = media_types_lib.get_supported_media_types(media_types)
    if supported is media_types_lib.DICOM_MEDIA_TYPES:
      raise dicomweb_errors.UnsupportedMediaTypeError(
          media_types_lib.APPLICATION_DICOM
      )
    return supported

  def _get_dicom_media_types(
      self, media_types: Sequence[MediaType]
  ) -> media_types_lib.SupportedMediaTypes:
    supported = media_types_lib.get_supported_media_types(media_types)
    if supported is not media_types_lib.DICOM_MEDIA_TYPES:
      raise dicomweb_errors.UnsupportedMediaTypeError(media_types[0].media_type)
    return supported

  def search_for_studies(
      self, query_params: Optional[QueryParameters] = None
  ) -> List[Dict[str, Any]]:
    """Searches for DICOM studies.

    https://www.dicomstandard.org/using/dicomweb/query-qido-rs

    Args:
      query_params: Optional query parameters, e.g. fuzzymatching, offset,
        limit, includefield or any DICOM attribute keyword or tag.

    Returns:
      Study representations in DICOM JSON; empty list if none match.
    """
    self._logger.debug('Search for studies.')
    url = dicomweb_path.DicomPathJoin(self.base_url, 'studies')
    return self._http_get_application_json(url, query_params)

  def search_for_series(
      self,
      study_uid: Optional[str] = None,
      query_params: Optional[QueryParameters] = None,
  ) -> List[Dict[str, Any]]:
    """Searches for DICOM series, optionally restricted to a study.

    Args:
      study_uid: Study Instance UID or None to search all studies.
      query_params: Optional query parameters.

    Returns:
      Series representations in DICOM JSON; empty list if none match.
    """
    self._logger.debug('Search for series.', {'study_uid': study_uid})
    url = dicomweb_path.DicomPathJoin(
        self._path(study_uid).complete_url, 'series'
    )
    return self._http_get_application_json(url, query_params)

  def search_for_instances(
      self,
      study_uid: Optional[str] = None,
      series_uid: Optional[str] = None,
      query_params: Optional[QueryParameters] = None,
  ) -> List[Dict[str, Any]]:
    """Searches for DICOM instances, optionally restricted to a study/series.

    Args:
      study_uid: Study Instance UID or None to search all studies.
      series_uid: Series Instance UID or None to search all series; requires
        study_uid.
      query_params: Optional query parameters.

    Returns:
      Instance representations in DICOM JSON; empty list if none match.

    Raises:
      DicomPathError: series_uid defined without study_uid.
    """
    if series_uid and not study_uid:
      raise dicomweb_errors.DicomPathError(
          'Study Instance UID needs to be specified when searching for'
          ' instances of a given series.'
      )
    self._logger.debug(
        'Search for instances.',
        {'study_uid': study_uid, 'series_uid': series_uid},
    )
    url = dicomweb_path.DicomPathJoin(
        self._path(study_uid, series_uid).complete_url, 'instances'
    )
    return self._http_get_application_json(url, query_params)

  def retrieve_study_metadata(self, study_uid: str) -> List[Dict[str, Any]]:
    """Returns DICOM JSON metadata of each instance in a study."""
    path = self._require_path(dicomweb_path.Type.STUDY, study_uid)
    return self._http_get_application_json(
        dicomweb_path.DicomPathJoin(path.complete_url, 'metadata')
    )

  def retrieve_series_metadata(
      self, study_uid: str, series_uid: str
  ) -> List[Dict[str, Any]]:
    """Returns DICOM JSON metadata of each instance in a series."""
    path = self._require_path(
        dicomweb_path.Type.SERIES, study_uid, series_uid
    )
    return self._http_get_application_json(
        dicomweb_path.DicomPathJoin(path.complete_url, 'metadata')
    )

  def retrieve_instance_metadata(
      self, study_uid: str, series_uid: str, instance_uid: str
  ) -> Dict[str, Any]:
    """Returns DICOM JSON metadata of an instance."""
    path = self._require_path(
        dicomweb_path.Type.INSTANCE, study_uid, series_uid, instance_uid
    )
    result = self._http_get_application_json(
        dicomweb_path.DicomPathJoin(path.complete_url, 'metadata')
    )
    if isinstance(result, list):
      return result[0] if result else {}
    return result

  def retrieve_study(
      self,
      study_uid: str,
      media_types: Optional[Sequence[MediaType]] = None,
      progress_callback: Optional[http_transport.ProgressCallback] = None,
  ) -> List[bytes]:
    """Returns DICOM Part 10 files of all instances in a study."""
    path = self._require_path(dicomweb_path.Type.STUDY, study_uid)
    media_types = media_types or _DEFAULT_DICOM_MEDIA_TYPES
    return self._http_get_multipart(
        path.complete_url,
        media_types,
        self._get_dicom_media_types(media_types),
        progress_callback=progress_callback,
    )

  def retrieve_series(
      self,
      study_uid: str,
      series_uid: str,
      media_types: Optional[Sequence[MediaType]] = None,
      progress_callback: Optional[http_transport.ProgressCallback] = None,
  ) -> List[bytes]:
    """Returns DICOM Part 10 files of all instances in a series."""
    path = self._require_path(
        dicomweb_path.Type.SERIES, study_uid, series_uid
    )
    media_types = media_types or _DEFAULT_DICOM_MEDIA_TYPES
    return self._http_get_multipart(
        path.complete_url,
        media_types,
        self._get_dicom_media_types(media_types),
        progress_callback=progress_callback,
    )

  def retrieve_instance(
      self,
      study_uid: str,
      series_uid: str,
      instance_uid: str,
      media_types: Optional[Sequence[MediaType]] = None,
      progress_callback: Optional[http_transport.ProgressCallback] = None,
  ) -> bytes:
    """Returns DICOM Part 10 file of an instance.

    Args:
      study_uid: Study Instance UID.
      series_uid: Series Instance UID.
      instance_uid: SOP Instance UID.
      media_types: Acceptable application/dicom media types; defaults to
        application/dicom in any transfer syntax.
      progress_callback: Optional download progress callback.

    Returns:
      DICOM Part 10 file bytes.

    Raises:
      DicomPathError: Missing UID.
      MalformedMessageError: Response does not contain exactly one part.
    """
    path = self._require_path(
        dicomweb_path.Type.INSTANCE, study_uid, series_uid, instance_uid
    )
    media_types = media_types or _DEFAULT_DICOM_MEDIA_TYPES
    parts = self._http_get_multipart(
        path.complete_url,
        media_types,
        self._get_dicom_media_types(media_types),
        progress_callback=progress_callback,
    )
    if len(parts) != 1:
      raise dicomweb_errors.MalformedMessageError(
          'Instance response expected to have a single part.'
          f' Actual: {len(parts)}.\nURL: {path}'
      )
    return parts[0]

  def retrieve_instance_frames(
      self,
      study_uid: str,
      series_uid: str,
      instance_uid: str,
      frame_numbers: Union[Sequence[int], Iterator[int]],
      media_types: Optional[Sequence[MediaType]] = None,
      progress_callback: Optional[http_transport.ProgressCallback] = None,
  ) -> List[bytes]:
    """Returns frames of an instance.

    Args:
      study_uid: Study Instance UID.
      series_uid: Series Instance UID.
      instance_uid: SOP Instance UID.
      frame_numbers: One-based frame numbers.
      media_types: Acceptable media types, all of the same type
        (application/octet-stream, image or video); defaults to
        application/octet-stream in any transfer syntax.
      progress_callback: Optional download progress callback.

    Returns:
      Frame bytes in requested order.

    Raises:
      DicomPathError: Missing UID or invalid frame numbers.
      MediaTypeNegotiationError: Media types not acceptable for frames.
      MalformedMessageError: Number of frames returned != number requested.
    """
    path = self._require_path(
        dicomweb_path.Type.INSTANCE, study_uid, series_uid, instance_uid
    )
    converter = _IntToStringConverter()
    frame_list = ','.join(converter.convert(frame_numbers))
    if not converter.count:
      raise dicomweb_errors.DicomPathError(
          'Frame numbers are required for retrieval of instance frames.'
      )
    media_types = media_types or _DEFAULT_OCTET_STREAM_MEDIA_TYPES
    self._logger.debug(
        'Retrieve instance frames.',
        {'instance_uid': instance_uid, 'frames': frame_list},
    )
    frames = self._http_get_multipart(
        dicomweb_path.DicomPathJoin(path.complete_url, 'frames', frame_list),
        media_types,
        self._get_pixel_data_media_types(media_types),
        progress_callback=progress_callback,
    )
    if len(frames) != converter.count:
      raise dicomweb_errors.MalformedMessageError(
          'DICOMweb service returned incorrect number of frames. Expected:'
          f' {converter.count}, Received: {len(frames)}.'
      )
    return frames

  def retrieve_bulk_data(
      self,
      uri: str,
      media_types: Optional[Sequence[MediaType]] = None,
      progress_callback: Optional[http_transport.ProgressCallback] = None,
  ) -> List[bytes]:
    """Returns bulk data referenced by a BulkDataURI.

    https://dicom.nema.org/medical/dicom/current/output/html/part18.html#sect_10.4.1.1.5

    Args:
      uri: BulkDataURI value from DICOM JSON metadata.
      media_types: Acceptable media types; defaults to
        application/octet-stream in any transfer syntax. Media types not
        supported for bulk data are skipped unless the client negotiates
        strictly.
      progress_callback: Optional download progress callback.

    Returns:
      Bulk data parts.
    """
    return self._http_get_multipart(
        uri,
        media_types or _DEFAULT_OCTET_STREAM_MEDIA_TYPES,
        _BULK_DATA_MEDIA_TYPES,
        progress_callback=progress_callback,
    )

  def retrieve_instance_rendered(
      self,
      study_uid: str,
      series_uid: str,
      instance_uid: str,
      media_types: Optional[Sequence[MediaType]] = None,
      query_params: Optional[QueryParameters] = None,
  ) -> bytes:
    """Returns an instance rendered in a consumer format (e.g. image/jpeg).

    Args:
      study_uid: Study Instance UID.
      series_uid: Series Instance UID.
      instance_uid: SOP Instance UID.
      media_types: Acceptable rendered media types; defaults to image/jpeg.
      query_params: Optional rendering parameters, e.g. quality, viewport,
        window.

    Returns:
      Rendered representation bytes.
    """
    path = self._require_path(
        dicomweb_path.Type.INSTANCE, study_uid, series_uid, instance_uid
    )
    return self._http_get_single_part(
        dicomweb_path.DicomPathJoin(path.complete_url, 'rendered'),
        media_types or _DEFAULT_RENDERED_MEDIA_TYPES,
        media_types_lib.RENDERED_MEDIA_TYPES,
        query_params,
    )

  def retrieve_instance_frames_rendered(
      self,
      study_uid: str,
      series_uid: str,
      instance_uid: str,
      frame_numbers: Union[Sequence[int], Iterator[int]],
      media_types: Optional[Sequence[MediaType]] = None,
      query_params: Optional[QueryParameters] = None,
  ) -> bytes:
    """Returns frames of an instance rendered in a consumer format."""
    path = self._require_path(
        dicomweb_path.Type.INSTANCE, study_uid, series_uid, instance_uid
    )
    converter = _IntToStringConverter()
    frame_list = ','.join(converter.convert(frame_numbers))
    if not converter.count:
      raise dicomweb_errors.DicomPathError(
          'Frame numbers are required for retrieval of rendered frames.'
      )
    return self._http_get_single_part(
        dicomweb_path.DicomPathJoin(
            path.complete_url, 'frames', frame_list, 'rendered'
        ),
        media_types or _DEFAULT_RENDERED_MEDIA_TYPES,
        media_types_lib.RENDERED_MEDIA_TYPES,
        query_params,
    )

  def store_instances(
      self,
      datasets: Sequence[multipart_message.BytesLike],
      study_uid: Optional[str] = None,
      boundary: Optional[str] = None,
  ) -> Dict[str, Any]:
    """Stores DICOM Part 10 files.

    https://www.dicomstandard.org/using/dicomweb/store-stow-rs

    Args:
      datasets: DICOM Part 10 files to store.
      study_uid: Optional Study Instance UID the instances belong to.
      boundary: Optional multipart boundary; generated if None.

    Returns:
      Store instances response in DICOM JSON; empty if the service returned
      no content.
    """
    if study_uid:
      url = self._path(study_uid).complete_url
    else:
      url = dicomweb_path.DicomPathJoin(self.base_url, 'studies')
    encoded = multipart_message.encode(
        datasets, boundary, media_types_lib.APPLICATION_DICOM
    )
    self._logger.debug(
        'Store instances.',
        {'instance_count': len(datasets), 'study_uid': study_uid},
    )
    response = self._request(
        'POST',
        url,
        {
            'Content-Type': encoded.content_type,
            'Accept': media_types_lib.APPLICATION_DICOM_JSON,
        },
        encoded.data,
    )
    if response.status_code == http.client.NO_CONTENT or not response.content:
      return {}
    return response.json()
