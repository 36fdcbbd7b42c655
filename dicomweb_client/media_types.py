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
"""Media type negotiation for DICOMweb retrieve requests.

Builds Accept header field values for a request from the media types (and
optional transfer syntaxes) a caller accepts, rejecting combinations the
requested resource is known not to support before the request is sent.
"""
from __future__ import annotations

import dataclasses
import types
from typing import AbstractSet, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from dicomweb_client import dicomweb_errors
from dicomweb_client import dicomweb_logging_factory

APPLICATION_DICOM = 'application/dicom'
APPLICATION_DICOM_JSON = 'application/dicom+json'
APPLICATION_OCTET_STREAM = 'application/octet-stream'
APPLICATION_PDF = 'application/pdf'
IMAGE_GIF = 'image/gif'
IMAGE_JPEG = 'image/jpeg'
IMAGE_JLS = 'image/jls'
IMAGE_JP2 = 'image/jp2'
IMAGE_JPX = 'image/jpx'
IMAGE_JPHC = 'image/jphc'
IMAGE_PNG = 'image/png'
IMAGE_X_DICOM_RLE = 'image/x-dicom-rle'
IMAGE_X_JLS = 'image/x-jls'
TEXT_HTML = 'text/html'
TEXT_PLAIN = 'text/plain'
VIDEO_H265 = 'video/H265'
VIDEO_MP4 = 'video/mp4'
VIDEO_MPEG = 'video/mpeg'

MULTIPART_RELATED = 'multipart/related'

# Wildcard transfer syntax, requests the resource in its stored encoding.
ANY_TRANSFER_SYNTAX = '*'

_MEDIA_TYPE_TYPES = frozenset(('application', 'image', 'text', 'video'))


class TransferSyntax:
  IMPLICIT_VR_LITTLE_ENDIAN = '1.2.840.10008.1.2'
  EXPLICIT_VR_LITTLE_ENDIAN = '1.2.840.10008.1.2.1'
  DEFLATED_EXPLICIT_VR_LITTLE_ENDIAN = '1.2.840.10008.1.2.1.99'
  EXPLICIT_VR_BIG_ENDIAN = '1.2.840.10008.1.2.2'
  JPEG_BASELINE = '1.2.840.10008.1.2.4.50'
  JPEG_EXTENDED = '1.2.840.10008.1.2.4.51'
  JPEG_LOSSLESS_NON_HIERARCHICAL = '1.2.840.10008.1.2.4.57'
  JPEG_LOSSLESS = '1.2.840.10008.1.2.4.70'
  JPEG_LS_LOSSLESS = '1.2.840.10008.1.2.4.80'
  JPEG_LS_NEAR_LOSSLESS = '1.2.840.10008.1.2.4.81'
  JPEG_2000_LOSSLESS = '1.2.840.10008.1.2.4.90'
  JPEG_2000 = '1.2.840.10008.1.2.4.91'
  JPEG_2000_MC_LOSSLESS = '1.2.840.10008.1.2.4.92'
  JPEG_2000_MC = '1.2.840.10008.1.2.4.93'
  MPEG2_MAIN_PROFILE = '1.2.840.10008.1.2.4.100'
  MPEG2_HIGH_PROFILE = '1.2.840.10008.1.2.4.101'
  MPEG4_HIGH_PROFILE = '1.2.840.10008.1.2.4.102'
  MPEG4_BD_HIGH_PROFILE = '1.2.840.10008.1.2.4.103'
  MPEG4_HIGH_PROFILE_2D = '1.2.840.10008.1.2.4.104'
  MPEG4_HIGH_PROFILE_3D = '1.2.840.10008.1.2.4.105'
  MPEG4_STEREO_HIGH_PROFILE = '1.2.840.10008.1.2.4.106'
  HEVC_MAIN_PROFILE = '1.2.840.10008.1.2.4.107'
  HEVC_MAIN_10_PROFILE = '1.2.840.10008.1.2.4.108'
  HTJ2K_LOSSLESS = '1.2.840.10008.1.2.4.201'
  HTJ2K_LOSSLESS_RPCL = '1.2.840.10008.1.2.4.202'
  HTJ2K = '1.2.840.10008.1.2.4.203'
  RLE_LOSSLESS = '1.2.840.10008.1.2.5'


@dataclasses.dataclass(frozen=True)
class MediaType:
  """Media type a caller accepts, optionally bound to a transfer syntax.

  Attributes:
    media_type: Media type in 'type/subtype' form.
    transfer_syntax_uid: Transfer syntax UID the resource should be encoded
      with or None to leave the choice to the server.
  """

  media_type: str
  transfer_syntax_uid: Optional[str] = None


@dataclasses.dataclass(frozen=True)
class FlatMediaTypeSet:
  """Media types supported by a resource, independent of transfer syntax."""

  media_types: FrozenSet[str]

  def __post_init__(self):
    object.__setattr__(self, 'media_types', frozenset(self.media_types))

  def __contains__(self, media_type: str) -> bool:
    return media_type in self.media_types


@dataclasses.dataclass(frozen=True)
class TransferSyntaxTable:
  """Media types supported by a resource for each transfer syntax UID."""

  table: Mapping[str, Tuple[str, ...]]

  def __post_init__(self):
    object.__setattr__(
        self,
        'table',
        types.MappingProxyType({
            uid: tuple(media_types) for uid, media_types in self.table.items()
        }),
    )

  @property
  def all_media_types(self) -> FrozenSet[str]:
    return frozenset(
        media_type
        for media_types in self.table.values()
        for media_type in media_types
    )

  def media_types_for(self, transfer_syntax_uid: str) -> Tuple[str, ...]:
    return self.table[transfer_syntax_uid]

  def __contains__(self, transfer_syntax_uid: str) -> bool:
    return transfer_syntax_uid in self.table


SupportedMediaTypes = Union[FlatMediaTypeSet, TransferSyntaxTable]


OCTET_STREAM_MEDIA_TYPES = TransferSyntaxTable({
    TransferSyntax.EXPLICIT_VR_LITTLE_ENDIAN: (APPLICATION_OCTET_STREAM,),
    TransferSyntax.DEFLATED_EXPLICIT_VR_LITTLE_ENDIAN: (
        APPLICATION_OCTET_STREAM,
    ),
    TransferSyntax.EXPLICIT_VR_BIG_ENDIAN: (APPLICATION_OCTET_STREAM,),
    TransferSyntax.IMPLICIT_VR_LITTLE_ENDIAN: (APPLICATION_OCTET_STREAM,),
})

IMAGE_MEDIA_TYPES = TransferSyntaxTable({
    TransferSyntax.JPEG_BASELINE: (IMAGE_JPEG,),
    TransferSyntax.JPEG_EXTENDED: (IMAGE_JPEG,),
    TransferSyntax.JPEG_LOSSLESS_NON_HIERARCHICAL: (IMAGE_JPEG,),
    TransferSyntax.JPEG_LOSSLESS: (IMAGE_JPEG,),
    TransferSyntax.JPEG_LS_LOSSLESS: (IMAGE_X_JLS, IMAGE_JLS),
    TransferSyntax.JPEG_LS_NEAR_LOSSLESS: (IMAGE_X_JLS, IMAGE_JLS),
    TransferSyntax.JPEG_2000_LOSSLESS: (IMAGE_JP2,),
    TransferSyntax.JPEG_2000: (IMAGE_JP2,),
    TransferSyntax.JPEG_2000_MC_LOSSLESS: (IMAGE_JPX,),
    TransferSyntax.JPEG_2000_MC: (IMAGE_JPX,),
    TransferSyntax.HTJ2K_LOSSLESS: (IMAGE_JPHC,),
    TransferSyntax.HTJ2K_LOSSLESS_RPCL: (IMAGE_JPHC,),
    TransferSyntax.HTJ2K: (IMAGE_JPHC,),
    TransferSyntax.RLE_LOSSLESS: (IMAGE_X_DICOM_RLE,),
})

VIDEO_MEDIA_TYPES = TransferSyntaxTable({
    TransferSyntax.MPEG2_MAIN_PROFILE: (VIDEO_MPEG,),
    TransferSyntax.MPEG2_HIGH_PROFILE: (VIDEO_MPEG,),
    TransferSyntax.MPEG4_HIGH_PROFILE: (VIDEO_MP4,),
    TransferSyntax.MPEG4_BD_HIGH_PROFILE: (VIDEO_MP4,),
    TransferSyntax.MPEG4_HIGH_PROFILE_2D: (VIDEO_MP4,),
    TransferSyntax.MPEG4_HIGH_PROFILE_3D: (VIDEO_MP4,),
    TransferSyntax.MPEG4_STEREO_HIGH_PROFILE: (VIDEO_MP4,),
    TransferSyntax.HEVC_MAIN_PROFILE: (VIDEO_H265,),
    TransferSyntax.HEVC_MAIN_10_PROFILE: (VIDEO_H265,),
})

DICOM_MEDIA_TYPES = TransferSyntaxTable({
    uid: (APPLICATION_DICOM,)
    for uid in (
        TransferSyntax.IMPLICIT_VR_LITTLE_ENDIAN,
        TransferSyntax.EXPLICIT_VR_LITTLE_ENDIAN,
        TransferSyntax.DEFLATED_EXPLICIT_VR_LITTLE_ENDIAN,
        TransferSyntax.EXPLICIT_VR_BIG_ENDIAN,
        *IMAGE_MEDIA_TYPES.table,
        *VIDEO_MEDIA_TYPES.table,
    )
})

RENDERED_MEDIA_TYPES = FlatMediaTypeSet((
    IMAGE_JPEG,
    IMAGE_GIF,
    IMAGE_PNG,
    IMAGE_JP2,
    VIDEO_MPEG,
    VIDEO_MP4,
    VIDEO_H265,
    TEXT_HTML,
    TEXT_PLAIN,
    APPLICATION_PDF,
))


def assert_media_type_is_valid(media_type: str) -> None:
  """Validates shape of a media type.

  Args:
    media_type: Media type in 'type/subtype' form; subtype may be empty or
      '*' to denote a wildcard.

  Raises:
    InvalidMediaTypeError: Media type is malformed or its type is not one of
      application, image, text or video.
  """
  if not media_type or not isinstance(media_type, str):
    raise dicomweb_errors.InvalidMediaTypeError(media_type)
  media_type_type, sep, subtype = media_type.partition('/')
  if not sep:
    raise dicomweb_errors.InvalidMediaTypeError(media_type)
  if media_type_type not in _MEDIA_TYPE_TYPES:
    raise dicomweb_errors.InvalidMediaTypeError(media_type)
  if '/' in subtype:
    raise dicomweb_errors.InvalidMediaTypeError(media_type)


def parse_media_type(media_type: str) -> Tuple[str, str]:
  """Returns (type, subtype) of a validated media type."""
  assert_media_type_is_valid(media_type)
  media_type_type, _, subtype = media_type.partition('/')
  return media_type_type, subtype


def _is_wildcard(media_type: str) -> bool:
  return media_type.endswith('/') or media_type.endswith('/*')


def _check_media_types_arg(media_types: Sequence[MediaType]) -> None:
  if isinstance(media_types, (str, MediaType)):
    raise TypeError('Acceptable media types must be provided as a sequence.')
  for item in media_types:
    if not isinstance(item, MediaType):
      raise TypeError(
          f'Acceptable media type must be a MediaType; found: {item!r}.'
      )


def build_accept_header_field_value(
    media_types: Sequence[MediaType],
    supported_media_types: Union[FlatMediaTypeSet, AbstractSet[str]],
) -> str:
  """Returns Accept header field value for a single part response.

  Args:
    media_types: Media types the caller accepts.
    supported_media_types: Media types supported by the requested resource.

  Returns:
    Comma separated media types.

  Raises:
    InvalidMediaTypeError: Media type is malformed.
    UnsupportedMediaTypeError: Media type not supported by the resource.
  """
  _check_media_types_arg(media_types)
  if not isinstance(supported_media_types, FlatMediaTypeSet):
    supported_media_types = FlatMediaTypeSet(supported_media_types)
  field_value_parts = []
  for item in media_types:
    assert_media_type_is_valid(item.media_type)
    if item.media_type not in supported_media_types:
      raise dicomweb_errors.UnsupportedMediaTypeError(item.media_type)
    field_value_parts.append(item.media_type)
  return ', '.join(field_value_parts)


def _check_transfer_syntax(
    item: MediaType, supported_media_types: TransferSyntaxTable
) -> None:
  """Raises if media type is not available in the requested transfer syntax."""
  transfer_syntax_uid = item.transfer_syntax_uid
  if transfer_syntax_uid not in supported_media_types:
    raise dicomweb_errors.UnsupportedTransferSyntaxError(transfer_syntax_uid)
  expected_media_types = supported_media_types.media_types_for(
      transfer_syntax_uid
  )
  if item.media_type in expected_media_types:
    return
  if _is_wildcard(item.media_type):
    actual_type = parse_media_type(item.media_type)[0]
    if any(
        parse_media_type(expected)[0] == actual_type
        for expected in expected_media_types
    ):
      return
  raise dicomweb_errors.UnsupportedTransferSyntaxError(
      transfer_syntax_uid, item.media_type
  )


def build_multipart_accept_header_field_value(
    media_types: Sequence[MediaType],
    supported_media_types: SupportedMediaTypes,
    strict: bool = False,
    logger: Optional[dicomweb_logging_factory.AbstractLoggingInterface] = None,
) -> str:
  """Returns Accept header field value for a multipart/related response.

  Args:
    media_types: Media types the caller accepts.
    supported_media_types: Media types supported by the requested resource,
      either flat or keyed by transfer syntax UID.
    strict: If True, a media type missing from a flat set of supported media
      types raises; otherwise it is dropped from the header and a warning is
      logged.
    logger: Logger used to report dropped media types.

  Returns:
    Comma separated multipart/related field values.

  Raises:
    InvalidMediaTypeError: Media type is malformed.
    UnsupportedMediaTypeError: Media type not supported by the resource.
    UnsupportedTransferSyntaxError: Transfer syntax not supported by the
      resource or incompatible with the media type.
    NoAcceptableMediaTypeError: No media type remained acceptable.
  """
  _check_media_types_arg(media_types)
  if not isinstance(
      supported_media_types, (FlatMediaTypeSet, TransferSyntaxTable)
  ):
    raise TypeError(
        'Supported media types must be a FlatMediaTypeSet or'
        f' TransferSyntaxTable; found: {type(supported_media_types).__name__}.'
    )
  field_value_parts = []
  for item in media_types:
    assert_media_type_is_valid(item.media_type)
    field_value = f'{MULTIPART_RELATED}; type="{item.media_type}"'
    if isinstance(supported_media_types, TransferSyntaxTable):
      if item.media_type not in supported_media_types.all_media_types:
        if not _is_wildcard(item.media_type):
          raise dicomweb_errors.UnsupportedMediaTypeError(item.media_type)
      if item.transfer_syntax_uid:
        if item.transfer_syntax_uid != ANY_TRANSFER_SYNTAX:
          _check_transfer_syntax(item, supported_media_types)
        field_value = (
            f'{field_value}; transfer-syntax={item.transfer_syntax_uid}'
        )
    else:
      if item.media_type not in supported_media_types:
        if strict:
          raise dicomweb_errors.UnsupportedMediaTypeError(item.media_type)
        if logger is None:
          logger = dicomweb_logging_factory.create_default_logger()
        logger.warning(
            'Media type is not supported for requested resource; skipping.',
            {'media_type': item.media_type},
        )
        continue
      if item.transfer_syntax_uid:
        field_value = (
            f'{field_value}; transfer-syntax={item.transfer_syntax_uid}'
        )
    field_value_parts.append(field_value)
  if not field_value_parts:
    requested = ', '.join(item.media_type for item in media_types)
    raise dicomweb_errors.NoAcceptableMediaTypeError(
        f'No acceptable media types found among: [{requested}].'
    )
  return ', '.join(field_value_parts)


def get_common_media_type(media_types: Sequence[MediaType]) -> str:
  """Returns base type shared by all requested media types (e.g. 'image/').

  Args:
    media_types: Media types the caller accepts.

  Returns:
    Type of the media types followed by '/'.

  Raises:
    NoMediaTypesProvidedError: No media types provided.
    NoCommonMediaTypeError: No common media type identified.
    MixedMediaTypesError: Media types have different types.
  """
  if not media_types:
    raise dicomweb_errors.NoMediaTypesProvidedError()
  _check_media_types_arg(media_types)
  shared_media_types = {
      f'{parse_media_type(item.media_type)[0]}/' for item in media_types
  }
  if not shared_media_types:
    raise dicomweb_errors.NoCommonMediaTypeError()
  if len(shared_media_types) > 1:
    raise dicomweb_errors.MixedMediaTypesError(
        'Acceptable media types must have the same type; found:'
        f' {", ".join(sorted(shared_media_types))}.'
    )
  return shared_media_types.pop()


def get_supported_media_types(
    media_types: Sequence[MediaType], rendered: bool = False
) -> SupportedMediaTypes:
  """Returns the media types supported for the requested representation.

  Routes on the common type of the requested media types. Application
  media types route on the requested subtype: application/dicom selects
  DICOM Part 10 instances and application/octet-stream uncompressed pixel
  data; the two cannot be requested together.

  Args:
    media_types: Media types the caller accepts.
    rendered: Resource is a rendered (consumer format) representation.

  Returns:
    Supported media types table.

  Raises:
    UnsupportedMediaTypeError: No retrieval of the requested media types.
    MixedMediaTypesError: Media types select different representations.
  """
  common_media_type = get_common_media_type(media_types)
  if rendered:
    return RENDERED_MEDIA_TYPES
  if common_media_type == 'image/':
    return IMAGE_MEDIA_TYPES
  if common_media_type == 'video/':
    return VIDEO_MEDIA_TYPES
  if common_media_type != 'application/':
    raise dicomweb_errors.UnsupportedMediaTypeError(common_media_type)
  application_media_types = {item.media_type for item in media_types}
  if application_media_types == {APPLICATION_DICOM}:
    return DICOM_MEDIA_TYPES
  if application_media_types == {APPLICATION_OCTET_STREAM}:
    return OCTET_STREAM_MEDIA_TYPES
  unsupported = application_media_types - {
      APPLICATION_DICOM,
      APPLICATION_OCTET_STREAM,
  }
  if unsupported:
    raise dicomweb_errors.UnsupportedMediaTypeError(min(unsupported))
  raise dicomweb_errors.MixedMediaTypesError(
      f'{APPLICATION_DICOM} and {APPLICATION_OCTET_STREAM} cannot be'
      ' requested together.'
  )


def media_types_from_strings(media_types: Iterable[str]) -> List[MediaType]:
  """Returns MediaType list for media types without transfer syntax."""
  return [MediaType(media_type) for media_type in media_types]
