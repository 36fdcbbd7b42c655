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
"""Tests for dicom web client."""

import http.client
import json
from typing import Any, Mapping, Optional
from unittest import mock

from absl.testing import absltest
from absl.testing import parameterized
from dicomweb_client import dicom_web_client
from dicomweb_client import dicomweb_errors
from dicomweb_client import dicomweb_logging_factory
from dicomweb_client import http_transport
from dicomweb_client import media_types
from dicomweb_client import multipart_message
import requests_mock

_URL = 'https://dicomweb.example.com/dicomWeb'
_STUDY_UID = '1.2.3'
_SERIES_UID = '1.2.3.4'
_INSTANCE_UID = '1.2.3.4.5'
_INSTANCE_URL = (
    f'{_URL}/studies/{_STUDY_UID}/series/{_SERIES_UID}'
    f'/instances/{_INSTANCE_UID}'
)
_DICOM_JSON = 'application/dicom+json'
_JPEG_BASELINE = '1.2.840.10008.1.2.4.50'


def _json_response(
    value: Any, status_code: int = http.client.OK
) -> http_transport.HttpResponse:
  return http_transport.HttpResponse(
      status_code,
      {'Content-Type': _DICOM_JSON},
      json.dumps(value).encode('utf-8'),
  )


def _multipart_response(
    parts, part_content_type: str = 'application/octet-stream'
) -> http_transport.HttpResponse:
  encoded = multipart_message.encode(parts, 'resp-boundary', part_content_type)
  return http_transport.HttpResponse(
      http.client.OK, {'Content-Type': encoded.content_type}, encoded.data
  )


class DicomWebClientTest(parameterized.TestCase):

  def setUp(self):
    super().setUp()
    self._transport = mock.create_autospec(
        http_transport.AbstractHttpTransport, instance=True
    )

  def _create_client(
      self,
      response: Optional[http_transport.HttpResponse] = None,
      headers: Optional[Mapping[str, str]] = None,
      strict: bool = False,
  ) -> dicom_web_client.DicomWebClient:
    if response is not None:
      self._transport.request.return_value = response
    return dicom_web_client.DicomWebClient(
        _URL,
        transport=self._transport,
        headers=headers,
        strict_media_type_negotiation=strict,
    )

  def _assert_request(
      self,
      method: str,
      url: str,
      headers: Mapping[str, str],
      body: Optional[bytes] = None,
  ) -> None:
    self._transport.request.assert_called_once_with(
        method, url, headers, body, None
    )

  @parameterized.parameters([
      'ftp://dicomweb.example.com/dicomWeb',
      'dicomweb.example.com/dicomWeb',
      f'{_URL}/studies/{_STUDY_UID}',
  ])
  def test_constructor_invalid_url_raises(self, url):
    with self.assertRaises(dicomweb_errors.DicomPathError):
      dicom_web_client.DicomWebClient(url, transport=self._transport)

  def test_base_url_strips_trailing_slash(self):
    client = dicom_web_client.DicomWebClient(
        f'{_URL}/', transport=self._transport
    )
    self.assertEqual(client.base_url, _URL)

  def test_transport_property(self):
    client = self._create_client()
    self.assertIs(client.transport, self._transport)

  def test_default_transport(self):
    client = dicom_web_client.DicomWebClient(_URL)
    self.assertIsInstance(
        client.transport, http_transport.RequestsHttpTransport
    )

  def test_close_leaves_injected_transport_open(self):
    with self._create_client():
      pass
    self._transport.close.assert_not_called()

  def test_close_closes_created_transport(self):
    client = dicom_web_client.DicomWebClient(_URL)
    with mock.patch.object(
        http_transport.RequestsHttpTransport, 'close', autospec=True
    ) as mock_close:
      client.close()
    mock_close.assert_called_once_with(client.transport)

  def test_multipart_response_with_lowercase_content_type_header(self):
    encoded = multipart_message.encode([b'frame'], 'b', 'image/jpeg')
    client = self._create_client(
        http_transport.HttpResponse(
            http.client.OK, {'content-type': encoded.content_type}, encoded.data
        )
    )
    self.assertEqual(
        client.retrieve_instance_frames(
            _STUDY_UID,
            _SERIES_UID,
            _INSTANCE_UID,
            [1],
            [media_types.MediaType(media_types.IMAGE_JPEG)],
        ),
        [b'frame'],
    )

  def test_logger_factory_creates_client_logger(self):
    factory = mock.create_autospec(
        dicomweb_logging_factory.AbstractLoggingInterfaceFactory,
        instance=True,
    )
    dicom_web_client.DicomWebClient(
        _URL, transport=self._transport, logger_factory=factory
    )
    factory.create_logger.assert_called_once_with({'dicomweb_url': _URL})

  def test_search_for_studies(self):
    studies = [{'0020000D': {'vr': 'UI', 'Value': [_STUDY_UID]}}]
    client = self._create_client(_json_response(studies))
    self.assertEqual(client.search_for_studies(), studies)
    self._assert_request('GET', f'{_URL}/studies', {'Accept': _DICOM_JSON})

  def test_search_for_studies_encodes_query_parameters(self):
    client = self._create_client(_json_response([]))
    client.search_for_studies(
        {'PatientName': 'Doe^J', 'includefield': ['00100010', '00100020']}
    )
    self._assert_request(
        'GET',
        f'{_URL}/studies?PatientName=Doe%5EJ&includefield=00100010'
        '&includefield=00100020',
        {'Accept': _DICOM_JSON},
    )

  def test_search_no_content_returns_empty_list(self):
    client = self._create_client(
        http_transport.HttpResponse(http.client.NO_CONTENT, {}, b'')
    )
    self.assertEqual(client.search_for_studies(), [])

  def test_default_headers_sent_with_request(self):
    client = self._create_client(
        _json_response([]), headers={'Authorization': 'Bearer abc'}
    )
    client.search_for_studies()
    self._assert_request(
        'GET',
        f'{_URL}/studies',
        {'Authorization': 'Bearer abc', 'Accept': _DICOM_JSON},
    )

  def test_request_log_excludes_authorization_header(self):
    client = self._create_client(
        _json_response([]), headers={'Authorization': 'Bearer SECRET'}
    )
    with self.assertLogs(
        dicomweb_logging_factory.DEFAULT_DICOMWEB_CLIENT_PYTHON_LOGGER_NAME,
        level='DEBUG',
    ) as logs:
      client.search_for_studies()
    output = '\n'.join(logs.output)
    self.assertNotIn('SECRET', output)
    self.assertNotIn('Authorization', output)
    self.assertIn(f'Accept: {_DICOM_JSON}', output)
    self.assertIn(f'url: {_URL}/studies', output)

  @parameterized.named_parameters([
      dict(
          testcase_name='all_series',
          study_uid=None,
          expected_url=f'{_URL}/series',
      ),
      dict(
          testcase_name='series_of_study',
          study_uid=_STUDY_UID,
          expected_url=f'{_URL}/studies/{_STUDY_UID}/series',
      ),
  ])
  def test_search_for_series(self, study_uid, expected_url):
    client = self._create_client(_json_response([]))
    self.assertEqual(client.search_for_series(study_uid), [])
    self._assert_request('GET', expected_url, {'Accept': _DICOM_JSON})

  @parameterized.named_parameters([
      dict(
          testcase_name='all_instances',
          study_uid=None,
          series_uid=None,
          expected_url=f'{_URL}/instances',
      ),
      dict(
          testcase_name='instances_of_study',
          study_uid=_STUDY_UID,
          series_uid=None,
          expected_url=f'{_URL}/studies/{_STUDY_UID}/instances',
      ),
      dict(
          testcase_name='instances_of_series',
          study_uid=_STUDY_UID,
          series_uid=_SERIES_UID,
          expected_url=(
              f'{_URL}/studies/{_STUDY_UID}/series/{_SERIES_UID}/instances'
          ),
      ),
  ])
  def test_search_for_instances(self, study_uid, series_uid, expected_url):
    client = self._create_client(_json_response([]))
    client.search_for_instances(study_uid, series_uid)
    self._assert_request('GET', expected_url, {'Accept': _DICOM_JSON})

  def test_search_for_instances_series_without_study_raises(self):
    client = self._create_client()
    with self.assertRaises(dicomweb_errors.DicomPathError):
      client.search_for_instances(series_uid=_SERIES_UID)
    self._transport.request.assert_not_called()

  def test_retrieve_study_metadata(self):
    metadata = [{'00080018': {'vr': 'UI', 'Value': [_INSTANCE_UID]}}]
    client = self._create_client(_json_response(metadata))
    self.assertEqual(client.retrieve_study_metadata(_STUDY_UID), metadata)
    self._assert_request(
        'GET',
        f'{_URL}/studies/{_STUDY_UID}/metadata',
        {'Accept': _DICOM_JSON},
    )

  def test_retrieve_series_metadata(self):
    client = self._create_client(_json_response([]))
    client.retrieve_series_metadata(_STUDY_UID, _SERIES_UID)
    self._assert_request(
        'GET',
        f'{_URL}/studies/{_STUDY_UID}/series/{_SERIES_UID}/metadata',
        {'Accept': _DICOM_JSON},
    )

  def test_retrieve_instance_metadata_returns_first_dataset(self):
    metadata = {'00080018': {'vr': 'UI', 'Value': [_INSTANCE_UID]}}
    client = self._create_client(_json_response([metadata]))
    self.assertEqual(
        client.retrieve_instance_metadata(
            _STUDY_UID, _SERIES_UID, _INSTANCE_UID
        ),
        metadata,
    )
    self._assert_request(
        'GET', f'{_INSTANCE_URL}/metadata', {'Accept': _DICOM_JSON}
    )

  @parameterized.named_parameters([
      dict(
          testcase_name='study_metadata',
          method='retrieve_study_metadata',
          args=('',),
      ),
      dict(
          testcase_name='series_metadata',
          method='retrieve_series_metadata',
          args=(_STUDY_UID, ''),
      ),
      dict(
          testcase_name='instance_metadata',
          method='retrieve_instance_metadata',
          args=(_STUDY_UID, _SERIES_UID, None),
      ),
      dict(
          testcase_name='series',
          method='retrieve_series',
          args=('', _SERIES_UID),
      ),
      dict(
          testcase_name='instance',
          method='retrieve_instance',
          args=(_STUDY_UID, None, _INSTANCE_UID),
      ),
      dict(
          testcase_name='rendered',
          method='retrieve_instance_rendered',
          args=(_STUDY_UID, _SERIES_UID, ''),
      ),
  ])
  def test_missing_uid_raises_before_request(self, method, args):
    client = self._create_client()
    with self.assertRaises(dicomweb_errors.DicomPathError):
      getattr(client, method)(*args)
    self._transport.request.assert_not_called()

  def test_retrieve_instance(self):
    client = self._create_client(
        _multipart_response([b'DICM-1'], 'application/dicom')
    )
    self.assertEqual(
        client.retrieve_instance(_STUDY_UID, _SERIES_UID, _INSTANCE_UID),
        b'DICM-1',
    )
    self._assert_request(
        'GET',
        _INSTANCE_URL,
        {
            'Accept': (
                'multipart/related; type="application/dicom";'
                ' transfer-syntax=*'
            )
        },
    )

  def test_retrieve_instance_multiple_parts_raises(self):
    client = self._create_client(
        _multipart_response([b'1', b'2'], 'application/dicom')
    )
    with self.assertRaises(dicomweb_errors.MalformedMessageError):
      client.retrieve_instance(_STUDY_UID, _SERIES_UID, _INSTANCE_UID)

  def test_retrieve_instance_boundary_mismatch_raises(self):
    encoded = multipart_message.encode([b'DICM'], 'body-boundary')
    client = self._create_client(
        http_transport.HttpResponse(
            http.client.OK,
            {
                'Content-Type': (
                    'multipart/related; type="application/dicom";'
                    ' boundary=header-boundary'
                )
            },
            encoded.data,
        )
    )
    with self.assertRaisesRegex(
        dicomweb_errors.MalformedMessageError, 'header-boundary'
    ):
      client.retrieve_instance(_STUDY_UID, _SERIES_UID, _INSTANCE_UID)

  def test_retrieve_instance_not_multipart_response_raises(self):
    client = self._create_client(
        http_transport.HttpResponse(
            http.client.OK, {'Content-Type': 'application/dicom'}, b'DICM'
        )
    )
    with self.assertRaisesRegex(
        dicomweb_errors.MalformedMessageError, 'application/dicom'
    ):
      client.retrieve_instance(_STUDY_UID, _SERIES_UID, _INSTANCE_UID)

  def test_retrieve_instance_non_dicom_media_type_raises(self):
    client = self._create_client()
    with self.assertRaises(dicomweb_errors.UnsupportedMediaTypeError):
      client.retrieve_instance(
          _STUDY_UID,
          _SERIES_UID,
          _INSTANCE_UID,
          [media_types.MediaType(media_types.IMAGE_JPEG)],
      )
    self._transport.request.assert_not_called()

  def test_retrieve_series(self):
    client = self._create_client(
        _multipart_response([b'1', b'2'], 'application/dicom')
    )
    self.assertEqual(
        client.retrieve_series(_STUDY_UID, _SERIES_UID), [b'1', b'2']
    )
    self._transport.request.assert_called_once()
    self.assertEqual(
        self._transport.request.call_args[0][1],
        f'{_URL}/studies/{_STUDY_UID}/series/{_SERIES_UID}',
    )

  def test_retrieve_study_with_transfer_syntax(self):
    client = self._create_client(
        _multipart_response([b'1'], 'application/dicom')
    )
    client.retrieve_study(
        _STUDY_UID,
        [media_types.MediaType(media_types.APPLICATION_DICOM, _JPEG_BASELINE)],
    )
    self._assert_request(
        'GET',
        f'{_URL}/studies/{_STUDY_UID}',
        {
            'Accept': (
                'multipart/related; type="application/dicom";'
                f' transfer-syntax={_JPEG_BASELINE}'
            )
        },
    )

  def test_retrieve_instance_frames(self):
    frames = [b'frame1', b'frame2', b'frame3']
    client = self._create_client(_multipart_response(frames))
    self.assertEqual(
        client.retrieve_instance_frames(
            _STUDY_UID, _SERIES_UID, _INSTANCE_UID, [1, 2, 3]
        ),
        frames,
    )
    self._assert_request(
        'GET',
        f'{_INSTANCE_URL}/frames/1,2,3',
        {
            'Accept': (
                'multipart/related; type="application/octet-stream";'
                ' transfer-syntax=*'
            )
        },
    )

  def test_retrieve_instance_frames_from_iterator(self):
    client = self._create_client(_multipart_response([b'1', b'2']))
    client.retrieve_instance_frames(
        _STUDY_UID, _SERIES_UID, _INSTANCE_UID, iter(range(4, 6))
    )
    self.assertEqual(
        self._transport.request.call_args[0][1], f'{_INSTANCE_URL}/frames/4,5'
    )

  def test_retrieve_instance_frames_jpeg(self):
    client = self._create_client(_multipart_response([b'jpeg'], 'image/jpeg'))
    client.retrieve_instance_frames(
        _STUDY_UID,
        _SERIES_UID,
        _INSTANCE_UID,
        [1],
        [media_types.MediaType(media_types.IMAGE_JPEG, _JPEG_BASELINE)],
    )
    self._assert_request(
        'GET',
        f'{_INSTANCE_URL}/frames/1',
        {
            'Accept': (
                'multipart/related; type="image/jpeg";'
                f' transfer-syntax={_JPEG_BASELINE}'
            )
        },
    )

  def test_retrieve_instance_frames_wrong_frame_count_raises(self):
    client = self._create_client(_multipart_response([b'frame1']))
    with self.assertRaisesRegex(
        dicomweb_errors.MalformedMessageError, 'Expected: 2, Received: 1'
    ):
      client.retrieve_instance_frames(
          _STUDY_UID, _SERIES_UID, _INSTANCE_UID, [1, 2]
      )

  @parameterized.named_parameters([
      dict(testcase_name='empty', frame_numbers=[]),
      dict(testcase_name='zero', frame_numbers=[0]),
      dict(testcase_name='negative', frame_numbers=[1, -2]),
      dict(testcase_name='not_int', frame_numbers=['1']),
  ])
  def test_retrieve_instance_frames_invalid_frames_raises(self, frame_numbers):
    client = self._create_client()
    with self.assertRaises(dicomweb_errors.DicomPathError):
      client.retrieve_instance_frames(
          _STUDY_UID, _SERIES_UID, _INSTANCE_UID, frame_numbers
      )
    self._transport.request.assert_not_called()

  def test_retrieve_instance_frames_dicom_media_type_raises(self):
    client = self._create_client()
    with self.assertRaises(dicomweb_errors.UnsupportedMediaTypeError):
      client.retrieve_instance_frames(
          _STUDY_UID,
          _SERIES_UID,
          _INSTANCE_UID,
          [1],
          [media_types.MediaType(media_types.APPLICATION_DICOM)],
      )

  def test_retrieve_instance_frames_dicom_and_octet_stream_raises(self):
    client = self._create_client()
    with self.assertRaises(dicomweb_errors.MixedMediaTypesError):
      client.retrieve_instance_frames(
          _STUDY_UID,
          _SERIES_UID,
          _INSTANCE_UID,
          [1],
          media_types.media_types_from_strings([
              media_types.APPLICATION_DICOM,
              media_types.APPLICATION_OCTET_STREAM,
          ]),
      )
    self._transport.request.assert_not_called()

  def test_retrieve_study_octet_stream_media_type_raises(self):
    client = self._create_client()
    with self.assertRaisesRegex(
        dicomweb_errors.UnsupportedMediaTypeError, 'application/octet-stream'
    ):
      client.retrieve_study(
          _STUDY_UID,
          [media_types.MediaType(media_types.APPLICATION_OCTET_STREAM)],
      )
    self._transport.request.assert_not_called()

  def test_retrieve_instance_frames_mixed_media_types_raises(self):
    client = self._create_client()
    with self.assertRaises(dicomweb_errors.MixedMediaTypesError):
      client.retrieve_instance_frames(
          _STUDY_UID,
          _SERIES_UID,
          _INSTANCE_UID,
          [1],
          [
              media_types.MediaType(media_types.IMAGE_JPEG),
              media_types.MediaType(media_types.VIDEO_MP4),
          ],
      )

  def test_retrieve_bulk_data(self):
    uri = f'{_INSTANCE_URL}/bulkdata/0042'
    client = self._create_client(_multipart_response([b'bulk']))
    self.assertEqual(client.retrieve_bulk_data(uri), [b'bulk'])
    self._assert_request(
        'GET',
        uri,
        {
            'Accept': (
                'multipart/related; type="application/octet-stream";'
                ' transfer-syntax=*'
            )
        },
    )

  def test_retrieve_bulk_data_skips_unsupported_media_type(self):
    uri = f'{_INSTANCE_URL}/bulkdata/0042'
    client = self._create_client(_multipart_response([b'bulk']))
    client.retrieve_bulk_data(
        uri,
        media_types.media_types_from_strings(
            [media_types.IMAGE_PNG, media_types.IMAGE_JPEG]
        ),
    )
    self._assert_request(
        'GET', uri, {'Accept': 'multipart/related; type="image/jpeg"'}
    )

  def test_retrieve_bulk_data_strict_unsupported_media_type_raises(self):
    client = self._create_client(strict=True)
    with self.assertRaises(dicomweb_errors.UnsupportedMediaTypeError):
      client.retrieve_bulk_data(
          f'{_INSTANCE_URL}/bulkdata/0042',
          [media_types.MediaType(media_types.IMAGE_PNG)],
      )
    self._transport.request.assert_not_called()

  def test_retrieve_instance_rendered(self):
    client = self._create_client(
        http_transport.HttpResponse(
            http.client.OK, {'Content-Type': 'image/jpeg'}, b'jpeg'
        )
    )
    self.assertEqual(
        client.retrieve_instance_rendered(
            _STUDY_UID, _SERIES_UID, _INSTANCE_UID, query_params={'quality': 90}
        ),
        b'jpeg',
    )
    self._assert_request(
        'GET',
        f'{_INSTANCE_URL}/rendered?quality=90',
        {'Accept': 'image/jpeg'},
    )

  def test_retrieve_instance_frames_rendered(self):
    client = self._create_client(
        http_transport.HttpResponse(
            http.client.OK, {'Content-Type': 'image/png'}, b'png'
        )
    )
    self.assertEqual(
        client.retrieve_instance_frames_rendered(
            _STUDY_UID,
            _SERIES_UID,
            _INSTANCE_UID,
            [2],
            [media_types.MediaType(media_types.IMAGE_PNG)],
        ),
        b'png',
    )
    self._assert_request(
        'GET', f'{_INSTANCE_URL}/frames/2/rendered', {'Accept': 'image/png'}
    )

  def test_retrieve_instance_rendered_unsupported_media_type_raises(self):
    client = self._create_client()
    with self.assertRaises(dicomweb_errors.UnsupportedMediaTypeError):
      client.retrieve_instance_rendered(
          _STUDY_UID,
          _SERIES_UID,
          _INSTANCE_UID,
          [media_types.MediaType('image/bmp')],
      )

  @parameterized.named_parameters([
      dict(
          testcase_name='store',
          study_uid=None,
          expected_url=f'{_URL}/studies',
      ),
      dict(
          testcase_name='study',
          study_uid=_STUDY_UID,
          expected_url=f'{_URL}/studies/{_STUDY_UID}',
      ),
  ])
  def test_store_instances(self, study_uid, expected_url):
    stored = {'00081199': {'vr': 'SQ', 'Value': []}}
    client = self._create_client(_json_response(stored))
    datasets = [b'DICM-1', b'DICM-2']
    self.assertEqual(
        client.store_instances(datasets, study_uid, boundary='stow'), stored
    )
    self._assert_request(
        'POST',
        expected_url,
        {
            'Content-Type': (
                'multipart/related; type="application/dicom"; boundary=stow'
            ),
            'Accept': _DICOM_JSON,
        },
        multipart_message.encode(datasets, 'stow').data,
    )

  def test_store_instances_no_content_returns_empty(self):
    client = self._create_client(
        http_transport.HttpResponse(http.client.NO_CONTENT, {}, b'')
    )
    self.assertEqual(client.store_instances([b'DICM']), {})

  def test_store_instances_empty_raises(self):
    client = self._create_client()
    with self.assertRaises(dicomweb_errors.MultipartEncodeError):
      client.store_instances([])
    self._transport.request.assert_not_called()

  def test_http_error_propagates(self):
    self._transport.request.side_effect = dicomweb_errors.HttpNotFoundError(
        'not found', 'Not Found'
    )
    client = self._create_client()
    with self.assertRaises(dicomweb_errors.HttpNotFoundError):
      client.retrieve_study_metadata(_STUDY_UID)


class DicomWebClientRequestsTransportTest(absltest.TestCase):

  def test_retrieve_instance_frames_over_requests(self):
    encoded = multipart_message.encode(
        [b'frame1', b'frame2'], 'b1', media_types.APPLICATION_OCTET_STREAM
    )
    client = dicom_web_client.DicomWebClient(_URL)
    with requests_mock.Mocker() as mock_request:
      mock_request.get(
          f'{_INSTANCE_URL}/frames/1,2',
          content=encoded.data,
          headers={'Content-Type': encoded.content_type},
      )
      frames = client.retrieve_instance_frames(
          _STUDY_UID, _SERIES_UID, _INSTANCE_UID, [1, 2]
      )
      self.assertEqual(
          mock_request.last_request.headers['Accept'],
          'multipart/related; type="application/octet-stream";'
          ' transfer-syntax=*',
      )
    self.assertEqual(frames, [b'frame1', b'frame2'])

  def test_store_instances_over_requests(self):
    client = dicom_web_client.DicomWebClient(_URL)
    with requests_mock.Mocker() as mock_request:
      mock_request.post(f'{_URL}/studies', json={})
      self.assertEqual(client.store_instances([b'DICM'], boundary='b2'), {})
      self.assertEqual(
          mock_request.last_request.body,
          multipart_message.encode([b'DICM'], 'b2').data,
      )

  def test_not_found_raises_http_error(self):
    client = dicom_web_client.DicomWebClient(_URL)
    with requests_mock.Mocker() as mock_request:
      mock_request.get(
          f'{_URL}/studies/{_STUDY_UID}/metadata',
          status_code=http.client.NOT_FOUND,
      )
      with self.assertRaises(dicomweb_errors.HttpNotFoundError):
        client.retrieve_study_metadata(_STUDY_UID)


if __name__ == '__main__':
  absltest.main()
