# !/usr/bin/python
#
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
"""Install script for dicomweb-client."""

import setuptools

setuptools.setup(
    name='dicomweb_client',
    version='0.1.0',
    author='Google LLC.',
    author_email='no-reply@google.com',
    license='Apache 2.0',
    description=(
        'A DICOMweb client providing QIDO-RS, WADO-RS and STOW-RS requests'
        ' with multipart/related encoding and media type negotiation.'
    ),
    install_requires=[
        'absl-py',
        'requests',
        'requests_mock',
        'requests_toolbelt',
    ],
    package_dir={
        'dicomweb_client': 'dicomweb_client',
    },
    packages=setuptools.find_packages(include=['dicomweb_client']),
    python_requires='>=3.10',
)
