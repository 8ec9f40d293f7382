# Copyright 2026 Google LLC
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
#
# SPDX-License-Identifier: Apache-2.0

"""Format-preserving patches for package manifest text.

The core is two pure text-in/text-out operations:

- :func:`manifestkit.patcher.update_dependency` rewrites one dependency's
  value (and its resolutions mirror) in raw package.json text.
- :func:`manifestkit.bumper.bump_package_version` advances the manifest's
  own version per a bump policy.
"""

__version__ = '0.1.0'
