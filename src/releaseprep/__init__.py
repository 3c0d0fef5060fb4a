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

"""Release preparation for multi-module Maven reactors.

Maps release and next-development versions across a reactor, rewrites
``pom.xml`` descriptors in place without disturbing untouched text, and
drives git, Mercurial, or Subversion through status, commit, and tag,
with simulate and clean support for every step.
"""

__version__ = '0.1.0'
