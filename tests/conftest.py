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

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from scopefs.storage import InMemoryStorage

FIXED_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def fixed_clock() -> datetime:
    return FIXED_TIME


@pytest.fixture
def project_storage() -> InMemoryStorage:
    """Return a small project tree with hidden and vendored directories."""

    return InMemoryStorage.from_files(
        {
            "README.md": "# Demo\nTODO: write docs\n",
            "src/app.py": "import os\n\ndef main():\n    return os.getcwd()  # TODO\n",
            "src/util.py": "def helper():\n    pass\n",
            "src/nested/deep.py": "VALUE = 1\n",
            "docs/guide.md": "Guide\n",
            ".hidden/secret.txt": "TODO hidden\n",
            ".env": "TOKEN=1\n",
            "node_modules/pkg/index.js": "// TODO vendored\n",
        },
        clock=fixed_clock,
    )
