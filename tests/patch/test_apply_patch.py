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

"""Tests for applying diffs to storage."""

from __future__ import annotations

import asyncio

from scopefs.patch import (
    PatchOptions,
    PatchOutcome,
    RenamedPath,
    StageHook,
    apply_patch,
)
from scopefs.runtime import CancellationToken
from scopefs.storage import InMemoryStorage
from tests.helpers.diffs import make_diff
from tests.helpers.storage import FaultyStorage


class RecordingStageHook:
    """Collects staged paths; optionally fails for selected paths."""

    def __init__(self, *, failing: frozenset[str] = frozenset()) -> None:
        self.added: list[str] = []
        self.removed: list[str] = []
        self.failing = failing

    async def add(self, path: str) -> None:
        if path in self.failing:
            msg = f"index locked for {path}"
            raise RuntimeError(msg)
        self.added.append(path)

    async def remove(self, path: str) -> None:
        if path in self.failing:
            msg = f"index locked for {path}"
            raise RuntimeError(msg)
        self.removed.append(path)


def _apply(
    storage: object, diff: str, options: PatchOptions | None = None
) -> PatchOutcome:
    return asyncio.run(apply_patch(storage, diff, options))  # pyright: ignore[reportArgumentType]


class TestApplyPatchOutcomes:
    """Per-kind behaviour."""

    def test_modify(self) -> None:
        storage = InMemoryStorage.from_files({"a.txt": "one\ntwo\nthree\n"})

        outcome = _apply(storage, make_diff("one\ntwo\nthree\n", "one\n2\nthree\n", "a.txt"))

        assert outcome.success
        assert outcome.output == "Patch applied successfully. Modified: 1"
        assert outcome.details is not None
        assert outcome.details.modified == ("a.txt",)
        assert storage.snapshot()["a.txt"] == b"one\n2\nthree\n"

    def test_create(self) -> None:
        storage = InMemoryStorage()
        diff = "--- /dev/null\n+++ b/pkg/new.py\n@@ -0,0 +1,2 @@\n+x = 1\n+y = 2\n"

        outcome = _apply(storage, diff)

        assert outcome.success
        assert outcome.details is not None
        assert outcome.details.created == ("pkg/new.py",)
        assert storage.snapshot() == {"pkg/new.py": b"x = 1\ny = 2\n"}

    def test_delete(self) -> None:
        storage = InMemoryStorage.from_files({"old.txt": "bye\n", "keep.txt": "k\n"})
        diff = "--- a/old.txt\n+++ /dev/null\n@@ -1 +0,0 @@\n-bye\n"

        outcome = _apply(storage, diff)

        assert outcome.success
        assert outcome.details is not None
        assert outcome.details.deleted == ("old.txt",)
        assert list(storage.snapshot()) == ["keep.txt"]

    def test_delete_of_missing_file_counts_as_deleted(self) -> None:
        outcome = _apply(
            InMemoryStorage(), "--- a/gone.txt\n+++ /dev/null\n@@ -1 +0,0 @@\n-x\n"
        )

        assert outcome.success
        assert outcome.details is not None
        assert outcome.details.deleted == ("gone.txt",)

    def test_rename_with_changes(self) -> None:
        storage = InMemoryStorage.from_files({"src/old.py": "a\nb\n"})
        diff = "--- a/src/old.py\n+++ b/src/new.py\n@@ -1,2 +1,2 @@\n a\n-b\n+B\n"

        outcome = _apply(storage, diff)

        assert outcome.success
        assert outcome.details is not None
        assert outcome.details.renamed == (RenamedPath("src/old.py", "src/new.py"),)
        assert storage.snapshot() == {"src/new.py": b"a\nB\n"}

    def test_pure_rename_keeps_content(self) -> None:
        storage = InMemoryStorage.from_files({"x.bin": b"\x00raw"})
        diff = "--- a/x.bin\n+++ b/y.bin\n@@ -1 +1 @@\n context\n"

        outcome = _apply(storage, diff)

        assert outcome.success
        assert storage.snapshot() == {"y.bin": b"\x00raw"}

    def test_missing_target_fails(self) -> None:
        storage = InMemoryStorage.from_files({"other.txt": "keep\n"})

        outcome = _apply(storage, make_diff("a\n", "b\n", "nope.txt"))

        assert not outcome.success
        assert [(f.path, f.reason) for f in outcome.failed] == [
            ("nope.txt", "Target file not found: nope.txt")
        ]
        assert outcome.output == "Patch completed with errors. Failed: 1"
        assert storage.snapshot() == {"other.txt": b"keep\n"}

    def test_mismatch_leaves_file_untouched(self) -> None:
        storage = InMemoryStorage.from_files({"a.txt": "a\nb\nc\n"})
        diff = "--- a/a.txt\n+++ b/a.txt\n@@ -1 +1 @@\n-a\n+A\n@@ -3 +3 @@\n-zzz\n+Z\n"

        outcome = _apply(storage, diff)

        assert not outcome.success
        assert outcome.failed[0].reason.startswith("Hunk 2:")
        assert storage.snapshot()["a.txt"] == b"a\nb\nc\n"

    def test_failures_are_isolated_per_file(self) -> None:
        storage = InMemoryStorage.from_files({"good.txt": "1\n", "bad.txt": "x\n"})
        diff = make_diff("1\n", "2\n", "good.txt") + make_diff("nope\n", "y\n", "bad.txt")

        outcome = _apply(storage, diff)

        assert not outcome.success
        assert outcome.details is not None
        assert outcome.details.modified == ("good.txt",)
        assert [f.path for f in outcome.failed] == ["bad.txt"]
        assert storage.snapshot()["good.txt"] == b"2\n"
        assert outcome.output == "Patch completed with errors. Modified: 1 Failed: 1"

    def test_mixed_diff(self) -> None:
        storage = InMemoryStorage.from_files({"m.txt": "m\n", "d.txt": "d\n", "r.txt": "r\n"})
        diff = (
            make_diff("m\n", "M\n", "m.txt")
            + "--- /dev/null\n+++ b/c.txt\n@@ -0,0 +1 @@\n+c\n"
            + "--- a/d.txt\n+++ /dev/null\n@@ -1 +0,0 @@\n-d\n"
            + "--- a/r.txt\n+++ b/r2.txt\n@@ -1 +1 @@\n-r\n+R\n"
        )

        outcome = _apply(storage, diff)

        assert outcome.success
        assert outcome.output == (
            "Patch applied successfully. Created: 1 Modified: 1 Deleted: 1 Renamed: 1"
        )
        assert storage.snapshot() == {"m.txt": b"M\n", "c.txt": b"c\n", "r2.txt": b"R\n"}

    def test_work_dir_prefixes_paths(self) -> None:
        storage = InMemoryStorage.from_files({"repo/a.txt": "a\n"})

        outcome = _apply(
            storage, make_diff("a\n", "b\n", "a.txt"), PatchOptions(work_dir="repo")
        )

        assert outcome.success
        assert storage.snapshot() == {"repo/a.txt": b"b\n"}

    def test_write_error_becomes_failure(self) -> None:
        inner = InMemoryStorage.from_files({"a.txt": "a\n"})
        storage = FaultyStorage(inner, fail_read=["a.txt"])

        outcome = _apply(storage, make_diff("a\n", "b\n", "a.txt"))

        assert not outcome.success
        assert "read denied" in outcome.failed[0].reason

    def test_miscounted_hunk_applies_every_body_line(self) -> None:
        storage = InMemoryStorage.from_files({"f.txt": "a\nb\nc\nd\n"})
        diff = "--- a/f.txt\n+++ b/f.txt\n@@ -1,1 +1,1 @@\n-a\n+A\n-b\n+B\n"

        outcome = _apply(storage, diff)

        assert outcome.success
        assert storage.snapshot()["f.txt"] == b"A\nB\nc\nd\n"

    def test_adapter_value_error_is_recorded_after_earlier_writes(self) -> None:
        storage = InMemoryStorage.from_files({"ok.txt": "1\n"})
        long_name = "n" * 300 + ".txt"
        diff = make_diff("1\n", "2\n", "ok.txt") + (
            f"--- /dev/null\n+++ b/{long_name}\n@@ -0,0 +1 @@\n+new\n"
        )

        outcome = _apply(storage, diff)

        assert not outcome.success
        assert outcome.details is not None
        assert outcome.details.modified == ("ok.txt",)
        assert [f.path for f in outcome.failed] == [long_name]
        assert "segment exceeds limit" in outcome.failed[0].reason
        assert storage.snapshot() == {"ok.txt": b"2\n"}

    def test_rename_rolls_back_new_file_when_source_cannot_be_removed(self) -> None:
        inner = InMemoryStorage.from_files({"a.txt": "a\n"})
        storage = FaultyStorage(inner, fail_delete=["a.txt"])

        outcome = _apply(storage, "--- a/a.txt\n+++ b/b.txt\n@@ -1 +1 @@\n-a\n+A\n")

        assert not outcome.success
        reason = outcome.failed[0].reason
        assert "Could not remove rename source a.txt" in reason
        assert "b.txt was rolled back" in reason
        assert inner.snapshot() == {"a.txt": b"a\n"}

    def test_rename_restores_overwritten_destination(self) -> None:
        inner = InMemoryStorage.from_files({"a.txt": "a\n", "b.txt": "old b\n"})
        storage = FaultyStorage(inner, fail_delete=["a.txt"])

        outcome = _apply(storage, "--- a/a.txt\n+++ b/b.txt\n@@ -1 +1 @@\n-a\n+A\n")

        assert not outcome.success
        assert inner.snapshot() == {"a.txt": b"a\n", "b.txt": b"old b\n"}


class TestApplyPatchInputs:
    """Header-only, unparsable and sanitized input."""

    def test_headers_without_hunks_are_a_no_op(self) -> None:
        outcome = _apply(InMemoryStorage(), "--- a/f\n+++ b/f\n")

        assert outcome == PatchOutcome(success=True, output="No changes in patch (no hunks).")

    def test_parse_failure(self) -> None:
        outcome = _apply(InMemoryStorage(), "@@ -1 +1 @@\n-a\n+b\n")

        assert not outcome.success
        assert outcome.output.startswith("Failed to parse patch:")
        assert outcome.details is None

    def test_no_file_sections(self) -> None:
        outcome = _apply(InMemoryStorage(), "nothing to see\n")

        assert outcome == PatchOutcome(success=False, output="No file hunks found in patch.")

    def test_ansi_sequences_are_stripped(self) -> None:
        storage = InMemoryStorage.from_files({"a.txt": "a\n"})
        diff = "\x1b[1m--- a/a.txt\x1b[0m\n\x1b[1m+++ b/a.txt\x1b[0m\n\x1b[36m@@ -1 +1 @@\x1b[0m\n\x1b[31m-a\x1b[0m\n\x1b[32m+b\x1b[0m\n"

        outcome = _apply(storage, diff)

        assert outcome.success
        assert storage.snapshot()["a.txt"] == b"b\n"

    def test_cancelled_token_aborts_before_first_file(self) -> None:
        storage = InMemoryStorage.from_files({"a.txt": "a\n"})
        token = CancellationToken()
        token.cancel()

        outcome = _apply(storage, make_diff("a\n", "b\n", "a.txt"), PatchOptions(token=token))

        assert not outcome.success
        assert outcome.output == "Patch aborted."
        assert storage.snapshot()["a.txt"] == b"a\n"


class TestStaging:
    """Stage hook integration."""

    def test_hook_satisfies_protocol(self) -> None:
        assert isinstance(RecordingStageHook(), StageHook)

    def test_paths_are_joined_under_work_dir(self) -> None:
        storage = InMemoryStorage.from_files({"repo/a.txt": "a\n", "repo/old.txt": "o\n"})
        hook = RecordingStageHook()
        diff = make_diff("a\n", "b\n", "a.txt") + "--- a/old.txt\n+++ b/new.txt\n"
        diff += "@@ -1 +1 @@\n-o\n+n\n"

        outcome = _apply(storage, diff, PatchOptions(work_dir="repo", stage_hook=hook))

        assert outcome.success
        assert hook.added == ["repo/a.txt", "repo/new.txt"]
        assert hook.removed == ["repo/old.txt"]

    def test_delete_is_staged_as_removal(self) -> None:
        storage = InMemoryStorage.from_files({"d.txt": "d\n"})
        hook = RecordingStageHook()

        outcome = _apply(
            storage,
            "--- a/d.txt\n+++ /dev/null\n@@ -1 +0,0 @@\n-d\n",
            PatchOptions(stage_hook=hook),
        )

        assert outcome.success
        assert hook.removed == ["d.txt"]
        assert hook.added == []

    def test_stage_failure_keeps_the_change(self) -> None:
        storage = InMemoryStorage.from_files({"a.txt": "a\n"})
        hook = RecordingStageHook(failing=frozenset({"a.txt"}))

        outcome = _apply(storage, make_diff("a\n", "b\n", "a.txt"), PatchOptions(stage_hook=hook))

        assert not outcome.success
        assert outcome.details is not None
        assert outcome.details.modified == ("a.txt",)
        assert outcome.failed[0].reason == "stage add failed: index locked for a.txt"
        assert storage.snapshot()["a.txt"] == b"b\n"

    def test_failed_files_are_not_staged(self) -> None:
        hook = RecordingStageHook()

        _ = _apply(InMemoryStorage(), make_diff("a\n", "b\n", "x.txt"), PatchOptions(stage_hook=hook))

        assert hook.added == []
