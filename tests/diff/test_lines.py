"""Tests for diff line classification."""

import pytest

from test_insight.diff import classify_line
from test_insight.diff.models import LineKind


class TestClassifyLine:
    @pytest.mark.parametrize(
        "line, path",
        [
            ("+++ b/src/test/kotlin/MyTest.kt", "src/test/kotlin/MyTest.kt"),
            (r'+++ "b/src/\321\202\320\265\321\201\321\202Test.kt"', "src/тестTest.kt"),
            (r'+++ "b/src/Say \"Hi\"Test.kt"', 'src/Say "Hi"Test.kt'),
            (r'+++ "b/src/tab\there.kt"', "src/tab\there.kt"),
            ("+++ b/src/A.kt\t", "src/A.kt"),
            ("+++ /dev/null", None),
        ],
    )
    def test_file_header(self, line, path):
        result = classify_line(line)
        assert result.kind is LineKind.FILE_HEADER
        assert result.text == path

    @pytest.mark.parametrize(
        "line, kind, text",
        [
            ("+    @Test", LineKind.ADDED, "    @Test"),
            ("+", LineKind.ADDED, ""),
            ("-    fun old() {", LineKind.REMOVED, "    fun old() {"),
            ("     @Test", LineKind.CONTEXT, "    @Test"),
            ("", LineKind.CONTEXT, ""),
            ("@@ -1,3 +1,4 @@ class Foo {", LineKind.HUNK_BOUNDARY, None),
        ],
    )
    def test_content_lines(self, line, kind, text):
        result = classify_line(line)
        assert result.kind is kind
        assert result.text == text

    @pytest.mark.parametrize(
        "line",
        [
            "--- a/src/A.kt",
            "diff --git a/src/A.kt b/src/A.kt",
            "index abc1234..def5678 100644",
            "similarity index 90%",
            "rename from src/A.kt",
            "rename to src/B.kt",
            "new file mode 100644",
            "deleted file mode 100644",
            "Binary files a/x.bin and b/x.bin differ",
            "\\ No newline at end of file",
            "0123456789abcdef0123456789abcdef01234567",
        ],
    )
    def test_metadata(self, line):
        assert classify_line(line).kind is LineKind.METADATA

