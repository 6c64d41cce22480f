"""Analysis aggregation tests."""

from __future__ import annotations

from diff_signals.analysis import analyze_complexity, analyze_pull_request
from diff_signals.models import ChangedFile


def _added_diff(path: str, lines: list[str]) -> str:
    header = [
        f"diff --git a/{path} b/{path}",
        f"--- a/{path}",
        f"+++ b/{path}",
        f"@@ -0,0 +1,{len(lines)} @@",
    ]
    return "\n".join(header + [f"+{line}" for line in lines]) + "\n"


def test_large_file_emits_size_warning() -> None:
    files = [ChangedFile("src/big.js", additions=350, deletions=10)]

    report = analyze_complexity(files, "")
    assert [(w.type, w.severity) for w in report.warnings] == [("size", "medium")]
    assert [item.filename for item in report.large_files] == ["src/big.js"]
    assert report.warnings[0].message == (
        "Adding 350 lines to single file. Consider breaking into smaller changes."
    )
    assert report.details == ["📏 1 file(s) with large changes (>300 lines)"]


def test_high_complexity_emits_high_warning() -> None:
    lines = ["if (x) { y(); }"] * 11
    files = [ChangedFile("src/app.js", additions=11)]

    report = analyze_complexity(files, _added_diff("src/app.js", lines))
    assert [(w.type, w.severity) for w in report.warnings] == [("complexity", "high")]
    assert report.complex_files[0].complexity == 12
    assert report.to_dict()["complex_files"][0]["language"] == "c_like"
    assert report.warnings[0].message == (
        "Estimated cyclomatic complexity (12) exceeds threshold (10)"
    )


def test_warning_order_per_file() -> None:
    lines = [
        "function a() {",
        "if (b) {",
        "if (c) {",
        "if (d) {",
        "if (e) {",
        "// TODO tidy " + "x" * 160,
        "}}}}}",
    ] + ["if (f) { g(); }"] * 6
    files = [ChangedFile("src/deep.ts", additions=400)]

    report = analyze_complexity(files, _added_diff("src/deep.ts", lines))
    assert [w.type for w in report.warnings] == ["size", "complexity", "nesting", "formatting"]
    assert [smell.type for smell in report.code_smells] == ["todo"]
    assert report.details == [
        "📏 1 file(s) with large changes (>300 lines)",
        "🔀 1 file(s) with high complexity",
        "📝 1 todo code smell(s) detected",
    ]


def test_non_code_and_ignored_files_are_skipped() -> None:
    files = [
        ChangedFile("docs/guide.md", additions=900),
        ChangedFile("vendor/lib.js", additions=900),
        ChangedFile("src/ok.py", additions=3, deletions=1),
    ]

    report = analyze_complexity(files, "", ignore_patterns=["vendor/**"])
    assert report.warnings == []
    assert report.stats.total_additions == 3
    assert report.stats.largest_file == ("src/ok.py", 3)
    assert report.details == ["✅ No significant complexity issues detected"]


def test_stats_average_and_largest() -> None:
    files = [
        ChangedFile("a.py", additions=10, deletions=2),
        ChangedFile("b.py", additions=15, deletions=0),
        ChangedFile("c.py", additions=15, deletions=1),
        ChangedFile("d.py", additions=1),
    ]

    stats = analyze_complexity(files, None).stats
    assert stats.total_additions == 41
    assert stats.total_deletions == 3
    assert stats.average_file_size == 10
    assert stats.largest_file == ("b.py", 15)


def test_empty_input_yields_empty_reports() -> None:
    result = analyze_pull_request([], "")

    assert result.risk.files == []
    assert result.complexity.warnings == []
    assert result.complexity.stats.largest_file is None
    assert result.complexity.to_dict()["stats"]["largest_file"] is None


def test_ignore_patterns_exclude_from_both_reports() -> None:
    files = [
        ChangedFile("vendor/auth/login.js", additions=500),
        ChangedFile("src/auth/login.js", additions=5),
    ]

    result = analyze_pull_request(files, "", ignore_patterns=["vendor/**"])
    assert [finding.filename for finding in result.risk.files] == ["src/auth/login.js"]
    assert result.complexity.large_files == []
    assert result.files_analyzed == 2


def test_analyze_pull_request_with_custom_patterns() -> None:
    lines = ["console.log('charge');"]
    files = [ChangedFile("src/payments/checkout.js", additions=1)]

    result = analyze_pull_request(
        files,
        _added_diff("src/payments/checkout.js", lines),
        custom_patterns=[
            {"pattern": "**/payments/**", "severity": "high", "category": "financial"}
        ],
    )
    assert result.risk.high_risk_count == 1
    assert result.risk.files[0].categories == ("financial",)
    assert result.complexity.code_smells[0].type == "debug"
    assert result.complexity.details == ["🐛 1 debug code smell(s) detected"]


def test_smell_details_sum_occurrences_across_files() -> None:
    diff_text = _added_diff(
        "src/a.js", ["// TODO one", "// FIXME two", "// HACK three"]
    ) + _added_diff("src/b.js", ["// todo four"])
    files = [ChangedFile("src/a.js", additions=3), ChangedFile("src/b.js", additions=1)]

    report = analyze_complexity(files, diff_text)
    assert [(smell.filename, smell.count) for smell in report.code_smells] == [
        ("src/a.js", 3),
        ("src/b.js", 1),
    ]
    assert report.details == ["📝 4 todo code smell(s) detected"]
