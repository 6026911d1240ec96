"""Tests for the workspace scanner."""

from pathlib import Path

from codeflow.scanner import CancellationToken, WorkspaceScanner, match_globs, scan_workspace


def _names(results):
    return sorted(d.name for r in results for d in r.declarations)


class TestScan:
    def test_sample_project(self, sample_project_path: Path):
        results = scan_workspace(sample_project_path)

        assert "Card" in _names(results)
        assert "PlayerController" in _names(results)
        assert "get_user" in _names(results)
        assert all(Path(r.file_path).is_absolute() for r in results)

    def test_drops_noise_files(self, make_project):
        root = make_project({
            "src/a.ts": "export const one = () => 1;\n",
            "src/empty.ts": "// nothing here\n",
        })

        results = scan_workspace(root)

        assert [Path(r.file_path).name for r in results] == ["a.ts"]

    def test_skips_baseline_directories(self, make_project):
        root = make_project({
            "src/a.ts": "export const one = () => 1;\n",
            "node_modules/lib/index.js": "export function lib() {}\n",
            "build/out.js": "export function out() {}\n",
            ".venv/lib/site.py": "def site():\n    pass\n",
        })

        assert _names(scan_workspace(root)) == ["one"]

    def test_exclude_globs(self, make_project):
        root = make_project({
            "src/a.ts": "export const one = () => 1;\n",
            "src/a.test.ts": "export const spec = () => 1;\n",
            "legacy/old.py": "def old():\n    pass\n",
        })

        results = scan_workspace(root, ["*.test.ts", "legacy/**"])

        assert _names(results) == ["one"]

    def test_unreadable_file_does_not_abort(self, make_project):
        root = make_project({"src/a.ts": "export const one = () => 1;\n"})
        (root / "src" / "broken.py").write_bytes(b"\xff\xfe\xfa")
        scanner = WorkspaceScanner()

        results = scanner.scan(root)

        assert _names(results) == ["one"]
        assert [Path(r.file_path).name for r in scanner.errors] == ["broken.py"]
        assert scanner.files_scanned == 2

    def test_deterministic_order(self, sample_project_path: Path):
        first = [r.file_path for r in scan_workspace(sample_project_path)]
        second = [r.file_path for r in scan_workspace(sample_project_path)]

        assert first == second


class TestCancellation:
    def test_cancel_mid_scan_returns_partial(self, make_project):
        root = make_project({
            f"src/mod{i}.ts": f"export const fn{i} = () => {i};\n" for i in range(6)
        })
        token = CancellationToken()
        seen = []

        def progress(result):
            seen.append(result)
            if len(seen) == 2:
                token.cancel()

        results = WorkspaceScanner().scan(root, token, progress=progress)

        assert len(seen) == 2
        assert len(results) <= 2

    def test_cancel_before_start(self, make_project):
        root = make_project({"src/a.ts": "export const one = () => 1;\n"})
        token = CancellationToken()
        token.cancel()

        assert scan_workspace(root, token=token) == []


class TestGlobs:
    def test_match_globs(self):
        assert match_globs("src/a.test.ts", ["*.test.ts"])
        assert match_globs("legacy/deep/old.py", ["legacy/**"])
        assert match_globs("src/generated/x.ts", ["**/generated/**"])
        assert match_globs("generated/x.ts", ["**/generated/**"])
        assert not match_globs("src/a.ts", ["*.test.ts"])
        assert not match_globs("src/a.ts", [])
