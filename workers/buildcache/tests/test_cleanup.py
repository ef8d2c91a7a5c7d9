"""
test_cleanup — clean and list-diagnostics targets.
"""
from buildcache.core.cleanup import clean, list_diagnostics
from buildcache.core.catalog import discover
from buildcache.policy.profile import Profile, SourceKind


def _names(d):
    return sorted(p.name for p in d.iterdir())


class TestClean:

    def test_removes_every_derived_artifact(self, src_dir):
        for name in ("a.cpp", "b.py", "x.h", "README.txt"):
            (src_dir / name).write_text("")
        for unit in discover(src_dir):
            unit.primary_path.write_text("out")
            unit.diagnostic_path.write_text("diag")
            unit.temp_diagnostic_path.write_text("half")

        removed = clean(src_dir)

        assert _names(src_dir) == ["README.txt", "a.cpp", "b.py", "x.h"]
        assert [p.name for p in removed] == [
            "._a.cpp.compile.out",
            "._a.cpp.compile.tmp.out",
            "._b.py.err.out",
            "._b.py.err.tmp.out",
            "a.exe",
            "b",
        ]

    def test_orphans_removed_by_pattern(self, src_dir):
        """Artifacts whose source was deleted are still derived files."""
        for name in ("gone.exe", "._gone.cpp.compile.out", "._old.py.err.tmp.out"):
            (src_dir / name).write_text("")

        clean(src_dir)

        assert _names(src_dir) == []

    def test_sources_never_deleted(self, src_dir):
        """A source whose name matches a derived name survives."""
        (src_dir / "a.cpp.py").write_text("")
        (src_dir / "a.cpp").write_text("")
        (src_dir / "tool.exe.py").write_text("")

        clean(src_dir)

        assert _names(src_dir) == ["a.cpp", "a.cpp.py", "tool.exe.py"]

    def test_directories_left_alone(self, src_dir):
        (src_dir / "build.exe").mkdir()

        assert clean(src_dir) == []
        assert (src_dir / "build.exe").is_dir()

    def test_clean_on_clean_tree(self, src_dir):
        (src_dir / "a.py").write_text("")

        assert clean(src_dir) == []
        assert _names(src_dir) == ["a.py"]

    def test_custom_profile_prefix(self, src_dir):
        profile = Profile(profile_id="c", compile_out_prefix="_d_", err_out_prefix="_e_")
        for name in ("a.cpp", "_d_a.cpp.compile.out", "._a.cpp.compile.out"):
            (src_dir / name).write_text("")

        clean(src_dir, profile)

        # Files in the default naming belong to a different profile
        assert _names(src_dir) == ["._a.cpp.compile.out", "a.cpp"]


class TestListDiagnostics:

    def test_names_in_catalog_order(self, src_dir):
        for name in ("z.py", "a.cpp", "m.py", "h.h"):
            (src_dir / name).write_text("")

        assert list_diagnostics(src_dir) == [
            "._a.cpp.compile.out",
            "._m.py.err.out",
            "._z.py.err.out",
        ]

    def test_filter_by_kind(self, src_dir):
        for name in ("a.cpp", "b.py"):
            (src_dir / name).write_text("")

        assert list_diagnostics(src_dir, kind=SourceKind.COMPILED) == ["._a.cpp.compile.out"]
        assert list_diagnostics(src_dir, kind=SourceKind.INTERPRETED) == ["._b.py.err.out"]

    def test_read_only(self, src_dir):
        (src_dir / "a.py").write_text("")

        list_diagnostics(src_dir)

        assert _names(src_dir) == ["a.py"]

    def test_empty_directory(self, src_dir):
        assert list_diagnostics(src_dir) == []
