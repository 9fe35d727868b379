"""
End-to-end matching tests: real trees on disk through LinkCommand.
"""
from pathlib import Path

import pytest

from undup.commands import LinkCommand, find_matching_files
from undup.core.cache import MemoryHashCache
from undup.core.errors import TraversalError
from undup.core.hasher import CachedHashingBackend
from undup.core.models import CacheMode, DiagnosticKind, LinkParams, TieBreak
from undup.services.link_service import LinkService
from conftest import make_symlink, write_file


def pairs(matches):
    return {(Path(m.src_path), Path(m.dest_path)) for m in matches}


class TestFindMatchingFiles:

    def test_basic_matching(self, trees):
        source, target = trees["source"], trees["target"]
        write_file(source / "file1.txt", "content1")
        write_file(target / "file1.txt", "content1")
        write_file(source / "file2.txt", "content2")
        write_file(target / "file2.txt", "content2")

        matches = find_matching_files([source], [target])

        assert pairs(matches) == {
            (source / "file1.txt", target / "file1.txt"),
            (source / "file2.txt", target / "file2.txt"),
        }

    def test_single_match_points_at_source_copy(self, trees):
        source, target = trees["source"], trees["target"]
        src = write_file(source / "file1.txt", "content1")
        write_file(target / "file1.txt", "content1")

        matches = find_matching_files([source], [target])
        assert len(matches) == 1
        assert matches[0].dest_path.name == "file1.txt"
        assert matches[0].src_path == src

    def test_different_content_does_not_match(self, trees):
        write_file(trees["source"] / "file1.txt", "content1")
        write_file(trees["target"] / "file1.txt", "different_content")
        assert find_matching_files([trees["source"]], [trees["target"]]) == []

    def test_subdirectories(self, trees):
        source, target = trees["source"], trees["target"]
        write_file(source / "subdir" / "file1.txt", "content1")
        write_file(target / "subdir" / "file1.txt", "content1")

        matches = find_matching_files([source], [target])
        assert len(matches) == 1
        assert matches[0].src_path == source / "subdir" / "file1.txt"
        assert matches[0].dest_path == target / "subdir" / "file1.txt"

    def test_partial_matches(self, trees):
        source, target = trees["source"], trees["target"]
        for name, content in (("match1.txt", "content1"), ("match2.txt", "content2")):
            write_file(source / name, content)
            write_file(target / name, content)
        write_file(source / "nomatch.txt", "source_content")
        write_file(target / "nomatch.txt", "target_content")

        matches = find_matching_files([source], [target])
        assert {m.dest_path.name for m in matches} == {"match1.txt", "match2.txt"}

    def test_duplicate_hashes_match_by_content(self, trees):
        source, target = trees["source"], trees["target"]
        write_file(source / "file1.txt", "same_content")
        write_file(source / "file2.txt", "same_content")
        write_file(target / "target_file.txt", "same_content")

        matches = find_matching_files([source], [target])
        assert len(matches) == 1
        assert matches[0].dest_path == target / "target_file.txt"

    def test_multiplicity(self, trees):
        source, target = trees["source"], trees["target"]
        src = write_file(source / "original.bin", "same_content")
        write_file(target / "a.txt", "same_content")
        write_file(target / "deep" / "b.dat", "same_content")

        matches = find_matching_files([source], [target])
        assert len(matches) == 2
        assert {m.src_path for m in matches} == {src}

    def test_symlink_only_target_yields_nothing(self, trees):
        source, target = trees["source"], trees["target"]
        src = write_file(source / "file1.txt", "content1")
        make_symlink(src, target / "file1.txt")
        assert find_matching_files([source], [target]) == []

    def test_existing_symlink_becomes_source(self, trees):
        source, target = trees["source"], trees["target"]
        linked = write_file(trees["root"] / "elsewhere" / "orig.txt", "content1")
        write_file(source / "file1.txt", "content1")
        make_symlink(linked, target / "link.txt")
        dup = write_file(target / "dup.txt", "content1")

        matches = find_matching_files([source], [target])
        assert pairs(matches) == {(linked, dup)}

    def test_nonexistent_directories(self, tmp_path):
        missing = tmp_path / "nonexistent"
        with pytest.raises(TraversalError):
            find_matching_files([missing], [missing])

    def test_empty_directories(self, tmp_path):
        (tmp_path / "empty1").mkdir()
        (tmp_path / "empty2").mkdir()
        assert find_matching_files([tmp_path / "empty1"], [tmp_path / "empty2"]) == []

    def test_zero_source_roots(self, trees):
        write_file(trees["target"] / "a.txt", "lonely")
        assert find_matching_files([], [trees["target"]]) == []

    def test_file_roots(self, trees):
        src = write_file(trees["source"] / "one.txt", "single")
        dest = write_file(trees["target"] / "two.txt", "single")
        assert pairs(find_matching_files([src], [dest])) == {(src, dest)}


class TestProperties:

    def test_idempotent_on_unchanged_trees(self, populated_trees):
        source, target = populated_trees["source"], populated_trees["target"]
        first = find_matching_files([source], [target])
        second = find_matching_files([source], [target])
        assert pairs(first) == pairs(second)

    def test_multi_root_equivalence(self, tmp_path):
        """Two disjoint roots per side behave like one combined root per side."""
        layout = [
            ("s1/a.txt", "s/a.txt", "alpha"),
            ("s2/b.txt", "s/b.txt", "beta"),
            ("t1/a_copy.txt", "t/a_copy.txt", "alpha"),
            ("t2/b_copy.txt", "t/b_copy.txt", "beta"),
        ]
        for split_rel, combined_rel, content in layout:
            write_file(tmp_path / "split" / split_rel, content)
            write_file(tmp_path / "combined" / combined_rel, content)

        split_matches = find_matching_files(
            [tmp_path / "split" / "s1", tmp_path / "split" / "s2"],
            [tmp_path / "split" / "t1", tmp_path / "split" / "t2"],
        )
        combined_matches = find_matching_files(
            [tmp_path / "combined" / "s"], [tmp_path / "combined" / "t"],
        )

        def by_name(matches):
            return {(m.src_path.name, m.dest_path.name) for m in matches}

        assert len(split_matches) == 2
        assert by_name(split_matches) == by_name(combined_matches)

    def test_target_root_through_symlinked_dir(self, tmp_path):
        real = write_file(tmp_path / "real" / "a.txt", "only copy")
        make_symlink(real, tmp_path / "real" / "link")
        alias = make_symlink(tmp_path / "real", tmp_path / "alias")

        result, _ = LinkCommand().execute([], [alias])
        assert result.matches == []

        LinkService.apply(result.matches)
        assert not real.is_symlink()
        assert real.read_text() == "only copy"

    def test_overlapping_roots_spelled_differently(self, tmp_path):
        real = write_file(tmp_path / "real" / "a.txt", "only copy")
        alias = make_symlink(tmp_path / "real", tmp_path / "alias")

        assert find_matching_files([alias], [tmp_path / "real"]) == []
        assert find_matching_files([tmp_path / "real"], [alias]) == []
        assert real.read_text() == "only copy"

    def test_overlapping_roots_still_match_real_duplicates(self, tmp_path):
        real = write_file(tmp_path / "real" / "a.txt", "same")
        copy = write_file(tmp_path / "real" / "sub" / "copy.txt", "same")
        alias = make_symlink(tmp_path / "real", tmp_path / "alias")

        matches = find_matching_files([alias], [tmp_path / "real" / "sub"])
        assert pairs(matches) == {(alias / "a.txt", copy)}
        assert real.read_text() == "same"

    def test_error_in_target_returns_no_partial_result(self, populated_trees):
        with pytest.raises(TraversalError):
            find_matching_files(
                [populated_trees["source"]],
                [populated_trees["target"], populated_trees["root"] / "missing"],
            )


class TestLinkCommand:

    def test_result_carries_matches_and_diagnostics(self, populated_trees):
        files = populated_trees
        seen = []
        command = LinkCommand()
        result, stats = command.execute([files["source"]], [files["target"]], on_diagnostic=seen.append)

        assert pairs(result.matches) == {
            (files["src_file1"], files["tgt_file1"]),
            (files["src_file2"], files["tgt_copy"]),
        }
        assert len(result.unresolved()) == 1
        assert result.unresolved()[0].paths == (files["tgt_unique"],)
        assert seen == result.diagnostics
        assert set(stats.phase_stats) == {"source", "target", "match"}
        assert stats.phase_stats["target"]["entries"] == 3
        assert stats.phase_stats["match"]["entries"] == 3
        assert stats.phase_stats["match"]["matches"] == 2

    def test_walk_diagnostics_are_included(self, trees):
        (trees["root"] / "somedir").mkdir()
        make_symlink(trees["root"] / "somedir", trees["target"] / "dirlink")
        result, _ = LinkCommand().execute([trees["source"]], [trees["target"]])
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNSUPPORTED_ENTRY]

    def test_cached_backend_hashes_shared_file_once(self, populated_trees):
        files = populated_trees
        backend = CachedHashingBackend(MemoryHashCache())
        with LinkCommand(backend=backend) as command:
            command.execute([files["source"]], [files["target"]])
            command.execute([files["source"]], [files["target"]])
        assert backend.misses == 6
        assert backend.hits == 6

    def test_from_params(self, populated_trees):
        files = populated_trees
        params = LinkParams(
            source_roots=[files["source"]],
            target_roots=[files["target"]],
            cache_mode=CacheMode.MEMORY,
            tie_break=TieBreak.LEXICOGRAPHIC,
        )
        with LinkCommand.from_params(params) as command:
            result, _ = command.execute(params.source_roots, params.target_roots)
        assert len(result.matches) == 2
