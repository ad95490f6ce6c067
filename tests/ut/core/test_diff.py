"""索引差异计算测试"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from mcmeta.core.diff import TIE_BREAK_KEEP, TIE_BREAK_REFETCH, compute_delta
from mcmeta.core.exceptions import ValidationError
from mcmeta.core.models import Source, VersionIndex, VersionListEntry


def _t(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def _index(*entries: tuple) -> VersionIndex:
    """entries: (id, 秒数或 None, sha)"""
    return VersionIndex(
        source=Source.MOJANG,
        entries=[
            VersionListEntry(
                id=vid, source=Source.MOJANG,
                release_time=_t(ts) if ts is not None else None, sha=sha,
            )
            for vid, ts, sha in entries
        ],
    )


class TestComputeDelta:
    def test_remote_only_is_new(self) -> None:
        local = _index(("1.20", 100, "a"))
        remote = _index(("1.20", 100, "a"), ("1.20.1", 200, "b"))
        plan = compute_delta(local, remote)
        assert plan.new == ["1.20.1"]
        assert plan.to_fetch == ["1.20.1"]
        assert plan.to_keep == ["1.20"]

    def test_newer_remote_is_updated(self) -> None:
        plan = compute_delta(_index(("x", 100, "a")), _index(("x", 150, "b")))
        assert plan.updated == ["x"]
        assert plan.to_fetch == ["x"]

    def test_older_remote_is_kept(self) -> None:
        plan = compute_delta(_index(("x", 200, "a")), _index(("x", 100, "b")))
        assert plan.to_fetch == []
        assert plan.to_keep == ["x"]

    def test_equal_time_same_fingerprint_kept(self) -> None:
        plan = compute_delta(_index(("x", 100, "a")), _index(("x", 100, "a")))
        assert plan.to_fetch == []
        assert plan.to_keep == ["x"]

    def test_equal_time_different_fingerprint_refetch(self) -> None:
        plan = compute_delta(
            _index(("x", 100, "a")), _index(("x", 100, "b")), TIE_BREAK_REFETCH,
        )
        assert plan.ambiguous == ["x"]
        assert plan.to_fetch == ["x"]

    def test_equal_time_different_fingerprint_keep(self) -> None:
        plan = compute_delta(
            _index(("x", 100, "a")), _index(("x", 100, "b")), TIE_BREAK_KEEP,
        )
        assert plan.ambiguous == []
        assert plan.to_keep == ["x"]

    def test_both_times_missing_uses_fingerprint(self) -> None:
        plan = compute_delta(_index(("x", None, "a")), _index(("x", None, "b")))
        assert plan.ambiguous == ["x"]
        plan = compute_delta(_index(("x", None, "a")), _index(("x", None, "a")))
        assert plan.to_keep == ["x"]

    def test_remote_gains_time(self) -> None:
        plan = compute_delta(_index(("x", None, "a")), _index(("x", 100, "a")))
        assert plan.updated == ["x"]

    def test_local_only_is_removed(self) -> None:
        plan = compute_delta(_index(("old", 1, "a"), ("x", 2, "b")), _index(("x", 2, "b")))
        assert plan.removed == ["old"]
        assert "old" not in plan.to_fetch

    def test_fingerprint_without_sha_uses_entry_content(self) -> None:
        local = VersionIndex(Source.FABRIC, [
            VersionListEntry(id="loader:1", source=Source.FABRIC, extra={"stable": False}),
        ])
        remote = VersionIndex(Source.FABRIC, [
            VersionListEntry(id="loader:1", source=Source.FABRIC, extra={"stable": True}),
        ])
        assert compute_delta(local, remote).ambiguous == ["loader:1"]

    def test_labels_do_not_affect_fingerprint(self) -> None:
        local = VersionIndex(Source.FORGE, [
            VersionListEntry(id="1.20-1.0.1", source=Source.FORGE),
        ])
        remote = VersionIndex(Source.FORGE, [
            VersionListEntry(id="1.20-1.0.1", source=Source.FORGE, labels=["recommended"]),
        ])
        assert compute_delta(local, remote).to_keep == ["1.20-1.0.1"]

    def test_delta_matches_definition(self) -> None:
        local = _index(("a", 100, "1"), ("b", 100, "2"), ("c", 300, "3"))
        remote = _index(("a", 100, "1"), ("b", 200, "2"), ("c", 100, "3"), ("d", 50, "4"))
        plan = compute_delta(local, remote)
        assert plan.to_fetch == ["b", "d"]

    def test_unknown_policy_rejected(self) -> None:
        with pytest.raises(ValidationError, match="tie_break"):
            compute_delta(_index(), _index(), "sometimes")
