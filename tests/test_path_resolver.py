"""Tests for holding identifier validation and path resolution."""

import tempfile
from pathlib import Path

import pytest

from holdingstore.exceptions import InvalidFormatError, TraversalViolationError
from holdingstore.paths import PathResolver, ensure_safe, validate_uuid

HOLDING_A = "3f2b8c1e-7d4a-4e6b-9c0d-1a2b3c4d5e6f"
HOLDING_A_SHARD_MATE = "3fa1b2c3-d4e5-4f60-8a1b-2c3d4e5f6a7b"


class TestValidateUuid:
    """Test cases for uuid4 validation."""

    def test_accepts_canonical_uuid4(self) -> None:
        """Test that a lower-case uuid4 is returned unchanged."""
        assert validate_uuid(HOLDING_A) == HOLDING_A

    def test_accepts_upper_case_and_normalizes(self) -> None:
        """Test that upper-case hex is accepted and lower-cased."""
        assert validate_uuid(HOLDING_A.upper()) == HOLDING_A

    @pytest.mark.parametrize("variant", ["8", "9", "a", "b", "A", "B"])
    def test_accepts_every_variant_nibble(self, variant: str) -> None:
        """Test the four allowed variant nibbles."""
        candidate = f"3f2b8c1e-7d4a-4e6b-{variant}c0d-1a2b3c4d5e6f"
        assert validate_uuid(candidate) == candidate.lower()

    @pytest.mark.parametrize(
        "candidate",
        [
            "",
            "3f2b8c1e-7d4a-4e6b-9c0d-1a2b3c4d5e6",
            "3f2b8c1e-7d4a-4e6b-9c0d-1a2b3c4d5e6f0",
            "3f2b8c1e7d4a4e6b9c0d1a2b3c4d5e6f",
        ],
    )
    def test_rejects_wrong_length(self, candidate: str) -> None:
        """Test that anything but 36 characters is rejected on length."""
        with pytest.raises(InvalidFormatError, match="Invalid length"):
            validate_uuid(candidate)

    @pytest.mark.parametrize(
        "candidate",
        [
            "3f2b8c1e-7d4a-3e6b-9c0d-1a2b3c4d5e6f",  # version 3
            "3f2b8c1e-7d4a-4e6b-7c0d-1a2b3c4d5e6f",  # variant 7
            "3f2b8c1e-7d4a-4e6b-|c0d-1a2b3c4d5e6f",  # not a nibble
            "3f2b8c1e-7d4a-4e6b-9c0d-1a2b3c4d5e6g",  # non-hex
            "3f2b8c1e_7d4a_4e6b_9c0d_1a2b3c4d5e6f",  # wrong separators
            "../../../../../../../../../etc/passw",  # 36 chars of traversal
        ],
    )
    def test_rejects_malformed_uuid(self, candidate: str) -> None:
        """Test that 36 character strings that are not uuid4 are rejected."""
        assert len(candidate) == 36
        with pytest.raises(InvalidFormatError, match="Invalid uuid4 format"):
            validate_uuid(candidate)

    def test_rejects_non_string(self) -> None:
        """Test that non-string identifiers are rejected."""
        with pytest.raises(InvalidFormatError):
            validate_uuid(None)

    def test_error_carries_offending_value(self) -> None:
        """Test that the error reports the identifier and the problem."""
        with pytest.raises(InvalidFormatError) as exc_info:
            validate_uuid("nope")

        assert exc_info.value.uuid == "nope"
        assert str(exc_info.value) == "nope - Invalid length"


class TestEnsureSafe:
    """Test cases for the containment check."""

    def test_accepts_path_inside_base(self) -> None:
        """Test that a nested path is accepted and returned resolved."""
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir)
            result = ensure_safe(base, base / "a" / "b.flac")
            assert result == base.resolve() / "a" / "b.flac"

    def test_accepts_base_itself(self) -> None:
        """Test that the base directory is contained in itself."""
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir)
            assert ensure_safe(base, base) == base.resolve()

    def test_rejects_parent_traversal(self) -> None:
        """Test that .. segments escaping the base are rejected."""
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir) / "lib"
            with pytest.raises(TraversalViolationError):
                ensure_safe(base, base / ".." / "outside")

    def test_allows_parent_segments_that_stay_inside(self) -> None:
        """Test that .. segments are fine while the result stays inside."""
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir)
            result = ensure_safe(base, base / "a" / ".." / "b")
            assert result == base.resolve() / "b"

    def test_rejects_sibling_sharing_string_prefix(self) -> None:
        """Test that /x/lib does not contain /x/library2."""
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir) / "lib"
            with pytest.raises(TraversalViolationError):
                ensure_safe(base, Path(temp_dir) / "library2" / "x")

    def test_rejects_symlink_escape(self) -> None:
        """Test that a symlink pointing outside the base is rejected."""
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir) / "lib"
            outside = Path(temp_dir) / "outside"
            base.mkdir()
            outside.mkdir()
            (base / "link").symlink_to(outside)

            with pytest.raises(TraversalViolationError):
                ensure_safe(base, base / "link" / "file")

    def test_rejects_null_byte(self) -> None:
        """Test that paths which cannot be resolved are rejected."""
        with tempfile.TemporaryDirectory() as temp_dir:
            base = Path(temp_dir)
            with pytest.raises(TraversalViolationError):
                ensure_safe(base, base / "bad\x00name")

    def test_error_message(self) -> None:
        """Test the traversal error message names both paths."""
        error = TraversalViolationError("/lib", "/etc/passwd")
        assert str(error) == "/etc/passwd is outside of /lib"


class TestPathResolver:
    """Test cases for PathResolver path derivation."""

    def test_holding_path_is_sharded(self) -> None:
        """Test that holdings live under the first two hex characters."""
        resolver = PathResolver(Path("/data/lib"))
        assert resolver.holding_path(HOLDING_A) == Path("/data/lib/3f") / HOLDING_A
        assert resolver.shard_path(HOLDING_A) == Path("/data/lib/3f")

    def test_shard_mates_have_distinct_paths(self) -> None:
        """Test that UUIDs sharing a prefix share a shard but not a directory."""
        resolver = PathResolver(Path("/data/lib"))
        assert resolver.shard_path(HOLDING_A) == resolver.shard_path(HOLDING_A_SHARD_MATE)
        assert resolver.holding_path(HOLDING_A) != resolver.holding_path(HOLDING_A_SHARD_MATE)

    def test_holding_path_normalizes_case(self) -> None:
        """Test that upper-case identifiers map to the same directory."""
        resolver = PathResolver(Path("/data/lib"))
        assert resolver.holding_path(HOLDING_A.upper()) == resolver.holding_path(HOLDING_A)

    def test_holding_path_validates_first(self) -> None:
        """Test that derivation refuses malformed identifiers."""
        resolver = PathResolver(Path("/data/lib"))
        with pytest.raises(InvalidFormatError):
            resolver.holding_path("../../etc")

    def test_fixed_locations(self) -> None:
        """Test the track area, artwork and lock locations."""
        resolver = PathResolver(Path("/data/lib"))
        holding = Path("/data/lib/3f") / HOLDING_A
        assert resolver.track_root(HOLDING_A) == holding / "music"
        assert resolver.artwork_path(HOLDING_A) == holding / "albumart"
        assert resolver.lock_path(HOLDING_A) == holding / "lock"

    def test_track_path_nested(self) -> None:
        """Test that nested track paths resolve below music/."""
        with tempfile.TemporaryDirectory() as temp_dir:
            resolver = PathResolver(Path(temp_dir))
            track = resolver.track_path(HOLDING_A, "CD1/01 - Intro.flac")
            expected = resolver.track_root(HOLDING_A).resolve() / "CD1" / "01 - Intro.flac"
            assert track == expected

    @pytest.mark.parametrize(
        "relative_path",
        ["../../etc/passwd", "../albumart", "../lock", "/etc/passwd", "", "a/../.."],
    )
    def test_track_path_rejects_escapes(self, relative_path: str) -> None:
        """Test that track paths must name something inside music/."""
        with tempfile.TemporaryDirectory() as temp_dir:
            resolver = PathResolver(Path(temp_dir))
            with pytest.raises(TraversalViolationError):
                resolver.track_path(HOLDING_A, relative_path)

    def test_resolver_ensure_safe_defaults_to_library(self) -> None:
        """Test that the resolver checks against its library root by default."""
        with tempfile.TemporaryDirectory() as temp_dir:
            resolver = PathResolver(Path(temp_dir) / "lib")
            with pytest.raises(TraversalViolationError):
                resolver.ensure_safe(Path(temp_dir) / "lib2" / "x")
