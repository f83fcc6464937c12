"""Tests for slicer.runner.locking module."""

import pytest

from slicer.runner.locking import LockTimeout, feature_lock, get_lock_path, is_feature_locked


class TestFeatureLock:
    """Tests for feature_lock()."""

    def test_lock_file_location(self, tmp_path):
        assert get_lock_path(tmp_path, "checkout") == tmp_path / ".locks" / "checkout.lock"

    def test_acquire_and_release(self, tmp_path):
        with feature_lock(tmp_path, "checkout", timeout=1):
            assert is_feature_locked(tmp_path, "checkout")
        assert not is_feature_locked(tmp_path, "checkout")
        # Lock files are never removed
        assert get_lock_path(tmp_path, "checkout").exists()

    def test_contended_lock_times_out(self, tmp_path):
        with feature_lock(tmp_path, "checkout", timeout=1):
            with pytest.raises(LockTimeout, match="checkout"):
                with feature_lock(tmp_path, "checkout", timeout=0):
                    pass

    def test_features_lock_independently(self, tmp_path):
        with feature_lock(tmp_path, "checkout", timeout=1):
            with feature_lock(tmp_path, "search", timeout=0):
                assert is_feature_locked(tmp_path, "search")

    def test_released_on_error(self, tmp_path):
        with pytest.raises(RuntimeError):
            with feature_lock(tmp_path, "checkout", timeout=1):
                raise RuntimeError("boom")
        assert not is_feature_locked(tmp_path, "checkout")

    def test_unlocked_when_never_created(self, tmp_path):
        assert not is_feature_locked(tmp_path, "checkout")
