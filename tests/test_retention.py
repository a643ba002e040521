"""
Retention tests: age-based sweeping and post-download deletion.
"""
import asyncio
import os
import time

from convert_app.core.storage import StorageAreas
from convert_app.services.retention import DeferredRemover, RetentionSweeper, sweep

TWO_HOURS = 2 * 60 * 60


def _aged_file(directory, name, age_seconds):
    path = directory / name
    path.write_bytes(b"data")
    mtime = time.time() - age_seconds
    os.utime(path, (mtime, mtime))
    return path


class TestSweep:
    """Test the retention sweep over both storage areas."""

    def test_removes_only_expired_files(self, storage: StorageAreas):
        old_upload = _aged_file(storage.intake_dir, "old.png", TWO_HOURS + 60)
        old_output = _aged_file(storage.output_dir, "converted-old.webp", TWO_HOURS + 60)
        young_upload = _aged_file(storage.intake_dir, "young.png", 60)
        young_output = _aged_file(storage.output_dir, "converted-young.webp", TWO_HOURS - 60)

        removed = sweep(storage.directories, TWO_HOURS)

        assert set(removed) == {old_upload, old_output}
        assert not old_upload.exists()
        assert not old_output.exists()
        assert young_upload.exists()
        assert young_output.exists()

    def test_uses_supplied_clock(self, storage: StorageAreas):
        path = _aged_file(storage.intake_dir, "file.txt", 0)
        assert sweep(storage.directories, TWO_HOURS) == []
        assert sweep(storage.directories, TWO_HOURS, now=time.time() + TWO_HOURS + 1) == [path]

    def test_missing_directory_is_skipped(self, storage: StorageAreas, tmp_path):
        old = _aged_file(storage.output_dir, "old.mp3", TWO_HOURS + 1)
        removed = sweep([tmp_path / "does-not-exist", storage.output_dir], TWO_HOURS)
        assert removed == [old]

    def test_subdirectories_are_left_alone(self, storage: StorageAreas):
        subdir = storage.intake_dir / "nested"
        subdir.mkdir()
        mtime = time.time() - TWO_HOURS - 60
        os.utime(subdir, (mtime, mtime))
        assert sweep(storage.directories, TWO_HOURS) == []
        assert subdir.is_dir()

    def test_sweeper_once(self, storage: StorageAreas):
        old = _aged_file(storage.output_dir, "old.flac", TWO_HOURS + 1)
        sweeper = RetentionSweeper(storage, interval_seconds=3600, max_age_seconds=TWO_HOURS)
        assert asyncio.run(sweeper.sweep_once()) == [old]

    def test_sweeper_runs_periodically(self, storage: StorageAreas):
        """Test the background loop sweeps on its interval and stops cleanly."""
        old = _aged_file(storage.intake_dir, "old.wav", 10)

        async def scenario():
            sweeper = RetentionSweeper(storage, interval_seconds=0.05, max_age_seconds=1)
            sweeper.start()
            await asyncio.sleep(0.3)
            await sweeper.stop()
            return sweeper

        sweeper = asyncio.run(scenario())
        assert not old.exists()
        assert sweeper._task is None


class TestDeferredRemover:
    """Test deletion of downloaded artifacts after the grace period."""

    def test_removes_after_delay(self, storage: StorageAreas):
        path = _aged_file(storage.output_dir, "converted-1.png", 0)

        async def scenario():
            remover = DeferredRemover(storage, delay_seconds=0.1)
            await remover.schedule(path)
            # Still downloadable during the grace period
            assert path.exists()
            await asyncio.sleep(0.3)

        asyncio.run(scenario())
        assert not path.exists()

    def test_already_removed_file(self, storage: StorageAreas):
        """Test a file swept before the timer fires is not an error."""
        path = _aged_file(storage.output_dir, "converted-2.png", 0)

        async def scenario():
            remover = DeferredRemover(storage, delay_seconds=0.05)
            await remover.schedule(path)
            path.unlink()
            await asyncio.sleep(0.2)
            return remover

        remover = asyncio.run(scenario())
        assert remover._pending == set()

    def test_cancel_all(self, storage: StorageAreas):
        path = _aged_file(storage.output_dir, "converted-3.png", 0)

        async def scenario():
            remover = DeferredRemover(storage, delay_seconds=0.1)
            await remover.schedule(path)
            remover.cancel_all()
            await asyncio.sleep(0.3)

        asyncio.run(scenario())
        assert path.exists()
